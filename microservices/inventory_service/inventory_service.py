"""
Inventory Service Business Logic

Reservation workflows over the stock ledger: reserve, confirm, release and
expire, plus availability checks, stats and stock administration.

Every workflow loads entities, mutates them in memory and writes them back.
The ledger write is an optimistic-lock conditional update; an
OptimisticLockError means "reload and run the whole workflow again", which
is the caller's job. The item write and the reservation write are two
separate statements with no transaction spanning them.
"""

import logging
from datetime import timedelta
from typing import Callable, List, Optional, Tuple

from .errors import (
    InvalidQuantityError,
    InventoryServiceError,
    ReservationAlreadyExistsError,
    ReservationExpiredError,
    ReservationNotPendingError,
)
from .events.models import ReleaseReason
from .events.publishers import (
    publish_stock_confirmed,
    publish_stock_depleted,
    publish_stock_released,
    publish_stock_reserved,
)
from .models import (
    DEFAULT_RESERVATION_TTL,
    AvailabilityResult,
    ConfirmReservationResult,
    InventoryStats,
    ReleaseReservationResult,
    Reservation,
    ReserveStockResult,
    StockItem,
)
from .protocols import (
    EventBusProtocol,
    InventoryRepositoryProtocol,
    ReservationRepositoryProtocol,
)

logger = logging.getLogger(__name__)

_StockSnapshot = Tuple[int, int, object]


def _snapshot(item: StockItem) -> _StockSnapshot:
    return item.quantity, item.reserved, item.updated_at


def _restore(item: StockItem, snapshot: _StockSnapshot) -> None:
    item.quantity, item.reserved, item.updated_at = snapshot


class InventoryService:
    """Inventory service business logic layer"""

    STATS_PAGE_SIZE = 500

    def __init__(
        self,
        inventory_repository: InventoryRepositoryProtocol,
        reservation_repository: ReservationRepositoryProtocol,
        event_bus: Optional[EventBusProtocol] = None,
        reservation_ttl: timedelta = DEFAULT_RESERVATION_TTL,
        low_stock_threshold: int = 10,
    ):
        self.inventory_repository = inventory_repository
        self.reservation_repository = reservation_repository
        self.event_bus = event_bus
        self.reservation_ttl = reservation_ttl
        self.low_stock_threshold = low_stock_threshold

    # ====================
    # Reservation workflows
    # ====================

    async def reserve_stock(
        self,
        product_id: str,
        order_id: str,
        quantity: int,
        ttl: Optional[timedelta] = None,
        user_id: Optional[str] = None,
    ) -> ReserveStockResult:
        """
        Reserve units of a product for an order.

        At most one reservation exists per order, so retrying a reserve
        after a transport failure cannot double-book.

        Raises:
            InvalidQuantityError, InvalidDurationError: bad input
            ReservationAlreadyExistsError: the order already holds a reservation
            StockItemNotFoundError: no stock item for the product
            InsufficientStockError: not enough units available
            OptimisticLockError: the item changed underneath us
        """
        if quantity <= 0:
            raise InvalidQuantityError(details=f"quantity: {quantity}")

        if await self.reservation_repository.exists_by_order_id(order_id):
            raise ReservationAlreadyExistsError(details=f"order_id: {order_id}")

        item = await self.inventory_repository.get_item_by_product(product_id)
        item.reserve(quantity)
        reservation = Reservation.create(
            inventory_item_id=item.id,
            order_id=order_id,
            quantity=quantity,
            ttl=ttl if ttl is not None else self.reservation_ttl,
        )

        await self.inventory_repository.update_item(item)
        try:
            await self.reservation_repository.save_reservation(reservation)
        except Exception as e:
            logger.error(
                f"Stock item {item.id} now holds {quantity} reserved units for order {order_id} "
                f"but the reservation could not be saved: {e}"
            )
            raise

        logger.info(
            f"Reserved {quantity} of product {product_id} for order {order_id} "
            f"(reservation {reservation.id}, available {item.available})"
        )

        await publish_stock_reserved(
            self.event_bus,
            reservation_id=reservation.id,
            product_id=product_id,
            order_id=order_id,
            quantity=quantity,
            remaining_stock=item.available,
            expires_at=reservation.expires_at,
            user_id=user_id,
        )
        if item.available == 0:
            await publish_stock_depleted(
                self.event_bus,
                product_id=product_id,
                inventory_item_id=item.id,
                total_stock=item.quantity,
                reserved=item.reserved,
            )

        return ReserveStockResult(
            reservation_id=reservation.id,
            product_id=product_id,
            order_id=order_id,
            quantity=quantity,
            expires_at=reservation.expires_at,
            remaining_stock=item.available,
            reservation_created_at=reservation.created_at,
        )

    async def confirm_reservation(self, reservation_id: str) -> ConfirmReservationResult:
        """Permanently deduct a pending, unexpired reservation from stock"""
        reservation = await self.reservation_repository.get_reservation(reservation_id)
        if not reservation.can_be_confirmed():
            if reservation.is_pending():
                raise ReservationExpiredError(details=f"reservation_id: {reservation_id}")
            raise ReservationNotPendingError(
                details=f"reservation_id: {reservation_id}, status: {reservation.status.value}"
            )

        item = await self._settle(reservation, item_change=StockItem.confirm_reservation, transition=reservation.confirm)

        logger.info(
            f"Confirmed reservation {reservation_id} for order {reservation.order_id} "
            f"({reservation.quantity} units, stock now {item.quantity})"
        )
        await publish_stock_confirmed(
            self.event_bus,
            reservation_id=reservation.id,
            product_id=item.product_id,
            order_id=reservation.order_id,
            quantity=reservation.quantity,
            final_stock=item.quantity,
        )

        return ConfirmReservationResult(
            reservation_id=reservation.id,
            inventory_item_id=item.id,
            order_id=reservation.order_id,
            quantity_confirmed=reservation.quantity,
            final_stock=item.quantity,
            reserved_stock=item.reserved,
        )

    async def release_reservation(
        self,
        reservation_id: str,
        reason: ReleaseReason = ReleaseReason.MANUAL_RELEASE,
    ) -> ReleaseReservationResult:
        """Return a pending reservation's units to the available pool (expiry does not block this)"""
        reservation = await self.reservation_repository.get_reservation(reservation_id)
        if not reservation.can_be_released():
            raise ReservationNotPendingError(
                details=f"reservation_id: {reservation_id}, status: {reservation.status.value}"
            )

        item = await self._settle(reservation, item_change=StockItem.release_reservation, transition=reservation.release)

        logger.info(
            f"Released reservation {reservation_id} for order {reservation.order_id} "
            f"({reservation.quantity} units, reason {reason.value})"
        )
        await publish_stock_released(
            self.event_bus,
            reservation_id=reservation.id,
            product_id=item.product_id,
            order_id=reservation.order_id,
            quantity=reservation.quantity,
            reason=reason,
        )
        return self._release_result(reservation, item)

    async def expire_reservation(self, reservation_id: str) -> ReleaseReservationResult:
        """
        Return an expired pending reservation's units and mark it Expired.

        The reservation is reloaded here so a confirm or release that landed
        after the caller listed it is seen.
        """
        reservation = await self.reservation_repository.get_reservation(reservation_id)
        item = await self._settle(
            reservation, item_change=StockItem.release_reservation, transition=reservation.mark_expired
        )

        await publish_stock_released(
            self.event_bus,
            reservation_id=reservation.id,
            product_id=item.product_id,
            order_id=reservation.order_id,
            quantity=reservation.quantity,
            reason=ReleaseReason.RESERVATION_EXPIRED,
        )
        return self._release_result(reservation, item)

    async def extend_reservation(self, reservation_id: str, duration: timedelta) -> Reservation:
        reservation = await self.reservation_repository.get_reservation(reservation_id)
        reservation.extend(duration)
        await self.reservation_repository.update_reservation(reservation)
        logger.info(f"Extended reservation {reservation_id} to {reservation.expires_at.isoformat()}")
        return reservation

    async def _settle(
        self,
        reservation: Reservation,
        item_change: Callable[[StockItem, int], None],
        transition: Callable[[], None],
    ) -> StockItem:
        """Apply a reservation's quantity to its item, move the reservation to a terminal state, persist both"""
        item = await self.inventory_repository.get_item(reservation.inventory_item_id)

        snapshot = _snapshot(item)
        item_change(item, reservation.quantity)
        try:
            transition()
        except InventoryServiceError:
            _restore(item, snapshot)
            raise

        await self.inventory_repository.update_item(item)
        try:
            await self.reservation_repository.update_reservation(reservation)
        except Exception as e:
            logger.error(
                f"Stock item {item.id} was updated for reservation {reservation.id} "
                f"but the reservation could not be moved to {reservation.status.value}: {e}"
            )
            raise
        return item

    @staticmethod
    def _release_result(reservation: Reservation, item: StockItem) -> ReleaseReservationResult:
        return ReleaseReservationResult(
            reservation_id=reservation.id,
            inventory_item_id=item.id,
            order_id=reservation.order_id,
            quantity_released=reservation.quantity,
            available_stock=item.available,
            reserved_stock=item.reserved,
        )

    # ====================
    # Queries
    # ====================

    async def get_reservation(self, reservation_id: str) -> Reservation:
        return await self.reservation_repository.get_reservation(reservation_id)

    async def get_reservation_by_order(self, order_id: str) -> Reservation:
        return await self.reservation_repository.get_reservation_by_order(order_id)

    async def get_stock_item(self, product_id: str) -> StockItem:
        return await self.inventory_repository.get_item_by_product(product_id)

    async def list_low_stock(self, threshold: Optional[int] = None, limit: int = 100) -> List[StockItem]:
        return await self.inventory_repository.find_low_stock(
            threshold if threshold is not None else self.low_stock_threshold, limit
        )

    async def check_availability(self, product_id: str, quantity: int) -> AvailabilityResult:
        if quantity <= 0:
            raise InvalidQuantityError(details=f"quantity: {quantity}")
        item = await self.inventory_repository.get_item_by_product(product_id)
        return AvailabilityResult(
            product_id=product_id,
            is_available=item.is_stock_available(quantity),
            requested_quantity=quantity,
            available_quantity=item.available,
            total_stock=item.quantity,
            reserved_quantity=item.reserved,
        )

    async def get_inventory_stats(self, low_stock_threshold: Optional[int] = None) -> InventoryStats:
        """Aggregate totals across every stock item"""
        threshold = low_stock_threshold if low_stock_threshold is not None else self.low_stock_threshold
        stats = InventoryStats()

        offset = 0
        while True:
            page = await self.inventory_repository.list_items(limit=self.STATS_PAGE_SIZE, offset=offset)
            for item in page:
                stats.total_items += 1
                stats.total_quantity += item.quantity
                stats.total_reserved += item.reserved
                stats.total_available += item.available
                if item.available < threshold:
                    stats.low_stock_count += 1
            if len(page) < self.STATS_PAGE_SIZE:
                break
            offset += self.STATS_PAGE_SIZE

        if stats.total_items:
            stats.average_available = stats.total_available / stats.total_items
        if stats.total_quantity:
            stats.reservation_rate = stats.total_reserved / stats.total_quantity * 100
        return stats

    # ====================
    # Stock administration
    # ====================

    async def create_stock_item(self, product_id: str, initial_quantity: int) -> StockItem:
        item = StockItem.create(product_id, initial_quantity)
        await self.inventory_repository.save_item(item)
        return item

    async def add_stock(self, product_id: str, quantity: int) -> StockItem:
        item = await self.inventory_repository.get_item_by_product(product_id)
        item.add_stock(quantity)
        await self.inventory_repository.update_item(item)
        logger.info(f"Added {quantity} units to product {product_id} (stock now {item.quantity})")
        return item

    async def decrement_stock(self, product_id: str, quantity: int) -> StockItem:
        item = await self.inventory_repository.get_item_by_product(product_id)
        item.decrement_stock(quantity)
        await self.inventory_repository.update_item(item)
        logger.info(f"Removed {quantity} units from product {product_id} (stock now {item.quantity})")
        return item
