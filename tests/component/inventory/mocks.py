"""
Inventory Service - Mock Dependencies

In-memory stores for component testing. They keep their own copies of
every entity, so a workflow only changes stored state through save/update,
and ``update_item`` enforces the same (id, version) conditional write as
the PostgreSQL repository.

Every store method yields to the event loop once before touching state,
standing in for network I/O so concurrent workflows interleave.
"""
import asyncio
import fnmatch
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
import uuid

from microservices.inventory_service.errors import (
    OptimisticLockError,
    ReservationAlreadyExistsError,
    ReservationNotFoundError,
    StockItemAlreadyExistsError,
    StockItemNotFoundError,
)
from microservices.inventory_service.models import (
    Reservation,
    ReservationStatus,
    StockItem,
)


class _CallLogMixin:
    """Call log and error injection shared by the mocks"""

    def _init_mock(self):
        self._errors: Dict[Optional[str], Exception] = {}
        self._call_log: List[Dict] = []

    def set_error(self, error: Exception, method: Optional[str] = None):
        """Raise ``error`` from ``method`` (or from every method when None)"""
        self._errors[method] = error

    def clear_error(self):
        self._errors.clear()

    async def _enter(self, method: str, **kwargs):
        self._call_log.append({"method": method, "kwargs": kwargs})
        await asyncio.sleep(0)
        error = self._errors.get(method) or self._errors.get(None)
        if error:
            raise error

    def assert_called(self, method: str):
        """Assert that a method was called"""
        called_methods = [c["method"] for c in self._call_log]
        assert method in called_methods, f"Expected {method} to be called, but got {called_methods}"

    def assert_not_called(self, method: str):
        called_methods = [c["method"] for c in self._call_log]
        assert method not in called_methods, f"Expected {method} not to be called"

    def get_call_count(self, method: str) -> int:
        """Get number of times a method was called"""
        return sum(1 for c in self._call_log if c["method"] == method)


class MockInventoryRepository(_CallLogMixin):
    """In-memory ledger store implementing InventoryRepositoryProtocol"""

    def __init__(self):
        self._items: Dict[str, StockItem] = {}
        self._init_mock()

    def set_item(
        self,
        product_id: str,
        quantity: int,
        reserved: int = 0,
        item_id: Optional[str] = None,
        version: int = 1,
    ) -> StockItem:
        """Seed a stock item and return a detached copy of it"""
        now = datetime.now(timezone.utc)
        item = StockItem(
            id=item_id or f"inv_{uuid.uuid4().hex[:12]}",
            product_id=product_id,
            quantity=quantity,
            reserved=reserved,
            version=version,
            created_at=now,
            updated_at=now,
        )
        self._items[item.id] = item.model_copy(deep=True)
        return item

    def stored(self, item_id: str) -> StockItem:
        """Current stored state (copy)"""
        return self._items[item_id].model_copy(deep=True)

    def stored_by_product(self, product_id: str) -> StockItem:
        for item in self._items.values():
            if item.product_id == product_id:
                return item.model_copy(deep=True)
        raise KeyError(product_id)

    async def get_item(self, item_id: str) -> StockItem:
        await self._enter("get_item", item_id=item_id)
        if item_id not in self._items:
            raise StockItemNotFoundError(details=f"id: {item_id}")
        return self._items[item_id].model_copy(deep=True)

    async def get_item_by_product(self, product_id: str) -> StockItem:
        await self._enter("get_item_by_product", product_id=product_id)
        for item in self._items.values():
            if item.product_id == product_id:
                return item.model_copy(deep=True)
        raise StockItemNotFoundError(details=f"product_id: {product_id}")

    async def save_item(self, item: StockItem) -> None:
        await self._enter("save_item", item_id=item.id)
        if any(existing.product_id == item.product_id for existing in self._items.values()):
            raise StockItemAlreadyExistsError(details=f"product_id: {item.product_id}")
        self._items[item.id] = item.model_copy(deep=True)

    async def update_item(self, item: StockItem) -> None:
        await self._enter("update_item", item_id=item.id, version=item.version)
        stored = self._items.get(item.id)
        if stored is None:
            raise StockItemNotFoundError(details=f"id: {item.id}")
        if stored.version != item.version:
            raise OptimisticLockError(details=f"id: {item.id}, version: {item.version}")
        updated = item.model_copy(deep=True)
        updated.version = stored.version + 1
        self._items[item.id] = updated
        item.version += 1

    async def delete_item(self, item_id: str) -> None:
        await self._enter("delete_item", item_id=item_id)
        if self._items.pop(item_id, None) is None:
            raise StockItemNotFoundError(details=f"id: {item_id}")

    async def list_items(self, limit: int = 100, offset: int = 0) -> List[StockItem]:
        await self._enter("list_items", limit=limit, offset=offset)
        items = sorted(self._items.values(), key=lambda i: i.created_at)
        return [i.model_copy(deep=True) for i in items[offset:offset + limit]]

    async def get_items(self, item_ids: List[str]) -> List[StockItem]:
        await self._enter("get_items", item_ids=item_ids)
        return [self._items[i].model_copy(deep=True) for i in item_ids if i in self._items]

    async def get_items_by_product_ids(self, product_ids: List[str]) -> Dict[str, StockItem]:
        await self._enter("get_items_by_product_ids", product_ids=product_ids)
        return {
            item.product_id: item.model_copy(deep=True)
            for item in self._items.values()
            if item.product_id in product_ids
        }

    async def find_low_stock(self, threshold: int, limit: int = 100) -> List[StockItem]:
        await self._enter("find_low_stock", threshold=threshold, limit=limit)
        low = sorted(
            (i for i in self._items.values() if i.available < threshold),
            key=lambda i: i.available,
        )
        return [i.model_copy(deep=True) for i in low[:limit]]

    async def count_items(self) -> int:
        await self._enter("count_items")
        return len(self._items)

    async def exists_by_product_id(self, product_id: str) -> bool:
        await self._enter("exists_by_product_id", product_id=product_id)
        return any(i.product_id == product_id for i in self._items.values())

    async def increment_version(self, item_id: str) -> int:
        await self._enter("increment_version", item_id=item_id)
        if item_id not in self._items:
            raise StockItemNotFoundError(details=f"id: {item_id}")
        self._items[item_id].version += 1
        return self._items[item_id].version


class MockReservationRepository(_CallLogMixin):
    """In-memory reservation store implementing ReservationRepositoryProtocol"""

    def __init__(self):
        self._reservations: Dict[str, Reservation] = {}
        self._init_mock()

    def set_reservation(
        self,
        inventory_item_id: str,
        order_id: str,
        quantity: int,
        status: ReservationStatus = ReservationStatus.PENDING,
        expires_at: Optional[datetime] = None,
        reservation_id: Optional[str] = None,
    ) -> Reservation:
        """Seed a reservation; expires_at defaults to 15 minutes from now"""
        now = datetime.now(timezone.utc)
        reservation = Reservation(
            id=reservation_id or f"res_{uuid.uuid4().hex[:12]}",
            inventory_item_id=inventory_item_id,
            order_id=order_id,
            quantity=quantity,
            status=status,
            expires_at=expires_at or now + timedelta(minutes=15),
            created_at=now,
            updated_at=now,
        )
        self._reservations[reservation.id] = reservation.model_copy(deep=True)
        return reservation

    def stored(self, reservation_id: str) -> Reservation:
        return self._reservations[reservation_id].model_copy(deep=True)

    def all(self) -> List[Reservation]:
        return [r.model_copy(deep=True) for r in self._reservations.values()]

    def _copies(self, reservations) -> List[Reservation]:
        return [r.model_copy(deep=True) for r in reservations]

    async def get_reservation(self, reservation_id: str) -> Reservation:
        await self._enter("get_reservation", reservation_id=reservation_id)
        if reservation_id not in self._reservations:
            raise ReservationNotFoundError(details=f"id: {reservation_id}")
        return self._reservations[reservation_id].model_copy(deep=True)

    async def get_reservation_by_order(self, order_id: str) -> Reservation:
        await self._enter("get_reservation_by_order", order_id=order_id)
        for reservation in self._reservations.values():
            if reservation.order_id == order_id:
                return reservation.model_copy(deep=True)
        raise ReservationNotFoundError(details=f"order_id: {order_id}")

    async def exists_by_order_id(self, order_id: str) -> bool:
        await self._enter("exists_by_order_id", order_id=order_id)
        return any(r.order_id == order_id for r in self._reservations.values())

    async def save_reservation(self, reservation: Reservation) -> None:
        await self._enter("save_reservation", reservation_id=reservation.id)
        if any(r.order_id == reservation.order_id for r in self._reservations.values()):
            raise ReservationAlreadyExistsError(details=f"order_id: {reservation.order_id}")
        self._reservations[reservation.id] = reservation.model_copy(deep=True)

    async def update_reservation(self, reservation: Reservation) -> None:
        await self._enter("update_reservation", reservation_id=reservation.id, status=reservation.status)
        if reservation.id not in self._reservations:
            raise ReservationNotFoundError(details=f"id: {reservation.id}")
        self._reservations[reservation.id] = reservation.model_copy(deep=True)

    async def delete_reservation(self, reservation_id: str) -> None:
        await self._enter("delete_reservation", reservation_id=reservation_id)
        if self._reservations.pop(reservation_id, None) is None:
            raise ReservationNotFoundError(details=f"id: {reservation_id}")

    async def find_expired(self, limit: int = 0) -> List[Reservation]:
        await self._enter("find_expired", limit=limit)
        now = datetime.now(timezone.utc)
        expired = sorted(
            (r for r in self._reservations.values()
             if r.status == ReservationStatus.PENDING and r.expires_at < now),
            key=lambda r: r.expires_at,
        )
        return self._copies(expired[:limit] if limit > 0 else expired)

    async def find_expiring_between(self, start: datetime, end: datetime) -> List[Reservation]:
        await self._enter("find_expiring_between", start=start, end=end)
        return self._copies(sorted(
            (r for r in self._reservations.values()
             if r.status == ReservationStatus.PENDING and start <= r.expires_at < end),
            key=lambda r: r.expires_at,
        ))

    async def list_by_item(
        self, inventory_item_id: str, status: Optional[ReservationStatus] = None
    ) -> List[Reservation]:
        await self._enter("list_by_item", inventory_item_id=inventory_item_id, status=status)
        return self._copies(
            r for r in self._reservations.values()
            if r.inventory_item_id == inventory_item_id and (status is None or r.status == status)
        )

    async def list_active_by_item(self, inventory_item_id: str) -> List[Reservation]:
        await self._enter("list_active_by_item", inventory_item_id=inventory_item_id)
        return self._copies(
            r for r in self._reservations.values()
            if r.inventory_item_id == inventory_item_id and r.is_active()
        )

    async def list_by_status(
        self, status: ReservationStatus, limit: int = 100, offset: int = 0
    ) -> List[Reservation]:
        await self._enter("list_by_status", status=status, limit=limit, offset=offset)
        matching = [r for r in self._reservations.values() if r.status == status]
        return self._copies(matching[offset:offset + limit])

    async def count_by_status(self, status: ReservationStatus) -> int:
        await self._enter("count_by_status", status=status)
        return sum(1 for r in self._reservations.values() if r.status == status)

    async def count_active_by_item(self, inventory_item_id: str) -> int:
        await self._enter("count_active_by_item", inventory_item_id=inventory_item_id)
        return sum(
            1 for r in self._reservations.values()
            if r.inventory_item_id == inventory_item_id and r.is_active()
        )

    async def delete_expired(self) -> int:
        await self._enter("delete_expired")
        expired = [rid for rid, r in self._reservations.items() if r.status == ReservationStatus.EXPIRED]
        for rid in expired:
            del self._reservations[rid]
        return len(expired)


class FakeCache(_CallLogMixin):
    """Dict-backed cache implementing CacheProtocol (TTLs are recorded, not enforced)"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, Optional[int]] = {}
        self._init_mock()

    async def get(self, key: str) -> Optional[str]:
        await self._enter("get", key=key)
        return self.data.get(key)

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        await self._enter("set", key=key, ttl=ttl)
        self.data[key] = value
        self.ttls[key] = ttl

    async def delete(self, *keys: str) -> int:
        await self._enter("delete", keys=keys)
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttls.pop(key, None)
        return removed

    async def delete_pattern(self, pattern: str) -> int:
        await self._enter("delete_pattern", pattern=pattern)
        matching = [key for key in self.data if fnmatch.fnmatch(key, pattern)]
        for key in matching:
            del self.data[key]
            self.ttls.pop(key, None)
        return len(matching)
