"""
Inventory Service Event Handlers

Handlers for events from other services. Each event runs one reservation
workflow. A lock conflict reruns the whole workflow (fresh reads included)
with backoff. Business outcomes (no stock, already reserved, nothing to
release) are logged and acknowledged; anything else propagates so the bus
redelivers the message.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple, TypeVar

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import (
    InventoryServiceError,
    OptimisticLockError,
    ReservationAlreadyExistsError,
    ReservationNotFoundError,
    is_business_rule_error,
    is_expired_error,
    is_not_found_error,
    is_validation_error,
)
from .models import InventorySubscribedEventType, ReleaseReason
from .publishers import publish_stock_failed

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_CONFLICT_ATTEMPTS = 3


async def run_with_conflict_retry(
    workflow: Callable[[], Awaitable[T]],
    max_attempts: int = MAX_CONFLICT_ATTEMPTS,
) -> T:
    """Rerun a workflow from scratch while it fails with OptimisticLockError"""
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(OptimisticLockError),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.05, min=0.05, max=1),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            return await workflow()


def _order_line(event_data: Dict[str, Any]) -> Tuple[Optional[str], Any]:
    """(product_id, quantity) from a single-line order, flat or in items[]"""
    product_id = event_data.get("product_id")
    quantity = event_data.get("quantity")
    items = event_data.get("items") or []
    if not product_id and len(items) == 1:
        product_id = items[0].get("product_id") or items[0].get("sku_id")
        quantity = items[0].get("quantity")
    return product_id, quantity


async def handle_order_created(event_data: Dict[str, Any], service, event_bus) -> None:
    """
    Handle order.created event

    Reserve stock for the order
    """
    order_id = event_data.get("order_id")
    user_id = event_data.get("user_id")
    product_id, quantity = _order_line(event_data)
    try:
        quantity = int(quantity)
    except (TypeError, ValueError):
        quantity = None

    if not order_id or not product_id or quantity is None:
        logger.warning("order.created event missing order_id, product_id or quantity")
        if order_id:
            await publish_stock_failed(
                event_bus,
                order_id=order_id,
                user_id=user_id,
                error_message="order must carry exactly one product line",
                error_code="INVALID_ORDER_LINES",
            )
        return

    logger.info(f"Processing order.created event for order {order_id}")

    try:
        result = await run_with_conflict_retry(
            lambda: service.reserve_stock(
                product_id=product_id,
                order_id=order_id,
                quantity=quantity,
                user_id=user_id,
            )
        )
    except ReservationAlreadyExistsError:
        logger.info(f"Order {order_id} already holds a reservation, ignoring duplicate event")
        return
    except InventoryServiceError as e:
        if not (is_validation_error(e) or is_not_found_error(e) or is_business_rule_error(e)):
            raise
        logger.warning(f"Could not reserve stock for order {order_id}: {e}")
        await publish_stock_failed(
            event_bus,
            order_id=order_id,
            product_id=product_id,
            quantity=quantity,
            user_id=user_id,
            error_message=e.message,
            error_code=e.code.value,
        )
        return

    logger.info(f"Reserved inventory for order {order_id}, reservation {result.reservation_id}")


async def handle_payment_completed(event_data: Dict[str, Any], service, event_bus) -> None:
    """
    Handle payment.completed event

    Confirm the order's reservation
    """
    order_id = event_data.get("order_id") or (event_data.get("metadata") or {}).get("order_id")
    if not order_id:
        logger.warning("payment.completed event missing order_id")
        return

    logger.info(f"Processing payment.completed event for order {order_id}")

    async def confirm():
        reservation = await service.get_reservation_by_order(order_id)
        return await service.confirm_reservation(reservation.id)

    try:
        result = await run_with_conflict_retry(confirm)
    except ReservationNotFoundError:
        logger.warning(f"No reservation found for paid order {order_id}")
        return
    except InventoryServiceError as e:
        if not (is_business_rule_error(e) or is_expired_error(e)):
            raise
        logger.error(f"Cannot confirm reservation for paid order {order_id}: {e}")
        return

    logger.info(f"Confirmed inventory for order {order_id}, reservation {result.reservation_id}")


async def handle_order_canceled(event_data: Dict[str, Any], service, event_bus) -> None:
    """
    Handle order.canceled event

    Release the order's reservation
    """
    order_id = event_data.get("order_id")
    if not order_id:
        logger.warning("order.canceled event missing order_id")
        return

    logger.info(f"Processing order.canceled event for order {order_id}")

    async def release():
        reservation = await service.get_reservation_by_order(order_id)
        return await service.release_reservation(reservation.id, reason=ReleaseReason.ORDER_CANCELLED)

    try:
        result = await run_with_conflict_retry(release)
    except ReservationNotFoundError:
        logger.info(f"No reservation found for order {order_id} (nothing to release)")
        return
    except InventoryServiceError as e:
        if not is_business_rule_error(e):
            raise
        logger.info(f"Reservation for order {order_id} is no longer pending: {e}")
        return

    logger.info(f"Released inventory for order {order_id}, reservation {result.reservation_id}")


def get_event_handlers(service, event_bus: Optional[Any] = None) -> Dict[str, Callable]:
    """
    Return a mapping of event patterns to handler functions

    Args:
        service: InventoryService instance running the workflows
        event_bus: Event bus instance for publishing failure events

    Returns:
        Dict mapping event patterns to handler functions
    """
    return {
        InventorySubscribedEventType.ORDER_CREATED.value: lambda event: handle_order_created(
            event.data, service, event_bus
        ),
        InventorySubscribedEventType.PAYMENT_COMPLETED.value: lambda event: handle_payment_completed(
            event.data, service, event_bus
        ),
        InventorySubscribedEventType.ORDER_CANCELED.value: lambda event: handle_order_canceled(
            event.data, service, event_bus
        ),
    }
