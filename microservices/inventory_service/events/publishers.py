"""
Inventory Service Event Publishers

Functions to publish events from inventory service. Publishing is
best-effort: failures are logged and reported as False, never raised.
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime

from pydantic import BaseModel

from core.nats_client import Event
from .models import (
    InventoryEventType,
    InventoryStreamConfig,
    ReleaseReason,
    StockReservedEvent,
    StockConfirmedEvent,
    StockReleasedEvent,
    StockDepletedEvent,
    StockFailedEvent,
)

logger = logging.getLogger(__name__)


async def _publish(event_bus, event_type: InventoryEventType, payload: BaseModel, subject_id: str) -> bool:
    if not event_bus:
        logger.warning(f"Event bus not available, skipping {event_type.value} event")
        return False

    try:
        event = Event(
            event_type=event_type.value,
            source=InventoryStreamConfig.SOURCE,
            data=payload.model_dump(mode="json"),
        )
        result = await event_bus.publish_event(event)
        if result is False:
            logger.error(f"Event bus rejected {event_type.value} event for {subject_id}")
            return False
        logger.info(f"Published {event_type.value} event for {subject_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish {event_type.value} event for {subject_id}: {e}")
        return False


async def publish_stock_reserved(
    event_bus,
    reservation_id: str,
    product_id: str,
    order_id: str,
    quantity: int,
    remaining_stock: int,
    expires_at: datetime,
    user_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """Publish inventory.stock.reserved event"""
    payload = StockReservedEvent(
        reservation_id=reservation_id,
        product_id=product_id,
        order_id=order_id,
        quantity=quantity,
        remaining_stock=remaining_stock,
        expires_at=expires_at,
        user_id=user_id,
        metadata=metadata or {},
    )
    return await _publish(event_bus, InventoryEventType.STOCK_RESERVED, payload, f"order {order_id}")


async def publish_stock_confirmed(
    event_bus,
    reservation_id: str,
    product_id: str,
    order_id: str,
    quantity: int,
    final_stock: int,
    user_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """Publish inventory.stock.confirmed event"""
    payload = StockConfirmedEvent(
        reservation_id=reservation_id,
        product_id=product_id,
        order_id=order_id,
        quantity=quantity,
        final_stock=final_stock,
        user_id=user_id,
        metadata=metadata or {},
    )
    return await _publish(event_bus, InventoryEventType.STOCK_CONFIRMED, payload, f"order {order_id}")


async def publish_stock_released(
    event_bus,
    reservation_id: str,
    product_id: str,
    order_id: str,
    quantity: int,
    reason: ReleaseReason,
    user_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """Publish inventory.stock.released event"""
    payload = StockReleasedEvent(
        reservation_id=reservation_id,
        product_id=product_id,
        order_id=order_id,
        quantity=quantity,
        reason=reason,
        user_id=user_id,
        metadata=metadata or {},
    )
    return await _publish(event_bus, InventoryEventType.STOCK_RELEASED, payload, f"order {order_id}")


async def publish_stock_depleted(
    event_bus,
    product_id: str,
    inventory_item_id: str,
    total_stock: int,
    reserved: int
) -> bool:
    """Publish inventory.stock.depleted event"""
    payload = StockDepletedEvent(
        product_id=product_id,
        inventory_item_id=inventory_item_id,
        total_stock=total_stock,
        reserved=reserved,
    )
    return await _publish(event_bus, InventoryEventType.STOCK_DEPLETED, payload, f"product {product_id}")


async def publish_stock_failed(
    event_bus,
    order_id: str,
    error_message: str,
    error_code: Optional[str] = None,
    product_id: Optional[str] = None,
    quantity: Optional[int] = None,
    user_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """Publish inventory.stock.failed event"""
    payload = StockFailedEvent(
        order_id=order_id,
        product_id=product_id,
        quantity=quantity,
        user_id=user_id,
        error_code=error_code,
        error_message=error_message,
        metadata=metadata or {},
    )
    return await _publish(event_bus, InventoryEventType.STOCK_FAILED, payload, f"order {order_id}")
