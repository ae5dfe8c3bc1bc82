"""
Inventory Service Events Module

Exports all event-related functionality for inventory service
"""

from .models import (
    InventoryEventType,
    InventorySubscribedEventType,
    InventoryStreamConfig,
    ReleaseReason,
    StockReservedEvent,
    StockConfirmedEvent,
    StockReleasedEvent,
    StockDepletedEvent,
    StockFailedEvent
)

from .publishers import (
    publish_stock_reserved,
    publish_stock_confirmed,
    publish_stock_released,
    publish_stock_depleted,
    publish_stock_failed
)

from .handlers import get_event_handlers, run_with_conflict_retry

__all__ = [
    # Event Types
    "InventoryEventType",
    "InventorySubscribedEventType",
    "InventoryStreamConfig",
    "ReleaseReason",
    # Event Models
    "StockReservedEvent",
    "StockConfirmedEvent",
    "StockReleasedEvent",
    "StockDepletedEvent",
    "StockFailedEvent",
    # Publishers
    "publish_stock_reserved",
    "publish_stock_confirmed",
    "publish_stock_released",
    "publish_stock_depleted",
    "publish_stock_failed",
    # Handlers
    "get_event_handlers",
    "run_with_conflict_retry"
]
