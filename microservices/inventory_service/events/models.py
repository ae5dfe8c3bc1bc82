"""
Inventory Service Event Models

Pydantic models for events published by inventory service
"""

from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Event Type Definitions (Service-Specific)
# =============================================================================

class InventoryEventType(str, Enum):
    """
    Events published by inventory_service.

    Stream: inventory-stream
    Subjects: inventory.>
    """
    STOCK_RESERVED = "inventory.stock.reserved"
    STOCK_CONFIRMED = "inventory.stock.confirmed"
    STOCK_RELEASED = "inventory.stock.released"
    STOCK_DEPLETED = "inventory.stock.depleted"
    STOCK_FAILED = "inventory.stock.failed"


class InventorySubscribedEventType(str, Enum):
    """Events that inventory_service subscribes to from other services."""
    ORDER_CREATED = "order.created"
    PAYMENT_COMPLETED = "payment.completed"
    ORDER_CANCELED = "order.canceled"


class InventoryStreamConfig:
    """Stream configuration for inventory_service"""
    STREAM_NAME = "inventory-stream"
    SUBJECTS = ["inventory.>"]
    SOURCE = "inventory_service"
    CONSUMER_PREFIX = "inventory"


class ReleaseReason(str, Enum):
    """Why reserved units went back to the available pool"""
    MANUAL_RELEASE = "manual_release"
    ORDER_CANCELLED = "order_cancelled"
    RESERVATION_EXPIRED = "reservation_expired"


# =============================================================================
# Event Data Models
# =============================================================================

class StockReservedEvent(BaseModel):
    """Event published when stock is successfully reserved for an order"""
    reservation_id: str
    product_id: str
    order_id: str
    quantity: int
    remaining_stock: int
    expires_at: datetime
    user_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utc_now)


class StockConfirmedEvent(BaseModel):
    """Event published when a reservation is confirmed (after payment)"""
    reservation_id: str
    product_id: str
    order_id: str
    quantity: int
    final_stock: int
    user_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utc_now)


class StockReleasedEvent(BaseModel):
    """Event published when reserved units return to the available pool"""
    reservation_id: str
    product_id: str
    order_id: str
    quantity: int
    reason: ReleaseReason
    released_at: datetime = Field(default_factory=_utc_now)
    user_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class StockDepletedEvent(BaseModel):
    """Event published when a reservation leaves a product with nothing available"""
    product_id: str
    inventory_item_id: str
    total_stock: int
    reserved: int
    timestamp: datetime = Field(default_factory=_utc_now)


class StockFailedEvent(BaseModel):
    """Event published when stock reservation fails"""
    order_id: str
    product_id: Optional[str] = None
    quantity: Optional[int] = None
    user_id: Optional[str] = None
    error_code: Optional[str] = None
    error_message: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=_utc_now)
