"""
Inventory Service Data Models

Stock ledger and reservation entities plus the result models returned by
the reservation workflows. Entity methods are pure: they validate and
mutate in-memory state only. ``version`` is owned by the persistence layer.
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .errors import (
    InsufficientStockError,
    InvalidConfirmError,
    InvalidDurationError,
    InvalidQuantityError,
    InvalidReleaseError,
    NegativeQuantityError,
    ReservationExpiredError,
    ReservationNotExpiredError,
    ReservationNotPendingError,
)

DEFAULT_RESERVATION_TTL = timedelta(minutes=15)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _check_positive(quantity: int) -> None:
    if quantity <= 0:
        raise InvalidQuantityError()


class ReservationStatus(str, Enum):
    """Reservation status"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    RELEASED = "released"
    EXPIRED = "expired"


# =============================================================================
# Entities
# =============================================================================

class StockItem(BaseModel):
    """Stock record for a product"""
    id: str
    product_id: str
    quantity: int = Field(default=0, ge=0)
    reserved: int = Field(default=0, ge=0)
    version: int = Field(default=1, ge=1)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def create(cls, product_id: str, initial_quantity: int) -> "StockItem":
        """New stock item at version 1"""
        if initial_quantity < 0:
            raise NegativeQuantityError(details=f"initial quantity: {initial_quantity}")
        now = utc_now()
        return cls(
            id=f"inv_{uuid.uuid4().hex}",
            product_id=product_id,
            quantity=initial_quantity,
            reserved=0,
            version=1,
            created_at=now,
            updated_at=now,
        )

    @property
    def available(self) -> int:
        return self.quantity - self.reserved

    def can_reserve(self, quantity: int) -> bool:
        return 0 < quantity <= self.available

    def is_stock_available(self, quantity: int) -> bool:
        return self.available >= quantity

    def reserve(self, quantity: int) -> None:
        _check_positive(quantity)
        if quantity > self.available:
            raise InsufficientStockError(
                details=f"requested {quantity}, available {self.available}"
            )
        self.reserved += quantity
        self.updated_at = utc_now()

    def release_reservation(self, quantity: int) -> None:
        _check_positive(quantity)
        if quantity > self.reserved:
            raise InvalidReleaseError(
                details=f"requested {quantity}, reserved {self.reserved}"
            )
        self.reserved -= quantity
        self.updated_at = utc_now()

    def confirm_reservation(self, quantity: int) -> None:
        """Deduct reserved units permanently from both counters"""
        _check_positive(quantity)
        if quantity > self.reserved:
            raise InvalidConfirmError(
                details=f"requested {quantity}, reserved {self.reserved}"
            )
        if quantity > self.quantity:
            raise InsufficientStockError(
                details=f"requested {quantity}, quantity {self.quantity}"
            )
        self.reserved -= quantity
        self.quantity -= quantity
        self.updated_at = utc_now()

    def add_stock(self, quantity: int) -> None:
        _check_positive(quantity)
        self.quantity += quantity
        self.updated_at = utc_now()

    def decrement_stock(self, quantity: int) -> None:
        """Remove unreserved units (damage, shrinkage, manual correction)"""
        _check_positive(quantity)
        if quantity > self.available:
            raise InsufficientStockError(
                details=f"requested {quantity}, available {self.available}"
            )
        self.quantity -= quantity
        self.updated_at = utc_now()


class Reservation(BaseModel):
    """TTL-bound claim on stock units for one order"""
    id: str
    inventory_item_id: str
    order_id: str
    quantity: int = Field(..., gt=0, frozen=True)
    status: ReservationStatus = ReservationStatus.PENDING
    expires_at: datetime
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        inventory_item_id: str,
        order_id: str,
        quantity: int,
        ttl: timedelta = DEFAULT_RESERVATION_TTL,
    ) -> "Reservation":
        _check_positive(quantity)
        if ttl <= timedelta(0):
            raise InvalidDurationError()
        now = utc_now()
        return cls(
            id=f"res_{uuid.uuid4().hex}",
            inventory_item_id=inventory_item_id,
            order_id=order_id,
            quantity=quantity,
            status=ReservationStatus.PENDING,
            expires_at=now + ttl,
            created_at=now,
            updated_at=now,
        )

    # Status queries

    def is_expired(self) -> bool:
        return utc_now() > self.expires_at

    def is_pending(self) -> bool:
        return self.status == ReservationStatus.PENDING

    def is_confirmed(self) -> bool:
        return self.status == ReservationStatus.CONFIRMED

    def is_released(self) -> bool:
        return self.status == ReservationStatus.RELEASED

    def is_active(self) -> bool:
        return self.is_pending() and not self.is_expired()

    def can_be_confirmed(self) -> bool:
        return self.is_active()

    def can_be_released(self) -> bool:
        return self.is_pending()

    def time_until_expiry(self) -> timedelta:
        remaining = self.expires_at - utc_now()
        return max(remaining, timedelta(0))

    # Transitions

    def confirm(self) -> None:
        if not self.is_active():
            if self.is_pending():
                raise ReservationExpiredError(details=f"expired at {self.expires_at.isoformat()}")
            raise ReservationNotPendingError(details=f"status is {self.status.value}")
        self.status = ReservationStatus.CONFIRMED
        self.updated_at = utc_now()

    def release(self) -> None:
        if not self.can_be_released():
            raise ReservationNotPendingError(details=f"status is {self.status.value}")
        self.status = ReservationStatus.RELEASED
        self.updated_at = utc_now()

    def mark_expired(self) -> None:
        if not self.is_pending():
            raise ReservationNotPendingError(details=f"status is {self.status.value}")
        if not self.is_expired():
            raise ReservationNotExpiredError(details=f"expires at {self.expires_at.isoformat()}")
        self.status = ReservationStatus.EXPIRED
        self.updated_at = utc_now()

    def extend(self, duration: timedelta) -> None:
        if duration <= timedelta(0):
            raise InvalidDurationError()
        if not self.is_active():
            if self.is_pending():
                raise ReservationExpiredError()
            raise ReservationNotPendingError(details=f"status is {self.status.value}")
        self.expires_at = self.expires_at + duration
        self.updated_at = utc_now()


# =============================================================================
# Workflow Results
# =============================================================================

class ReserveStockResult(BaseModel):
    """Outcome of a successful reservation"""
    reservation_id: str
    product_id: str
    order_id: str
    quantity: int
    expires_at: datetime
    remaining_stock: int
    reservation_created_at: datetime


class ConfirmReservationResult(BaseModel):
    reservation_id: str
    inventory_item_id: str
    order_id: str
    quantity_confirmed: int
    final_stock: int
    reserved_stock: int


class ReleaseReservationResult(BaseModel):
    reservation_id: str
    inventory_item_id: str
    order_id: str
    quantity_released: int
    available_stock: int
    reserved_stock: int


class AvailabilityResult(BaseModel):
    product_id: str
    is_available: bool
    requested_quantity: int
    available_quantity: int
    total_stock: int
    reserved_quantity: int


class InventoryStats(BaseModel):
    """Aggregate view over all stock items"""
    total_items: int = 0
    total_quantity: int = 0
    total_reserved: int = 0
    total_available: int = 0
    low_stock_count: int = 0
    average_available: float = 0.0
    reservation_rate: float = 0.0


class FailedReservation(BaseModel):
    reservation_id: str
    reason: str


class SweepSummary(BaseModel):
    """Result of one expiration sweep"""
    total_found: int = 0
    total_released: int = 0
    total_failed: int = 0
    released_reservation_ids: List[str] = Field(default_factory=list)
    failed_reservations: List[FailedReservation] = Field(default_factory=list)
    execution_duration_ms: float = 0.0
    started_at: Optional[datetime] = None
