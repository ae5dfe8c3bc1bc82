"""
Inventory Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.

Errors live in ``errors.py`` because the entities in ``models.py`` raise
them too.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

# Import only models (no I/O dependencies)
from .models import Reservation, ReservationStatus, StockItem


# ============================================================================
# Ledger Store Protocol
# ============================================================================

@runtime_checkable
class InventoryRepositoryProtocol(Protocol):
    """
    Interface for the stock ledger store.

    ``update_item`` is a single conditional write on (id, version). On
    success the stored version is incremented and ``item.version`` is
    advanced to match. A missing row raises StockItemNotFoundError, a
    version mismatch raises OptimisticLockError.
    """

    async def get_item(self, item_id: str) -> StockItem:
        """Load item by ID (StockItemNotFoundError when missing)"""
        ...

    async def get_item_by_product(self, product_id: str) -> StockItem:
        """Load item by product ID (StockItemNotFoundError when missing)"""
        ...

    async def save_item(self, item: StockItem) -> None:
        """Insert a new item (StockItemAlreadyExistsError on duplicate product)"""
        ...

    async def update_item(self, item: StockItem) -> None:
        """Conditional write guarded by item.version"""
        ...

    async def delete_item(self, item_id: str) -> None:
        """Hard delete"""
        ...

    async def list_items(self, limit: int = 100, offset: int = 0) -> List[StockItem]:
        """Page through all items ordered by creation time"""
        ...

    async def get_items(self, item_ids: List[str]) -> List[StockItem]:
        """Load several items by ID, silently skipping unknown IDs"""
        ...

    async def get_items_by_product_ids(self, product_ids: List[str]) -> Dict[str, StockItem]:
        """Load several items keyed by product ID"""
        ...

    async def find_low_stock(self, threshold: int, limit: int = 100) -> List[StockItem]:
        """Items with available < threshold, lowest available first"""
        ...

    async def count_items(self) -> int:
        ...

    async def exists_by_product_id(self, product_id: str) -> bool:
        ...

    async def increment_version(self, item_id: str) -> int:
        """Bump the stored version out-of-band, returning the new value"""
        ...


# ============================================================================
# Reservation Store Protocol
# ============================================================================

@runtime_checkable
class ReservationRepositoryProtocol(Protocol):
    """
    Interface for the reservation store.

    No optimistic locking: a reservation row is only mutated by the
    workflow that currently owns it.
    """

    async def get_reservation(self, reservation_id: str) -> Reservation:
        """Load reservation (ReservationNotFoundError when missing)"""
        ...

    async def get_reservation_by_order(self, order_id: str) -> Reservation:
        """Load reservation by order ID (ReservationNotFoundError when missing)"""
        ...

    async def exists_by_order_id(self, order_id: str) -> bool:
        ...

    async def save_reservation(self, reservation: Reservation) -> None:
        """Insert (ReservationAlreadyExistsError on duplicate order ID)"""
        ...

    async def update_reservation(self, reservation: Reservation) -> None:
        """Overwrite status/expiry (ReservationNotFoundError when missing)"""
        ...

    async def delete_reservation(self, reservation_id: str) -> None:
        ...

    async def find_expired(self, limit: int = 0) -> List[Reservation]:
        """Pending rows past expiry, soonest-expired first; limit 0 means unbounded"""
        ...

    async def find_expiring_between(self, start: datetime, end: datetime) -> List[Reservation]:
        """Pending rows expiring inside [start, end)"""
        ...

    async def list_by_item(
        self, inventory_item_id: str, status: Optional[ReservationStatus] = None
    ) -> List[Reservation]:
        ...

    async def list_active_by_item(self, inventory_item_id: str) -> List[Reservation]:
        """Pending and not yet expired"""
        ...

    async def list_by_status(
        self, status: ReservationStatus, limit: int = 100, offset: int = 0
    ) -> List[Reservation]:
        ...

    async def count_by_status(self, status: ReservationStatus) -> int:
        ...

    async def count_active_by_item(self, inventory_item_id: str) -> int:
        ...

    async def delete_expired(self) -> int:
        """Hard-delete rows in Expired status, returning how many went"""
        ...


# ============================================================================
# Cache Protocol
# ============================================================================

@runtime_checkable
class CacheProtocol(Protocol):
    """Key-value cache with TTL expiry and pattern delete"""

    async def get(self, key: str) -> Optional[str]:
        """Cached value or None on miss"""
        ...

    async def set(self, key: str, value: str, ttl: Optional[int] = None) -> None:
        """Store value; ttl in seconds, None means the client default"""
        ...

    async def delete(self, *keys: str) -> int:
        ...

    async def delete_pattern(self, pattern: str) -> int:
        ...


# ============================================================================
# Event Bus Protocol
# ============================================================================

@runtime_checkable
class EventBusProtocol(Protocol):
    """Interface for Event Bus"""

    async def publish_event(self, event: Any) -> None:
        """Publish an event"""
        ...
