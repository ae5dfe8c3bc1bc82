"""
Inventory Service Factory

Factory functions for creating service instances with real dependencies.
This is the ONLY place that imports I/O-dependent modules.

Usage:
    from .factory import create_inventory_service
    service, reservations = create_inventory_service(config, db, cache, event_bus)
"""
from datetime import timedelta
from typing import Optional, Tuple

from core.config import InventoryConfig

from .expiration_sweeper import ReservationExpirationSweeper, ReservationSweepScheduler
from .inventory_service import InventoryService
from .protocols import CacheProtocol, EventBusProtocol, ReservationRepositoryProtocol


def create_inventory_service(
    config: InventoryConfig,
    db,
    cache: Optional[CacheProtocol] = None,
    event_bus: Optional[EventBusProtocol] = None,
) -> Tuple[InventoryService, ReservationRepositoryProtocol]:
    """
    Create InventoryService with real repositories.

    This function imports the real repositories (which have I/O dependencies).
    Use this in production, NOT in tests.

    Args:
        config: Inventory configuration
        db: Connected PostgresClientWrapper
        cache: Cache client; the ledger store is wrapped with the
            cache-aside decorator when given and caching is enabled
        event_bus: Event bus for publishing events

    Returns:
        The service and the reservation repository it uses
    """
    # Import real repositories here (not at module level)
    from .inventory_repository import InventoryRepository
    from .reservation_repository import ReservationRepository
    from .cached_inventory_repository import CachedInventoryRepository

    inventory_repository = InventoryRepository(db)
    if cache is not None and config.cache_enabled:
        inventory_repository = CachedInventoryRepository(
            inventory_repository,
            cache,
            item_ttl=config.cache_item_ttl_seconds,
            low_stock_ttl=config.cache_low_stock_ttl_seconds,
        )
    reservation_repository = ReservationRepository(db)

    service = InventoryService(
        inventory_repository=inventory_repository,
        reservation_repository=reservation_repository,
        event_bus=event_bus if config.events_enabled else None,
        reservation_ttl=config.reservation_ttl,
        low_stock_threshold=config.low_stock_threshold,
    )
    return service, reservation_repository


def create_sweep_scheduler(
    config: InventoryConfig,
    service: InventoryService,
    reservation_repository: ReservationRepositoryProtocol,
) -> ReservationSweepScheduler:
    """Create the expiration sweeper and its fixed-interval scheduler"""
    sweeper = ReservationExpirationSweeper(
        inventory_service=service,
        reservation_repository=reservation_repository,
        batch_limit=config.sweep_batch_limit,
    )
    return ReservationSweepScheduler(
        sweeper,
        interval=config.scheduler_interval,
        tick_timeout=timedelta(seconds=config.sweep_timeout_seconds),
    )
