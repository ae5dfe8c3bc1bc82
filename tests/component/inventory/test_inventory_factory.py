"""
Inventory Service - Factory Wiring Component Tests

Repositories are constructed but never queried, so no database is needed.
"""
from datetime import timedelta

import pytest

from core.config import InventoryConfig
from microservices.inventory_service.cached_inventory_repository import CachedInventoryRepository
from microservices.inventory_service.factory import create_inventory_service, create_sweep_scheduler
from microservices.inventory_service.inventory_repository import InventoryRepository
from microservices.inventory_service.reservation_repository import ReservationRepository

pytestmark = pytest.mark.component


class TestFactory:

    def test_cache_wraps_ledger_store(self, fake_cache, mock_event_bus):
        config = InventoryConfig(cache_item_ttl_seconds=30, cache_low_stock_ttl_seconds=5)

        service, reservations = create_inventory_service(config, object(), fake_cache, mock_event_bus)

        assert isinstance(service.inventory_repository, CachedInventoryRepository)
        assert service.inventory_repository.item_ttl == 30
        assert service.inventory_repository.low_stock_ttl == 5
        assert isinstance(reservations, ReservationRepository)
        assert service.event_bus is mock_event_bus

    def test_cache_disabled_uses_plain_store(self, fake_cache):
        config = InventoryConfig(cache_enabled=False)

        service, _ = create_inventory_service(config, object(), fake_cache)

        assert type(service.inventory_repository) is InventoryRepository

    def test_events_disabled_drops_bus(self, mock_event_bus):
        config = InventoryConfig(events_enabled=False)

        service, _ = create_inventory_service(config, object(), None, mock_event_bus)

        assert service.event_bus is None

    def test_ttl_and_threshold_come_from_config(self):
        config = InventoryConfig(reservation_ttl_minutes=3, low_stock_threshold=7)

        service, _ = create_inventory_service(config, object())

        assert service.reservation_ttl == timedelta(minutes=3)
        assert service.low_stock_threshold == 7

    def test_scheduler_settings(self, service, reservation_repo):
        config = InventoryConfig(scheduler_interval_minutes=2, sweep_timeout_seconds=30, sweep_batch_limit=25)

        scheduler = create_sweep_scheduler(config, service, reservation_repo)

        assert scheduler.interval == timedelta(minutes=2)
        assert scheduler.tick_timeout == timedelta(seconds=30)
        assert scheduler.sweeper.batch_limit == 25
        assert not scheduler.is_running
