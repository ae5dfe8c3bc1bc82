"""
Component Test Fixtures for Inventory Service

Wires InventoryService to in-memory stores and the mock event bus.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.inventory_service.expiration_sweeper import ReservationExpirationSweeper
from microservices.inventory_service.inventory_service import InventoryService
from tests.component.inventory.mocks import (
    FakeCache,
    MockInventoryRepository,
    MockReservationRepository,
)


@pytest.fixture
def inventory_repo() -> MockInventoryRepository:
    return MockInventoryRepository()


@pytest.fixture
def reservation_repo() -> MockReservationRepository:
    return MockReservationRepository()


@pytest.fixture
def fake_cache() -> FakeCache:
    return FakeCache()


@pytest.fixture
def service(inventory_repo, reservation_repo, mock_event_bus) -> InventoryService:
    return InventoryService(
        inventory_repository=inventory_repo,
        reservation_repository=reservation_repo,
        event_bus=mock_event_bus,
    )


@pytest.fixture
def sweeper(service, reservation_repo) -> ReservationExpirationSweeper:
    return ReservationExpirationSweeper(
        inventory_service=service,
        reservation_repository=reservation_repo,
        batch_limit=1000,
    )


@pytest.fixture
def widget(inventory_repo):
    """Stock item with quantity=100, reserved=0"""
    return inventory_repo.set_item(product_id="prod_widget", quantity=100, item_id="inv_widget")
