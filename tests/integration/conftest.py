#!/usr/bin/env python3
"""
Integration Test Configuration

Runs the repositories against a real PostgreSQL. Connection settings come
from the POSTGRES_* environment variables; tests are skipped when the
database cannot be reached.

Usage:
    POSTGRES_HOST=localhost pytest tests/integration -v
"""

import os
import sys

import asyncpg
import pytest
import pytest_asyncio

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

from core.postgres_client import PostgresClientWrapper
from microservices.inventory_service.inventory_repository import InventoryRepository
from microservices.inventory_service.reservation_repository import ReservationRepository


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (real PostgreSQL)"
    )


@pytest_asyncio.fixture
async def db():
    """Connected client with empty inventory tables"""
    client = PostgresClientWrapper(
        "inventory_service_it",
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=int(os.getenv("POSTGRES_PORT", "5432")),
        database=os.getenv("POSTGRES_DB", "postgres"),
        username=os.getenv("POSTGRES_USER", "postgres"),
        password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        min_size=1,
        max_size=4,
    )
    try:
        await client.connect()
    except (OSError, asyncpg.PostgresError) as e:
        pytest.skip(f"PostgreSQL not reachable: {e}")

    await InventoryRepository(client).initialize()
    await client.execute_script("TRUNCATE inventory.reservations, inventory.stock_items")
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture
def inventory_store(db) -> InventoryRepository:
    return InventoryRepository(db)


@pytest.fixture
def reservation_store(db) -> ReservationRepository:
    return ReservationRepository(db)
