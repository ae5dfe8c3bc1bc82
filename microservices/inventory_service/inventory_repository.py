"""
Inventory Repository

Stock ledger persistence on PostgreSQL with optimistic concurrency control.
Table: inventory.stock_items
"""

import logging
from pathlib import Path
from typing import Any, Dict, List

import asyncpg

from core.postgres_client import PostgresClientWrapper

from .errors import OptimisticLockError, StockItemAlreadyExistsError, StockItemNotFoundError
from .models import StockItem

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

_COLUMNS = "id, product_id, quantity, reserved, version, created_at, updated_at"


class InventoryRepository:
    """
    Repository for stock items.

    ``update_item`` never takes a lock: the WHERE clause on (id, version)
    is the only thing serializing concurrent writers to the same row.
    """

    def __init__(self, db: PostgresClientWrapper, schema: str = "inventory"):
        self.db = db
        self.schema = schema
        self.table = f'"{schema}".stock_items'
        logger.info("InventoryRepository initialized")

    async def initialize(self) -> None:
        """Create schema and tables if missing"""
        sql = (MIGRATIONS_DIR / "001_create_inventory_tables.sql").read_text()
        await self.db.execute_script(sql)
        logger.info("Inventory tables ready")

    @staticmethod
    def _to_item(row: Dict[str, Any]) -> StockItem:
        return StockItem.model_validate(row)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_item(self, item_id: str) -> StockItem:
        row = await self.db.query_row(
            f"SELECT {_COLUMNS} FROM {self.table} WHERE id = $1", [item_id]
        )
        if row is None:
            raise StockItemNotFoundError(details=f"id: {item_id}")
        return self._to_item(row)

    async def get_item_by_product(self, product_id: str) -> StockItem:
        row = await self.db.query_row(
            f"SELECT {_COLUMNS} FROM {self.table} WHERE product_id = $1", [product_id]
        )
        if row is None:
            raise StockItemNotFoundError(details=f"product_id: {product_id}")
        return self._to_item(row)

    async def list_items(self, limit: int = 100, offset: int = 0) -> List[StockItem]:
        rows = await self.db.query(
            f"SELECT {_COLUMNS} FROM {self.table} ORDER BY created_at DESC LIMIT $1 OFFSET $2",
            [limit, offset],
        )
        return [self._to_item(row) for row in rows]

    async def get_items(self, item_ids: List[str]) -> List[StockItem]:
        if not item_ids:
            return []
        rows = await self.db.query(
            f"SELECT {_COLUMNS} FROM {self.table} WHERE id = ANY($1::varchar[])", [list(item_ids)]
        )
        return [self._to_item(row) for row in rows]

    async def get_items_by_product_ids(self, product_ids: List[str]) -> Dict[str, StockItem]:
        if not product_ids:
            return {}
        rows = await self.db.query(
            f"SELECT {_COLUMNS} FROM {self.table} WHERE product_id = ANY($1::varchar[])",
            [list(product_ids)],
        )
        return {row["product_id"]: self._to_item(row) for row in rows}

    async def find_low_stock(self, threshold: int, limit: int = 100) -> List[StockItem]:
        rows = await self.db.query(
            f"""SELECT {_COLUMNS} FROM {self.table}
                WHERE (quantity - reserved) < $1
                ORDER BY (quantity - reserved) ASC
                LIMIT $2""",
            [threshold, limit],
        )
        return [self._to_item(row) for row in rows]

    async def count_items(self) -> int:
        return await self.db.query_value(f"SELECT COUNT(*) FROM {self.table}")

    async def exists_by_product_id(self, product_id: str) -> bool:
        return await self.db.query_value(
            f"SELECT EXISTS(SELECT 1 FROM {self.table} WHERE product_id = $1)", [product_id]
        )

    async def _exists(self, item_id: str) -> bool:
        return await self.db.query_value(
            f"SELECT EXISTS(SELECT 1 FROM {self.table} WHERE id = $1)", [item_id]
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_item(self, item: StockItem) -> None:
        try:
            await self.db.execute(
                f"""INSERT INTO {self.table} ({_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7)""",
                [
                    item.id,
                    item.product_id,
                    item.quantity,
                    item.reserved,
                    item.version,
                    item.created_at,
                    item.updated_at,
                ],
            )
        except asyncpg.UniqueViolationError as e:
            raise StockItemAlreadyExistsError(details=f"product_id: {item.product_id}") from e
        logger.info(f"Created stock item {item.id} for product {item.product_id} (quantity={item.quantity})")

    async def update_item(self, item: StockItem) -> None:
        """Conditional write on (id, version); bumps the version by one"""
        affected = await self.db.execute(
            f"""UPDATE {self.table}
                SET quantity = $3, reserved = $4, version = version + 1, updated_at = $5
                WHERE id = $1 AND version = $2""",
            [item.id, item.version, item.quantity, item.reserved, item.updated_at],
        )
        if affected == 0:
            if not await self._exists(item.id):
                raise StockItemNotFoundError(details=f"id: {item.id}")
            logger.warning(f"Optimistic lock conflict on stock item {item.id} at version {item.version}")
            raise OptimisticLockError(details=f"id: {item.id}, version: {item.version}")
        item.version += 1

    async def delete_item(self, item_id: str) -> None:
        affected = await self.db.execute(f"DELETE FROM {self.table} WHERE id = $1", [item_id])
        if affected == 0:
            raise StockItemNotFoundError(details=f"id: {item_id}")
        logger.info(f"Deleted stock item {item_id}")

    async def increment_version(self, item_id: str) -> int:
        version = await self.db.query_value(
            f"""UPDATE {self.table}
                SET version = version + 1, updated_at = NOW()
                WHERE id = $1
                RETURNING version""",
            [item_id],
        )
        if version is None:
            raise StockItemNotFoundError(details=f"id: {item_id}")
        return version
