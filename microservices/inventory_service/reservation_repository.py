"""
Reservation Repository

Reservation persistence on PostgreSQL.
Table: inventory.reservations
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import asyncpg

from core.postgres_client import PostgresClientWrapper

from .errors import ReservationAlreadyExistsError, ReservationNotFoundError
from .models import Reservation, ReservationStatus, utc_now

logger = logging.getLogger(__name__)

_COLUMNS = "id, inventory_item_id, order_id, quantity, status, expires_at, created_at, updated_at"


class ReservationRepository:
    """Repository for reservations (no optimistic locking)"""

    def __init__(self, db: PostgresClientWrapper, schema: str = "inventory"):
        self.db = db
        self.schema = schema
        self.table = f'"{schema}".reservations'
        logger.info("ReservationRepository initialized")

    @staticmethod
    def _to_reservation(row: Dict[str, Any]) -> Reservation:
        return Reservation.model_validate(row)

    def _to_list(self, rows: List[Dict[str, Any]]) -> List[Reservation]:
        return [self._to_reservation(row) for row in rows]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_reservation(self, reservation_id: str) -> Reservation:
        row = await self.db.query_row(
            f"SELECT {_COLUMNS} FROM {self.table} WHERE id = $1", [reservation_id]
        )
        if row is None:
            raise ReservationNotFoundError(details=f"id: {reservation_id}")
        return self._to_reservation(row)

    async def get_reservation_by_order(self, order_id: str) -> Reservation:
        row = await self.db.query_row(
            f"SELECT {_COLUMNS} FROM {self.table} WHERE order_id = $1", [order_id]
        )
        if row is None:
            raise ReservationNotFoundError(details=f"order_id: {order_id}")
        return self._to_reservation(row)

    async def exists_by_order_id(self, order_id: str) -> bool:
        return await self.db.query_value(
            f"SELECT EXISTS(SELECT 1 FROM {self.table} WHERE order_id = $1)", [order_id]
        )

    async def find_expired(self, limit: int = 0) -> List[Reservation]:
        sql = f"""SELECT {_COLUMNS} FROM {self.table}
                  WHERE status = $1 AND expires_at < $2
                  ORDER BY expires_at ASC"""
        params: List[Any] = [ReservationStatus.PENDING.value, utc_now()]
        if limit > 0:
            sql += " LIMIT $3"
            params.append(limit)
        return self._to_list(await self.db.query(sql, params))

    async def find_expiring_between(self, start: datetime, end: datetime) -> List[Reservation]:
        rows = await self.db.query(
            f"""SELECT {_COLUMNS} FROM {self.table}
                WHERE status = $1 AND expires_at >= $2 AND expires_at < $3
                ORDER BY expires_at ASC""",
            [ReservationStatus.PENDING.value, start, end],
        )
        return self._to_list(rows)

    async def list_by_item(
        self, inventory_item_id: str, status: Optional[ReservationStatus] = None
    ) -> List[Reservation]:
        if status is None:
            rows = await self.db.query(
                f"""SELECT {_COLUMNS} FROM {self.table}
                    WHERE inventory_item_id = $1 ORDER BY created_at DESC""",
                [inventory_item_id],
            )
        else:
            rows = await self.db.query(
                f"""SELECT {_COLUMNS} FROM {self.table}
                    WHERE inventory_item_id = $1 AND status = $2 ORDER BY created_at DESC""",
                [inventory_item_id, status.value],
            )
        return self._to_list(rows)

    async def list_active_by_item(self, inventory_item_id: str) -> List[Reservation]:
        rows = await self.db.query(
            f"""SELECT {_COLUMNS} FROM {self.table}
                WHERE inventory_item_id = $1 AND status = $2 AND expires_at > $3
                ORDER BY expires_at ASC""",
            [inventory_item_id, ReservationStatus.PENDING.value, utc_now()],
        )
        return self._to_list(rows)

    async def list_by_status(
        self, status: ReservationStatus, limit: int = 100, offset: int = 0
    ) -> List[Reservation]:
        rows = await self.db.query(
            f"""SELECT {_COLUMNS} FROM {self.table}
                WHERE status = $1 ORDER BY created_at DESC LIMIT $2 OFFSET $3""",
            [status.value, limit, offset],
        )
        return self._to_list(rows)

    async def count_by_status(self, status: ReservationStatus) -> int:
        return await self.db.query_value(
            f"SELECT COUNT(*) FROM {self.table} WHERE status = $1", [status.value]
        )

    async def count_active_by_item(self, inventory_item_id: str) -> int:
        return await self.db.query_value(
            f"""SELECT COUNT(*) FROM {self.table}
                WHERE inventory_item_id = $1 AND status = $2 AND expires_at > $3""",
            [inventory_item_id, ReservationStatus.PENDING.value, utc_now()],
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_reservation(self, reservation: Reservation) -> None:
        try:
            await self.db.execute(
                f"""INSERT INTO {self.table} ({_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8)""",
                [
                    reservation.id,
                    reservation.inventory_item_id,
                    reservation.order_id,
                    reservation.quantity,
                    reservation.status.value,
                    reservation.expires_at,
                    reservation.created_at,
                    reservation.updated_at,
                ],
            )
        except asyncpg.UniqueViolationError as e:
            raise ReservationAlreadyExistsError(details=f"order_id: {reservation.order_id}") from e

    async def update_reservation(self, reservation: Reservation) -> None:
        affected = await self.db.execute(
            f"""UPDATE {self.table}
                SET status = $2, expires_at = $3, updated_at = $4
                WHERE id = $1""",
            [reservation.id, reservation.status.value, reservation.expires_at, reservation.updated_at],
        )
        if affected == 0:
            raise ReservationNotFoundError(details=f"id: {reservation.id}")

    async def delete_reservation(self, reservation_id: str) -> None:
        affected = await self.db.execute(f"DELETE FROM {self.table} WHERE id = $1", [reservation_id])
        if affected == 0:
            raise ReservationNotFoundError(details=f"id: {reservation_id}")

    async def delete_expired(self) -> int:
        deleted = await self.db.execute(
            f"DELETE FROM {self.table} WHERE status = $1", [ReservationStatus.EXPIRED.value]
        )
        logger.info(f"Deleted {deleted} expired reservations")
        return deleted
