# generic row access over the public tables
from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping

from gateway.database import Database
from gateway.errors import NotFoundError, ReadError, WriteError
from utils.logger import get_logger

_logger = get_logger(__name__)

# table -> columns reachable through the table API.
# auth_users is deliberately absent.
TABLES: Dict[str, tuple] = {
    "users": ("id", "email", "name", "is_admin", "created_at"),
    "addresses": (
        "id",
        "user_id",
        "street",
        "number",
        "complement",
        "neighborhood",
        "city",
        "state",
        "zip_code",
        "is_default",
        "created_at",
    ),
    "products": (
        "id",
        "name",
        "description",
        "price",
        "image_url",
        "category",
        "stock",
        "created_at",
    ),
    "orders": ("id", "user_id", "status", "total", "address_id", "created_at"),
    "order_items": ("id", "order_id", "product_id", "quantity", "price", "created_at"),
}


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _columns(table: str) -> tuple:
    try:
        return TABLES[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}") from None


def _check_columns(table: str, names) -> None:
    allowed = _columns(table)
    unknown = [n for n in names if n not in allowed]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


def _to_sql_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, bool):
        return int(value)
    return value


class Tables:
    """
    select-all-ordered / select-one / insert / update / delete over the
    whitelisted tables. Rows come back as plain dicts; sqlite failures are
    wrapped into ReadError / WriteError.
    """

    def __init__(self, db: Database):
        self._db = db

    async def select_all(
        self, table: str, order_by: str = "created_at", descending: bool = True
    ) -> List[Dict[str, Any]]:
        _check_columns(table, [order_by])
        direction = "DESC" if descending else "ASC"
        cols = ", ".join(_columns(table))
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    f"SELECT {cols} FROM {table} ORDER BY {order_by} {direction};"
                )
                rows = await cur.fetchall()
                await cur.close()
        except sqlite3.Error as e:
            raise ReadError(f"Could not read {table}: {e}") from e
        return [dict(row) for row in rows]

    async def select_one(self, table: str, key: str) -> Dict[str, Any]:
        """Return the row whose id is `key`; NotFoundError if there is none."""
        cols = ", ".join(_columns(table))
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    f"SELECT {cols} FROM {table} WHERE id = ?;", (key,)
                )
                row = await cur.fetchone()
                await cur.close()
        except sqlite3.Error as e:
            raise ReadError(f"Could not read {table}: {e}") from e
        if row is None:
            raise NotFoundError(f"No row in {table} with id {key}")
        return dict(row)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Insert one row. id and created_at are filled in when missing."""
        values = dict(row)
        values.setdefault("id", uuid.uuid4().hex)
        if "created_at" in _columns(table):
            values.setdefault("created_at", utc_now())
        _check_columns(table, values)

        names = list(values)
        placeholders = ", ".join("?" for _ in names)
        try:
            async with self._db.connect() as conn:
                await conn.execute(
                    f"INSERT INTO {table} ({', '.join(names)}) VALUES ({placeholders});",
                    tuple(_to_sql_value(values[n]) for n in names),
                )
                await conn.commit()
        except sqlite3.Error as e:
            _logger.error(f"Insert into {table} failed: {e}")
            raise WriteError(f"Could not insert into {table}: {e}") from e
        _logger.debug(f"Inserted {table}.{values['id']}")
        return values

    async def update(
        self, table: str, key: str, values: Mapping[str, Any]
    ) -> Dict[str, Any]:
        """Apply a partial update to the row with id `key` and return the new row."""
        changes = {k: v for k, v in values.items() if k != "id"}
        if not changes:
            raise ValueError("Nothing to update.")
        _check_columns(table, changes)

        assignments = ", ".join(f"{name} = ?" for name in changes)
        try:
            async with self._db.connect() as conn:
                res = await conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ?;",
                    (*(_to_sql_value(v) for v in changes.values()), key),
                )
                await conn.commit()
                updated = res.rowcount
        except sqlite3.Error as e:
            _logger.error(f"Update of {table}.{key} failed: {e}")
            raise WriteError(f"Could not update {table}: {e}") from e
        if updated == 0:
            raise WriteError(f"No row in {table} with id {key}")
        _logger.debug(f"Updated {table}.{key}: {', '.join(changes)}")
        try:
            return await self.select_one(table, key)
        except (NotFoundError, ReadError) as e:
            raise WriteError(f"Updated {table}.{key} but could not read it back") from e

    async def delete(self, table: str, key: str) -> None:
        _columns(table)
        try:
            async with self._db.connect() as conn:
                res = await conn.execute(f"DELETE FROM {table} WHERE id = ?;", (key,))
                await conn.commit()
                deleted = res.rowcount
        except sqlite3.Error as e:
            _logger.error(f"Delete of {table}.{key} failed: {e}")
            raise WriteError(f"Could not delete from {table}: {e}") from e
        if deleted == 0:
            raise WriteError(f"No row in {table} with id {key}")
        _logger.debug(f"Deleted {table}.{key}")
