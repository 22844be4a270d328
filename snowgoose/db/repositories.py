"""Repositories over the SQLite store.

Every query runs in a worker thread so a slow or contended database never
stalls the event loop that is forwarding streams.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from ..models.catalog import APIVendorRecord, ModelRecord, UserRecord
from .database import Database

logger = logging.getLogger(__name__)

_MODEL_COLUMNS = (
    "id, api_name, name, api_vendor_id, is_vision, is_image_generation, is_thinking, "
    "is_web_search, input_token_cost, output_token_cost, image_output_cost, "
    "web_search_cost, paid_only"
)


class BaseRepository:
    """Base class holding the database handle."""

    def __init__(self, db: Database):
        self.db = db

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(fn, *args)

    async def _fetch_one(self, sql: str, params: tuple = ()):
        return await self._run(self.db.fetch_one, sql, params)

    async def _fetch_all(self, sql: str, params: tuple = ()):
        return await self._run(self.db.fetch_all, sql, params)

    def _insert(self, sql: str, params: tuple) -> int:
        with self.db.transaction() as conn:
            return conn.execute(sql, params).lastrowid


class APIVendorRepository(BaseRepository):
    async def find_all(self) -> list[APIVendorRecord]:
        rows = await self._fetch_all("SELECT id, name FROM api_vendors ORDER BY id ASC")
        return [APIVendorRecord(**dict(row)) for row in rows]

    async def find_by_id(self, vendor_id: int) -> Optional[APIVendorRecord]:
        row = await self._fetch_one("SELECT id, name FROM api_vendors WHERE id = ?", (vendor_id,))
        return APIVendorRecord(**dict(row)) if row else None

    async def find_by_name(self, name: str) -> Optional[APIVendorRecord]:
        row = await self._fetch_one("SELECT id, name FROM api_vendors WHERE name = ?", (name,))
        return APIVendorRecord(**dict(row)) if row else None

    async def create(self, name: str) -> APIVendorRecord:
        vendor_id = await self._run(
            self._insert, "INSERT INTO api_vendors (name) VALUES (?)", (name,)
        )
        return APIVendorRecord(id=vendor_id, name=name)


class ModelRepository(BaseRepository):
    async def find_all(self) -> list[ModelRecord]:
        rows = await self._fetch_all(f"SELECT {_MODEL_COLUMNS} FROM models ORDER BY id ASC")
        return [ModelRecord(**dict(row)) for row in rows]

    async def find_by_id(self, model_id: int) -> Optional[ModelRecord]:
        row = await self._fetch_one(
            f"SELECT {_MODEL_COLUMNS} FROM models WHERE id = ?", (model_id,)
        )
        return ModelRecord(**dict(row)) if row else None

    async def create(self, **fields) -> ModelRecord:
        """Insert a model. Accepts any ModelRecord field except id."""
        record = ModelRecord(id=0, **fields)
        data = record.model_dump(exclude={"id"})
        columns = ", ".join(data.keys())
        placeholders = ", ".join("?" for _ in data)
        model_id = await self._run(
            self._insert,
            f"INSERT INTO models ({columns}) VALUES ({placeholders})",
            tuple(data.values()),
        )
        return record.model_copy(update={"id": model_id})


class UserRepository(BaseRepository):
    async def find_by_id(self, user_id: int) -> Optional[UserRecord]:
        row = await self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return UserRecord(**dict(row)) if row else None

    async def find_by_auth_id(self, auth_id: str) -> Optional[UserRecord]:
        row = await self._fetch_one("SELECT * FROM users WHERE auth_id = ?", (auth_id,))
        return UserRecord(**dict(row)) if row else None

    async def get_credit_balance(self, user_id: int) -> Optional[float]:
        """Read the current balance; None if the user does not exist."""
        row = await self._fetch_one("SELECT credit_balance FROM users WHERE id = ?", (user_id,))
        return float(row["credit_balance"]) if row else None

    async def create(
        self,
        auth_id: str,
        username: str,
        email: Optional[str] = None,
        is_admin: bool = False,
        credit_balance: float = 0.0,
    ) -> UserRecord:
        user_id = await self._run(
            self._insert,
            "INSERT INTO users (auth_id, username, email, is_admin, credit_balance) "
            "VALUES (?, ?, ?, ?, ?)",
            (auth_id, username, email, int(is_admin), credit_balance),
        )
        return UserRecord(
            id=user_id,
            auth_id=auth_id,
            username=username,
            email=email,
            is_admin=is_admin,
            credit_balance=credit_balance,
        )


class CreditRepository(BaseRepository):
    """Balance changes, each recorded in credit_transactions."""

    async def add_credits(
        self,
        user_id: int,
        amount: float,
        source: str,
        expires_in_days: Optional[int] = None,
    ) -> float:
        """Increment the balance and record the grant. Returns the new balance."""
        expires_at = None
        if expires_in_days:
            expires_at = (datetime.now(timezone.utc) + timedelta(days=expires_in_days)).isoformat()
        return await self._run(self._apply, user_id, amount, source, expires_at)

    async def deduct_credits(self, user_id: int, amount: float, source: str) -> float:
        """Atomically decrement the balance. Returns the new balance.

        The decrement happens in SQL, never as read-modify-write, so
        concurrent requests from one user cannot lose updates.
        """
        return await self._run(self._apply, user_id, -amount, source, None)

    def _apply(
        self,
        user_id: int,
        delta: float,
        source: str,
        expires_at: Optional[str],
    ) -> float:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE users SET credit_balance = credit_balance + ? WHERE id = ?",
                (delta, user_id),
            )
            if cursor.rowcount == 0:
                raise LookupError(f"User {user_id} not found")
            conn.execute(
                "INSERT INTO credit_transactions (user_id, credits_amount, source, expires_at) "
                "VALUES (?, ?, ?, ?)",
                (user_id, delta, source, expires_at),
            )
            row = conn.execute(
                "SELECT credit_balance FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        logger.info(f"Applied {delta:+.4f} credits to user {user_id} ({source})")
        return float(row["credit_balance"])
