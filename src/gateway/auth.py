from __future__ import annotations

import json
import secrets
import sqlite3
import uuid
from dataclasses import asdict
from typing import Callable, List, Literal, Optional

from passlib.context import CryptContext

from gateway.database import Database
from gateway.errors import AuthError, ReadError, WriteError
from gateway.models import Session
from gateway.tables import utc_now
from utils.config import SESSION_STORAGE_KEY
from utils.logger import get_logger
from utils.storage import LocalStorage

_logger = get_logger(__name__)

AuthEvent = Literal["SIGNED_IN", "SIGNED_OUT"]
AuthListener = Callable[[AuthEvent, Optional[Session]], None]

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


class Subscription:
    """Handle returned by `AuthClient.on_auth_state_change`."""

    def __init__(self, client: AuthClient, listener: AuthListener):
        self._client = client
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self._client._remove_listener(self._listener)
            self.active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc) -> None:
        self.unsubscribe()


class AuthClient:
    """
    Password auth against the private auth_users table.

    The current session is kept in memory and mirrored to local storage so a
    restart picks it back up. Listeners are called synchronously, in
    subscription order, on every sign in / sign out.
    """

    def __init__(self, db: Database, storage: LocalStorage):
        self._db = db
        self._storage = storage
        self._session: Optional[Session] = None
        self._listeners: List[AuthListener] = []

    # ---------------------------
    # Listeners
    # ---------------------------

    def on_auth_state_change(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove_listener(self, listener: AuthListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def _emit(self, event: AuthEvent) -> None:
        _logger.debug(f"Auth event {event} -> {len(self._listeners)} listener(s)")
        for listener in list(self._listeners):
            listener(event, self._session)

    # ---------------------------
    # Session persistence
    # ---------------------------

    def _persist_session(self) -> None:
        try:
            if self._session is None:
                self._storage.remove(SESSION_STORAGE_KEY)
            else:
                self._storage.set(
                    SESSION_STORAGE_KEY, json.dumps(asdict(self._session))
                )
        except OSError as e:
            _logger.warning(f"Could not persist session: {e}")

    async def restore_session(self) -> Optional[Session]:
        """Pick up a persisted session if its user still exists."""
        raw = self._storage.get(SESSION_STORAGE_KEY)
        if raw is None:
            return None
        try:
            session = Session(**json.loads(raw))
        except (TypeError, ValueError):
            _logger.warning("Dropping malformed persisted session.")
            self._persist_session()
            return None

        async with self._db.connect() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM auth_users WHERE id = ?;", (session.user_id,)
            )
            row = await cur.fetchone()
            await cur.close()
        if row is None:
            _logger.info("Persisted session refers to a missing user, dropping it.")
            self._persist_session()
            return None

        self._session = session
        _logger.info(f"Restored session for {session.email}")
        return session

    # ---------------------------
    # Auth operations
    # ---------------------------

    async def get_session(self) -> Optional[Session]:
        return self._session

    def _start_session(self, user_id: str, email: str) -> Session:
        self._session = Session(
            user_id=user_id,
            email=email,
            access_token=secrets.token_urlsafe(32),
            created_at=utc_now(),
        )
        self._persist_session()
        self._emit("SIGNED_IN")
        return self._session

    async def create_user(
        self, email: str, password: str, name: str, is_admin: bool = False
    ) -> str:
        """Create credentials plus the matching users row; return the new id."""
        email = email.strip().lower()
        if not email or not password:
            raise AuthError("Email and password are required.")

        uid = uuid.uuid4().hex
        now = utc_now()
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    "SELECT 1 FROM auth_users WHERE email = ?;", (email,)
                )
                taken = await cur.fetchone()
                await cur.close()
                if taken:
                    raise AuthError("Email already registered.")
                await conn.execute(
                    "INSERT INTO auth_users (id, email, password_hash, created_at) VALUES (?, ?, ?, ?);",
                    (uid, email, hash_password(password), now),
                )
                await conn.execute(
                    "INSERT INTO users (id, email, name, is_admin, created_at) VALUES (?, ?, ?, ?, ?);",
                    (uid, email, name.strip() or email.split("@")[0], int(is_admin), now),
                )
                await conn.commit()
        except sqlite3.Error as e:
            raise WriteError(f"Could not register {email}: {e}") from e

        _logger.info(f"Registered {email}{' (admin)' if is_admin else ''}")
        return uid

    async def sign_up(self, email: str, password: str, name: str) -> Session:
        """Register a regular account and sign it in."""
        uid = await self.create_user(email, password, name)
        return self._start_session(uid, email.strip().lower())

    async def sign_in_with_password(self, email: str, password: str) -> Session:
        email = email.strip().lower()
        try:
            async with self._db.connect() as conn:
                cur = await conn.execute(
                    "SELECT id, email, password_hash FROM auth_users WHERE email = ?;",
                    (email,),
                )
                row = await cur.fetchone()
                await cur.close()
        except sqlite3.Error as e:
            raise ReadError(f"Could not look up {email}: {e}") from e

        if not row or not verify_password(password, row["password_hash"]):
            _logger.info(f"Rejected sign in for {email}")
            raise AuthError("Invalid login credentials.")

        _logger.info(f"Signed in {email}")
        return self._start_session(row["id"], row["email"])

    async def sign_out(self) -> None:
        if self._session is None:
            return
        _logger.info(f"Signed out {self._session.email}")
        self._session = None
        self._persist_session()
        self._emit("SIGNED_OUT")

    async def user_exists(self, email: str) -> bool:
        async with self._db.connect() as conn:
            cur = await conn.execute(
                "SELECT 1 FROM auth_users WHERE email = ?;", (email.strip().lower(),)
            )
            row = await cur.fetchone()
            await cur.close()
        return row is not None
