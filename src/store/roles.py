from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from gateway.auth import AuthListener, Subscription
from gateway.client import Gateway
from gateway.errors import AccessDeniedError, AuthError, NotFoundError
from gateway.models import Role, Session
from utils.logger import get_logger

_logger = get_logger(__name__)

# the one table the admin flag is read from
ROLE_TABLE = "users"


class RoleResolver:
    """
    Turns the gateway's session plus the users.is_admin flag into a Role.
    """

    def __init__(self, gateway: Gateway):
        self._gateway = gateway

    async def resolve_session(self) -> Optional[Session]:
        return await self._gateway.auth.get_session()

    async def resolve_role(self, user_id: str) -> Role:
        try:
            row = await self._gateway.tables.select_one(ROLE_TABLE, user_id)
        except NotFoundError:
            _logger.debug(f"No {ROLE_TABLE} row for {user_id}, treating as non-admin")
            return "authenticated"
        return "admin" if row.get("is_admin") else "authenticated"

    async def resolve(self) -> Tuple[Optional[Session], Role]:
        session = await self.resolve_session()
        if session is None:
            return None, "anonymous"
        return session, await self.resolve_role(session.user_id)

    async def require_admin(self) -> Session:
        """
        Return the session if the visitor is an admin.
        AuthError without a session, AccessDeniedError for everyone else.
        """
        session, role = await self.resolve()
        if session is None:
            raise AuthError("Sign in to continue.")
        if role != "admin":
            raise AccessDeniedError("Admin access required.")
        return session

    @contextmanager
    def subscribe(self, listener: AuthListener) -> Iterator[Subscription]:
        """Listen for auth changes for the duration of the with-block."""
        subscription = self._gateway.auth.on_auth_state_change(listener)
        try:
            yield subscription
        finally:
            subscription.unsubscribe()
