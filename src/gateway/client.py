from __future__ import annotations

from typing import Optional

from gateway.auth import AuthClient
from gateway.database import Database
from gateway.errors import AuthError
from gateway.tables import Tables
from utils.config import Settings
from utils.logger import get_logger
from utils.storage import LocalStorage

_logger = get_logger(__name__)


class Gateway:
    """
    Auth + table store handle. Build one per app and pass it to whatever
    needs it; call `init()` before use and `close()` on the way out.
    """

    def __init__(self, settings: Settings, storage: Optional[LocalStorage] = None):
        self.settings = settings
        self.storage = storage or LocalStorage(settings.storage_path)
        self.db = Database(settings.db_path, seed=settings.seed)
        self.tables = Tables(self.db)
        self.auth = AuthClient(self.db, self.storage)
        self.ready = False

    async def init(self) -> None:
        if self.ready:
            return
        # opening a connection applies the schema on a fresh file
        async with self.db.connect():
            pass
        await self._bootstrap_admin()
        await self.auth.restore_session()
        self.ready = True
        _logger.info(f"Gateway ready ({self.settings.db_path})")

    async def _bootstrap_admin(self) -> None:
        email = self.settings.admin_email
        password = self.settings.admin_password
        if not email or not password:
            return
        if await self.auth.user_exists(email):
            return
        try:
            await self.auth.create_user(email, password, "Admin", is_admin=True)
        except AuthError as e:
            _logger.warning(f"Could not create admin account {email}: {e}")

    async def close(self) -> None:
        self.ready = False
        _logger.debug("Gateway closed")
