import os
import tempfile
import unittest

from gateway.client import Gateway
from gateway.errors import AccessDeniedError, AuthError
from store.roles import RoleResolver
from utils.config import Settings
from utils.state import GlobalState


class RoleResolverTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.settings = Settings(
            db_path=os.path.join(self.temp_dir.name, "test.sqlite"),
            storage_path=os.path.join(self.temp_dir.name, "storage.json"),
            seed=False,
        )

    async def asyncSetUp(self):
        self.gateway = Gateway(self.settings)
        await self.gateway.init()
        self.resolver = RoleResolver(self.gateway)

    async def asyncTearDown(self):
        await self.gateway.close()

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_no_session_is_anonymous(self):
        self.assertEqual(await self.resolver.resolve(), (None, "anonymous"))
        with self.assertRaises(AuthError):
            await self.resolver.require_admin()

    async def test_regular_user_is_authenticated(self):
        session = await self.gateway.auth.sign_up("user@example.com", "pw", "User")
        self.assertEqual(await self.resolver.resolve(), (session, "authenticated"))
        with self.assertRaises(AccessDeniedError):
            await self.resolver.require_admin()

    async def test_admin_flag_grants_admin(self):
        await self.gateway.auth.create_user(
            "boss@example.com", "pw", "Boss", is_admin=True
        )
        session = await self.gateway.auth.sign_in_with_password("boss@example.com", "pw")
        self.assertEqual(await self.resolver.resolve(), (session, "admin"))
        self.assertEqual(await self.resolver.require_admin(), session)

    async def test_missing_profile_row_is_not_admin(self):
        session = await self.gateway.auth.sign_up("ghost@example.com", "pw", "Ghost")
        await self.gateway.tables.delete("users", session.user_id)
        self.assertEqual(await self.resolver.resolve_role(session.user_id), "authenticated")

    async def test_subscription_released_after_block(self):
        events = []
        with self.resolver.subscribe(lambda event, session: events.append(event)):
            await self.gateway.auth.sign_up("sub@example.com", "pw", "Sub")
        await self.gateway.auth.sign_out()
        self.assertEqual(events, ["SIGNED_IN"])

    async def test_subscription_released_on_error(self):
        events = []
        with self.assertRaises(RuntimeError):
            with self.resolver.subscribe(lambda event, session: events.append(event)):
                raise RuntimeError("boom")
        await self.gateway.auth.sign_up("err@example.com", "pw", "Err")
        self.assertEqual(events, [])


class GlobalStateTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.settings = Settings(
            db_path=os.path.join(self.temp_dir.name, "test.sqlite"),
            storage_path=os.path.join(self.temp_dir.name, "storage.json"),
            seed=False,
        )

    def tearDown(self):
        self.temp_dir.cleanup()

    async def test_refresh_role_and_sign_out(self):
        gateway = Gateway(self.settings)
        await gateway.init()
        state = GlobalState(gateway)
        self.assertEqual(await state.refresh_role(), "anonymous")

        await gateway.auth.create_user("a@example.com", "pw", "A", is_admin=True)
        await gateway.auth.sign_in_with_password("a@example.com", "pw")
        self.assertEqual(await state.refresh_role(), "admin")
        self.assertTrue(state.is_admin)
        self.assertEqual(state.session.email, "a@example.com")

        await state.sign_out()
        self.assertIsNone(state.session)
        self.assertFalse(state.is_admin)
        self.assertIsNone(await gateway.auth.get_session())
