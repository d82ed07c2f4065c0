import sqlite3
from typing import Optional

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from gateway.client import Gateway
from gateway.errors import GatewayError
from utils.config import Settings
from utils.logger import get_logger
from utils.messages import (
    CheckoutRequestedMessage,
    LoginRequestedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
)
from utils.state import GlobalState
from views.scr_admin import AdminScreen
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen

_logger = get_logger(__name__)


class PodStoreApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
        "admin": AdminScreen,
    }

    SHOP_MODES = {"catalog": "Products", "cart": "Cart"}
    ADMIN_MODES = {"admin": "Manage Products"}

    CSS_PATH = [
        "views/styles/index.tcss",
        "views/styles/login.tcss",
        "views/styles/catalog.tcss",
        "views/styles/cart.tcss",
        "views/styles/admin.tcss",
    ]

    state: GlobalState

    def __init__(
        self, settings: Optional[Settings] = None, gateway: Optional[Gateway] = None
    ):
        super().__init__()
        self.settings = settings or Settings.from_env()
        self.gateway = gateway or Gateway(self.settings)
        self.state = GlobalState(self.gateway)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    async def on_unmount(self) -> None:
        await self.gateway.close()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(LoginRequestedMessage)
    @work
    async def handle_login_requested(self):
        await self.push_screen_wait(LoginScreen())

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.sign_out()
        self.notify("Logout successful.")

    @on(CheckoutRequestedMessage)
    def handle_checkout_requested(self):
        # order placement is not part of this app
        self.notify("Checkout is not available yet.", severity="warning")

    @on(ModeSwitchedMessage)
    async def handle_mode_switched(self, message: ModeSwitchedMessage) -> None:
        if self.current_mode == message.new_mode:
            return
        _logger.debug(f"Mode {message.old_mode} -> {message.new_mode}")
        await self.switch_mode(message.new_mode)

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        try:
            await self.gateway.init()
        except (GatewayError, sqlite3.Error, OSError) as e:
            _logger.error(f"Gateway failed to start: {e}")
            self.exit(return_code=1, message=f"PodStore could not start: {e}")
            return

        self.state.cart.load()
        try:
            await self.state.refresh_role()
        except GatewayError as e:
            self.notify(f"Could not resolve your account: {e}", severity="error")

        self.post_message(ModeSwitchedMessage(None, "catalog"))


def main() -> None:
    PodStoreApp().run()


if __name__ == "__main__":
    main()
