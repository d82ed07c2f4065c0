from contextlib import ExitStack
from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from gateway.errors import GatewayError
from gateway.models import Session
from utils.messages import (
    AuthChangedMessage,
    LoginRequestedMessage,
    ModeSwitchedMessage,
    RoleChangedMessage,
    UserLogoutMessage,
)
from utils.pure import attribute_table
from views.modal_dialog import DialogModal, QuitDialogModal

ROLE_LABELS = {
    "anonymous": "Guest",
    "authenticated": "Customer",
    "admin": "Admin",
}


class Sidebar(Container):
    """
    User info, login/logout and the mode menu.

    Holds an auth-state subscription for as long as it is mounted and
    re-resolves the role on every notification.
    """

    def __init__(self) -> None:
        super().__init__()
        self._subscriptions = ExitStack()

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log in", id="btn-login", variant="primary")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    def on_mount(self) -> None:
        self._subscriptions.enter_context(
            self.app.state.resolver.subscribe(self._on_auth_change)
        )
        self.render_user()

    def on_unmount(self) -> None:
        self._subscriptions.close()

    def _on_auth_change(self, event: str, _session: Optional[Session]) -> None:
        self.post_message(AuthChangedMessage(event))

    @on(AuthChangedMessage)
    @work(exclusive=True, group="role-refresh")
    async def handle_auth_changed(self) -> None:
        # exclusive: a newer notification cancels the older refresh
        try:
            role = await self.app.state.refresh_role()
        except GatewayError as e:
            self.notify(f"Could not refresh your role: {e}", severity="error")
            return
        self.render_user()
        self.post_message(RoleChangedMessage(role))

    @work(exclusive=True, group="sidebar-render")
    async def render_user(self) -> None:
        state = self.app.state
        rows = [["Role", ROLE_LABELS[state.role]]]
        if state.session:
            rows.insert(0, ["User", state.session.email])
        await self.query_one("#md-userinfo", Markdown).update(attribute_table(rows))

        self.query_one("#btn-login").display = state.session is None
        self.query_one("#btn-logout").display = state.session is not None

        modes = dict(self.app.SHOP_MODES)
        if state.is_admin:
            modes.update(self.app.ADMIN_MODES)
        list_menu = self.query_one("#list-menu", ListView)
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in modes.items()]
        )
        self.highlight_item(self.app.current_mode)

    def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))

    @on(Button.Pressed, "#btn-login")
    def handle_login(self) -> None:
        self.post_message(LoginRequestedMessage())

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: Optional[str]):
        for item in self.query_one("#list-menu", ListView).children:
            item.highlighted = bool(mode_str) and item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "PodStore",
        show_sidebar: bool = True,
    ) -> None:
        self.app.title = "PodStore"
        self.sub_title = header_sub_title
        menu = {**self.app.SHOP_MODES, **self.app.ADMIN_MODES}
        for k, v in self.app.MODES.items():
            if isinstance(v, type) and isinstance(self, v) and k in menu:
                self.sub_title = menu[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(ScreenResume)
    def refresh_sidebar(self) -> None:
        # another screen may have changed who is signed in
        for sidebar in self.query(Sidebar):
            sidebar.render_user()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
