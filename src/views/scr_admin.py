from typing import Dict, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, LoadingIndicator

from gateway.errors import (
    AccessDeniedError,
    AuthError,
    GatewayError,
    ReadError,
    ValidationError,
    WriteError,
)
from gateway.models import Product
from utils.messages import ModeSwitchedMessage, RoleChangedMessage
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal
from views.scr_login import LoginScreen

# form input id -> ProductFormData field
FORM_INPUTS: Dict[str, str] = {
    "input-name": "name",
    "input-category": "category",
    "input-description": "description",
    "input-price": "price",
    "input-stock": "stock",
    "input-image-url": "image_url",
}

# disabled while a save or delete is running
WRITE_LOCKED_BUTTONS = ("btn-new", "btn-edit", "btn-delete", "btn-cancel", "btn-save")


class AdminScreen(BaseScreen):
    """
    Product management, admins only.

    Nothing but a loading indicator is shown until the role check finishes.
    Anonymous visitors are sent to the login screen; signed-in non-admins
    are sent back to the catalog.
    """

    def __init__(self) -> None:
        super().__init__()
        self._gating = False

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield LoadingIndicator(id="loading-admin")
        with Vertical(id="div-admin", classes="hidden"):
            with Horizontal(id="hort-admin-toolbar"):
                yield Button("New Product", id="btn-new", variant="primary")
                yield Button("Edit", id="btn-edit")
                yield Button("Delete", id="btn-delete", variant="error")
                yield Button("Reload", id="btn-reload")
            with Vertical(id="div-form", classes="hidden"):
                yield Label("", id="label-form-title")
                with Horizontal(classes="form-row"):
                    with Vertical():
                        yield Label("Name")
                        yield Input(placeholder="Pod Morango", id="input-name")
                    with Vertical():
                        yield Label("Category")
                        yield Input(placeholder="Frutas", id="input-category")
                yield Label("Description")
                yield Input(placeholder="Describe the product...", id="input-description")
                with Horizontal(classes="form-row"):
                    with Vertical():
                        yield Label("Price (R$)")
                        yield Input(
                            placeholder="0.00",
                            id="input-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )
                    with Vertical():
                        yield Label("Stock")
                        yield Input(
                            placeholder="0",
                            id="input-stock",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                yield Label("Image URL")
                yield Input(placeholder="https://...", id="input-image-url")
                with Horizontal(id="hort-form-btns"):
                    yield Button("Cancel", id="btn-cancel")
                    yield Button("Save", id="btn-save", variant="success")
            yield DataTable(id="table-admin-products")

    def on_mount(self) -> None:
        table = self.query_one("#table-admin-products", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Stock", "Created")

    # ---------------------------
    # Gate
    # ---------------------------

    def _show_content(self, visible: bool) -> None:
        self.query_one("#loading-admin").set_class(visible, "hidden")
        self.query_one("#div-admin").set_class(not visible, "hidden")

    def _leave(self) -> None:
        self.post_message(ModeSwitchedMessage(self.app.current_mode, "catalog"))

    @on(ScreenResume)
    def start_gate(self) -> None:
        # the login screen pushed by the gate resumes this screen when it
        # closes; that resume must not start a second gate
        if self._gating:
            return
        self._gating = True
        self.handle_gate()

    @work(exclusive=True, group="admin-gate")
    async def handle_gate(self) -> None:
        try:
            await self._run_gate()
        finally:
            self._gating = False

    async def _run_gate(self) -> None:
        self._show_content(False)
        while True:
            try:
                await self.app.state.resolver.require_admin()
                break
            except AuthError:
                self.notify("Sign in as an admin to manage products.", severity="warning")
                if not await self.app.push_screen_wait(LoginScreen()):
                    self._leave()
                    return
            except AccessDeniedError:
                self.notify("Admin access required.", severity="error")
                self._leave()
                return
            except GatewayError as e:
                self.notify(f"Could not check your access: {e}", severity="error")
                self._leave()
                return

        self._show_content(True)
        await self.reload_products()

    @on(RoleChangedMessage)
    def handle_role_changed(self, message: RoleChangedMessage) -> None:
        if self.is_current and message.role != "admin":
            self.start_gate()

    # ---------------------------
    # Rendering
    # ---------------------------

    async def reload_products(self) -> None:
        try:
            await self.app.state.catalog.load_products()
        except ReadError as e:
            self.notify(f"Could not load products: {e}", severity="error")
        self.render_table()
        self.render_form()

    def render_table(self) -> None:
        table = self.query_one("#table-admin-products", DataTable)
        table.clear()
        for prod in self.app.state.catalog.products:
            table.add_row(
                prod.name,
                prod.category,
                format_price(prod.price),
                str(prod.stock),
                prod.created_at[:10],
                key=prod.id,
            )

    def render_form(self) -> None:
        console = self.app.state.admin
        div_form = self.query_one("#div-form")
        div_form.set_class(console.mode == "idle", "hidden")
        if console.mode == "idle":
            return

        title = "New Product" if console.mode == "creating" else "Edit Product"
        if console.editing is not None:
            title += f": {console.editing.name}"
        self.query_one("#label-form-title", Label).update(title)
        for input_id, field_name in FORM_INPUTS.items():
            inp = self.query_one(f"#{input_id}", Input)
            inp.value = getattr(console.form, field_name)
            inp.remove_class("-invalid")
        self.query_one("#input-name", Input).focus()

    def _selected_product(self) -> Optional[Product]:
        table = self.query_one("#table-admin-products", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self.app.state.catalog.get(row_key.value)

    # ---------------------------
    # Form
    # ---------------------------

    @on(Input.Changed)
    def handle_input_changed(self, message: Input.Changed) -> None:
        field_name = FORM_INPUTS.get(message.input.id or "")
        if field_name:
            setattr(self.app.state.admin.form, field_name, message.value)

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        if not self.app.state.admin.start_create():
            self.notify("Still saving, please wait.", severity="warning")
            return
        self.render_form()

    @on(Button.Pressed, "#btn-edit")
    @on(DataTable.RowSelected, "#table-admin-products")
    def handle_edit(self) -> None:
        prod = self._selected_product()
        if prod is None:
            self.notify("Select a product first.", severity="warning")
            return
        if not self.app.state.admin.start_edit(prod):
            self.notify("Still saving, please wait.", severity="warning")
            return
        self.render_form()

    @on(Button.Pressed, "#btn-cancel")
    def handle_cancel(self) -> None:
        if self.app.state.admin.cancel():
            self.render_form()

    def _lock_form(self, locked: bool) -> None:
        for btn_id in WRITE_LOCKED_BUTTONS:
            self.query_one(f"#{btn_id}", Button).disabled = locked

    @on(Button.Pressed, "#btn-reload")
    @work(exclusive=True, group="admin-reload")
    async def handle_reload(self) -> None:
        await self.reload_products()

    @on(Button.Pressed, "#btn-save")
    @work(group="admin-write")
    async def handle_save(self) -> None:
        # not exclusive: cancelling a write mid-flight is worse than a dropped click
        console = self.app.state.admin
        if console.busy:
            self.notify("Still saving, please wait.", severity="warning")
            return

        self._lock_form(True)
        try:
            saved = await console.save()
        except ValidationError as e:
            for input_id, field_name in FORM_INPUTS.items():
                self.query_one(f"#{input_id}", Input).set_class(
                    field_name in e.errors, "-invalid"
                )
            self.notify("\n".join(e.errors.values()), severity="error")
            return
        except WriteError as e:
            self.notify(f"Save failed: {e}", severity="error")
            return
        finally:
            self._lock_form(False)

        if not saved:
            self.notify("Still saving, please wait.", severity="warning")
            return
        self.notify("Product saved.")
        self.render_table()
        self.render_form()

    @on(Button.Pressed, "#btn-delete")
    @work(group="admin-write")
    async def handle_delete(self) -> None:
        console = self.app.state.admin
        prod = self._selected_product()
        if prod is None:
            self.notify("Select a product first.", severity="warning")
            return
        if console.busy:
            self.notify("Still saving, please wait.", severity="warning")
            return

        async def confirm() -> bool:
            return await self.app.push_screen_wait(
                ConfirmDialogModal(f"Delete {prod.name}? This cannot be undone.")
            )

        self._lock_form(True)
        try:
            deleted = await console.delete(prod.id, confirm)
        except WriteError as e:
            self.notify(f"Delete failed: {e}", severity="error")
            return
        finally:
            self._lock_form(False)

        if deleted:
            self.notify(f"{prod.name} deleted.")
            self.render_table()
            self.render_form()
