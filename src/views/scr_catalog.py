from typing import Optional, Tuple

from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, HorizontalScroll, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Label

from gateway.errors import ReadError
from gateway.models import Product
from utils.messages import CartChangedMessage, ModeSwitchedMessage
from utils.pure import format_price, stock_label
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

SOLD_OUT_STYLE = "dim"


def catalog_row(prod: Product) -> Tuple[Text, ...]:
    """Table cells for one product; sold-out rows are dimmed."""
    style = SOLD_OUT_STYLE if prod.stock < 1 else ""
    cells = (prod.name, prod.category, format_price(prod.price), stock_label(prod.stock))
    return tuple(Text(cell, style=style) for cell in cells)


class CatalogScreen(BaseScreen):
    """
    The storefront: every product, newest first, filterable by category.
    """

    BINDINGS = [
        Binding("a", "add_to_cart", "Add to Cart", show=True),
        Binding("r", "reload", "Reload", show=True),
    ]

    category: reactive[Optional[str]] = reactive(None)

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical(id="div-catalog"):
            yield HorizontalScroll(id="hscroll-categories")
            yield DataTable(id="table-products")
            with Horizontal(id="hort-cart-summary"):
                yield Label("", id="label-cart-summary")
                yield Button("View Cart", id="btn-view-cart", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one("#table-products", DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Category", "Price", "Stock")

    def action_reload(self) -> None:
        self.handle_reload()

    @on(ScreenResume)
    @on(CartChangedMessage)
    def handle_cart_changed(self) -> None:
        self.render_cart_summary()

    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        try:
            await self.app.state.catalog.load_products()
        except ReadError as e:
            # the previous list stays in place
            self.notify(f"Could not load products: {e}", severity="error")

        if self.category not in self.app.state.catalog.categories():
            self.category = None
        await self.render_categories()
        self.render_table()

    async def render_categories(self) -> None:
        container = self.query_one("#hscroll-categories", HorizontalScroll)
        await container.remove_children()
        buttons = [
            Button(
                "All",
                classes="btn-category",
                variant="primary" if self.category is None else "default",
            )
        ]
        for cat in self.app.state.catalog.categories():
            buttons.append(
                Button(
                    cat,
                    name=cat,
                    classes="btn-category",
                    variant="primary" if cat == self.category else "default",
                )
            )
        await container.mount_all(buttons)

    def render_table(self) -> None:
        table = self.query_one("#table-products", DataTable)
        table.clear()
        for prod in self.app.state.catalog.filter_by_category(self.category):
            table.add_row(*catalog_row(prod), key=prod.id)

    def render_cart_summary(self) -> None:
        cart = self.app.state.cart
        self.query_one("#label-cart-summary", Label).update(
            f"Cart: {cart.count()} item(s), {format_price(cart.total())}"
        )

    @on(Button.Pressed, ".btn-category")
    def handle_category_pressed(self, event: Button.Pressed) -> None:
        self.category = event.button.name or None

    async def watch_category(self, _old: Optional[str], _new: Optional[str]) -> None:
        for btn in self.query(".btn-category").results(Button):
            btn.variant = "primary" if (btn.name or None) == self.category else "default"
        self.render_table()

    def _highlighted_product(self) -> Optional[Product]:
        table = self.query_one("#table-products", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self.app.state.catalog.get(row_key.value)

    def action_add_to_cart(self) -> None:
        prod = self._highlighted_product()
        if prod is None:
            return
        if prod.stock < 1:
            self.notify(f"{prod.name} is sold out.", severity="warning")
            return
        item = self.app.state.cart.add(prod)
        self.notify(f"{prod.name} added to cart ({item.quantity}).")
        self.render_cart_summary()

    @on(DataTable.RowSelected, "#table-products")
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        prod = self.app.state.catalog.get(event.row_key.value)
        if prod is None:
            return
        if await self.app.push_screen_wait(ProdDetailModal(prod)):
            self.render_cart_summary()

    @on(Button.Pressed, "#btn-view-cart")
    def handle_view_cart(self) -> None:
        self.app.post_message(ModeSwitchedMessage(self.app.current_mode, "cart"))
