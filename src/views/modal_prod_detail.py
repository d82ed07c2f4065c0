from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, MarkdownViewer

from gateway.models import Product
from utils.messages import CartChangedMessage
from utils.pure import attribute_table, format_price, stock_label


class ProdDetailModal(ModalScreen[bool]):
    """
    Product detail plus "Add to Cart".
    Returns True if the cart changed, False if not.
    """

    def __init__(self, product: Product) -> None:
        super().__init__()
        self._prod = product

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Vertical(id="div-prod-actions"):
                yield Label("", id="label-in-cart")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        prod = self._prod
        rows = [
            ["Name", prod.name],
            ["Category", prod.category or "-"],
            ["Price", format_price(prod.price)],
            ["Stock", stock_label(prod.stock)],
            ["Description", prod.description or "-"],
            ["Image", prod.image_url or "-"],
        ]
        await self.query_one(MarkdownViewer).document.update(
            f"### {prod.name}\n\n" + attribute_table(rows)
        )

        # stock 0 means nothing can be added
        if prod.stock < 1:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Sold out"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self._render_in_cart()
        self.query_one("#btn-quit").focus()

    def _render_in_cart(self) -> None:
        item = self.app.state.cart.get(self._prod.id)
        qty = item.quantity if item else 0
        self.query_one("#label-in-cart", Label).update(f"In your cart: {qty}")

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(False)

    @on(Button.Pressed, "#btn-addcart")
    def handle_addcart(self):
        if self._prod.stock < 1:
            return
        item = self.app.state.cart.add(self._prod)
        self.app.notify(f"{item.product.name} added to cart ({item.quantity}).")
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)
