from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.widgets import Button, Label, Rule

from gateway.models import CartItem
from utils.messages import (
    CartChangedMessage,
    CheckoutRequestedMessage,
    LoginRequestedMessage,
)
from utils.pure import format_price
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmDialogModal, DialogModal


class CartItemWidget(HorizontalGroup):
    """One cart line: name, unit price, -/qty/+, line total, remove."""

    def __init__(self, item: CartItem):
        super().__init__(classes="cart-item")
        self.item = item

    def compose(self) -> ComposeResult:
        prod = self.item.product
        yield Label(prod.name, classes="label-item-name")
        yield Label(prod.category, classes="label-item-category")
        yield Label(format_price(prod.price), classes="label-item-price")
        yield Button("-", classes="btn-dec")
        yield Label(str(self.item.quantity), classes="label-item-qty")
        yield Button("+", classes="btn-inc")
        yield Label(format_price(self.item.subtotal), classes="label-item-subtotal")
        yield Button("Remove", classes="btn-remove", variant="error")

    @on(Button.Pressed, ".btn-dec")
    def handle_dec(self) -> None:
        self.app.state.cart.adjust_quantity(self.item.product.id, -1)
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, ".btn-inc")
    def handle_inc(self) -> None:
        self.app.state.cart.adjust_quantity(self.item.product.id, 1)
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, ".btn-remove")
    @work()
    async def handle_remove_item(self) -> None:
        remove_confirmed = await self.app.push_screen_wait(
            ConfirmDialogModal("Do you really want to remove this item from cart?")
        )
        if remove_confirmed:
            self.app.state.cart.remove(self.item.product.id)
            self.post_message(CartChangedMessage())
            self.notify("Item removed from cart.", severity="information")


class CartScreen(BaseScreen):
    """
    The cart kept on this device, with totals and checkout.
    """

    def __init__(self) -> None:
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    @on(CartChangedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # exclusive, or two rebuilds race and duplicate rows
    async def handle_cart_change(self) -> None:
        cart = self.app.state.cart
        content = self.query_one("#vertscroll-content", VerticalScroll)
        await content.remove_children()
        await content.mount_all([CartItemWidget(item) for item in cart.items])
        content.set_class(not cart.items, "no-items")

        self.query_one("#label-cart-total", Label).update(
            f"Total ({cart.count()} item(s)): {format_price(cart.total())}"
        )
        checkout = self.query_one("#btn-checkout", Button)
        checkout.label = "Checkout" if self.app.state.session else "Log in to check out"

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        )
        if remove_confirmed:
            self.app.state.cart.clear()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    def handle_checkout(self) -> None:
        if not self.app.state.cart.items:
            self.app.notify("Cart is empty.", severity="warning")
            return
        if self.app.state.session is None:
            self.post_message(LoginRequestedMessage())
            return
        self.post_message(CheckoutRequestedMessage())
