from typing import Optional

from textual.message import Message

from gateway.models import Role


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user asks to log out
    """

    bubble = True


class AuthChangedMessage(Message):
    """
    Posted by a view's auth subscription whenever the gateway signs someone
    in or out. The view re-resolves the role in response.
    """

    bubble = False

    def __init__(self, event: str) -> None:
        super().__init__()
        self.event = event


class RoleChangedMessage(Message):
    """
    Fired by the sidebar once a role refresh finishes.
    Screens that gate on the role (admin) listen for it.
    """

    bubble = True

    def __init__(self, role: Role) -> None:
        super().__init__()
        self.role = role


class CartChangedMessage(Message):
    """
    Fired whenever the cart store is mutated.
    Post it at App level when it comes from another screen.
    """

    bubble = True


class CheckoutRequestedMessage(Message):
    """
    The cart asked to check out. Order placement lives outside this app.
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    ask the app to switch modes; the app does the switch_mode call
    so every mode change goes through one place
    """

    bubble = True

    def __init__(self, old_mode: Optional[str], new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode


class LoginRequestedMessage(Message):
    """
    Ask the app to show the login screen (sidebar button, cart checkout).
    """

    bubble = True
