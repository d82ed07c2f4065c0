from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from gateway.client import Gateway
from gateway.models import Role, Session
from store.admin import AdminConsole
from store.cart import CartStore
from store.catalog import CatalogLoader
from store.roles import RoleResolver


@dataclass
class GlobalState:
    """
    Application state shared by screens.

    Fields:
      - gateway: the one Gateway the app was built with
      - session: current auth session, None when anonymous
      - role: "anonymous" | "authenticated" | "admin"
      - cart / catalog / resolver / admin: components built on the gateway
    """

    gateway: Gateway
    session: Optional[Session] = None
    role: Role = "anonymous"

    cart: CartStore = field(init=False)
    catalog: CatalogLoader = field(init=False)
    resolver: RoleResolver = field(init=False)
    admin: AdminConsole = field(init=False)

    def __post_init__(self) -> None:
        self.cart = CartStore(self.gateway.storage)
        self.catalog = CatalogLoader(self.gateway)
        self.resolver = RoleResolver(self.gateway)
        self.admin = AdminConsole(self.gateway, self.catalog)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    async def refresh_role(self) -> Role:
        """Re-derive session and role from the gateway."""
        self.session, self.role = await self.resolver.resolve()
        return self.role

    async def sign_out(self) -> None:
        await self.gateway.auth.sign_out()
        self.session = None
        self.role = "anonymous"
