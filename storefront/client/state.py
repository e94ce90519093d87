"""Client state containers: auth, cart and search.

Each container holds one JSON-serializable value. The value is read from its
session store the first time it is used and written back on every update.
`use()` returns the `(state, set_state)` pair views work with.
"""
import copy
from decimal import Decimal
from typing import Any, Callable, Optional, Tuple

from ..enums import Role
from .cart import cart_total, format_usd, remove_first
from .session import MemorySessionStore, SessionStore


class StateContainer:
    key = ""

    def __init__(self, store: Optional[SessionStore] = None):
        self.store = store if store is not None else MemorySessionStore()
        self._state: Any = None
        self._mounted = False

    def default(self) -> Any:
        raise NotImplementedError

    def _mount(self) -> None:
        if self._mounted:
            return
        stored = self.store.load()
        self._state = stored if stored is not None else self.default()
        self._mounted = True

    @property
    def state(self) -> Any:
        self._mount()
        return self._state

    def set_state(self, value: Any) -> None:
        """Replace the state; a callable receives the previous state."""
        self._mount()
        if callable(value):
            value = value(copy.deepcopy(self._state))
        self.store.save(value)
        self._state = value

    def use(self) -> Tuple[Any, Callable[[Any], None]]:
        return self.state, self.set_state

    def reset(self) -> None:
        self.store.clear()
        self._state = self.default()
        self._mounted = True


class AuthContext(StateContainer):
    key = "auth"

    def default(self) -> dict:
        return {"user": None, "token": ""}

    @property
    def token(self) -> str:
        return self.state.get("token") or ""

    @property
    def user(self) -> Optional[dict]:
        return self.state.get("user")

    @property
    def is_admin(self) -> bool:
        user = self.user
        return bool(user) and user.get("role") == Role.ADMIN

    def auth_headers(self) -> dict:
        token = self.token
        return {"Authorization": token} if token else {}


class CartContext(StateContainer):
    key = "cart"

    def default(self) -> list:
        return []

    def add(self, product: dict) -> None:
        self.set_state(lambda items: items + [product])

    def remove(self, product_id: str) -> None:
        self.set_state(lambda items: remove_first(items, product_id))

    def total(self) -> Decimal:
        return cart_total(self.state)

    def total_display(self) -> str:
        return format_usd(self.total())


class SearchContext(StateContainer):
    key = "search"

    def default(self) -> dict:
        return {"keyword": "", "results": []}
