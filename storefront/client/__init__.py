from .hooks import FetchResult, use_category
from .http import ApiClient, ApiRequestError
from .session import JsonFileSessionStore, MemorySessionStore, SessionStore
from .state import AuthContext, CartContext, SearchContext, StateContainer

__all__ = [
    "ApiClient",
    "ApiRequestError",
    "AuthContext",
    "CartContext",
    "FetchResult",
    "JsonFileSessionStore",
    "MemorySessionStore",
    "SearchContext",
    "SessionStore",
    "StateContainer",
    "use_category",
]
