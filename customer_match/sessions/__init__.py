"""Server-side matching sessions exposed over HTTP."""

from customer_match.sessions.registry import (
    SessionEntry,
    SessionNotFoundError,
    SessionRegistry,
    get_registry,
    set_registry,
)

__all__ = [
    "SessionEntry",
    "SessionNotFoundError",
    "SessionRegistry",
    "get_registry",
    "set_registry",
]
