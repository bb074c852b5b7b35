"""Token storage implementations."""

from .base import SafeTokenRecord, TokenRecord, TokenStore
from .sqlite import SQLiteTokenStore

__all__ = ["TokenStore", "SQLiteTokenStore", "TokenRecord", "SafeTokenRecord"]
