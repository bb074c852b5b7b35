"""Synchronous wrapper for SQLiteTokenStore for blocking callers."""

import asyncio
from typing import Callable, Iterable, List, Optional

from .config import get_config
from .storage.base import SafeTokenRecord, TokenRecord
from .storage.sqlite import DatabaseLocation, SQLiteTokenStore


class SyncTokenStore:
    """Synchronous wrapper around SQLiteTokenStore for Flask, scripts and other sync code.

    The wrapper owns a private event loop and runs every store call to
    completion on it, so each method blocks until the database answers.

    Example:
        ```python
        from token_vault import SyncTokenStore

        with SyncTokenStore("./data/auth.db") as store:
            token = store.generate_token("svc1", rights=["read", "write"])
            store.verify_token_validity(token.secret)  # True
            store.verify_token_right(token.secret, "admin")  # False
        ```
    """

    def __init__(
        self,
        database_path: Optional[DatabaseLocation] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        """Initialize synchronous token store.

        Args:
            database_path: Database file path or ":memory:"
                (defaults to env TOKEN_VAULT_DATABASE_PATH or "./data/auth.db")
            clock: Returns the current unix time in seconds (used for expiry checks)
        """
        if database_path is None:
            database_path = get_config().storage.database_path

        self._store = SQLiteTokenStore(database_path, clock=clock)

        # Event loop is created on first use
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._closed = False

    def __enter__(self) -> "SyncTokenStore":
        self._run(self._store.open())
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _ensure_initialized(self) -> asyncio.AbstractEventLoop:
        """Ensure the private event loop exists."""
        if self._closed:
            raise RuntimeError("SyncTokenStore is closed")
        if self._loop is None:
            self._loop = asyncio.new_event_loop()
        return self._loop

    def _run(self, coro):
        try:
            loop = self._ensure_initialized()
        except RuntimeError:
            coro.close()
            raise
        return loop.run_until_complete(coro)

    def generate_token(
        self, name: str, rights: Iterable[str] = (), expiration: int = 0
    ) -> TokenRecord:
        """Create a token; see SQLiteTokenStore.generate_token."""
        return self._run(self._store.generate_token(name, rights, expiration))

    def has_token(self, name: str) -> bool:
        return self._run(self._store.has_token(name))

    def get_token(self, name: str) -> SafeTokenRecord:
        return self._run(self._store.get_token(name))

    def get_optional_token(self, name: str) -> Optional[SafeTokenRecord]:
        return self._run(self._store.get_optional_token(name))

    def delete_token(self, name: str) -> bool:
        return self._run(self._store.delete_token(name))

    def list_tokens(self) -> List[SafeTokenRecord]:
        return self._run(self._store.list_tokens())

    def verify_token_validity(self, secret: str) -> bool:
        return self._run(self._store.verify_token_validity(secret))

    def verify_token_right(self, secret: str, right: str) -> bool:
        """Check a right without checking expiration; see SQLiteTokenStore."""
        return self._run(self._store.verify_token_right(secret, right))

    def close(self) -> None:
        """Close the database connection and the event loop."""
        if self._closed:
            return
        self._closed = True
        if self._loop is not None:
            self._loop.run_until_complete(self._store.close())
            self._loop.close()
            self._loop = None
