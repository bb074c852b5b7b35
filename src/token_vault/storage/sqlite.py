"""SQLite-based token storage."""

import asyncio
import logging
import os
import sqlite3
import time
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

import aiosqlite

from ..errors import DuplicateNameError, NotFoundError
from ..secret import generate_secret
from .base import SafeTokenRecord, TokenRecord, TokenStore

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

SCHEMA = """
CREATE TABLE IF NOT EXISTS tokens (
    name TEXT NOT NULL PRIMARY KEY,
    expiration INTEGER NOT NULL,
    secret TEXT NOT NULL UNIQUE
);

CREATE UNIQUE INDEX IF NOT EXISTS tokens_secret_index ON tokens (secret);

CREATE TABLE IF NOT EXISTS rights (
    name TEXT NOT NULL,
    "right" TEXT NOT NULL,
    PRIMARY KEY (name, "right"),
    FOREIGN KEY (name)
        REFERENCES tokens (name)
            ON UPDATE RESTRICT
            ON DELETE CASCADE
);
"""

# sqlite3 keeps a per-connection cache of prepared statements keyed by SQL
# text, so these are compiled once and reused.
SELECT_NAME = "SELECT name FROM tokens WHERE name = ?"
SELECT_TOKEN = "SELECT name, expiration FROM tokens WHERE name = ?"
SELECT_ALL_TOKENS = "SELECT name, expiration FROM tokens ORDER BY name"
SELECT_RIGHTS = 'SELECT "right" FROM rights WHERE name = ?'
SELECT_ALL_RIGHTS = 'SELECT name, "right" FROM rights'
INSERT_TOKEN = "INSERT INTO tokens (name, expiration, secret) VALUES (?, ?, ?)"
INSERT_RIGHT = 'INSERT INTO rights (name, "right") VALUES (?, ?)'
DELETE_TOKEN = "DELETE FROM tokens WHERE name = ?"
SELECT_VALID_SECRET = (
    "SELECT name FROM tokens WHERE secret = ? AND (expiration = 0 OR expiration > ?)"
)
SELECT_SECRET_RIGHT = """
    SELECT rights.name
    FROM rights
    JOIN tokens ON tokens.name = rights.name
    WHERE tokens.secret = ? AND rights."right" = ?
"""

DatabaseLocation = Union[str, "os.PathLike[str]"]


def _unix_now() -> int:
    return int(time.time())


def _to_safe_record(row: Tuple[str, int], rights: Iterable[str]) -> SafeTokenRecord:
    name, expiration = row
    return SafeTokenRecord(name=str(name), expiration=int(expiration), rights=frozenset(rights))


class SQLiteTokenStore(TokenStore):
    """SQLite implementation of token storage."""

    def __init__(
        self,
        db: Union[aiosqlite.Connection, DatabaseLocation] = MEMORY,
        clock: Optional[Callable[[], int]] = None,
    ):
        """Initialize SQLite token store.

        Args:
            db: An open aiosqlite connection, ":memory:", or a database file path.
                A connection passed in stays open when the store is closed.
            clock: Returns the current unix time in seconds (used for expiry checks)
        """
        if isinstance(db, aiosqlite.Connection):
            self.db_path: Optional[str] = None
            self._connection: Optional[aiosqlite.Connection] = db
            self._owns_connection = False
        else:
            self.db_path = os.fspath(db)
            self._connection = None
            self._owns_connection = True

        self._initialized = False
        self._clock = clock or _unix_now
        # Serializes all statements on the shared connection
        self._lock = asyncio.Lock()

    async def __aenter__(self) -> "SQLiteTokenStore":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def open(self) -> None:
        """Open the database eagerly instead of on first use."""
        await self._get_connection()

    async def _get_connection(self) -> aiosqlite.Connection:
        """Get or create database connection."""
        if self._connection is None:
            if self.db_path != MEMORY:
                # Ensure directory exists
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

            self._connection = await aiosqlite.connect(self.db_path)

        if not self._initialized:
            await self._initialize_db()
            self._initialized = True

        return self._connection

    async def _initialize_db(self) -> None:
        """Enable foreign keys and create tables if they don't exist."""
        if self._connection is None:
            raise RuntimeError("Database connection not established")

        # Must run outside a transaction, and is per-connection state
        await self._connection.execute("PRAGMA foreign_keys = ON")
        await self._connection.executescript(SCHEMA)
        await self._connection.commit()
        logger.debug("Token schema ready (%s)", self.db_path or "external connection")

    async def generate_token(
        self, name: str, rights: Iterable[str] = (), expiration: int = 0
    ) -> TokenRecord:
        """Create a token with a freshly generated secret.

        The token row and its rights rows are committed together or not at all,
        including when the call is cancelled part way. The name check up front
        is a fast path; the primary key on ``tokens.name`` is what rejects a
        concurrent creator.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Token name must be a non-empty string")
        if isinstance(expiration, bool) or not isinstance(expiration, int) or expiration < 0:
            raise ValueError("Token expiration must be a non-negative integer (unix seconds)")
        if isinstance(rights, str):
            raise TypeError("Token rights must be a collection of strings, not a string")

        granted = frozenset(rights)
        conn = await self._get_connection()

        async with self._lock:
            if await self._name_exists(conn, name):
                raise DuplicateNameError(name)

            secret = generate_secret()

            # Borrowed connections may be in autocommit mode
            await conn.execute("BEGIN")
            try:
                await conn.execute(INSERT_TOKEN, (name, expiration, secret))
                await conn.executemany(INSERT_RIGHT, [(name, right) for right in granted])
            except sqlite3.IntegrityError as e:
                await conn.rollback()
                if await self._name_exists(conn, name):
                    logger.warning("Token %r was created concurrently", name)
                    raise DuplicateNameError(name) from e
                raise
            except BaseException:
                await conn.rollback()
                raise

            await conn.commit()

        logger.info(
            "Generated token %r (expiration=%d, rights=%d)", name, expiration, len(granted)
        )
        return TokenRecord(name=name, expiration=expiration, secret=secret, rights=granted)

    async def _name_exists(self, conn: aiosqlite.Connection, name: str) -> bool:
        async with conn.execute(SELECT_NAME, (name,)) as cursor:
            row = await cursor.fetchone()

        return row is not None

    async def has_token(self, name: str) -> bool:
        """Check whether a token with this name exists."""
        conn = await self._get_connection()

        async with self._lock:
            return await self._name_exists(conn, name)

    async def get_token(self, name: str) -> SafeTokenRecord:
        """Retrieve a token by name, raising NotFoundError if absent."""
        token = await self.get_optional_token(name)

        if token is None:
            raise NotFoundError(name)

        return token

    async def get_optional_token(self, name: str) -> Optional[SafeTokenRecord]:
        """Retrieve a token by name."""
        conn = await self._get_connection()

        async with self._lock:
            async with conn.execute(SELECT_TOKEN, (name,)) as cursor:
                row = await cursor.fetchone()

            if not row:
                return None

            async with conn.execute(SELECT_RIGHTS, (name,)) as cursor:
                rights_rows = await cursor.fetchall()

        return _to_safe_record(row, (right for (right,) in rights_rows))

    async def delete_token(self, name: str) -> bool:
        """Delete a token; its rights go with it."""
        conn = await self._get_connection()

        async with self._lock:
            cursor = await conn.execute(DELETE_TOKEN, (name,))
            await conn.commit()

        deleted = cursor.rowcount > 0
        if deleted:
            logger.info("Deleted token %r", name)

        return deleted

    async def list_tokens(self) -> List[SafeTokenRecord]:
        """List every stored token, ordered by name."""
        conn = await self._get_connection()

        async with self._lock:
            async with conn.execute(SELECT_ALL_TOKENS) as cursor:
                token_rows = await cursor.fetchall()

            async with conn.execute(SELECT_ALL_RIGHTS) as cursor:
                rights_rows = await cursor.fetchall()

        rights_by_name: Dict[str, Set[str]] = defaultdict(set)
        for name, right in rights_rows:
            rights_by_name[name].add(right)

        return [_to_safe_record(row, rights_by_name.get(row[0], ())) for row in token_rows]

    async def verify_token_validity(self, secret: str) -> bool:
        """Check that a secret exists and is unexpired (expiration 0 never expires)."""
        conn = await self._get_connection()

        async with self._lock:
            async with conn.execute(SELECT_VALID_SECRET, (secret, self._clock())) as cursor:
                row = await cursor.fetchone()

        if row is None:
            logger.debug("Secret failed validity check")
            return False

        return True

    async def verify_token_right(self, secret: str, right: str) -> bool:
        """Check that a secret's token holds ``right``. Expiration is not checked."""
        conn = await self._get_connection()

        async with self._lock:
            async with conn.execute(SELECT_SECRET_RIGHT, (secret, right)) as cursor:
                row = await cursor.fetchone()

        if row is None:
            logger.debug("Secret failed right check for %r", right)
            return False

        return True

    async def close(self) -> None:
        """Close database connection if this store opened it."""
        if self._connection and self._owns_connection:
            await self._connection.close()
            self._connection = None
            self._initialized = False
