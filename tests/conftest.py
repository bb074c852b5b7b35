from __future__ import annotations

from collections.abc import AsyncIterator

import pytest

from token_vault.storage.sqlite import SQLiteTokenStore

NOW = 1_700_000_000


@pytest.fixture
def anyio_backend() -> str:
    # aiosqlite runs on asyncio only
    return "asyncio"


@pytest.fixture
async def store() -> AsyncIterator[SQLiteTokenStore]:
    async with SQLiteTokenStore(":memory:", clock=lambda: NOW) as token_store:
        yield token_store
