from __future__ import annotations

from pathlib import Path

import pytest

from token_vault.config import reset_config
from token_vault.errors import DuplicateNameError, NotFoundError
from token_vault.storage.base import SafeTokenRecord
from token_vault.sync_store import SyncTokenStore

from .conftest import NOW


def test_sync_store_round_trip() -> None:
    with SyncTokenStore(":memory:", clock=lambda: NOW) as store:
        token = store.generate_token("svc1", rights=["read", "write"])

        assert token.expiration == 0
        assert store.has_token("svc1")
        assert store.get_token("svc1") == SafeTokenRecord("svc1", 0, frozenset({"read", "write"}))
        assert store.get_optional_token("nope") is None
        assert store.verify_token_validity(token.secret)
        assert store.verify_token_right(token.secret, "read")
        assert not store.verify_token_right(token.secret, "admin")

        with pytest.raises(DuplicateNameError):
            store.generate_token("svc1", rights=["admin"])

        assert store.delete_token("svc1")
        assert not store.delete_token("svc1")
        with pytest.raises(NotFoundError):
            store.get_token("svc1")
        assert store.list_tokens() == []


def test_sync_store_persists_to_file(tmp_path: Path) -> None:
    db_path = tmp_path / "auth.db"

    with SyncTokenStore(db_path) as store:
        for name in ("a", "b", "c"):
            store.generate_token(name, rights=[name])
        store.delete_token("b")

    with SyncTokenStore(db_path) as store:
        assert [token.name for token in store.list_tokens()] == ["a", "c"]


def test_sync_store_expired_token_keeps_rights(tmp_path: Path) -> None:
    with SyncTokenStore(tmp_path / "auth.db", clock=lambda: NOW) as store:
        token = store.generate_token("old", rights=["read"], expiration=NOW - 1)

        assert not store.verify_token_validity(token.secret)
        assert store.verify_token_right(token.secret, "read")


def test_sync_store_defaults_to_configured_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    db_path = tmp_path / "configured.db"
    monkeypatch.setenv("TOKEN_VAULT_DATABASE_PATH", str(db_path))
    reset_config()
    try:
        with SyncTokenStore() as store:
            store.generate_token("svc1")
    finally:
        reset_config()

    assert db_path.exists()


def test_sync_store_rejects_calls_after_close() -> None:
    store = SyncTokenStore(":memory:")
    store.close()
    store.close()

    with pytest.raises(RuntimeError):
        store.has_token("svc1")


def test_sync_store_creates_loop_on_first_use() -> None:
    store = SyncTokenStore(":memory:")
    assert store._loop is None

    store.close()
    assert store._loop is None

    store = SyncTokenStore(":memory:")
    try:
        assert not store.has_token("svc1")
        assert store._loop is not None
    finally:
        store.close()
    assert store._loop is None
