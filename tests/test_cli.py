from __future__ import annotations

import time
from pathlib import Path

import pytest

from token_vault.__main__ import main
from token_vault.secret import generate_secret, looks_like_secret


@pytest.fixture
def db(tmp_path: Path) -> list[str]:
    return ["--db", str(tmp_path / "auth.db")]


def _generate(db: list[str], capsys: pytest.CaptureFixture[str], *args: str) -> str:
    assert main([*db, "generate", *args]) == 0
    return capsys.readouterr().out.strip()


def test_generate_prints_secret_once(db: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    secret = _generate(db, capsys, "svc1", "--right", "read", "--right", "write")

    assert looks_like_secret(secret)

    assert main([*db, "list"]) == 0
    out = capsys.readouterr().out
    assert out == "svc1\tnever\tread,write\n"
    assert secret not in out


def test_generate_duplicate_fails(db: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    _generate(db, capsys, "svc1")

    assert main([*db, "generate", "svc1"]) == 1
    assert "already exists" in capsys.readouterr().err


def test_show_and_delete(db: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    _generate(db, capsys, "svc1", "--right", "read", "--expiration", "4102444800")

    assert main([*db, "show", "svc1"]) == 0
    assert capsys.readouterr().out == "svc1\t2100-01-01T00:00:00Z\tread\n"

    assert main([*db, "delete", "svc1"]) == 0
    assert main([*db, "delete", "svc1"]) == 1
    assert main([*db, "show", "svc1"]) == 1
    assert "does not exist" in capsys.readouterr().err


def test_verify(db: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    secret = _generate(db, capsys, "svc1", "--right", "read", "--expires-in", "3600")

    assert main([*db, "verify", secret]) == 0
    assert main([*db, "verify", secret, "--right", "read"]) == 0
    assert main([*db, "verify", secret, "--right", "admin"]) == 1
    assert main([*db, "verify", generate_secret()]) == 1
    assert main([*db, "verify", "not-a-secret"]) == 1


def test_verify_expired(db: list[str], capsys: pytest.CaptureFixture[str]) -> None:
    secret = _generate(db, capsys, "old", "--expiration", str(int(time.time()) - 60))

    assert main([*db, "verify", secret]) == 1
    assert "INVALID" in capsys.readouterr().out


def test_expiration_options_are_exclusive(db: list[str]) -> None:
    with pytest.raises(SystemExit):
        main([*db, "generate", "svc1", "--expires-in", "5", "--expiration", "5"])


def test_negative_expiration_rejected(db: list[str]) -> None:
    with pytest.raises(SystemExit):
        main([*db, "generate", "svc1", "--expires-in", "-5"])
