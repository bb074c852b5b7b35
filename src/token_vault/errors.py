"""Exceptions raised by the token store."""

from __future__ import annotations


class TokenStoreError(Exception):
    """Base class for token store failures."""


class DuplicateNameError(TokenStoreError):
    """Raised when a token is generated under a name that already exists."""

    def __init__(self, name: str):
        super().__init__(f'Token "{name}" already exists.')
        self.name = name


class NotFoundError(TokenStoreError, LookupError):
    """Raised when a token required by name does not exist."""

    def __init__(self, name: str):
        super().__init__(f'Token "{name}" does not exist.')
        self.name = name


__all__ = [
    "TokenStoreError",
    "DuplicateNameError",
    "NotFoundError",
]
