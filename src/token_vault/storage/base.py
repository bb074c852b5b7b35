"""Abstract base class for token storage."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class SafeTokenRecord:
    """Stored token information without the secret."""

    name: str
    expiration: int  # unix seconds, 0 = never expires
    rights: frozenset = field(default_factory=frozenset)


@dataclass(frozen=True)
class TokenRecord:
    """Token information as returned once, at generation time."""

    name: str
    expiration: int
    secret: str
    rights: frozenset = field(default_factory=frozenset)

    def safe(self) -> SafeTokenRecord:
        """Return this record with the secret stripped."""
        return SafeTokenRecord(name=self.name, expiration=self.expiration, rights=self.rights)

    def __repr__(self) -> str:
        return (
            f"TokenRecord(name={self.name!r}, expiration={self.expiration!r}, "
            f"secret='***', rights={self.rights!r})"
        )


class TokenStore(ABC):
    """Abstract interface for issuing and verifying bearer tokens."""

    @abstractmethod
    async def generate_token(
        self, name: str, rights: Iterable[str] = (), expiration: int = 0
    ) -> TokenRecord:
        """Create a token with a freshly generated secret.

        Args:
            name: Unique token name
            rights: Capability strings granted to the token
            expiration: Expiry as unix seconds, 0 for never

        Returns:
            The new record, including its secret

        Raises:
            DuplicateNameError: If a token with this name already exists
        """
        pass

    @abstractmethod
    async def has_token(self, name: str) -> bool:
        """Check whether a token with this name exists, expired or not."""
        pass

    @abstractmethod
    async def get_token(self, name: str) -> SafeTokenRecord:
        """Retrieve a token by name.

        Raises:
            NotFoundError: If no token has this name
        """
        pass

    @abstractmethod
    async def get_optional_token(self, name: str) -> Optional[SafeTokenRecord]:
        """Retrieve a token by name.

        Returns:
            SafeTokenRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete_token(self, name: str) -> bool:
        """Delete a token and its rights.

        Returns:
            True if token was deleted, False if not found
        """
        pass

    @abstractmethod
    async def list_tokens(self) -> List[SafeTokenRecord]:
        """List every stored token."""
        pass

    @abstractmethod
    async def verify_token_validity(self, secret: str) -> bool:
        """Check that a secret belongs to a token that has not expired."""
        pass

    @abstractmethod
    async def verify_token_right(self, secret: str, right: str) -> bool:
        """Check that a secret belongs to a token granted ``right``.

        Expiration is not checked here; combine with verify_token_validity.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections/resources."""
        pass
