"""Bearer secret generation."""

import re
import secrets

SECRET_PREFIX = "auth-"
SECRET_BYTES = 32

_SECRET_PATTERN = re.compile(rf"{re.escape(SECRET_PREFIX)}[0-9a-f]{{{SECRET_BYTES * 2}}}")


def generate_secret() -> str:
    """Generate a new bearer secret.

    Returns:
        ``SECRET_PREFIX`` followed by 32 random bytes as lowercase hex
    """
    return f"{SECRET_PREFIX}{secrets.token_hex(SECRET_BYTES)}"


def looks_like_secret(value: str) -> bool:
    """Check whether a string has the shape of a generated secret."""
    return _SECRET_PATTERN.fullmatch(value) is not None
