"""Token Vault: a small SQLite-backed bearer token store.

Public API:
    - SQLiteTokenStore: Async token store backed by SQLite
    - SyncTokenStore: Synchronous wrapper for Flask/sync environments
    - TokenStore: Abstract storage interface
    - TokenRecord: Token returned at generation time, including its secret
    - SafeTokenRecord: Token as returned by lookups, without its secret
    - DuplicateNameError, NotFoundError: Recoverable store errors
"""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("token-vault")
except PackageNotFoundError:
    # Package not installed, use development version
    __version__ = "0.0.0.dev"

# Storage interfaces and implementations
from .storage import SQLiteTokenStore, TokenStore
from .storage.base import SafeTokenRecord, TokenRecord
from .sync_store import SyncTokenStore

# Errors
from .errors import DuplicateNameError, NotFoundError, TokenStoreError

# Secrets
from .secret import SECRET_PREFIX, generate_secret

# Configuration
from .config import Config, StorageConfig

__all__ = [
    # Version
    "__version__",
    # Storage
    "TokenStore",
    "SQLiteTokenStore",
    "SyncTokenStore",
    "TokenRecord",
    "SafeTokenRecord",
    # Errors
    "TokenStoreError",
    "DuplicateNameError",
    "NotFoundError",
    # Secrets
    "SECRET_PREFIX",
    "generate_secret",
    # Configuration
    "Config",
    "StorageConfig",
]
