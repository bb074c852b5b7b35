"""Configuration management for Token Vault."""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_DATABASE_PATH = "./data/auth.db"
DEFAULT_LOG_LEVEL = "INFO"

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


@dataclass
class StorageConfig:
    """Storage configuration."""

    database_path: str = DEFAULT_DATABASE_PATH


@dataclass
class Config:
    """Application configuration from environment variables."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def log_level_number(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables with validation."""
        database_path = os.getenv("TOKEN_VAULT_DATABASE_PATH", "").strip() or DEFAULT_DATABASE_PATH

        log_level = os.getenv("TOKEN_VAULT_LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(
                f"Invalid TOKEN_VAULT_LOG_LEVEL: {log_level!r}\n"
                f"Expected one of: {', '.join(_LOG_LEVELS)}"
            )

        return cls(
            storage=StorageConfig(database_path=database_path),
            log_level=log_level,
        )


# Global config instance (lazy loaded)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() rereads the environment."""
    global _config
    _config = None
