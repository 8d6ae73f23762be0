"""
Settings loader for the S3 destination bootstrapper.

- Loads config from environment (Lambda) or .env (local).
- Validates numeric knobs and the ConnectionFailed message template.
- Exposes a frozen, typed dataclass for easy/explicit usage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .exceptions import ConfigError


@dataclass(frozen=True)
class Settings:
    default_region: str = "us-east-1"
    pool_max_workers: int = 8
    connect_timeout_seconds: float = 5.0
    read_timeout_seconds: float = 10.0
    max_attempts: int = 1
    connection_failed_template: str = "{detail}"

    def __post_init__(self) -> None:
        if not self.default_region:
            raise ConfigError("default_region must not be empty")
        if self.pool_max_workers < 1:
            raise ConfigError("pool_max_workers must be >= 1")
        if self.connect_timeout_seconds <= 0 or self.read_timeout_seconds <= 0:
            raise ConfigError("timeouts must be positive")
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be >= 1")
        if "{detail}" not in self.connection_failed_template:
            raise ConfigError("connection_failed_template must contain '{detail}'")
        try:
            self.connection_failed_template.format(detail="")
        except (AttributeError, KeyError, IndexError, ValueError) as e:
            raise ConfigError(
                f"connection_failed_template must only use the '{{detail}}' field: {self.connection_failed_template!r}"
            ) from e

    @staticmethod
    def from_env(dotenv: bool = True) -> "Settings":
        """Construct settings from environment variables. Raises ConfigError on bad values."""
        if dotenv:
            # Present in local dev; in Lambda env vars are already set
            load_dotenv()

        def num(k: str, default: str, cast):
            raw = os.getenv(k) or default
            try:
                return cast(raw)
            except ValueError as e:
                raise ConfigError(f"Invalid value for {k}: {raw!r}") from e

        return Settings(
            default_region=os.getenv("AWS_REGION") or "us-east-1",
            pool_max_workers=num("S3_DEST_POOL_MAX_WORKERS", "8", int),
            connect_timeout_seconds=num("S3_DEST_CONNECT_TIMEOUT_SECONDS", "5", float),
            read_timeout_seconds=num("S3_DEST_READ_TIMEOUT_SECONDS", "10", float),
            max_attempts=num("S3_DEST_MAX_ATTEMPTS", "1", int),
            connection_failed_template=os.getenv("S3_DEST_CONNECTION_FAILED_TEMPLATE") or "{detail}",
        )
