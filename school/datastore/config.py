"""
Configuration management for the school data store service.

All configuration is done via environment variables. This module provides
typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Secrets (the remote API key) are never logged
    - Remote credentials from the environment only seed the credential store;
      credentials saved through the settings surface take precedence

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Keep one from_env() per section
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

from .models import RemoteCredentials
from .persistence import DEFAULT_CREDENTIALS_KEY, DEFAULT_QUOTA_BYTES, DEFAULT_SNAPSHOT_KEY
from .sync import DEFAULT_DOCUMENT_ID, DEFAULT_PUSH_DEBOUNCE_SECONDS, DEFAULT_TABLE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageConfig:
    """Local durable storage configuration.

    Attributes:
        data_dir: Directory holding the SQLite file
        db_file: SQLite file name
        snapshot_key: Key of the cached snapshot
        credentials_key: Key of the saved remote credentials
        quota_bytes: Storage quota across all keys
        busy_timeout_ms: SQLite busy timeout in milliseconds
    """

    data_dir: str = "./data"
    db_file: str = "school.db"
    snapshot_key: str = DEFAULT_SNAPSHOT_KEY
    credentials_key: str = DEFAULT_CREDENTIALS_KEY
    quota_bytes: int = DEFAULT_QUOTA_BYTES
    busy_timeout_ms: int = 5000

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, self.db_file)

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables."""
        return cls(
            data_dir=os.getenv("SCHOOL_DATA_DIR", "./data"),
            db_file=os.getenv("SCHOOL_DB_FILE", "school.db"),
            snapshot_key=os.getenv("SCHOOL_SNAPSHOT_KEY", DEFAULT_SNAPSHOT_KEY),
            credentials_key=os.getenv("SCHOOL_CREDENTIALS_KEY", DEFAULT_CREDENTIALS_KEY),
            quota_bytes=int(os.getenv("SCHOOL_STORAGE_QUOTA_BYTES", str(DEFAULT_QUOTA_BYTES))),
            busy_timeout_ms=int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")),
        )


@dataclass(frozen=True)
class RemoteConfig:
    """Remote document store configuration.

    Attributes:
        table: Table holding the snapshot row
        document_id: Fixed row identifier
        push_debounce_seconds: Quiet period before a background push
        seed_url: Project URL used when no credentials are saved
        seed_key: API key used when no credentials are saved
    """

    table: str = DEFAULT_TABLE
    document_id: int = DEFAULT_DOCUMENT_ID
    push_debounce_seconds: float = DEFAULT_PUSH_DEBOUNCE_SECONDS
    seed_url: str = ""
    seed_key: str = ""

    @property
    def seed_credentials(self) -> RemoteCredentials:
        return RemoteCredentials(endpoint=self.seed_url.strip(), key=self.seed_key.strip())

    @classmethod
    def from_env(cls) -> RemoteConfig:
        """Load configuration from environment variables."""
        return cls(
            table=os.getenv("SCHOOL_REMOTE_TABLE", DEFAULT_TABLE),
            document_id=int(os.getenv("SCHOOL_REMOTE_DOCUMENT_ID", str(DEFAULT_DOCUMENT_ID))),
            push_debounce_seconds=float(
                os.getenv("SCHOOL_PUSH_DEBOUNCE_SECONDS", str(DEFAULT_PUSH_DEBOUNCE_SECONDS))
            ),
            seed_url=os.getenv("SCHOOL_REMOTE_URL", ""),
            seed_key=os.getenv("SCHOOL_REMOTE_KEY", ""),
        )


@dataclass(frozen=True)
class HttpConfig:
    """HTTP surface configuration.

    Attributes:
        host: Bind host
        port: Bind port
        cors_origins: Allowed browser origins
    """

    host: str = "127.0.0.1"
    port: int = 8080
    cors_origins: tuple[str, ...] = ("*",)

    @classmethod
    def from_env(cls) -> HttpConfig:
        """Load configuration from environment variables."""
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


@dataclass(frozen=True)
class AppConfig:
    """Complete service configuration.

    Attributes:
        storage: Local durable storage configuration
        remote: Remote document store configuration
        http: HTTP surface configuration
        observability: Logging configuration
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If configuration is invalid.
        """
        config = cls(
            storage=StorageConfig.from_env(),
            remote=RemoteConfig.from_env(),
            http=HttpConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.storage.snapshot_key == self.storage.credentials_key:
            raise ValueError("SCHOOL_SNAPSHOT_KEY and SCHOOL_CREDENTIALS_KEY must differ")
        if self.storage.quota_bytes <= 0:
            raise ValueError("SCHOOL_STORAGE_QUOTA_BYTES must be positive")
        if self.remote.push_debounce_seconds < 0:
            raise ValueError("SCHOOL_PUSH_DEBOUNCE_SECONDS must be >= 0")
        if not self.remote.table:
            raise ValueError("SCHOOL_REMOTE_TABLE must not be empty")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        if bool(self.remote.seed_url.strip()) != bool(self.remote.seed_key.strip()):
            logger.warning(
                "Only one of SCHOOL_REMOTE_URL / SCHOOL_REMOTE_KEY is set; remote sync stays disabled"
            )
        if not os.path.exists(self.storage.data_dir):
            logger.warning(
                f"Data directory does not exist: {self.storage.data_dir}. "
                "It will be created on startup."
            )

    def log_config(self) -> None:
        """Log configuration (redacting secrets)."""
        logger.info(
            "Service configuration loaded",
            extra={
                "db_path": self.storage.db_path,
                "quota_bytes": self.storage.quota_bytes,
                "remote_table": self.remote.table,
                "push_debounce_seconds": self.remote.push_debounce_seconds,
                "seed_credentials": self.remote.seed_credentials.redacted(),
                "http_bind": f"{self.http.host}:{self.http.port}",
                "log_level": self.observability.log_level,
            },
        )
