"""Configuration management for the Library Service.

Settings are read from ``LIBRARY_*`` environment variables (or a ``.env``
file) and validated with Pydantic v2:
1. Server Metadata - name and version announced to MCP clients
2. Storage - SQLite path or a full SQLAlchemy URL
3. Circulation Policy - borrow limit and loan period
4. Security - session lifetime and password hashing cost
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError


def is_in_memory_sqlite(url: str) -> bool:
    """True for SQLite URLs naming an in-memory database instead of a file."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return False
    database = parsed.database or ""
    return (
        database in ("", ":memory:")
        or database.startswith("file::memory:")
        or parsed.query.get("mode") == "memory"
    )


IN_MEMORY_REJECTED = (
    "In-memory SQLite databases are not supported: worker threads would share one "
    "connection and interleave their transactions. Use a database file instead."
)


class LibraryConfig(BaseSettings):
    """Library Service configuration.

    Every field can be overridden with an environment variable named after
    it, e.g. ``LIBRARY_BORROW_LIMIT=3``.
    """

    model_config = SettingsConfigDict(
        env_prefix="LIBRARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Server Metadata ===

    server_name: str = Field(
        default="library-service",
        description="Server name announced during the MCP handshake",
        pattern=r"^[a-z0-9-]+$",
    )

    server_version: str = Field(
        default="1.0.0",
        description="Server version",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    transport: str = Field(
        default="stdio",
        description="Transport used by the MCP server",
        pattern=r"^(stdio|streamable-http)$",
    )

    http_host: str = Field(
        default="127.0.0.1",
        description="Bind host for the streamable-http transport",
    )

    http_port: int = Field(
        default=8080,
        description="Bind port for the streamable-http transport",
        ge=1024,
        le=65535,
    )

    # === Database Configuration ===

    database_path: Path = Field(
        default=Path("data/library.db"),
        description="SQLite database file path",
    )

    database_url: str | None = Field(
        default=None,
        description="Full SQLAlchemy URL; takes precedence over database_path",
        repr=False,
    )

    # === Circulation Policy ===

    borrow_limit: int = Field(
        default=5,
        description="Maximum number of open borrow records per user",
        ge=1,
        le=100,
    )

    loan_period_months: int = Field(
        default=1,
        description="Loan period in calendar months",
        ge=1,
        le=12,
    )

    admin_min_book_id: int = Field(
        default=0,
        description=(
            "Smallest book ID accepted by the admin update and delete operations. "
            "0 keeps the historical behaviour; set to 1 to reject ID 0 as invalid input."
        ),
        ge=0,
        le=1,
    )

    # === Security Configuration ===

    session_max_age_seconds: int = Field(
        default=24 * 60 * 60,
        description="Lifetime of a login session in seconds",
        ge=60,
    )

    bcrypt_rounds: int = Field(
        default=12,
        description="bcrypt cost factor used when hashing passwords",
        ge=4,
        le=31,
    )

    admin_username: str | None = Field(
        default=None,
        description="Administrator account created by the init script",
    )

    admin_password: str | None = Field(
        default=None,
        description="Password for the bootstrap administrator",
        repr=False,
    )

    # === Development Configuration ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator("database_path")
    @classmethod
    def validate_database_path(cls, v: Path) -> Path:
        """Resolve the database path and make sure its directory exists."""
        abs_path = v.absolute()
        abs_path.parent.mkdir(parents=True, exist_ok=True)

        if not abs_path.parent.is_dir():
            raise ValueError(f"Database directory {abs_path.parent} is not accessible")

        return abs_path

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, v: str | None) -> str | None:
        """Reject URLs SQLAlchemy cannot parse and in-memory SQLite databases."""
        if v is None:
            return v
        try:
            in_memory = is_in_memory_sqlite(v)
        except ArgumentError as e:
            raise ValueError(f"Invalid database URL: {e}") from e
        if in_memory:
            raise ValueError(IN_MEMORY_REJECTED)
        return v

    @field_validator("server_name")
    @classmethod
    def validate_server_name(cls, v: str) -> str:
        if len(v) < 3:
            raise ValueError("Server name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Server name must not exceed 50 characters")
        return v

    @property
    def is_development(self) -> bool:
        """True when debug output is requested, by flag or by log level."""
        return self.debug or self.log_level == "DEBUG"

    def get_database_url(self) -> str:
        """Get the SQLAlchemy database URL."""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.database_path}"


class _ConfigStore:
    """Internal storage for configuration singleton."""

    _instance: LibraryConfig | None = None


def get_config() -> LibraryConfig:
    """Get or create the global configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = LibraryConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
