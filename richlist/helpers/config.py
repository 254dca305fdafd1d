"""Configuration management and environment variable utilities."""

import os

from typing import Self

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from richlist.helpers.constants import (
    DEFAULT_CATCH_UP_THRESHOLD,
    DEFAULT_DISCOVERY_MAX_BLOCKS,
    DEFAULT_FETCH_TIME_BUFFER,
    DEFAULT_KEY_PREFIX,
    DEFAULT_MAX_PROCESSING_TIME,
    DEFAULT_MIN_BALANCE,
    DEFAULT_REFRESH_CONCURRENCY,
    DEFAULT_SCAN_TIME_BUFFER,
    DEFAULT_TIMEOUT,
    DEFAULT_TOP_N,
)
from richlist.helpers.errors import ConfigurationError


def get_required_env(key: str) -> str:
    """Get a required environment variable.

    Args:
        key: Environment variable name

    Returns:
        Environment variable value

    Raises:
        ConfigurationError: If the environment variable is not set

    Example:
        ```python
        from richlist.helpers.config import get_required_env

        blockbook_url = get_required_env("BLOCKBOOK_URL")
        ```
    """
    value = os.getenv(key)
    if not value:
        msg = f"{key} environment variable is not set"
        raise ConfigurationError(msg)
    return value


def get_optional_env(key: str, default: str | None = None) -> str | None:
    """Get an optional environment variable with a default value.

    Empty strings count as unset.
    """
    value = os.getenv(key)
    return value if value else default


def get_int_env(key: str, default: int) -> int:
    """Get an integer environment variable.

    Raises:
        ConfigurationError: If the value is not an integer
    """
    value = get_optional_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        msg = f"{key} must be an integer, got {value!r}"
        raise ConfigurationError(msg) from e


def get_float_env(key: str, default: float) -> float:
    """Get a float environment variable.

    Raises:
        ConfigurationError: If the value is not a number
    """
    value = get_optional_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as e:
        msg = f"{key} must be a number, got {value!r}"
        raise ConfigurationError(msg) from e


def get_bool_env(key: str, *, default: bool) -> bool:
    """Get a boolean environment variable.

    Only the literal ``"false"`` (any case), ``"0"`` and ``"no"`` disable a
    flag, so a feature stays on unless explicitly turned off.
    """
    value = get_optional_env(key)
    if value is None:
        return default
    return value.strip().lower() not in {"false", "0", "no"}


def get_database_url(database_url: str | None = None) -> str:
    """Get the store database URL from a parameter or the environment.

    ``DATABASE_URL`` wins; otherwise the URL is assembled from the
    ``POSTGRE_*`` variables.

    Returns:
        str: PostgreSQL database URL for the psycopg async driver

    Raises:
        ConfigurationError: If no usable credentials are configured
    """
    if database_url:
        return database_url

    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url

    postgre_host = get_required_env("POSTGRE_HOST")
    postgre_port = os.getenv("POSTGRE_PORT", "5432")
    postgre_user = get_required_env("POSTGRE_USER")
    postgre_password = get_required_env("POSTGRE_PASSWORD")
    postgre_db = get_required_env("POSTGRE_DB")

    return (
        "postgresql+psycopg://"
        f"{postgre_user}:{postgre_password}"
        f"@{postgre_host}:{postgre_port}"
        f"/{postgre_db}"
    )


class RichListSettings(BaseModel):
    """Settings for one rich list deployment.

    Built once at startup and passed explicitly to the components that need
    it.
    """

    model_config = ConfigDict(frozen=True)

    blockbook_url: str | None = Field(
        default=None, description="Base URL of the Blockbook explorer"
    )
    database_url: str | None = Field(
        default=None, description="SQLAlchemy URL of the blob store database"
    )
    top_n: int = Field(default=DEFAULT_TOP_N, ge=1)
    min_balance: int = Field(
        default=DEFAULT_MIN_BALANCE, ge=0, description="Discovery threshold (sats)"
    )
    proactive_mode: bool = True
    catch_up_threshold: int = Field(default=DEFAULT_CATCH_UP_THRESHOLD, ge=0)
    discovery_max_blocks: int = Field(default=DEFAULT_DISCOVERY_MAX_BLOCKS, ge=1)
    refresh_concurrency: int = Field(default=DEFAULT_REFRESH_CONCURRENCY, ge=1)
    max_processing_time: float = Field(default=DEFAULT_MAX_PROCESSING_TIME, gt=0)
    scan_time_buffer: float = Field(default=DEFAULT_SCAN_TIME_BUFFER, ge=0)
    fetch_time_buffer: float = Field(default=DEFAULT_FETCH_TIME_BUFFER, ge=0)
    http_timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    key_prefix: str = DEFAULT_KEY_PREFIX
    labels_file: str | None = None

    @classmethod
    def from_env(cls) -> Self:
        """Build settings from environment variables (and a ``.env`` file).

        Storage credentials are optional here; they are checked when the
        store is opened.

        Raises:
            ConfigurationError: If a numeric variable cannot be parsed
        """
        load_dotenv()

        try:
            database_url: str | None = get_database_url()
        except ConfigurationError:
            database_url = None

        values = dict(
            blockbook_url=get_optional_env("BLOCKBOOK_URL"),
            database_url=database_url,
            top_n=get_int_env("TOPN", DEFAULT_TOP_N),
            min_balance=get_int_env("MIN_BALANCE", DEFAULT_MIN_BALANCE),
            proactive_mode=get_bool_env("PROACTIVE_SCAN", default=True),
            catch_up_threshold=get_int_env(
                "CATCH_UP_THRESHOLD", DEFAULT_CATCH_UP_THRESHOLD
            ),
            discovery_max_blocks=get_int_env(
                "DISCOVERY_MAX_BLOCKS", DEFAULT_DISCOVERY_MAX_BLOCKS
            ),
            refresh_concurrency=get_int_env(
                "REFRESH_CONCURRENCY", DEFAULT_REFRESH_CONCURRENCY
            ),
            max_processing_time=get_float_env(
                "MAX_PROCESSING_TIME", DEFAULT_MAX_PROCESSING_TIME
            ),
            scan_time_buffer=get_float_env("SCAN_TIME_BUFFER", DEFAULT_SCAN_TIME_BUFFER),
            fetch_time_buffer=get_float_env(
                "FETCH_TIME_BUFFER", DEFAULT_FETCH_TIME_BUFFER
            ),
            http_timeout=get_float_env("HTTP_TIMEOUT", DEFAULT_TIMEOUT),
            key_prefix=get_optional_env("RICHLIST_KEY_PREFIX", DEFAULT_KEY_PREFIX)
            or DEFAULT_KEY_PREFIX,
            labels_file=get_optional_env("LABELS_FILE"),
        )

        try:
            return cls(**values)
        except ValidationError as e:
            msg = f"Invalid rich list settings: {e}"
            raise ConfigurationError(msg) from e

    def require_blockbook_url(self) -> str:
        """Return the explorer URL.

        Raises:
            ConfigurationError: If BLOCKBOOK_URL is not configured
        """
        if not self.blockbook_url:
            msg = "BLOCKBOOK_URL must be provided or set in environment variables"
            raise ConfigurationError(msg)
        return self.blockbook_url.rstrip("/")

    def require_database_url(self) -> str:
        """Return the storage credential.

        Raises:
            ConfigurationError: If no database URL is configured
        """
        if not self.database_url:
            msg = "DATABASE_URL (or POSTGRE_* variables) must be set for storage"
            raise ConfigurationError(msg)
        return self.database_url


__all__ = [
    "RichListSettings",
    "get_bool_env",
    "get_database_url",
    "get_float_env",
    "get_int_env",
    "get_optional_env",
    "get_required_env",
]
