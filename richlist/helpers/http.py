"""HTTP client utilities and helpers."""

import time
from contextlib import asynccontextmanager
from functools import wraps

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, ParamSpec, TypeVar

import httpx

from richlist.helpers.constants import (
    CACHE_BUST_PARAM,
    CONNECTION_TIMEOUT,
    DEFAULT_TIMEOUT,
    MAX_CONNECTIONS,
    MAX_KEEPALIVE_CONNECTIONS,
    NO_CACHE_HEADERS,
)
from richlist.helpers.errors import UpstreamError
from richlist.helpers.logging import get_logger


logger = get_logger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


def create_http_client(
    timeout: float = DEFAULT_TIMEOUT, **kwargs: Any
) -> httpx.AsyncClient:
    """Create an httpx AsyncClient configured for uncached explorer access.

    Every request carries no-cache directives; the connection pool is sized
    for the refresh worker pool.

    Args:
        timeout: Per-request timeout in seconds (default: DEFAULT_TIMEOUT)
        **kwargs: Additional httpx.AsyncClient kwargs

    Returns:
        Configured AsyncClient instance

    Example:
        ```python
        from richlist.helpers.http import create_http_client

        async with create_http_client(timeout=10.0) as client:
            response = await client.get("https://blockbook.example/api/")
        ```
    """
    headers = {**NO_CACHE_HEADERS, **kwargs.pop("headers", {})}
    kwargs.setdefault(
        "limits",
        httpx.Limits(
            max_keepalive_connections=MAX_KEEPALIVE_CONNECTIONS,
            max_connections=MAX_CONNECTIONS,
        ),
    )
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=min(timeout, CONNECTION_TIMEOUT)),
        headers=headers,
        **kwargs,
    )


def cache_bust_params(params: dict[str, str] | None = None) -> dict[str, str]:
    """Return query parameters with a millisecond timestamp appended.

    Each call yields a distinct query string so edge caches never serve a
    stored response.

    Example:
        >>> cache_bust_params({"details": "basic"})  # doctest: +SKIP
        {'details': 'basic', '_cb': '1760700000000'}
    """
    return {**(params or {}), CACHE_BUST_PARAM: str(time.time_ns() // 1_000_000)}


def handle_http_errors(
    default_return: T | None = None,
    *,
    log_errors: bool = True,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T | None]]]:
    """Decorator to handle HTTP errors gracefully.

    Args:
        default_return: Value to return on error (default: None)
        log_errors: Whether to log errors (default: True)

    Returns:
        Decorated function that catches errors and returns default_return

    Example:
        ```python
        from richlist.helpers.http import handle_http_errors

        @handle_http_errors(default_return=set())
        async def addresses_in(height: int) -> set[str]:
            ...

        # If the lookup fails, returns set() instead of raising
        ```
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T | None]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T | None:
            try:
                return await func(*args, **kwargs)
            except UpstreamError as e:
                if log_errors:
                    if e.status_code == 404:
                        logger.debug("%s returned 404", func.__name__)
                    else:
                        logger.warning("%s upstream error: %s", func.__name__, e)
                return default_return
            except Exception:
                if log_errors:
                    logger.exception("%s unexpected error", func.__name__)
                return default_return

        return wrapper

    return decorator


@asynccontextmanager
async def log_and_suppress_errors(
    operation_name: str,
    *,
    log_level: str = "warning",
    suppress: bool = True,
) -> AsyncIterator[None]:
    """Context manager to log and optionally suppress errors.

    Args:
        operation_name: Description of the operation for logging
        log_level: Logging level ("debug", "info", "warning", "error")
        suppress: If True, suppress exceptions; if False, re-raise after logging

    Yields:
        None

    Example:
        ```python
        from richlist.helpers.http import log_and_suppress_errors

        async with log_and_suppress_errors("scan block 1000"):
            found |= await scan_block_addresses(explorer, 1000)
        ```
    """
    try:
        yield
    except Exception as e:
        log_method = getattr(logger, log_level, logger.warning)
        log_method("%s failed: %s", operation_name, e)

        if not suppress:
            raise


__all__ = [
    "cache_bust_params",
    "create_http_client",
    "handle_http_errors",
    "log_and_suppress_errors",
]
