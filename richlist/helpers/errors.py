"""Exception types shared across the rich list service."""


class RichListError(Exception):
    """Base class for all rich list errors."""


class UpstreamError(RichListError):
    """The block explorer returned a non-success status or an unparseable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize the error.

        Args:
            message: Human readable description
            status_code: HTTP status code of the failed response, if any
        """
        super().__init__(message)
        self.status_code = status_code


class BlockNotFoundError(UpstreamError):
    """The requested block has not been produced yet (HTTP 404)."""

    def __init__(self, height: int) -> None:
        super().__init__(f"Block {height} not found", status_code=404)
        self.height = height


class ConfigurationError(RichListError):
    """A required setting is missing or invalid."""


class StoreError(RichListError):
    """Reading or writing the persistent store failed."""


__all__ = [
    "BlockNotFoundError",
    "ConfigurationError",
    "RichListError",
    "StoreError",
    "UpstreamError",
]
