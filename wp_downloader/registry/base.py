"""Abstract base class for remote fetchers."""

from abc import ABC, abstractmethod


class FetchError(Exception):
    """Transport-level failure: no HTTP response was received."""

    def __init__(self, message: str, url: str | None = None):
        self.url = url
        super().__init__(message)


class Fetcher(ABC):
    """Abstract base class for fetchers.

    A fetcher retrieves a URL and reports the HTTP status code. Only failures
    that produce no response at all (DNS, connection refused, timeouts) raise
    FetchError; HTTP error statuses are returned to the caller, which decides
    what they mean.
    """

    @abstractmethod
    def fetch(self, url: str) -> tuple[bytes, int]:
        """Fetch a URL.

        Args:
            url: URL to fetch

        Returns:
            Tuple of (response body, HTTP status code)

        Raises:
            FetchError: If no response was received
        """
        ...
