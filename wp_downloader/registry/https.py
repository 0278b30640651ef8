"""HTTPS fetcher for wordpress.org endpoints."""

from __future__ import annotations

import http.client
import logging
import ssl
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from wp_downloader import __version__
from wp_downloader.registry.base import Fetcher, FetchError

logger = logging.getLogger(__name__)


class HttpsFetcher(Fetcher):
    """Fetcher for HTTPS URLs.

    The request timeout is the only timeout policy in the whole download
    process; callers that need a different one pass it here.
    """

    DEFAULT_TIMEOUT = 30  # seconds

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        timeout: int | None = None,
    ):
        """Initialize the HTTPS fetcher.

        Args:
            headers: Optional extra HTTP headers
            timeout: Request timeout in seconds (default: 30)
        """
        self._headers = {"User-Agent": f"wp-downloader/{__version__}"}
        self._headers.update(headers or {})
        self._timeout = timeout or self.DEFAULT_TIMEOUT

        # Create SSL context
        self._ssl_context = ssl.create_default_context()

    @property
    def timeout(self) -> int:
        """Get the request timeout in seconds."""
        return self._timeout

    def fetch(self, url: str) -> tuple[bytes, int]:
        """Fetch a URL over HTTPS.

        Args:
            url: HTTPS URL

        Returns:
            Tuple of (response body, HTTP status code). Error statuses are
            returned with whatever body the server sent.

        Raises:
            FetchError: If the URL is not HTTPS or no response was received
        """
        parsed = urlparse(url)
        if parsed.scheme != "https":
            raise FetchError(f"Invalid URL scheme: {parsed.scheme} (expected https)", url=url)

        logger.debug("Making GET request to %s", url)
        try:
            request = Request(url, method="GET")
            for key, value in self._headers.items():
                request.add_header(key, value)

            with urlopen(request, timeout=self._timeout, context=self._ssl_context) as response:
                result: bytes = response.read()
                status: int = response.status
                logger.debug("Request successful, received %d bytes", len(result))
                return result, status
        except HTTPError as e:
            logger.debug("HTTP error %d: %s for %s", e.code, e.reason, url)
            body = e.read() if e.fp is not None else b""
            return body, e.code
        except URLError as e:
            logger.error("Failed to connect to %s: %s", url, e.reason)
            raise FetchError(f"Failed to connect to {url}: {e.reason}", url=url) from e
        except TimeoutError as e:
            logger.error("Request timed out for %s", url)
            raise FetchError(f"Request timed out for {url}", url=url) from e
        except (http.client.HTTPException, OSError) as e:
            logger.error("Failed to read response from %s: %s", url, e)
            raise FetchError(f"Failed to read response from {url}: {e}", url=url) from e
