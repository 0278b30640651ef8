"""Per-run services."""

from wp_downloader.core.resolver import VersionResolver
from wp_downloader.registry.base import Fetcher
from wp_downloader.registry.catalog import RELEASES_URL, VersionCatalog
from wp_downloader.registry.https import HttpsFetcher


class RunSession:
    """Holds the services and caches that live for one run.

    The catalog's version list and the resolver's per-constraint results are
    fields of this object, so a new session starts with empty caches.
    """

    def __init__(self, fetcher: Fetcher | None = None, releases_url: str = RELEASES_URL):
        """Initialize a session.

        Args:
            fetcher: Fetcher for all remote requests (default: HttpsFetcher)
            releases_url: Version-check endpoint
        """
        self.fetcher: Fetcher = fetcher or HttpsFetcher()
        self.catalog = VersionCatalog(self.fetcher, url=releases_url)
        self.resolver = VersionResolver(self.catalog)
