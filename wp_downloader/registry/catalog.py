"""WordPress release catalog backed by the wordpress.org version-check API."""

from __future__ import annotations

import json
import logging
from typing import Any

from wp_downloader.registry.base import Fetcher, FetchError
from wp_downloader.utils.version import Version, normalize

logger = logging.getLogger(__name__)

RELEASES_URL = "https://api.wordpress.org/core/version-check/1.7/"


def parse_offers(data: Any) -> list[Version]:
    """Extract versions from a parsed version-check document.

    Args:
        data: Parsed JSON (expects ``{"offers": [{"version": "4.7.2"}, ...]}``)

    Returns:
        Normalized versions, newest first, without duplicates
    """
    if not isinstance(data, dict):
        return []

    offers = data.get("offers")
    if not offers or not isinstance(offers, list):
        return []

    versions: set[Version] = set()
    for offer in offers:
        if not isinstance(offer, dict):
            continue
        raw = offer.get("version")
        if not raw or not isinstance(raw, str):
            continue
        versions.add(normalize(raw))

    return sorted(versions, reverse=True)


class VersionCatalog:
    """List of WordPress versions available for download.

    The remote document is fetched at most once per catalog instance; an
    empty result is remembered too. An empty list means "catalog unavailable"
    and is never an error at this level.
    """

    def __init__(self, fetcher: Fetcher, url: str = RELEASES_URL):
        """Initialize the catalog.

        Args:
            fetcher: Fetcher used for the version-check request
            url: Version-check endpoint
        """
        self._fetcher = fetcher
        self._url = url
        self._versions: list[Version] | None = None

    @property
    def url(self) -> str:
        """Get the version-check endpoint."""
        return self._url

    def list_versions(self) -> list[Version]:
        """Get available versions, newest first.

        Returns:
            Deduplicated versions sorted descending; empty if the catalog
            could not be retrieved or parsed
        """
        if self._versions is None:
            self._versions = self._query()
        return list(self._versions)

    def latest(self) -> Version | None:
        """Get the newest available version, if the catalog is available."""
        versions = self.list_versions()
        return versions[0] if versions else None

    def _query(self) -> list[Version]:
        logger.info("Retrieving WordPress versions info...")
        try:
            content, status = self._fetcher.fetch(self._url)
        except FetchError as e:
            logger.warning("Could not reach %s: %s", self._url, e)
            return []

        if status != 200:
            logger.warning("Version check returned HTTP %d from %s", status, self._url)
            return []

        try:
            data = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Invalid JSON from %s: %s", self._url, e)
            return []

        versions = parse_offers(data)
        if not versions:
            logger.warning("No WordPress versions found in response from %s", self._url)
        else:
            logger.debug("Found %d WordPress versions, latest %s", len(versions), versions[0])
        return versions
