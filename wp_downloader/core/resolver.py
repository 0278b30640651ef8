"""Version resolver for wp-downloader.

This module turns a version constraint into one concrete WordPress version,
consulting the release catalog only when the constraint is not already an
exact version.
"""

import logging

from wp_downloader.registry.catalog import VersionCatalog
from wp_downloader.utils.version import (
    Version,
    find_best_version,
    is_exact_version,
    is_keyword,
    normalize,
)

logger = logging.getLogger(__name__)


class UnresolvableVersion(Exception):
    """Error when a constraint cannot be resolved to a version."""

    def __init__(self, message: str, constraint: str):
        self.constraint = constraint
        super().__init__(message)


class CatalogUnavailable(UnresolvableVersion):
    """Error when the release catalog is needed but empty."""

    def __init__(self, constraint: str):
        super().__init__(
            "Could not resolve available WordPress versions from wp.org API.",
            constraint,
        )


class NoSatisfyingVersion(UnresolvableVersion):
    """Error when no released version satisfies a constraint."""

    def __init__(self, constraint: str):
        super().__init__(
            f"No WordPress available version satisfies requirements '{constraint}'.",
            constraint,
        )


class InvalidConstraint(UnresolvableVersion):
    """Error when a constraint expression cannot be parsed."""

    def __init__(self, constraint: str, reason: str):
        super().__init__(f"Invalid WordPress version constraint '{constraint}': {reason}", constraint)


class VersionResolver:
    """Resolves version constraints against the release catalog.

    Resolutions are remembered per constraint string for the lifetime of the
    resolver, which is one run.
    """

    def __init__(self, catalog: VersionCatalog):
        """Initialize the resolver.

        Args:
            catalog: Release catalog to consult for non-exact constraints
        """
        self._catalog = catalog
        self._resolved: dict[str, Version] = {}

    @property
    def catalog(self) -> VersionCatalog:
        """Get the release catalog."""
        return self._catalog

    def resolve(self, constraint: str) -> Version:
        """Resolve a constraint to a concrete version.

        Args:
            constraint: Exact version, keyword ("latest", "*", "") or range

        Returns:
            The highest released version satisfying the constraint

        Raises:
            CatalogUnavailable: If the catalog is needed and empty
            NoSatisfyingVersion: If no released version matches
            InvalidConstraint: If the constraint cannot be parsed
        """
        if constraint in self._resolved:
            return self._resolved[constraint]

        spec = constraint.strip()

        # Exact pins never touch the catalog
        if is_exact_version(spec):
            resolved = normalize(spec)
            logger.debug("Constraint '%s' is an exact version: %s", constraint, resolved)
            self._resolved[constraint] = resolved
            return resolved

        versions = self._catalog.list_versions()
        if not versions:
            raise CatalogUnavailable(constraint)

        if is_keyword(spec):
            best: Version | None = self._catalog.latest()
        else:
            try:
                best = find_best_version(spec, versions)
            except ValueError as e:
                raise InvalidConstraint(constraint, str(e)) from e

        if best is None:
            raise NoSatisfyingVersion(constraint)

        resolved = normalize(str(best))
        logger.info("Resolved WordPress constraint '%s' to %s", constraint, resolved)
        self._resolved[constraint] = resolved
        return resolved
