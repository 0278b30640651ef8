"""Install decisions.

Decides whether WordPress must be (re)installed, given the configured target
constraint and the version found on disk.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from wp_downloader.core.resolver import VersionResolver
from wp_downloader.utils.version import (
    Version,
    is_exact_version,
    is_keyword,
    normalize,
    satisfies,
)

logger = logging.getLogger(__name__)

VERSION_FILE = Path("wp-includes") / "version.php"

_WP_VERSION_PATTERN = re.compile(r"""^\s*\$wp_version\s*=\s*(['"])(?P<value>[^'"]*)\1\s*;""")


@dataclass(frozen=True)
class InstalledState:
    """WordPress version found in the target directory, if any."""

    detected_version: Version | None = None

    @property
    def is_installed(self) -> bool:
        return self.detected_version is not None


@dataclass(frozen=True)
class Decision:
    """Result of an install decision."""

    should_install: bool
    resolved_version: Version


def read_version_file(path: Path) -> str | None:
    """Read the ``$wp_version`` assignment from a version.php file.

    The file is scanned line by line; it is never executed.

    Args:
        path: Path to version.php

    Returns:
        The raw version string, or None if not found
    """
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.debug("Cannot read %s: %s", path, e)
        return None

    for line in text.splitlines():
        match = _WP_VERSION_PATTERN.match(line)
        if match:
            return match.group("value") or None
    return None


def detect_installed_version(target: Path) -> InstalledState:
    """Look in the target directory for an installed WordPress.

    Args:
        target: WordPress installation directory

    Returns:
        InstalledState; the version is absent when the directory, the
        version file or the assignment is missing
    """
    version_file = target / VERSION_FILE
    if not version_file.is_file():
        logger.debug("No WordPress version file at %s", version_file)
        return InstalledState()

    raw = read_version_file(version_file)
    if not raw:
        return InstalledState()

    version = normalize(raw)
    logger.debug("Detected installed WordPress %s in %s", version, target)
    return InstalledState(detected_version=version)


class InstallDecisionEngine:
    """Decides whether a download is needed.

    In install context an installed version that satisfies the constraint is
    accepted as is. In update context the constraint is always resolved to
    the newest matching release, and a different installed version is
    replaced.
    """

    def __init__(self, resolver: VersionResolver):
        self._resolver = resolver

    def target_version(self, constraint: str) -> str:
        """Pin a configured constraint where it names a single version.

        Keywords ("latest", "*", "") become the newest released version.
        Exact versions are normalized. Ranges are returned stripped.

        Raises:
            UnresolvableVersion: If a keyword needs the catalog and it is empty
        """
        spec = constraint.strip()
        if is_keyword(spec):
            return str(self._resolver.resolve(spec))
        if is_exact_version(spec):
            return str(normalize(spec))
        return spec

    def decide(
        self,
        target_constraint: str,
        installed: InstalledState,
        is_update_context: bool = False,
    ) -> Decision:
        """Decide whether to install.

        Args:
            target_constraint: Configured version constraint
            installed: What is currently on disk
            is_update_context: True for an explicit update

        Returns:
            Decision with the version that should end up installed

        Raises:
            UnresolvableVersion: If the constraint must be resolved and can't be
        """
        target = self.target_version(target_constraint)
        current = installed.detected_version

        if current is None:
            resolved = self._resolver.resolve(target)
            logger.debug("No WordPress installed, will install %s", resolved)
            return Decision(should_install=True, resolved_version=resolved)

        if is_exact_version(target) and normalize(target) == current:
            logger.debug("Installed WordPress %s matches required version", current)
            return Decision(should_install=False, resolved_version=current)

        if not is_update_context and satisfies(current, target):
            logger.debug("Installed WordPress %s satisfies '%s'", current, target)
            return Decision(should_install=False, resolved_version=current)

        resolved = self._resolver.resolve(target)
        should_install = resolved != current
        logger.debug(
            "Resolved '%s' to %s, installed %s, install needed: %s",
            target,
            resolved,
            current,
            should_install,
        )
        return Decision(should_install=should_install, resolved_version=resolved)
