"""Host package manager interface.

The plugin needs very little from the package manager that runs it: the
root manifest's ``extra`` block and direct requirements, a place to
register package installers, and the project directory.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

from wp_downloader.config.parser import load_package_types, load_project_manifest
from wp_downloader.config.schemas import ProjectManifest, RootRequirement

if TYPE_CHECKING:
    from wp_downloader.core.plugin import NoopCoreInstaller

logger = logging.getLogger(__name__)

JobType = Literal["install", "update"]


@dataclass(frozen=True)
class PackageRef:
    """A package the host is about to install or update."""

    name: str
    type: str = "library"


@dataclass(frozen=True)
class PackageEvent:
    """A pre-package-install or pre-package-update event."""

    job_type: JobType
    package: PackageRef | None = None


class PluginHost(ABC):
    """What the plugin needs from the host package manager."""

    @property
    @abstractmethod
    def working_dir(self) -> Path:
        """Get the project root directory."""
        ...

    @abstractmethod
    def extra(self) -> dict[str, Any]:
        """Get the root manifest's ``extra`` mapping."""
        ...

    @abstractmethod
    def root_requirements(self) -> list[RootRequirement]:
        """Get the dependencies declared directly by the root manifest."""
        ...

    @abstractmethod
    def add_installer(self, installer: NoopCoreInstaller) -> None:
        """Register a package installer with the host."""
        ...


class ComposerProjectHost(PluginHost):
    """A host backed by a project's files.

    Reads composer.json (or wp-downloader.yaml), and resolves package types
    from composer.lock or vendor/composer/installed.json. Used when running
    from the command line rather than inside Composer.
    """

    def __init__(self, root: Path, manifest: ProjectManifest | None = None):
        """Initialize the host.

        Args:
            root: Project root directory
            manifest: Already loaded manifest (read from root when omitted)

        Raises:
            ConfigError: If the manifest is missing or invalid
        """
        self._root = root.resolve()
        self._manifest = manifest or load_project_manifest(self._root)
        self._installers: list[NoopCoreInstaller] = []

    @property
    def working_dir(self) -> Path:
        return self._root

    @property
    def installers(self) -> list[NoopCoreInstaller]:
        """Get the installers registered by plugins."""
        return list(self._installers)

    def extra(self) -> dict[str, Any]:
        return dict(self._manifest.extra)

    def root_requirements(self) -> list[RootRequirement]:
        types = load_package_types(self._root)
        requirements = [
            RootRequirement(name=name, constraint=constraint, package_type=types.get(name.lower()))
            for name, constraint in self._manifest.require.items()
        ]
        logger.debug("Root requirements: %s", requirements)
        return requirements

    def add_installer(self, installer: NoopCoreInstaller) -> None:
        logger.debug("Registering installer %s", type(installer).__name__)
        self._installers.append(installer)

    def __repr__(self) -> str:
        return f"ComposerProjectHost(root={self._root!r})"
