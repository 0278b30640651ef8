"""Package manager plugin that downloads WordPress from wordpress.org.

Managing WordPress core as a package means the whole WordPress folder,
``wp-content`` included, is wiped on every install or update, taking any
themes and plugins installed inside it along. This plugin downloads the
release archive instead and replaces only the WordPress payload, so
``wp-content`` and ``wp-config.php`` stay in place. Packages of type
``wordpress-core`` are claimed by a no-op installer so they are never
unpacked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntFlag
from pathlib import Path

from wp_downloader.config.schemas import CORE_PACKAGE_TYPE, PLUGIN_PACKAGE_TYPE, EffectiveConfig
from wp_downloader.core.config_resolver import ConfigResolver
from wp_downloader.core.decision import InstallDecisionEngine, detect_installed_version
from wp_downloader.core.host import PackageEvent, PackageRef, PluginHost
from wp_downloader.core.installer import PayloadInstaller
from wp_downloader.core.session import RunSession
from wp_downloader.registry.base import Fetcher
from wp_downloader.utils.archive import Extractor
from wp_downloader.utils.version import Version

logger = logging.getLogger(__name__)


class Lifecycle(IntFlag):
    """Steps of the plugin lifecycle that have already happened."""

    NOT_STARTED = 0
    INSTALLER_REGISTERED = 1
    INSTALLED = 2


@dataclass
class InstallOutcome:
    """What an install or update run did."""

    version: Version
    installed: bool
    target: Path
    no_content: bool = True

    @property
    def message(self) -> str:
        if not self.installed:
            return "No need to download WordPress: installed version matches required version."
        suffix = " - No Content" if self.no_content else ""
        return f"WordPress {self.version}{suffix} installed."


class NoopCoreInstaller:
    """Installer that claims WordPress core packages and does nothing.

    WordPress is downloaded by the plugin, so core packages required by the
    project (or its dependencies) must not be unpacked by the host.
    """

    def supports(self, package_type: str) -> bool:
        return package_type == CORE_PACKAGE_TYPE

    def is_installed(self, package: PackageRef) -> bool:
        return True

    def install(self, package: PackageRef) -> None:
        logger.debug("Skipping %s: WordPress is installed by wp-downloader", package.name)

    def update(self, initial: PackageRef, target: PackageRef) -> None:
        logger.debug("Skipping %s: WordPress is installed by wp-downloader", target.name)

    def uninstall(self, package: PackageRef) -> None:
        logger.debug("Skipping %s: WordPress is managed by wp-downloader", package.name)


class WpDownloaderPlugin:
    """Host lifecycle adapter.

    Command-level hooks map to :meth:`install` and :meth:`update`. The
    package-level hook registers the no-op core installer and, on the very
    first install (when the command-level hooks fired before the plugin was
    present), triggers the download itself. Each step runs at most once per
    plugin instance; progress is tracked in :attr:`state`.
    """

    SUBSCRIBED_EVENTS = {
        "pre-package-install": "pre_package",
        "pre-package-update": "pre_package",
        "pre-install-cmd": "install",
        "pre-update-cmd": "update",
    }

    def __init__(
        self,
        fetcher: Fetcher | None = None,
        extractor: Extractor | None = None,
    ):
        """Initialize the plugin.

        Args:
            fetcher: Fetcher for wordpress.org requests (default: HTTPS)
            extractor: Zip extractor (default: probed on first install)
        """
        self._fetcher = fetcher
        self._extractor = extractor
        self._host: PluginHost | None = None
        self._config: EffectiveConfig | None = None
        self._session: RunSession | None = None
        self.state = Lifecycle.NOT_STARTED
        self.is_update = False

    @property
    def config(self) -> EffectiveConfig:
        """Get the effective configuration."""
        if self._config is None:
            raise RuntimeError("wp-downloader plugin is not activated")
        return self._config

    @property
    def session(self) -> RunSession:
        """Get the services of the current run."""
        if self._session is None:
            raise RuntimeError("wp-downloader plugin is not activated")
        return self._session

    def activate(self, host: PluginHost) -> None:
        """Read configuration and start a new run.

        Raises:
            ConfigError: If the configuration is invalid
        """
        self._host = host
        self._config = ConfigResolver().build(host.extra(), host.root_requirements())
        self._session = RunSession(self._fetcher)
        self.state = Lifecycle.NOT_STARTED
        self.is_update = False
        logger.debug("wp-downloader activated for %s", host.working_dir)

    def dispatch(self, event_name: str, event: PackageEvent | None = None) -> InstallOutcome | None:
        """Route a host event to its handler.

        Unknown events are ignored.
        """
        handler = self.SUBSCRIBED_EVENTS.get(event_name)
        if handler is None:
            return None
        if handler == "pre_package":
            if event is None:
                raise ValueError(f"Event '{event_name}' needs a package event")
            return self.pre_package(event)
        if handler == "update":
            return self.update()
        return self.install()

    def pre_package(self, event: PackageEvent) -> InstallOutcome | None:
        """Handle the first package operation of a run.

        Plugins are installed before anything else, so by the first
        non-plugin package every custom installer is already registered.
        """
        if self.state & Lifecycle.INSTALLER_REGISTERED:
            return None

        package = event.package
        if package is None or package.type == PLUGIN_PACKAGE_TYPE:
            return None

        assert self._host is not None, "wp-downloader plugin is not activated"
        self._host.add_installer(NoopCoreInstaller())
        self.state |= Lifecycle.INSTALLER_REGISTERED

        if self.state & Lifecycle.INSTALLED:
            return None
        if event.job_type == "update":
            return self.update()
        return self.install()

    def update(self) -> InstallOutcome | None:
        """Run the installation in update context."""
        self.is_update = True
        return self.install()

    def install(self) -> InstallOutcome | None:
        """Download WordPress if the installed version doesn't fit.

        Returns:
            InstallOutcome, or None if this run already installed

        Raises:
            UnresolvableVersion: If the required version can't be resolved
            InstallError: If downloading or unpacking fails
        """
        if self.state & Lifecycle.INSTALLED:
            return None
        self.state |= Lifecycle.INSTALLED

        config = self.config
        session = self.session
        assert self._host is not None

        installer = PayloadInstaller(
            session.fetcher,
            working_dir=self._host.working_dir,
            extractor=self._extractor,
        )
        target = installer.target_path(config)

        engine = InstallDecisionEngine(session.resolver)
        installed = detect_installed_version(target)
        decision = engine.decide(config.version_constraint, installed, self.is_update)

        if not decision.should_install:
            logger.info("No need to download WordPress: installed version matches required version.")
            return InstallOutcome(
                version=decision.resolved_version,
                installed=False,
                target=target,
                no_content=config.no_content,
            )

        info = str(decision.resolved_version)
        if config.no_content:
            info += " - No Content"
        logger.info("Installing WordPress (%s)", info)

        result = installer.install(decision.resolved_version, config)
        return InstallOutcome(
            version=result.version,
            installed=True,
            target=result.target,
            no_content=config.no_content,
        )
