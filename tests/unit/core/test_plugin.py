"""Tests for wp_downloader.core.plugin module."""

from pathlib import Path
from typing import Any

import pytest

from wp_downloader.config.schemas import RootRequirement
from wp_downloader.core.host import PackageEvent, PackageRef, PluginHost
from wp_downloader.core.plugin import (
    InstallOutcome,
    Lifecycle,
    NoopCoreInstaller,
    WpDownloaderPlugin,
)
from wp_downloader.core.resolver import CatalogUnavailable
from wp_downloader.registry.catalog import RELEASES_URL
from wp_downloader.utils.archive import ZipFileExtractor
from wp_downloader.utils.version import normalize

DOWNLOAD_BASE = "https://downloads.wordpress.org/release/wordpress-"


class FakeHost(PluginHost):
    """In-memory host."""

    def __init__(
        self,
        root: Path,
        extra: dict[str, Any] | None = None,
        requirements: list[RootRequirement] | None = None,
    ):
        self._root = root
        self._extra = extra or {}
        self._requirements = requirements or []
        self.installers: list[NoopCoreInstaller] = []

    @property
    def working_dir(self) -> Path:
        return self._root

    def extra(self) -> dict[str, Any]:
        return self._extra

    def root_requirements(self) -> list[RootRequirement]:
        return self._requirements

    def add_installer(self, installer: NoopCoreInstaller) -> None:
        self.installers.append(installer)


@pytest.fixture
def plugin_for(temp_project: Path):
    """Factory building an activated plugin over a fake host."""

    def factory(fetcher, **host_kwargs) -> tuple[WpDownloaderPlugin, FakeHost]:
        host = FakeHost(temp_project, **host_kwargs)
        plugin = WpDownloaderPlugin(fetcher=fetcher, extractor=ZipFileExtractor())
        plugin.activate(host)
        return plugin, host

    return factory


def library_event(job_type: str = "install") -> PackageEvent:
    return PackageEvent(job_type=job_type, package=PackageRef("monolog/monolog"))


class TestNoopCoreInstaller:
    """Tests for NoopCoreInstaller."""

    def test_supports_core_packages_only(self):
        installer = NoopCoreInstaller()

        assert installer.supports("wordpress-core")
        assert not installer.supports("wordpress-plugin")
        assert not installer.supports("library")

    def test_operations_do_nothing(self, temp_dir: Path):
        installer = NoopCoreInstaller()
        package = PackageRef("johnpbloch/wordpress-core", "wordpress-core")

        assert installer.is_installed(package)
        installer.install(package)
        installer.update(package, package)
        installer.uninstall(package)

        assert list(temp_dir.iterdir()) == []


class TestInstallOutcome:
    """Tests for InstallOutcome messages."""

    def test_not_installed(self, temp_dir: Path):
        outcome = InstallOutcome(normalize("4.7"), installed=False, target=temp_dir)

        assert outcome.message == (
            "No need to download WordPress: installed version matches required version."
        )

    def test_installed_no_content(self, temp_dir: Path):
        outcome = InstallOutcome(normalize("4.7"), installed=True, target=temp_dir)

        assert outcome.message == "WordPress 4.7 - No Content installed."

    def test_installed_full(self, temp_dir: Path):
        outcome = InstallOutcome(
            normalize("4.7"), installed=True, target=temp_dir, no_content=False
        )

        assert outcome.message == "WordPress 4.7 installed."


class TestActivation:
    """Tests for WpDownloaderPlugin.activate()."""

    def test_not_activated(self):
        plugin = WpDownloaderPlugin()

        with pytest.raises(RuntimeError, match="not activated"):
            _ = plugin.config
        with pytest.raises(RuntimeError, match="not activated"):
            _ = plugin.session

    def test_builds_config(self, plugin_for, make_fetcher):
        requirement = RootRequirement(
            name="johnpbloch/wordpress-core", constraint="^4.6", package_type="wordpress-core"
        )
        plugin, _ = plugin_for(
            make_fetcher(),
            extra={"wordpress-install-dir": "public/wp"},
            requirements=[requirement],
        )

        assert plugin.config.version_constraint == "^4.6"
        assert plugin.config.target_dir == "public/wp"
        assert plugin.state == Lifecycle.NOT_STARTED

    def test_reactivation_starts_new_session(self, plugin_for, make_fetcher):
        plugin, host = plugin_for(make_fetcher())
        first = plugin.session

        plugin.activate(host)

        assert plugin.session is not first


class TestInstall:
    """Tests for the install and update flows."""

    def test_fresh_install(self, plugin_for, catalog_fetcher, temp_project: Path):
        fetcher = catalog_fetcher("4.5", "4.6")
        plugin, _ = plugin_for(fetcher, extra={"wp-downloader": {"version": ">=4.5"}})

        outcome = plugin.dispatch("pre-install-cmd")

        assert outcome is not None
        assert outcome.installed
        assert outcome.version == normalize("4.6")
        assert outcome.message == "WordPress 4.6 - No Content installed."
        assert (temp_project / "wordpress" / "wp-includes" / "version.php").is_file()
        assert fetcher.calls == [RELEASES_URL, f"{DOWNLOAD_BASE}4.6-no-content.zip"]

    def test_satisfied_install_is_skipped(
        self, plugin_for, make_fetcher, temp_project: Path, installed_wordpress
    ):
        installed_wordpress(temp_project / "wordpress", "4.5")
        fetcher = make_fetcher()
        plugin, _ = plugin_for(fetcher, extra={"wp-downloader": {"version": ">=4.5"}})

        outcome = plugin.install()

        assert outcome is not None
        assert not outcome.installed
        assert outcome.version == normalize("4.5")
        assert fetcher.calls == []

    def test_update_upgrades(
        self, plugin_for, catalog_fetcher, temp_project: Path, installed_wordpress
    ):
        target = installed_wordpress(temp_project / "wordpress", "4.5")
        (target / "wp-config.php").write_text("<?php // config")
        plugin, _ = plugin_for(
            catalog_fetcher("4.5", "4.6"), extra={"wp-downloader": {"version": ">=4.5"}}
        )

        outcome = plugin.dispatch("pre-update-cmd")

        assert outcome is not None
        assert outcome.installed
        assert plugin.is_update
        assert "'4.6'" in (target / "wp-includes" / "version.php").read_text()
        assert (target / "wp-config.php").read_text() == "<?php // config"

    def test_runs_once(self, plugin_for, catalog_fetcher):
        fetcher = catalog_fetcher("4.6")
        plugin, _ = plugin_for(fetcher)

        assert plugin.install() is not None
        assert plugin.update() is None
        assert plugin.install() is None
        assert len(fetcher.calls) == 2

    def test_failure_still_counts_as_run(self, plugin_for, make_fetcher):
        plugin, _ = plugin_for(make_fetcher({RELEASES_URL: (b"", 500)}))

        with pytest.raises(CatalogUnavailable):
            plugin.install()

        assert plugin.state & Lifecycle.INSTALLED
        assert plugin.install() is None

    def test_full_archive(self, plugin_for, catalog_fetcher, temp_project: Path):
        plugin, _ = plugin_for(
            catalog_fetcher("4.6", no_content=False),
            extra={"wp-downloader": {"no-content": False}},
        )

        outcome = plugin.install()

        assert outcome is not None
        assert outcome.message == "WordPress 4.6 installed."
        assert (temp_project / "wordpress" / "wp-content" / "index.php").is_file()


class TestPrePackage:
    """Tests for the package-level hook."""

    def test_plugin_packages_are_ignored(self, plugin_for, make_fetcher):
        plugin, host = plugin_for(make_fetcher())
        event = PackageEvent("install", PackageRef("acme/other-plugin", "composer-plugin"))

        assert plugin.dispatch("pre-package-install", event) is None
        assert host.installers == []
        assert plugin.state == Lifecycle.NOT_STARTED

    def test_event_without_package_is_ignored(self, plugin_for, make_fetcher):
        plugin, host = plugin_for(make_fetcher())

        assert plugin.pre_package(PackageEvent("install")) is None
        assert host.installers == []

    def test_first_package_registers_and_installs(self, plugin_for, catalog_fetcher):
        """When the command hooks fired before the plugin existed, the first package installs."""
        plugin, host = plugin_for(catalog_fetcher("4.6"))

        outcome = plugin.dispatch("pre-package-install", library_event())

        assert outcome is not None and outcome.installed
        assert len(host.installers) == 1
        assert plugin.state == Lifecycle.INSTALLER_REGISTERED | Lifecycle.INSTALLED

    def test_update_job_runs_update(
        self, plugin_for, catalog_fetcher, temp_project: Path, installed_wordpress
    ):
        installed_wordpress(temp_project / "wordpress", "4.5")
        plugin, _ = plugin_for(
            catalog_fetcher("4.5", "4.6"), extra={"wp-downloader": {"version": ">=4.5"}}
        )

        outcome = plugin.dispatch("pre-package-update", library_event("update"))

        assert plugin.is_update
        assert outcome is not None and outcome.installed

    def test_after_command_hook_only_registers(self, plugin_for, catalog_fetcher):
        fetcher = catalog_fetcher("4.6")
        plugin, host = plugin_for(fetcher)
        plugin.dispatch("pre-install-cmd")
        calls = list(fetcher.calls)

        assert plugin.dispatch("pre-package-install", library_event()) is None
        assert len(host.installers) == 1
        assert fetcher.calls == calls

    def test_registers_once(self, plugin_for, catalog_fetcher):
        plugin, host = plugin_for(catalog_fetcher("4.6"))

        plugin.dispatch("pre-package-install", library_event())
        plugin.dispatch("pre-package-update", library_event("update"))

        assert len(host.installers) == 1


class TestDispatch:
    """Tests for event routing."""

    def test_unknown_event(self, plugin_for, make_fetcher):
        plugin, _ = plugin_for(make_fetcher())

        assert plugin.dispatch("post-autoload-dump") is None
        assert plugin.state == Lifecycle.NOT_STARTED

    def test_package_event_required(self, plugin_for, make_fetcher):
        plugin, _ = plugin_for(make_fetcher())

        with pytest.raises(ValueError, match="needs a package event"):
            plugin.dispatch("pre-package-install")
