"""WordPress payload installation.

This module contains the PayloadInstaller, which replaces the WordPress
files in the target directory with a freshly downloaded release while
keeping ``wp-config.php`` and any directory other than ``wp-admin`` and
``wp-includes`` (so ``wp-content`` survives).

There is no rollback. If a run is interrupted, leftovers (the archive and
the staging directory) are removed by the cleanup pass of the next run.
Concurrent runs against the same target directory are not supported.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from wp_downloader.config.parser import ConfigError
from wp_downloader.config.schemas import EffectiveConfig
from wp_downloader.registry.base import Fetcher, FetchError
from wp_downloader.utils.archive import (
    ArchiveError,
    ExtractionFailed,
    Extractor,
    UnzipUnavailable,
    select_extractor,
)
from wp_downloader.utils.filesystem import (
    copy_then_remove,
    ensure_directory,
    find_content_root,
    list_files,
    remove_directory,
    remove_file,
)
from wp_downloader.utils.version import Version

logger = logging.getLogger(__name__)

DOWNLOADS_BASE_URL = "https://downloads.wordpress.org/release/wordpress-"
NO_CONTENT_SUFFIX = "-no-content.zip"
FULL_SUFFIX = ".zip"

# Top-level files kept across reinstalls
PROTECTED_FILES = frozenset({"wp-config.php"})

# Directories that belong to the WordPress payload and are always replaced
PAYLOAD_DIRECTORIES = ("wp-includes", "wp-admin")

__all__ = [
    "ArchiveError",
    "DownloadFailed",
    "ExtractionFailed",
    "InstallError",
    "InstallPaths",
    "InstallResult",
    "PayloadInstaller",
    "UnzipUnavailable",
    "build_download_url",
]


class InstallError(Exception):
    """Error during WordPress installation."""

    def __init__(self, message: str, version: Version | None = None):
        self.version = version
        super().__init__(message)


class DownloadFailed(InstallError):
    """Error when the archive could not be downloaded."""

    def __init__(
        self,
        version: Version,
        url: str,
        status_code: int | None = None,
        reason: str | None = None,
    ):
        self.url = url
        self.status_code = status_code
        message = f"Error downloading WordPress {version} from {url}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        if reason:
            message += f": {reason}"
        super().__init__(message, version)


@dataclass(frozen=True)
class InstallPaths:
    """Locations used by one installation."""

    target: Path
    staging: Path
    zip_url: str
    zip_file: Path


@dataclass
class InstallResult:
    """Result of a WordPress installation."""

    version: Version
    target: Path
    url: str
    no_content: bool = True

    @property
    def message(self) -> str:
        return f"WordPress {self.version} installed."


def build_download_url(version: Version, no_content: bool = True) -> str:
    """Build the wordpress.org download URL of a release archive.

    Args:
        version: Release to download
        no_content: Use the archive without wp-content (themes/plugins)

    Returns:
        Archive URL
    """
    suffix = NO_CONTENT_SUFFIX if no_content else FULL_SUFFIX
    return f"{DOWNLOADS_BASE_URL}{version}{suffix}"


class PayloadInstaller:
    """Downloads a WordPress release and puts it in the target directory.

    Steps run strictly in order and any failure aborts the installation.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        working_dir: Path | None = None,
        extractor: Extractor | None = None,
    ):
        """Initialize the installer.

        Args:
            fetcher: Fetcher used to download the archive
            working_dir: Project root that target-dir is relative to (default: cwd)
            extractor: Zip extractor; probed from the system when not given
        """
        self.fetcher = fetcher
        self.working_dir = (working_dir or Path.cwd()).resolve()
        self._extractor = extractor

    @property
    def extractor(self) -> Extractor:
        """Get the extractor, probing for one on first use.

        Raises:
            ConfigError: If target-dir is not below the project root
            UnzipUnavailable: If the system can't unzip archives
        """
        if self._extractor is None:
            self._extractor = select_extractor()
        return self._extractor

    def target_path(self, config: EffectiveConfig) -> Path:
        """Get the absolute installation directory (target-dir below the project root).

        Raises:
            ConfigError: If target-dir resolves to the project root or outside it
        """
        target = (self.working_dir / config.target_dir.lstrip("/\\")).resolve()
        if target == self.working_dir or not target.is_relative_to(self.working_dir):
            raise ConfigError(
                f"target-dir '{config.target_dir}' must be a directory below {self.working_dir}"
            )
        return target

    def prepare_paths(self, version: Version, config: EffectiveConfig) -> InstallPaths:
        """Compute the target, staging and download locations.

        The staging directory is a hidden sibling of the target, e.g.
        ``public/.wp`` for ``public/wp``.
        """
        target = self.target_path(config)
        staging = target.parent / f".{target.name}"

        zip_url = build_download_url(version, config.no_content)
        zip_file = self.working_dir / Path(urlparse(zip_url).path).name

        return InstallPaths(target=target, staging=staging, zip_url=zip_url, zip_file=zip_file)

    def cleanup(self, paths: InstallPaths) -> None:
        """Remove leftovers and the current WordPress payload.

        Deletes a leftover archive and staging directory, the ``wp-admin`` and
        ``wp-includes`` directories and every file at the top of the target
        directory except ``wp-config.php``. Other directories are untouched.
        """
        logger.info("Cleaning previous WordPress files...")

        if remove_file(paths.zip_file):
            logger.debug("Removed leftover archive %s", paths.zip_file)

        if remove_directory(paths.staging):
            logger.debug("Removed leftover staging directory %s", paths.staging)

        for name in PAYLOAD_DIRECTORIES:
            if remove_directory(paths.target / name):
                logger.debug("Removed %s", paths.target / name)

        for file in list_files(paths.target):
            if file.name in PROTECTED_FILES:
                logger.debug("Keeping %s", file)
                continue
            remove_file(file)

    def download(self, version: Version, paths: InstallPaths) -> Path:
        """Download the release archive.

        Raises:
            DownloadFailed: If the request fails or no file was written
        """
        logger.info("Downloading %s", paths.zip_url)
        try:
            content, status = self.fetcher.fetch(paths.zip_url)
        except FetchError as e:
            raise DownloadFailed(version, paths.zip_url, reason=str(e)) from e

        if status != 200:
            raise DownloadFailed(version, paths.zip_url, status_code=status)

        try:
            paths.zip_file.parent.mkdir(parents=True, exist_ok=True)
            paths.zip_file.write_bytes(content)
        except OSError as e:
            raise DownloadFailed(version, paths.zip_url, reason=str(e)) from e

        if not paths.zip_file.is_file():
            raise DownloadFailed(version, paths.zip_url)

        logger.debug("Saved %d bytes to %s", len(content), paths.zip_file)
        return paths.zip_file

    def install(self, version: Version, config: EffectiveConfig) -> InstallResult:
        """Install a WordPress release.

        Args:
            version: Release to install
            config: Effective configuration (target-dir, no-content)

        Returns:
            InstallResult

        Raises:
            UnzipUnavailable: If the system can't unzip archives
            DownloadFailed: If the archive could not be downloaded
            ExtractionFailed: If the archive could not be extracted
        """
        # Fail before touching anything if nothing can unzip the archive
        extractor = self.extractor

        paths = self.prepare_paths(version, config)
        self.cleanup(paths)

        zip_file = self.download(version, paths)

        ensure_directory(paths.target)

        logger.info("Unzipping with %s...", extractor.name)
        extractor.extract(zip_file, paths.staging)
        remove_file(zip_file)

        logger.info("Moving to destination folder...")
        copy_then_remove(find_content_root(paths.staging), paths.target)
        remove_directory(paths.staging)

        logger.info("WordPress %s installed in %s", version, paths.target)
        return InstallResult(
            version=version,
            target=paths.target,
            url=paths.zip_url,
            no_content=config.no_content,
        )
