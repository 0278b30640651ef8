"""Zip archive extraction.

Two extractors are available: the system ``unzip`` binary and Python's
``zipfile`` module (which needs ``zlib`` for deflated members). The one to
use is picked by a capability probe when the installer starts.
"""

from __future__ import annotations

import importlib.util
import logging
import shutil
import subprocess
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class ArchiveError(Exception):
    """Error extracting an archive."""

    def __init__(self, message: str, archive: Path | None = None):
        self.archive = archive
        super().__init__(message)


class UnzipUnavailable(ArchiveError):
    """Neither a system unzip binary nor a usable zip library is present."""


class ExtractionFailed(ArchiveError):
    """The archive is corrupt or the extractor reported an error."""


class Extractor(ABC):
    """Extracts a zip archive into a directory."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Get a short name for log messages."""
        ...

    @abstractmethod
    def extract(self, archive: Path, dest_dir: Path) -> Path:
        """Extract an archive.

        Args:
            archive: Path to the .zip file
            dest_dir: Directory to extract into (created if missing)

        Returns:
            The destination directory

        Raises:
            ExtractionFailed: If the archive cannot be extracted
        """
        ...


class ZipFileExtractor(Extractor):
    """Extractor backed by the ``zipfile`` module."""

    @property
    def name(self) -> str:
        return "zipfile"

    def extract(self, archive: Path, dest_dir: Path) -> Path:
        dest_dir.mkdir(parents=True, exist_ok=True)
        try:
            with zipfile.ZipFile(archive) as zf:
                # Security: prevent path traversal
                for member in zf.namelist():
                    member_path = Path(member)
                    if member_path.is_absolute() or ".." in member_path.parts:
                        raise ExtractionFailed(f"Unsafe path in archive: {member}", archive)
                zf.extractall(dest_dir)
        except (zipfile.BadZipFile, OSError) as e:
            raise ExtractionFailed(f"Cannot unzip '{archive.name}': {e}", archive) from e
        return dest_dir


class SystemUnzipExtractor(Extractor):
    """Extractor that shells out to the ``unzip`` binary."""

    def __init__(self, executable: str):
        self._executable = executable

    @property
    def name(self) -> str:
        return "unzip"

    def extract(self, archive: Path, dest_dir: Path) -> Path:
        dest_dir.mkdir(parents=True, exist_ok=True)
        command = [self._executable, "-qq", "-o", str(archive), "-d", str(dest_dir)]
        logger.debug("Running %s", " ".join(command))

        result = subprocess.run(command, capture_output=True, text=True, check=False)
        if result.returncode != 0:
            output = (result.stderr or result.stdout).strip()
            raise ExtractionFailed(
                f"Cannot unzip '{archive.name}': unzip exited with {result.returncode}: {output}",
                archive,
            )
        return dest_dir


def find_system_unzip() -> str | None:
    """Get the path of the system unzip binary, if any."""
    return shutil.which("unzip")


def has_zip_library() -> bool:
    """Check that ``zipfile`` can inflate deflated archives."""
    return importlib.util.find_spec("zlib") is not None


def select_extractor(prefer_system: bool = True) -> Extractor:
    """Pick an available extractor.

    Args:
        prefer_system: Try the system unzip binary before ``zipfile``

    Returns:
        An Extractor instance

    Raises:
        UnzipUnavailable: If no extraction capability is present
    """
    executable = find_system_unzip()
    library = has_zip_library()

    if executable and (prefer_system or not library):
        logger.debug("Using system unzip at %s", executable)
        return SystemUnzipExtractor(executable)
    if library:
        logger.debug("Using zipfile extractor")
        return ZipFileExtractor()

    raise UnzipUnavailable("Can't unzip WordPress because your system does not support unzip.")
