"""Shared fixtures for wp-downloader tests."""

import io
import json
import shutil
import tempfile
import zipfile
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from wp_downloader.registry.base import Fetcher
from wp_downloader.registry.catalog import RELEASES_URL

DOWNLOAD_BASE = "https://downloads.wordpress.org/release/wordpress-"


class StubFetcher(Fetcher):
    """Fetcher serving canned responses and recording requested URLs."""

    def __init__(
        self,
        responses: dict[str, tuple[bytes, int] | Exception] | None = None,
        default: tuple[bytes, int] = (b"Not Found", 404),
    ):
        self.responses = dict(responses or {})
        self.default = default
        self.calls: list[str] = []

    def fetch(self, url: str) -> tuple[bytes, int]:
        self.calls.append(url)
        response = self.responses.get(url, self.default)
        if isinstance(response, Exception):
            raise response
        return response


def catalog_body(*versions: str) -> bytes:
    """Build a version-check API response offering the given versions."""
    offers = [
        {"response": "upgrade", "download": f"{DOWNLOAD_BASE}{v}.zip", "version": v}
        for v in versions
    ]
    return json.dumps({"offers": offers, "translations": []}).encode()


def build_wordpress_zip(version: str = "4.6", with_content: bool = False) -> bytes:
    """Build an in-memory archive shaped like a wordpress.org release."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("wordpress/index.php", "<?php\n// Front to the WordPress application\n")
        zf.writestr("wordpress/wp-config-sample.php", "<?php\n// sample\n")
        zf.writestr("wordpress/wp-load.php", "<?php\n// load\n")
        zf.writestr("wordpress/wp-admin/index.php", "<?php\n// admin\n")
        zf.writestr(
            "wordpress/wp-includes/version.php",
            f"<?php\n/**\n * The WordPress version string\n */\n$wp_version = '{version}';\n"
            "$wp_db_version = 38590;\n",
        )
        if with_content:
            zf.writestr("wordpress/wp-content/index.php", "<?php\n// Silence is golden.\n")
            zf.writestr("wordpress/wp-content/themes/twentysixteen/style.css", "/* theme */\n")
    return buffer.getvalue()


def write_installed_wordpress(target: Path, version: str) -> Path:
    """Create a minimal WordPress installation on disk."""
    (target / "wp-includes").mkdir(parents=True, exist_ok=True)
    (target / "wp-admin").mkdir(parents=True, exist_ok=True)
    (target / "wp-includes" / "version.php").write_text(
        f"<?php\n$wp_version = '{version}';\n$wp_db_version = 38590;\n"
    )
    (target / "index.php").write_text("<?php // old index\n")
    return target


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory."""
    path = Path(tempfile.mkdtemp(prefix="wp_downloader_test_"))
    yield path
    if path.exists():
        shutil.rmtree(path)


@pytest.fixture
def temp_project(temp_dir: Path) -> Path:
    """Create a temporary project directory."""
    project_dir = temp_dir / "test-project"
    project_dir.mkdir()
    return project_dir


@pytest.fixture
def make_fetcher() -> Callable[..., StubFetcher]:
    """Factory for stub fetchers."""
    return StubFetcher


@pytest.fixture
def catalog_fetcher() -> Callable[..., StubFetcher]:
    """Factory for a stub fetcher whose catalog offers the given versions.

    Archives for every offered version are served too.
    """

    def factory(*versions: str, no_content: bool = True) -> StubFetcher:
        suffix = "-no-content.zip" if no_content else ".zip"
        responses: dict[str, tuple[bytes, int] | Exception] = {
            RELEASES_URL: (catalog_body(*versions), 200),
        }
        for v in versions:
            responses[f"{DOWNLOAD_BASE}{v}{suffix}"] = (
                build_wordpress_zip(v, with_content=not no_content),
                200,
            )
        return StubFetcher(responses)

    return factory


@pytest.fixture
def wordpress_zip() -> Callable[..., bytes]:
    """Factory for release archives."""
    return build_wordpress_zip


@pytest.fixture
def installed_wordpress() -> Callable[[Path, str], Path]:
    """Factory writing a minimal WordPress installation."""
    return write_installed_wordpress


@pytest.fixture
def composer_project(temp_project: Path) -> Callable[..., Path]:
    """Factory writing composer.json (and optionally composer.lock) into the project."""

    def factory(
        require: dict[str, str] | None = None,
        extra: dict | None = None,
        locked: list[dict] | None = None,
    ) -> Path:
        manifest = {"name": "acme/site", "require": require or {}, "extra": extra or {}}
        (temp_project / "composer.json").write_text(json.dumps(manifest, indent=2))
        if locked is not None:
            lock = {"packages": locked, "packages-dev": []}
            (temp_project / "composer.lock").write_text(json.dumps(lock, indent=2))
        return temp_project

    return factory
