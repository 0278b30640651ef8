"""Configuration file parsing utilities."""

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from wp_downloader.config.schemas import LockedPackage, ProjectManifest

COMPOSER_FILE = "composer.json"
STANDALONE_FILE = "wp-downloader.yaml"
MANIFEST_FILES = (COMPOSER_FILE, STANDALONE_FILE)


class ConfigError(Exception):
    """Error loading or parsing configuration."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        super().__init__(message)


def load_json(path: Path) -> dict[str, Any]:
    """Load and parse a JSON file.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed JSON as a dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            result = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e

    if not isinstance(result, dict):
        raise ConfigError(f"JSON file must contain an object: {path}", path)
    return result


def load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file.

    Args:
        path: Path to the YAML file

    Returns:
        Parsed YAML as a dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    if not path.exists():
        raise ConfigError(f"File not found: {path}", path)

    try:
        with open(path, encoding="utf-8") as f:
            result = yaml.safe_load(f)
            if result is None:
                return {}
            if not isinstance(result, dict):
                raise ConfigError(f"YAML file must contain a mapping: {path}", path)
            return result
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", path) from e
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", path) from e


def find_manifest(project_root: Path) -> Path | None:
    """Get the manifest file of a project (composer.json first)."""
    for name in MANIFEST_FILES:
        candidate = project_root / name
        if candidate.is_file():
            return candidate
    return None


def load_project_manifest(project_root: Path) -> ProjectManifest:
    """Load the project manifest.

    Reads composer.json, or wp-downloader.yaml for projects that don't use
    Composer. Both provide ``require`` and ``extra``.

    Args:
        project_root: Path to the project root directory

    Returns:
        Parsed ProjectManifest

    Raises:
        ConfigError: If no manifest exists or it is invalid
    """
    manifest_path = find_manifest(project_root)
    if manifest_path is None:
        raise ConfigError(
            f"No {' or '.join(MANIFEST_FILES)} found in {project_root}",
            project_root / COMPOSER_FILE,
        )

    if manifest_path.suffix == ".json":
        data = load_json(manifest_path)
    else:
        data = load_yaml(manifest_path)

    try:
        return ProjectManifest.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid project manifest: {e}", manifest_path) from e


def _parse_packages(entries: Any, path: Path) -> list[LockedPackage]:
    if not isinstance(entries, list):
        return []
    try:
        return [LockedPackage.model_validate(entry) for entry in entries]
    except ValidationError as e:
        raise ConfigError(f"Invalid package list: {e}", path) from e


def load_package_types(project_root: Path) -> dict[str, str]:
    """Map package names to package types from the project's lock data.

    Uses composer.lock (``packages`` and ``packages-dev``), falling back to
    vendor/composer/installed.json.

    Args:
        project_root: Path to the project root directory

    Returns:
        Dict of package name to type; empty if no lock data exists

    Raises:
        ConfigError: If a lock file exists but is invalid
    """
    lock_path = project_root / "composer.lock"
    installed_path = project_root / "vendor" / "composer" / "installed.json"

    packages: list[LockedPackage] = []
    if lock_path.is_file():
        data = load_json(lock_path)
        packages.extend(_parse_packages(data.get("packages"), lock_path))
        packages.extend(_parse_packages(data.get("packages-dev"), lock_path))
    elif installed_path.is_file():
        with open(installed_path, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {installed_path}: {e}", installed_path) from e
        # Composer 2 wraps the list in {"packages": [...]}, Composer 1 doesn't
        if isinstance(data, dict):
            data = data.get("packages")
        packages.extend(_parse_packages(data, installed_path))

    return {package.name.lower(): package.type for package in packages}


def find_project_root(start_path: Path | None = None) -> Path | None:
    """Find the project root by looking for a manifest file.

    Args:
        start_path: Directory to start searching from (defaults to cwd)

    Returns:
        Path to project root, or None if not found
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()
    while current != current.parent:
        if find_manifest(current) is not None:
            return current
        current = current.parent

    # Check root
    if find_manifest(current) is not None:
        return current

    return None
