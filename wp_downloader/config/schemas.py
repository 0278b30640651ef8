"""Pydantic schemas for wp-downloader configuration.

This module defines the data models for:
- the ``extra.wp-downloader`` settings block
- root requirements read from the host manifest
- the effective configuration of a run
- project manifests (composer.json / wp-downloader.yaml)
"""

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =============================================================================
# Common Constants
# =============================================================================

SETTINGS_KEY = "wp-downloader"
INSTALL_DIR_KEY = "wordpress-install-dir"
DEFAULT_TARGET_DIR = "wordpress"

# Package type of WordPress core distributions (e.g. johnpbloch/wordpress-core)
CORE_PACKAGE_TYPE = "wordpress-core"
PLUGIN_PACKAGE_TYPE = "composer-plugin"


# =============================================================================
# Settings Block
# =============================================================================


class WpDownloaderSettings(BaseModel):
    """The ``extra.wp-downloader`` block of the host manifest.

    - version: exact version, range or keyword (optional)
    - no-content: download the "no content" archive (default: true)
    - target-dir: installation directory relative to the project root
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str | None = None
    no_content: bool = Field(default=True, alias="no-content")
    target_dir: str | None = Field(default=None, alias="target-dir")

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> Any:
        """Accept numeric versions (``"version": 4.7`` in JSON)."""
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("version", "target_dir")
    @classmethod
    def strip_strings(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None


# =============================================================================
# Host Manifest Models
# =============================================================================


class RootRequirement(BaseModel):
    """A dependency declared directly by the root manifest."""

    name: str
    constraint: str
    package_type: str | None = None

    @property
    def is_core(self) -> bool:
        """Whether the required package is a WordPress core distribution."""
        return self.package_type == CORE_PACKAGE_TYPE


class ProjectManifest(BaseModel):
    """The parts of a project manifest wp-downloader reads."""

    model_config = ConfigDict(extra="ignore")

    require: dict[str, str] = Field(default_factory=dict)
    extra: dict[str, Any] = Field(default_factory=dict)


class LockedPackage(BaseModel):
    """A package entry from composer.lock or vendor/composer/installed.json."""

    model_config = ConfigDict(extra="ignore")

    name: str
    version: str | None = None
    type: str = "library"


# =============================================================================
# Effective Configuration
# =============================================================================


class EffectiveConfig(BaseModel):
    """Configuration of a run, built once at activation and read-only after."""

    model_config = ConfigDict(frozen=True)

    version_constraint: str = ""
    no_content: bool = True
    target_dir: str = DEFAULT_TARGET_DIR

    @field_validator("target_dir")
    @classmethod
    def validate_target_dir(cls, value: str) -> str:
        value = value.strip()
        parts = [p for p in re.split(r"[/\\]", value) if p not in ("", ".")]
        if not parts:
            raise ValueError("target-dir must name a directory below the project root")
        if ".." in parts:
            raise ValueError("target-dir must stay below the project root")
        return value
