"""Effective configuration for a run."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from wp_downloader.config.parser import ConfigError
from wp_downloader.config.schemas import (
    DEFAULT_TARGET_DIR,
    INSTALL_DIR_KEY,
    SETTINGS_KEY,
    EffectiveConfig,
    RootRequirement,
    WpDownloaderSettings,
)

logger = logging.getLogger(__name__)


class ConfigResolver:
    """Merges the plugin settings, the install-dir alias and root requirements.

    Precedence for the target directory: ``wp-downloader.target-dir`` >
    ``wordpress-install-dir`` > "wordpress". Precedence for the version:
    ``wp-downloader.version`` > the constraint on a directly required
    ``wordpress-core`` package > "" (latest).
    """

    def install_dir_alias(self, extra: Mapping[str, Any]) -> str | None:
        """Read ``wordpress-install-dir`` (a string or the first string of a list)."""
        dirs = extra.get(INSTALL_DIR_KEY)
        if isinstance(dirs, str):
            dirs = [dirs]
        if not isinstance(dirs, list):
            return None

        candidates = [d.strip() for d in dirs if isinstance(d, str) and d.strip()]
        return candidates[0] if candidates else None

    def core_constraint(self, root_requirements: Iterable[RootRequirement]) -> str | None:
        """Get the constraint of the first directly required core package.

        Only the root manifest's own requirements may be passed here;
        transitive dependencies don't decide which WordPress to install.
        """
        for requirement in root_requirements:
            if requirement.is_core:
                logger.debug(
                    "Using constraint '%s' from core package %s",
                    requirement.constraint,
                    requirement.name,
                )
                return requirement.constraint.strip()
        return None

    def build(
        self,
        raw_extra: Mapping[str, Any],
        root_requirements: Iterable[RootRequirement] = (),
    ) -> EffectiveConfig:
        """Build the effective configuration.

        Args:
            raw_extra: The host manifest's ``extra`` mapping
            root_requirements: Dependencies declared by the root manifest

        Returns:
            Frozen EffectiveConfig

        Raises:
            ConfigError: If the settings block is invalid
        """
        block = raw_extra.get(SETTINGS_KEY) or {}
        if not isinstance(block, Mapping):
            raise ConfigError(f"'extra.{SETTINGS_KEY}' must be an object")

        try:
            settings = WpDownloaderSettings.model_validate(dict(block))
        except ValidationError as e:
            raise ConfigError(f"Invalid '{SETTINGS_KEY}' settings: {e}") from e

        target_dir = settings.target_dir or self.install_dir_alias(raw_extra) or DEFAULT_TARGET_DIR

        version = settings.version
        if version is None:
            version = self.core_constraint(root_requirements) or ""

        try:
            config = EffectiveConfig(
                version_constraint=version,
                no_content=settings.no_content,
                target_dir=target_dir,
            )
        except ValidationError as e:
            raise ConfigError(f"Invalid '{SETTINGS_KEY}' settings: {e}") from e

        logger.debug("Effective configuration: %s", config)
        return config
