"""Configuration for claws using pydantic-settings."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the rule configuration file cannot be used."""

    pass


class ClawsSettings(BaseSettings):
    """Global settings for an analysis run."""

    model_config = SettingsConfigDict(
        env_prefix="CLAWS_",
    )

    config_file: str | None = Field(
        default=None,
        description="YAML file mapping rule names to their configuration",
    )

    enabled_rules: list[str] = Field(
        default_factory=list,
        description="Only run these rules (empty means every known rule)",
    )

    disabled_rules: list[str] = Field(
        default_factory=list,
        description="Rules to skip",
    )

    trace: bool = Field(
        default=False,
        description="Record every evaluated rule expression at DEBUG level",
    )

    workers: int = Field(
        default=1,
        ge=1,
        description="Number of files analyzed concurrently",
    )


# Global settings instance that can be accessed throughout the application
_settings: ClawsSettings | None = None


def get_settings() -> ClawsSettings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = ClawsSettings()
    return _settings


def set_settings(settings: ClawsSettings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings


def load_rule_configuration(config_file: str | None) -> dict[str, dict[str, Any]]:
    """Load per-rule configuration from a YAML file.

    The file is a mapping of rule name to a mapping of options, e.g.::

        UnapprovedRunners:
          allowed_runners: [ubuntu-latest, self-hosted]
        Shellcheck:
          enabled: false

    Args:
        config_file: Path to the file, or None for no configuration

    Returns:
        Mapping of rule name to its options (rules without options are absent)

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    if config_file is None:
        return {}

    path = Path(config_file)
    logger.info("Loading rule configuration from %s", path)

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Configuration file {path} must contain a mapping of rule names")

    configuration: dict[str, dict[str, Any]] = {}
    for rule_name, options in raw.items():
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise ConfigError(
                f"Configuration for rule '{rule_name}' in {path} must be a mapping, "
                f"not {type(options).__name__}"
            )
        configuration[str(rule_name)] = options

    return configuration
