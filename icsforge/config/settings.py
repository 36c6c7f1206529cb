"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, PrivateAttr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..ics.models import DEFAULT_ALARM_DESCRIPTION, DEFAULT_PROD_ID
from ..timezone import TimezoneError, validate_timezone

logger = logging.getLogger(__name__)

ENV_PREFIX = "ICSFORGE_"

# Named alarm presets, referenced as "profile:<name>" in alarm input
DEFAULT_ALARM_PROFILES: dict[str, list[str]] = {
    "adhd-default": ["-2h", "-1h", "-30m", "-10m"],
    "adhd-countdown": ["-1d", "-1h", "-15m", "-5m"],
    "medication": ["-5m", "-1m", "0m"],
    "single": ["-15m"],
    "none": [],
}

# Settings that may be overridden from config.yaml
YAML_SETTINGS = (
    "prod_id",
    "calendar_method",
    "default_timezone",
    "include_vtimezone",
    "fold_limit",
    "default_alarm_description",
    "log_level",
    "log_file",
)


class ICSForgeSettings(BaseSettings):
    """Application settings with environment variable and YAML support.

    Precedence, highest first: constructor arguments, ``ICSFORGE_*``
    environment variables (and ``.env``), ``config.yaml``, defaults.
    """

    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)
    _config_path: Optional[Path] = PrivateAttr(default=None)

    # Calendar output
    prod_id: str = Field(default=DEFAULT_PROD_ID, description="PRODID for generated calendars")
    calendar_method: str = Field(default="PUBLISH", description="METHOD for generated calendars")
    default_timezone: str = Field(
        default="", description="IANA timezone applied when none is given; blank means local"
    )
    include_vtimezone: bool = Field(
        default=True, description="Embed static VTIMEZONE blocks for known zones"
    )
    fold_limit: int = Field(default=75, description="Line folding limit in octets")

    # Alarms
    default_alarm_description: str = Field(
        default=DEFAULT_ALARM_DESCRIPTION, description="DESCRIPTION for DISPLAY alarms"
    )
    alarm_profiles: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_ALARM_PROFILES.items()},
        description="Named lists of alarm specs",
    )

    # Logging
    log_level: str = Field(default="INFO", description="Console log level")
    log_file: Optional[str] = Field(default=None, description="Optional log file name")

    # File paths
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "icsforge")

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
    )

    def __init__(self, config_file: Optional[Path] = None, **kwargs: Any) -> None:
        env_vars_set = {
            key[len(ENV_PREFIX):].lower()
            for key in os.environ
            if key.upper().startswith(ENV_PREFIX)
        }

        super().__init__(**kwargs)

        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set
        self._config_path = Path(config_file) if config_file else None

        self._load_yaml_config()

    @field_validator("default_timezone")
    @classmethod
    def check_default_timezone(cls, value: str) -> str:
        """Blank is allowed; anything else must resolve."""
        value = (value or "").strip()
        if not value:
            return value
        try:
            return validate_timezone(value)
        except TimezoneError as e:
            raise ValueError(str(e)) from e

    @field_validator("fold_limit")
    @classmethod
    def check_fold_limit(cls, value: int) -> int:
        """0 disables folding; otherwise at least 8 octets."""
        if 0 < value < 8:
            raise ValueError("fold_limit must be 0 (disabled) or at least 8")
        return value

    def _is_overridden(self, setting: str) -> bool:
        return setting in self._explicit_args or setting in self._env_vars_set

    def _find_config_file(self) -> Optional[Path]:
        """Find config file: explicit path first, then the user config dir."""
        if self._config_path is not None:
            if self._config_path.exists():
                return self._config_path
            logger.warning(f"Config file {self._config_path} does not exist, ignoring")
            return None

        user_config = self.config_dir / "config.yaml"
        if user_config.exists():
            return user_config
        return None

    def _load_basic_settings(self, config_data: dict) -> None:
        """Load scalar settings from YAML data, skipping values that fail validation."""
        for setting in YAML_SETTINGS:
            if setting not in config_data or self._is_overridden(setting):
                continue
            try:
                setattr(self, setting, config_data[setting])
            except ValidationError as e:
                reason = e.errors()[0]["msg"] if e.errors() else str(e)
                logger.warning(f"Ignoring invalid {setting} in config: {reason}")

    def _load_alarm_profiles(self, config_data: dict) -> None:
        """Merge YAML alarm profiles over the defaults."""
        profiles = config_data.get("alarm_profiles")
        if not profiles or self._is_overridden("alarm_profiles"):
            return
        if not isinstance(profiles, dict):
            logger.warning("Ignoring alarm_profiles in config: expected a mapping")
            return

        for name, specs in profiles.items():
            if isinstance(specs, str):
                specs = [specs]
            self.alarm_profiles[str(name)] = [str(spec) for spec in specs or []]

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            # Don't fail if YAML loading fails, just continue with defaults/env vars
            logger.warning(f"Could not load YAML config from {config_file}: {e}")
            return

        if not config_data:
            return
        if not isinstance(config_data, dict):
            logger.warning(f"Ignoring {config_file}: top level must be a mapping")
            return

        self._load_basic_settings(config_data)
        self._load_alarm_profiles(config_data)
        logger.debug(f"Loaded configuration from {config_file}")

    @property
    def config_file(self) -> Path:
        """Path to YAML configuration file."""
        return self._config_path or self.config_dir / "config.yaml"

    def get_alarm_profile(self, name: str) -> Optional[list[str]]:
        """Return the alarm specs of a named profile, or None if unknown."""
        profile = self.alarm_profiles.get((name or "").strip())
        if profile is None:
            return None
        return list(profile)

    def list_alarm_profiles(self) -> list[str]:
        """Return all profile names, sorted."""
        return sorted(self.alarm_profiles)


# Global settings management
_settings_instance: Optional[ICSForgeSettings] = None


def get_settings() -> ICSForgeSettings:
    """Get the global settings instance, creating it lazily if needed.

    Returns:
        ICSForgeSettings: The global settings instance
    """
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = ICSForgeSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
