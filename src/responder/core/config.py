"""
Configuration management for the facility responder.
Loads configuration from YAML files and environment variables.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from src.responder.core.exceptions import ConfigurationError
from src.responder.models.schemas import SystemConfig
from src.responder.services.response_handlers import DEFAULT_CRITICAL_SERVICES

logger = logging.getLogger(__name__)

ENV_PREFIX = "RESPONDER_"


@dataclass
class AppConfig:
    """Application configuration."""

    APP_NAME: str = "Facility Responder"
    APP_VERSION: str = "2.1.0"
    APP_ENV: str = "development"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8080


@dataclass
class LoggingConfig:
    """Logging configuration."""

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE_PATH: str = "logs/responder.log"
    LOG_FILE_MAX_BYTES: int = 10485760
    LOG_FILE_BACKUP_COUNT: int = 5
    LOG_ENABLE_CONSOLE: bool = True
    LOG_ENABLE_FILE: bool = True
    LOG_ENABLE_JOURNAL: bool = False


@dataclass
class ResponseConfig:
    """Response execution policy."""

    RESPONSE_MAX_RESPONSE_TIME: int = 300
    RESPONSE_MAX_RETRY_ATTEMPTS: int = 3
    RESPONSE_ENABLE_EMERGENCY_OVERRIDE: bool = True
    RESPONSE_ENABLE_AUTO_RECOVERY: bool = False
    RESPONSE_HEALTH_CHECK_INTERVAL: int = 30
    RESPONSE_FAILURE_POLICY: str = "last"
    RESPONSE_FAILOVER_SETTLE_DELAY_S: float = 0.5


@dataclass
class FacilityConfig:
    """Facility layout and actuator selection."""

    FACILITY_CRITICAL_SERVICES: list[str] = field(
        default_factory=lambda: list(DEFAULT_CRITICAL_SERVICES)
    )
    FACILITY_EMERGENCY_DURATION_S: int = 3600
    FACILITY_SIMULATED_ACTUATORS: bool = True


@dataclass
class APIConfig:
    """API configuration."""

    API_CORS_ENABLED: bool = True
    API_CORS_ORIGINS: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class DevelopmentConfig:
    """Development settings."""

    DEV_DEBUG_MODE: bool = False


@dataclass
class Config:
    """Main configuration container."""

    app: AppConfig = field(default_factory=AppConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    response: ResponseConfig = field(default_factory=ResponseConfig)
    facility: FacilityConfig = field(default_factory=FacilityConfig)
    api: APIConfig = field(default_factory=APIConfig)
    development: DevelopmentConfig = field(default_factory=DevelopmentConfig)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "app": self.app.__dict__,
            "logging": self.logging.__dict__,
            "response": self.response.__dict__,
            "facility": self.facility.__dict__,
            "api": self.api.__dict__,
            "development": self.development.__dict__,
        }

    def to_system_config(self) -> SystemConfig:
        """Build the engine policy from the response section."""
        return SystemConfig(
            max_response_time=self.response.RESPONSE_MAX_RESPONSE_TIME,
            max_retry_attempts=self.response.RESPONSE_MAX_RETRY_ATTEMPTS,
            enable_emergency_override=self.response.RESPONSE_ENABLE_EMERGENCY_OVERRIDE,
            enable_auto_recovery=self.response.RESPONSE_ENABLE_AUTO_RECOVERY,
            health_check_interval=self.response.RESPONSE_HEALTH_CHECK_INTERVAL,
        )


class ConfigLoader:
    """Configuration loader that handles YAML files and environment variables."""

    def __init__(self, config_path: str | Path | None = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Path to configuration file. Defaults to profile-based selection.
        """
        if config_path is None:
            # Project root is 4 levels up from this file
            project_root = Path(__file__).parent.parent.parent.parent

            profile = os.getenv(f"{ENV_PREFIX}CONFIG_PROFILE", "default")
            if profile in ["production", "prod"]:
                config_file = "production.yaml"
            else:
                config_file = "default.yaml"

            self.config_path = project_root / "config" / config_file
            logger.info(f"Selected configuration profile: {profile} -> {config_file}")
        else:
            self.config_path = Path(config_path)
        self.config = Config()

    def load(self) -> Config:
        """
        Load configuration from file and environment variables.

        Environment variables override file configuration.

        Returns:
            Loaded configuration object

        Raises:
            ConfigurationError: If the file cannot be parsed or values are invalid
        """
        config_data = self._load_with_inheritance()
        if config_data:
            self._apply_yaml_config(config_data)
            logger.info(f"Loaded configuration from {self.config_path}")
        else:
            logger.warning(f"No configuration found at {self.config_path}, using defaults")

        self._apply_env_overrides()
        self._validate_config()

        return self.config

    def _load_with_inheritance(self) -> dict[str, Any] | None:
        """Load the selected file on top of default.yaml when it is a profile."""
        if not self.config_path.exists():
            return None

        try:
            with open(self.config_path) as f:
                config_data = yaml.safe_load(f) or {}

            if self.config_path.name != "default.yaml":
                base_config_path = self.config_path.parent / "default.yaml"
                if base_config_path.exists():
                    with open(base_config_path) as f:
                        base_config = yaml.safe_load(f) or {}
                    base_config.update(config_data)
                    config_data = base_config
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Configuration root must be a mapping: {self.config_path}")

        return config_data

    def _section_for_key(self, key: str) -> Any | None:
        """Route a flat upper-case key to its config section by prefix."""
        if key.startswith("APP_"):
            return self.config.app
        elif key.startswith("LOG_"):
            return self.config.logging
        elif key.startswith("RESPONSE_"):
            return self.config.response
        elif key.startswith("FACILITY_"):
            return self.config.facility
        elif key.startswith("API_"):
            return self.config.api
        elif key.startswith("DEV_"):
            return self.config.development
        return None

    def _apply_yaml_config(self, yaml_config: dict[str, Any]) -> None:
        """Apply configuration from YAML dictionary with type conversion."""
        for key, value in yaml_config.items():
            section = self._section_for_key(key)
            if section is None:
                logger.warning(f"Unknown configuration key: {key}")
                continue
            if isinstance(value, list):
                value = ",".join(str(v) for v in value)
            self._set_config_value(section, key, str(value))

    def _apply_env_overrides(self) -> None:
        """Apply RESPONDER_* environment variable overrides."""
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            config_key = env_key[len(ENV_PREFIX) :]
            section = self._section_for_key(config_key)
            if section is not None:
                self._set_config_value(section, config_key, env_value)

    def _set_config_value(self, config_section: Any, key: str, value: str) -> None:
        """
        Set configuration value with type conversion based on the default's type.

        Args:
            config_section: Configuration section object
            key: Configuration key
            value: String value from YAML or environment
        """
        if not hasattr(config_section, key):
            logger.warning(f"Unknown configuration key: {key}")
            return

        current_value = getattr(config_section, key)

        converted_value: Any
        if isinstance(current_value, bool):
            converted_value = value.lower() in ("true", "1", "yes", "on")
        elif isinstance(current_value, int):
            try:
                converted_value = int(value)
            except ValueError:
                logger.error(f"Invalid integer value for {key}: {value}")
                return
        elif isinstance(current_value, float):
            try:
                converted_value = float(value)
            except ValueError:
                logger.error(f"Invalid float value for {key}: {value}")
                return
        elif isinstance(current_value, list):
            converted_value = [v.strip() for v in value.split(",") if v.strip()]
        else:
            converted_value = value

        setattr(config_section, key, converted_value)
        logger.debug(f"Set {key} = {converted_value}")

    def _validate_config(self) -> None:
        """Validate configuration after all loading is complete."""
        response = self.config.response

        if response.RESPONSE_FAILURE_POLICY.lower() not in ("first", "last"):
            raise ConfigurationError(
                f"RESPONSE_FAILURE_POLICY must be 'first' or 'last', "
                f"got {response.RESPONSE_FAILURE_POLICY!r}"
            )
        if response.RESPONSE_MAX_RESPONSE_TIME <= 0:
            raise ConfigurationError("RESPONSE_MAX_RESPONSE_TIME must be positive")
        if response.RESPONSE_HEALTH_CHECK_INTERVAL <= 0:
            raise ConfigurationError("RESPONSE_HEALTH_CHECK_INTERVAL must be positive")
        if response.RESPONSE_MAX_RETRY_ATTEMPTS < 0:
            raise ConfigurationError("RESPONSE_MAX_RETRY_ATTEMPTS must not be negative")
        if response.RESPONSE_FAILOVER_SETTLE_DELAY_S < 0:
            raise ConfigurationError("RESPONSE_FAILOVER_SETTLE_DELAY_S must not be negative")
        if not self.config.facility.FACILITY_CRITICAL_SERVICES:
            raise ConfigurationError("FACILITY_CRITICAL_SERVICES must name at least one service")


# Global configuration instance
_config: Config | None = None


def get_config(config_path: str | Path | None = None) -> Config:
    """
    Get configuration instance (singleton pattern).

    Args:
        config_path: Optional path to configuration file

    Returns:
        Configuration object
    """
    global _config

    if _config is None:
        loader = ConfigLoader(config_path)
        _config = loader.load()

    return _config


def reload_config(config_path: str | Path | None = None) -> Config:
    """
    Reload configuration from file and environment.

    Args:
        config_path: Optional path to configuration file

    Returns:
        Reloaded configuration object
    """
    global _config

    loader = ConfigLoader(config_path)
    _config = loader.load()

    return _config
