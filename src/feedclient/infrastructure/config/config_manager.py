"""Configuration manager for loading and validating .feedclient.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from feedclient.domain.config import AppConfig, EnvironmentConfig, RetryConfig, TransportConfig
from feedclient.domain.config.environment import DEFAULT_ENVIRONMENTS
from feedclient.domain.models.fetch_request import FetchRequest

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".feedclient.yml"


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .feedclient.yml and environment variables

    Configuration priority:
    1. Default values (defined here and in the Pydantic models)
    2. .feedclient.yml file (searched from current directory upwards)
    3. Environment variables (FEEDCLIENT_*)
    4. CLI arguments (handled by CLI layer)

    Settings are read once, at construction; requests built from them
    carry their own copy and never look back at the environment.
    """

    DEFAULT_CONFIG = {
        "environment": "development",
        "environments": DEFAULT_ENVIRONMENTS,
        "retry": {
            "max_retries": 3,
            "base_delay": 1.0,
            "backoff_multiplier": 2.0,
        },
        "transport": {
            "max_workers": 4,
            "follow_redirects": True,
            "expected_content_type": "application/json",
        },
    }

    # env var -> (key in the active environment, converter)
    ENV_OVERRIDES = {
        "FEEDCLIENT_GATEWAY_URL": ("gateway_url", str),
        "FEEDCLIENT_FEED_URL": ("feed_service_url", str),
        "FEEDCLIENT_NEWS_URL": ("news_service_url", str),
        "FEEDCLIENT_TIMEOUT": ("timeout", float),
    }

    def __init__(self, config_path: Optional[Path] = None, environment: Optional[str] = None):
        """Initialize config manager

        Args:
            config_path: Path to .feedclient.yml (searches from current dir if None)
            environment: Environment name overriding file and FEEDCLIENT_ENV

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        self._environment_override = environment
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .feedclient.yml starting from current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and validate with Pydantic

        Returns:
            Validated AppConfig instance

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the config file cannot be parsed
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                raise ConfigurationError(f"Failed to load config from {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"{self.config_path} must contain a mapping at top level")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        if self._environment_override:
            config["environment"] = self._environment_override
        elif os.getenv("FEEDCLIENT_ENV"):
            config["environment"] = os.getenv("FEEDCLIENT_ENV")

        active = config["environments"].get(config["environment"])
        if isinstance(active, dict):
            for env_var, (key, convert) in self.ENV_OVERRIDES.items():
                raw = os.getenv(env_var)
                if raw:
                    try:
                        active[key] = convert(raw)
                    except ValueError as e:
                        raise ConfigurationError(f"Invalid {env_var}={raw!r}: {e}") from e

        if os.getenv("FEEDCLIENT_MAX_RETRIES"):
            raw = os.getenv("FEEDCLIENT_MAX_RETRIES")
            try:
                config["retry"]["max_retries"] = int(raw)
            except ValueError as e:
                raise ConfigurationError(f"Invalid FEEDCLIENT_MAX_RETRIES={raw!r}: {e}") from e

        return config

    def get_environment_config(self) -> EnvironmentConfig:
        """Get settings of the active environment

        Returns:
            Environment configuration model
        """
        return self.config.active

    def get_retry_config(self) -> RetryConfig:
        """Get retry configuration

        Returns:
            Retry configuration model
        """
        return self.config.retry

    def get_transport_config(self) -> TransportConfig:
        """Get transport configuration

        Returns:
            Transport configuration model
        """
        return self.config.transport

    def build_request(self, url: str, **overrides: Any) -> FetchRequest:
        """Capture current settings into an immutable FetchRequest

        Args:
            url: Absolute request URL
            **overrides: FetchRequest fields overriding configured values

        Returns:
            FetchRequest carrying timeout, retry budget and expected content type
        """
        retry = self.config.retry
        fields: Dict[str, Any] = {
            "timeout": self.config.active.timeout,
            "max_retries": retry.max_retries,
            "base_delay": retry.base_delay,
            "backoff_multiplier": retry.backoff_multiplier,
            "expected_content_type": self.config.transport.expected_content_type,
        }
        fields.update(overrides)
        return FetchRequest(url=url, **fields)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "retry.max_retries" or "retry")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split(".")
        value = self.config.model_dump()
        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
