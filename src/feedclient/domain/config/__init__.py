"""Configuration models with Pydantic validation."""

from feedclient.domain.config.app import AppConfig
from feedclient.domain.config.environment import EnvironmentConfig
from feedclient.domain.config.retry import RetryConfig
from feedclient.domain.config.transport import TransportConfig

__all__ = [
    "AppConfig",
    "EnvironmentConfig",
    "RetryConfig",
    "TransportConfig",
]
