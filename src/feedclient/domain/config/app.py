"""Main application configuration model."""

from typing import Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from feedclient.domain.config.environment import DEFAULT_ENVIRONMENTS, EnvironmentConfig
from feedclient.domain.config.retry import RetryConfig
from feedclient.domain.config.transport import TransportConfig

EnvironmentName = Literal["development", "staging", "production"]


def _default_environments() -> Dict[str, EnvironmentConfig]:
    return {name: EnvironmentConfig(**values) for name, values in DEFAULT_ENVIRONMENTS.items()}


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is
    performed at load time to fail fast on configuration errors.

    Attributes:
        environment: Active backend environment
        environments: Endpoint settings per environment
        retry: Retry logic configuration
        transport: HTTP transport configuration
    """

    environment: EnvironmentName = "development"
    environments: Dict[EnvironmentName, EnvironmentConfig] = Field(default_factory=_default_environments)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)

    model_config = ConfigDict(
        validate_assignment=True,  # Validate on attribute assignment
        extra="forbid",  # Reject unknown fields
        json_schema_extra={
            "example": {
                "environment": "staging",
                "environments": {
                    "staging": {
                        "gateway_url": "https://staging-api.bharathva.com",
                        "feed_service_url": "https://staging-api.bharathva.com",
                        "news_service_url": "https://staging-api.bharathva.com",
                        "timeout": 10.0,
                        "enable_logging": True,
                    },
                },
                "retry": {
                    "max_retries": 3,
                    "base_delay": 1.0,
                    "backoff_multiplier": 2.0,
                },
                "transport": {
                    "max_workers": 4,
                    "follow_redirects": True,
                },
            }
        },
    )

    @model_validator(mode="after")
    def _check_active_environment(self) -> "AppConfig":
        if self.environment not in self.environments:
            raise ValueError(f"environment '{self.environment}' has no entry under environments")
        return self

    @property
    def active(self) -> EnvironmentConfig:
        """Settings of the active environment"""
        return self.environments[self.environment]
