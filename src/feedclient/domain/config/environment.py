"""Backend environment configuration model."""

from pydantic import BaseModel, Field


class EnvironmentConfig(BaseModel):
    """Endpoints and client settings for one backend environment.

    Attributes:
        gateway_url: API gateway base URL
        feed_service_url: Feed service base URL
        news_service_url: News service base URL
        timeout: Per-attempt timeout in seconds
        enable_logging: Whether request logging is enabled
    """

    gateway_url: str
    feed_service_url: str
    news_service_url: str
    timeout: float = Field(10.0, gt=0.0, le=300.0)
    enable_logging: bool = True


DEFAULT_ENVIRONMENTS = {
    "development": {
        "gateway_url": "http://192.168.0.203:8080",
        "feed_service_url": "http://192.168.0.203:8082",
        "news_service_url": "http://192.168.0.203:8084",
        "timeout": 15.0,  # slower local networks
        "enable_logging": True,
    },
    "staging": {
        "gateway_url": "https://staging-api.bharathva.com",
        "feed_service_url": "https://staging-api.bharathva.com",
        "news_service_url": "https://staging-api.bharathva.com",
        "timeout": 10.0,
        "enable_logging": True,
    },
    "production": {
        "gateway_url": "https://api.bharathva.com",
        "feed_service_url": "https://api.bharathva.com",
        "news_service_url": "https://api.bharathva.com",
        "timeout": 10.0,
        "enable_logging": False,
    },
}
