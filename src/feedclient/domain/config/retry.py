"""Retry configuration model."""

from pydantic import BaseModel, Field


class RetryConfig(BaseModel):
    """Configuration for retry logic.

    Attributes:
        max_retries: Retries after the first attempt (0 = single attempt)
        base_delay: Delay before the first retry in seconds
        backoff_multiplier: Exponential backoff multiplier
    """

    max_retries: int = Field(3, ge=0, le=10)
    base_delay: float = Field(1.0, ge=0.0)  # Allow 0 for tests
    backoff_multiplier: float = Field(2.0, ge=1.0, le=10.0)
