"""FetchRequest model - immutable description of one logical call"""

import json
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Union

DEFAULT_CONTENT_TYPE = "application/json"


@dataclass(frozen=True)
class FetchRequest:
    """One logical request, including its per-attempt timeout and retry budget.

    Attributes:
        url: Absolute target URL
        method: HTTP method
        headers: Extra request headers
        body: Raw request body
        timeout: Deadline for a single attempt, in seconds
        max_retries: Retries after the first attempt (0 = exactly one attempt)
        base_delay: Delay before the first retry, in seconds
        backoff_multiplier: Growth factor of the delay between retries
        expected_content_type: Media type a successful response must declare
    """

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Optional[Union[bytes, str]] = None
    timeout: float = 10.0
    max_retries: int = 3
    base_delay: float = 1.0
    backoff_multiplier: float = 2.0
    expected_content_type: str = DEFAULT_CONTENT_TYPE

    def __post_init__(self):
        if not self.url:
            raise ValueError("url is required")
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        # frozen dataclass: bypass __setattr__ to freeze the caller's headers
        object.__setattr__(self, "method", self.method.upper())
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @classmethod
    def with_json(cls, url: str, payload: Any, **kwargs: Any) -> "FetchRequest":
        """Build a request whose body is ``payload`` encoded as JSON"""
        headers = {"Content-Type": DEFAULT_CONTENT_TYPE}
        headers.update(kwargs.pop("headers", {}) or {})
        kwargs.setdefault("method", "POST")
        return cls(url=url, headers=headers, body=json.dumps(payload), **kwargs)

    @property
    def policy(self) -> "RetryPolicy":
        return RetryPolicy.from_request(self)

    def worst_case_wait(self) -> float:
        """Upper bound, in seconds, on how long fetch_with_retry can take.

        Every attempt may run to its deadline and every backoff may elapse:
        ``(max_retries + 1) * timeout + sum(backoff delays)``.
        """
        policy = self.policy
        return policy.max_attempts * self.timeout + sum(policy.delays())


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff schedule derived from a FetchRequest"""

    max_retries: int
    base_delay: float
    backoff_multiplier: float

    @classmethod
    def from_request(cls, request: FetchRequest) -> "RetryPolicy":
        return cls(
            max_retries=request.max_retries,
            base_delay=request.base_delay,
            backoff_multiplier=request.backoff_multiplier,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def delay_for(self, attempt_index: int) -> float:
        """Delay slept after attempt ``attempt_index`` fails, before the next one"""
        return self.base_delay * (self.backoff_multiplier ** attempt_index)

    def delays(self) -> List[float]:
        return [self.delay_for(n) for n in range(self.max_retries)]
