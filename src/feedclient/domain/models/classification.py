"""Error taxonomy - the closed set of ways a fetch can fail"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Kind of fetch failure"""

    TIMEOUT = "timeout"
    NETWORK_FAILURE = "network_failure"
    SERVER_ERROR = "server_error"
    CLIENT_ERROR = "client_error"
    MALFORMED_RESPONSE = "malformed_response"
    CANCELLED = "cancelled"


_RETRYABLE_KINDS = frozenset({ErrorKind.TIMEOUT, ErrorKind.NETWORK_FAILURE})


@dataclass(frozen=True)
class ErrorClassification:
    """Structured verdict on a failed attempt

    ``retryable`` is derived from ``kind`` (and ``http_status`` for server
    errors), so two classifications of the same kind always agree on it.
    """

    kind: ErrorKind
    message: str
    http_status: Optional[int] = None
    cause: Optional[BaseException] = None

    @property
    def retryable(self) -> bool:
        """Check if the failure may succeed when retried unchanged"""
        if self.kind == ErrorKind.SERVER_ERROR:
            return self.http_status is None or 500 <= self.http_status <= 599
        return self.kind in _RETRYABLE_KINDS

    def describe(self) -> str:
        """Human-readable one-liner, e.g. for CLI output"""
        status = f" (HTTP {self.http_status})" if self.http_status is not None else ""
        return f"{self.kind.value}{status}: {self.message}"
