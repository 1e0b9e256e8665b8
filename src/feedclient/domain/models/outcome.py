"""Attempt outcomes and the per-attempt record"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from feedclient.domain.models.classification import ErrorClassification


class FetchError(RuntimeError):
    """Raised by convenience services when a fetch ends in failure"""

    def __init__(self, classification: ErrorClassification):
        super().__init__(classification.describe())
        self.classification = classification

    @property
    def retryable(self) -> bool:
        return self.classification.retryable


@dataclass(frozen=True)
class Success:
    """Validated payload of a successful attempt"""

    payload: Any

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.payload


@dataclass(frozen=True)
class Failure:
    """Classified failure of an attempt (or of the whole fetch)"""

    classification: ErrorClassification

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise FetchError(self.classification)


Outcome = Union[Success, Failure]


@dataclass(frozen=True)
class AttemptRecord:
    """What happened during a single attempt"""

    attempt_index: int
    started_at: datetime  # UTC wall-clock start, for diagnostics only
    duration_ms: int  # measured on the monotonic clock
    outcome: Outcome

    def __post_init__(self):
        if self.attempt_index < 0:
            raise ValueError("attempt_index must be >= 0")
        if self.duration_ms < 0:
            raise ValueError("duration_ms must be >= 0")

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, Success)
