"""Domain models for remote fetches."""

from feedclient.domain.models.classification import ErrorClassification, ErrorKind
from feedclient.domain.models.fetch_request import FetchRequest, RetryPolicy
from feedclient.domain.models.outcome import (
    AttemptRecord,
    Failure,
    FetchError,
    Outcome,
    Success,
)
from feedclient.domain.models.page import Page

__all__ = [
    "AttemptRecord",
    "ErrorClassification",
    "ErrorKind",
    "Failure",
    "FetchError",
    "FetchRequest",
    "Outcome",
    "Page",
    "RetryPolicy",
    "Success",
]
