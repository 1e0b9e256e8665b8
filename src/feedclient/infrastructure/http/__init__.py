"""HTTP building blocks: transports, cancellation, classification and validation."""

from feedclient.infrastructure.http.cancellation import (
    AttemptCancelled,
    CancellationToken,
    CancelReason,
    DeadlineToken,
)
from feedclient.infrastructure.http.classifier import ResponseValidationError, classify
from feedclient.infrastructure.http.executor import RequestExecutor
from feedclient.infrastructure.http.transport import (
    MockTransport,
    RequestsTransport,
    Transport,
    TransportResponse,
    json_response,
)
from feedclient.infrastructure.http.validator import validate_response

__all__ = [
    "AttemptCancelled",
    "CancellationToken",
    "CancelReason",
    "DeadlineToken",
    "MockTransport",
    "RequestExecutor",
    "RequestsTransport",
    "ResponseValidationError",
    "Transport",
    "TransportResponse",
    "classify",
    "json_response",
    "validate_response",
]
