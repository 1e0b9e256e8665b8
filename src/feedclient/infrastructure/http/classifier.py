"""Error classifier - maps any attempt failure onto the ErrorKind taxonomy.

Discrimination is by exception type and HTTP status only; exception
messages are never inspected.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Union

import requests

from feedclient.domain.models.classification import ErrorClassification, ErrorKind
from feedclient.infrastructure.http.cancellation import AttemptCancelled, CancelReason
from feedclient.infrastructure.http.transport import TransportResponse

logger = logging.getLogger(__name__)

# requests errors raised before any byte is exchanged because the request
# itself is unusable; retrying them unchanged cannot help
_INVALID_REQUEST_ERRORS = (
    requests.exceptions.InvalidURL,
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidHeader,
    requests.exceptions.URLRequired,
    requests.exceptions.TooManyRedirects,
)

MAX_DETAIL_LENGTH = 200


class ResponseValidationError(Exception):
    """A 2xx response whose content type or body is unusable"""

    def __init__(self, message: str, http_status: Optional[int] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.http_status = http_status
        self.cause = cause


AttemptFailure = Union[BaseException, TransportResponse]


def classify(failure: AttemptFailure) -> ErrorClassification:
    """Classify a failed attempt.

    Never raises: anything unrecognised is reported as a network failure.

    Args:
        failure: Exception raised during the attempt, or a completed
            response with a non-2xx status

    Returns:
        ErrorClassification for the failure
    """
    try:
        if isinstance(failure, TransportResponse):
            return _classify_response(failure)
        return _classify_exception(failure)
    except Exception as e:  # classification itself must never fail
        logger.debug(f"Classifier fallback for {failure!r}: {e}")
        return ErrorClassification(
            kind=ErrorKind.NETWORK_FAILURE,
            message=f"Unclassifiable failure: {type(failure).__name__}",
            cause=failure if isinstance(failure, BaseException) else None,
        )


def _classify_exception(exc: BaseException) -> ErrorClassification:
    if isinstance(exc, AttemptCancelled):
        if exc.reason == CancelReason.DEADLINE:
            return ErrorClassification(ErrorKind.TIMEOUT, "Request timed out", cause=exc)
        return ErrorClassification(ErrorKind.CANCELLED, "Request cancelled by caller", cause=exc)

    if isinstance(exc, ResponseValidationError):
        return ErrorClassification(
            ErrorKind.MALFORMED_RESPONSE,
            str(exc),
            http_status=exc.http_status,
            cause=exc.cause or exc,
        )

    if isinstance(exc, requests.exceptions.Timeout):
        return ErrorClassification(ErrorKind.TIMEOUT, f"Transport timeout: {exc}", cause=exc)

    if isinstance(exc, _INVALID_REQUEST_ERRORS):
        return ErrorClassification(ErrorKind.CLIENT_ERROR, f"Invalid request: {exc}", cause=exc)

    if isinstance(exc, (requests.exceptions.RequestException, OSError)):
        return ErrorClassification(ErrorKind.NETWORK_FAILURE, f"Network request failed: {exc}", cause=exc)

    return ErrorClassification(
        ErrorKind.NETWORK_FAILURE,
        f"Unexpected {type(exc).__name__} during request: {exc}",
        cause=exc,
    )


def _classify_response(response: TransportResponse) -> ErrorClassification:
    status = response.status_code
    detail = error_detail(response)

    if 500 <= status <= 599:
        return ErrorClassification(ErrorKind.SERVER_ERROR, f"Server error: {detail}", http_status=status)
    if 400 <= status <= 499:
        return ErrorClassification(ErrorKind.CLIENT_ERROR, f"Client error: {detail}", http_status=status)
    if 300 <= status <= 399:
        location = response.headers.get("Location", "<none>")
        return ErrorClassification(
            ErrorKind.CLIENT_ERROR,
            f"Unfollowed redirect to {location}; check the service URL",
            http_status=status,
        )
    if 200 <= status <= 299:
        # a 2xx only reaches the classifier through the validator
        return ErrorClassification(
            ErrorKind.MALFORMED_RESPONSE,
            f"Unusable response: {detail}",
            http_status=status,
        )
    return ErrorClassification(ErrorKind.CLIENT_ERROR, f"Unexpected HTTP status {status}", http_status=status)


def error_detail(response: TransportResponse) -> str:
    """Extract a short, human-readable reason from an error response body"""
    status = response.status_code
    if response.media_type == "application/json":
        try:
            body = json.loads(response.text())
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error")
            if message:
                return f"HTTP {status}: {str(message)[:MAX_DETAIL_LENGTH]}"
        elif body is not None:
            return f"HTTP {status}: {json.dumps(body)[:MAX_DETAIL_LENGTH]}"

    text = response.text().strip()
    lowered = text[:500].lower()
    if "<!doctype" in lowered or "<html" in lowered:
        return f"HTTP {status}: server returned an HTML error page"
    if not text:
        return f"HTTP {status}"
    return f"HTTP {status}: {text[:MAX_DETAIL_LENGTH]}"
