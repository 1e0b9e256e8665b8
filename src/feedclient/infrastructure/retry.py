"""Retry orchestration using tenacity.

``RetryOrchestrator.fetch_with_retry`` is the single entry point for a
logical fetch: it drives ``RequestExecutor`` attempts one after another,
retries only retryable classifications with exponential backoff, and
returns the terminal outcome. Intermediate failures are only logged and
reported to the optional observer.

Worst case, a fetch takes ``(max_retries + 1) * timeout`` plus the sum of
``base_delay * backoff_multiplier ** n`` for ``n < max_retries``; see
``FetchRequest.worst_case_wait``.
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable, List, Optional

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from feedclient.domain.models.classification import ErrorClassification, ErrorKind
from feedclient.domain.models.fetch_request import FetchRequest
from feedclient.domain.models.outcome import AttemptRecord, Failure, Outcome, Success
from feedclient.infrastructure.http.cancellation import CancellationToken
from feedclient.infrastructure.http.executor import RequestExecutor
from feedclient.infrastructure.http.transport import RequestsTransport, Transport

logger = logging.getLogger(__name__)

AttemptObserver = Callable[[AttemptRecord], None]
Sleeper = Callable[[float, CancellationToken], bool]


class BackoffCancelled(Exception):
    """The caller cancelled the fetch while it was waiting to retry"""


def cancellable_sleep(seconds: float, token: CancellationToken) -> bool:
    """Sleep for ``seconds`` unless ``token`` fires first.

    Returns:
        True if the sleep was cut short by cancellation
    """
    return token.wait(seconds)


def _should_retry(record: AttemptRecord) -> bool:
    """Check if an attempt's outcome warrants another attempt"""
    outcome = record.outcome
    return isinstance(outcome, Failure) and outcome.classification.retryable


class RetryOrchestrator:
    """Drives attempts for one logical fetch until success, a non-retryable
    failure, cancellation, or the retry budget runs out."""

    def __init__(
        self,
        executor: RequestExecutor,
        observer: Optional[AttemptObserver] = None,
        sleep: Sleeper = cancellable_sleep,
    ):
        """Initialize orchestrator

        Args:
            executor: Executor performing single attempts
            observer: Called with every AttemptRecord; purely diagnostic
            sleep: ``sleep(seconds, token) -> cancelled`` used for backoff
        """
        self.executor = executor
        self.observer = observer
        self.sleep = sleep

    def fetch_with_retry(
        self,
        request: FetchRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Outcome:
        """Fetch ``request``, retrying transient failures

        Args:
            request: Request to perform
            cancel_token: Fire to abort the fetch, including a pending backoff

        Returns:
            ``Success(payload)`` or ``Failure(classification)`` of the last attempt
        """
        token = cancel_token or CancellationToken()
        policy = request.policy
        attempt_indexes = itertools.count()
        records: List[AttemptRecord] = []

        def _attempt() -> AttemptRecord:
            record = self.executor.execute(request, next(attempt_indexes), token)
            records.append(record)
            self._notify(record)
            return record

        def _backoff(seconds: float) -> None:
            if self.sleep(seconds, token):
                raise BackoffCancelled()

        def _before_sleep(retry_state: RetryCallState) -> None:
            record = retry_state.outcome.result()
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                f"{request.method} {request.url} failed "
                f"(attempt {record.attempt_index + 1}/{policy.max_attempts}): "
                f"{record.outcome.classification.describe()}. Retrying in {delay:.2f}s..."
            )

        retrying = Retrying(
            stop=stop_after_attempt(policy.max_attempts),
            # delay after attempt n (0-based) = base_delay * multiplier ** n
            wait=wait_exponential(
                multiplier=policy.base_delay,
                exp_base=policy.backoff_multiplier,
                min=0,
            ),
            retry=retry_if_result(_should_retry),
            sleep=_backoff,
            before_sleep=_before_sleep,
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

        try:
            last = retrying(_attempt)
        except BackoffCancelled:
            logger.info(f"{request.method} {request.url} cancelled during backoff after {len(records)} attempt(s)")
            return Failure(
                ErrorClassification(
                    kind=ErrorKind.CANCELLED,
                    message=f"Cancelled by caller before attempt {len(records) + 1}",
                )
            )

        outcome = last.outcome
        if isinstance(outcome, Success):
            if last.attempt_index > 0:
                logger.info(f"{request.method} {request.url} succeeded on attempt {last.attempt_index + 1}")
            return outcome

        classification = outcome.classification
        if classification.kind == ErrorKind.CANCELLED:
            logger.info(f"{request.method} {request.url} cancelled by caller")
        elif classification.retryable:
            logger.error(
                f"{request.method} {request.url} failed after {len(records)} attempts: {classification.describe()}"
            )
        else:
            logger.error(f"{request.method} {request.url} failed (not retryable): {classification.describe()}")
        return outcome

    def _notify(self, record: AttemptRecord) -> None:
        if self.observer is None:
            return
        try:
            self.observer(record)
        except Exception as e:  # observers must not affect control flow
            logger.warning(f"Attempt observer raised {type(e).__name__}: {e}")


def fetch_with_retry(
    request: FetchRequest,
    transport: Optional[Transport] = None,
    *,
    cancel_token: Optional[CancellationToken] = None,
    observer: Optional[AttemptObserver] = None,
) -> Outcome:
    """Fetch ``request`` with retries using ``transport`` (a fresh
    ``RequestsTransport`` when omitted)."""
    if transport is not None:
        orchestrator = RetryOrchestrator(RequestExecutor(transport), observer=observer)
        return orchestrator.fetch_with_retry(request, cancel_token)

    with RequestsTransport() as owned_transport:
        orchestrator = RetryOrchestrator(RequestExecutor(owned_transport), observer=observer)
        return orchestrator.fetch_with_retry(request, cancel_token)
