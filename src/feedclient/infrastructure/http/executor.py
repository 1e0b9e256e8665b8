"""Request executor - one deadline-bounded HTTP attempt"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from feedclient.domain.models.classification import ErrorClassification
from feedclient.domain.models.fetch_request import FetchRequest
from feedclient.domain.models.outcome import AttemptRecord, Failure, Success
from feedclient.infrastructure.http.cancellation import CancellationToken, DeadlineToken
from feedclient.infrastructure.http.classifier import classify
from feedclient.infrastructure.http.transport import Transport
from feedclient.infrastructure.http.validator import validate_response

logger = logging.getLogger(__name__)


class RequestExecutor:
    """Runs exactly one transport call per ``execute`` and records its outcome.

    Retrying is not this class's business; see ``RetryOrchestrator``.
    """

    def __init__(self, transport: Transport, clock: Callable[[], float] = time.monotonic):
        """Initialize executor

        Args:
            transport: Transport used for the network exchange
            clock: Monotonic clock in seconds, used for ``duration_ms``
        """
        self.transport = transport
        self.clock = clock

    def execute(
        self,
        request: FetchRequest,
        attempt_index: int,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AttemptRecord:
        """Perform one attempt

        Args:
            request: Request to send
            attempt_index: Zero-based index of this attempt
            cancel_token: Caller token for the whole fetch; firing it aborts
                this attempt as cancelled

        Returns:
            AttemptRecord; failures are classified, never raised
        """
        started_at = datetime.now(timezone.utc)
        start = self.clock()

        deadline = DeadlineToken(request.timeout, parent=cancel_token)
        try:
            response = self.transport.send(request, deadline)
            result = validate_response(response, request.expected_content_type)
        except Exception as e:  # every transport or validation failure is classified
            outcome = Failure(classify(e))
        else:
            if isinstance(result, ErrorClassification):
                outcome = Failure(result)
            else:
                outcome = Success(result)
        finally:
            deadline.retire()

        duration_ms = max(0, int(round((self.clock() - start) * 1000)))
        record = AttemptRecord(
            attempt_index=attempt_index,
            started_at=started_at,
            duration_ms=duration_ms,
            outcome=outcome,
        )

        if isinstance(outcome, Success):
            logger.debug(f"Attempt {attempt_index} {request.method} {request.url} succeeded in {duration_ms}ms")
        else:
            logger.debug(
                f"Attempt {attempt_index} {request.method} {request.url} failed in {duration_ms}ms: "
                f"{outcome.classification.describe()}"
            )
        return record
