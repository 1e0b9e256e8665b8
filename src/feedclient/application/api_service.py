"""Shared plumbing for backend service wrappers"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from feedclient.domain.config import RetryConfig
from feedclient.domain.models.classification import ErrorClassification, ErrorKind
from feedclient.domain.models.fetch_request import FetchRequest
from feedclient.domain.models.outcome import FetchError
from feedclient.domain.models.page import Page
from feedclient.infrastructure.http.cancellation import CancellationToken
from feedclient.infrastructure.retry import RetryOrchestrator

logger = logging.getLogger(__name__)


class ApiService:
    """Base class for thin wrappers around one backend service.

    Each call captures the service settings into a fresh ``FetchRequest``,
    runs it through the orchestrator and unwraps the outcome, raising
    ``FetchError`` on failure.
    """

    service_name = "api"

    def __init__(
        self,
        base_url: str,
        orchestrator: RetryOrchestrator,
        *,
        timeout: float = 10.0,
        retry: Optional[RetryConfig] = None,
        headers: Optional[Dict[str, str]] = None,
        expected_content_type: str = "application/json",
    ):
        """Initialize service

        Args:
            base_url: Service base URL, without trailing path
            orchestrator: Orchestrator performing the fetches
            timeout: Per-attempt timeout in seconds
            retry: Retry settings (defaults from RetryConfig)
            headers: Headers sent with every request
            expected_content_type: Media type successful responses must declare
        """
        if not base_url:
            raise ValueError(f"{self.service_name} base URL is required")
        self.base_url = base_url.rstrip("/")
        self.orchestrator = orchestrator
        self.timeout = timeout
        self.retry = retry or RetryConfig()
        self.headers = dict(headers or {})
        self.expected_content_type = expected_content_type

    def build_request(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        payload: Any = None,
    ) -> FetchRequest:
        """Build the FetchRequest for ``path``

        Args:
            path: Path below the base URL
            params: Query parameters; None and empty values are dropped
            method: HTTP method
            payload: JSON body, if any
        """
        url = f"{self.base_url}{path}"
        query = {k: v for k, v in (params or {}).items() if v is not None and v != ""}
        if query:
            url = f"{url}?{urlencode(query)}"
        settings: Dict[str, Any] = {
            "method": method,
            "headers": self.headers,
            "timeout": self.timeout,
            "max_retries": self.retry.max_retries,
            "base_delay": self.retry.base_delay,
            "backoff_multiplier": self.retry.backoff_multiplier,
            "expected_content_type": self.expected_content_type,
        }
        if payload is not None:
            return FetchRequest.with_json(url, payload, **settings)
        return FetchRequest(url=url, **settings)

    def _get(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        request = self.build_request(path, params)
        return self.orchestrator.fetch_with_retry(request, cancel_token).unwrap()

    def _post(
        self,
        path: str,
        payload: Any,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        request = self.build_request(path, method="POST", payload=payload)
        return self.orchestrator.fetch_with_retry(request, cancel_token).unwrap()

    def _get_page(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Page:
        payload = self._get(path, params, cancel_token)
        try:
            return Page.from_payload(payload)
        except (TypeError, ValueError) as e:
            logger.error(f"[{self.service_name}] Unexpected payload from {path}: {e}")
            raise FetchError(
                ErrorClassification(kind=ErrorKind.MALFORMED_RESPONSE, message=str(e), cause=e)
            ) from e
