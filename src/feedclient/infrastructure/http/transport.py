"""HTTP transports.

A transport performs exactly one network exchange for a ``FetchRequest`` and
honours a cancellation token. It never retries and never interprets the
response beyond returning status, headers and body.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple, Union

import requests
from requests.structures import CaseInsensitiveDict

from feedclient.domain.models.fetch_request import FetchRequest
from feedclient.infrastructure.http.cancellation import AttemptCancelled, CancellationToken

logger = logging.getLogger(__name__)


def parse_content_type(value: Optional[str]) -> Tuple[str, Dict[str, str]]:
    """Split a Content-Type header into a lower-cased media type and its params"""
    if not value:
        return "", {}
    media_type, *raw_params = value.split(";")
    params = {}
    for raw in raw_params:
        key, sep, param_value = raw.partition("=")
        if sep:
            params[key.strip().lower()] = param_value.strip().strip('"')
    return media_type.strip().lower(), params


@dataclass(frozen=True)
class TransportResponse:
    """Completed HTTP exchange as seen by the client"""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=CaseInsensitiveDict)
    content: bytes = b""
    url: str = ""

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            object.__setattr__(self, "headers", CaseInsensitiveDict(self.headers))

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    @property
    def media_type(self) -> str:
        return parse_content_type(self.content_type)[0]

    @property
    def encoding(self) -> str:
        return parse_content_type(self.content_type)[1].get("charset", "utf-8")

    def text(self) -> str:
        """Body decoded leniently, for error messages"""
        try:
            return self.content.decode(self.encoding, errors="replace")
        except LookupError:
            return self.content.decode("utf-8", errors="replace")


class Transport(ABC):
    """Abstract base class for transports"""

    @abstractmethod
    def send(self, request: FetchRequest, token: CancellationToken) -> TransportResponse:
        """Perform one HTTP exchange

        Args:
            request: Request to send
            token: Fires when the attempt must be abandoned

        Returns:
            The completed response, whatever its status

        Raises:
            AttemptCancelled: If the token fired before the exchange completed
            requests.exceptions.RequestException: On network-level failure
        """
        pass

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class RequestsTransport(Transport):
    """Transport backed by a ``requests.Session``.

    ``requests`` has no cancellation hook, so every exchange runs on a worker
    thread and the calling thread waits for whichever comes first: the
    response or the token. An abandoned worker finishes on its own because
    the socket timeout equals the attempt timeout.
    """

    DEFAULT_HEADERS = {"Accept": "application/json"}

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        max_workers: int = 4,
        follow_redirects: bool = True,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.session = session or requests.Session()
        self.follow_redirects = follow_redirects
        self.default_headers = dict(self.DEFAULT_HEADERS if default_headers is None else default_headers)
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="feedclient")

    def _exchange(self, request: FetchRequest) -> TransportResponse:
        headers = dict(self.default_headers)
        headers.update(request.headers)
        resp = self.session.request(
            request.method,
            request.url,
            headers=headers,
            data=request.body,
            timeout=request.timeout,
            allow_redirects=self.follow_redirects,
        )
        return TransportResponse(
            status_code=resp.status_code,
            headers=resp.headers,
            content=resp.content,
            url=resp.url,
        )

    def send(self, request: FetchRequest, token: CancellationToken) -> TransportResponse:
        token.raise_if_cancelled()
        logger.debug(f"HTTP {request.method} {request.url}")

        future = self._pool.submit(self._exchange, request)
        settled = threading.Event()
        future.add_done_callback(lambda _f: settled.set())
        unregister = token.add_callback(lambda _reason: settled.set())
        try:
            settled.wait()
        finally:
            unregister()

        if not future.done():
            future.cancel()
            raise AttemptCancelled(token.reason)
        return future.result()

    def close(self) -> None:
        self._pool.shutdown(wait=False)
        self.session.close()


Scripted = Union[TransportResponse, BaseException, Callable[[FetchRequest, CancellationToken], TransportResponse]]


class MockTransport(Transport):
    """Transport that replays a script instead of touching the network.

    Each ``send`` pops the next entry: a ``TransportResponse`` is returned, an
    exception is raised, a callable is invoked with ``(request, token)``. The
    last entry repeats once the script runs out.
    """

    def __init__(self, script: Optional[List[Scripted]] = None):
        self._script: Deque[Scripted] = deque(script or [])
        self._last: Optional[Scripted] = None
        self.requests: List[FetchRequest] = []

    @classmethod
    def json(cls, payload: Any, status_code: int = 200) -> "MockTransport":
        return cls([json_response(payload, status_code)])

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def send(self, request: FetchRequest, token: CancellationToken) -> TransportResponse:
        token.raise_if_cancelled()
        self.requests.append(request)
        if self._script:
            self._last = self._script.popleft()
        entry = self._last
        if entry is None:
            raise requests.exceptions.ConnectionError("MockTransport script is empty")
        if isinstance(entry, BaseException):
            raise entry
        if callable(entry):
            return entry(request, token)
        return entry


def json_response(payload: Any, status_code: int = 200, url: str = "") -> TransportResponse:
    """Build a JSON ``TransportResponse``; handy for scripts and tests"""
    return TransportResponse(
        status_code=status_code,
        headers={"Content-Type": "application/json"},
        content=json.dumps(payload).encode("utf-8"),
        url=url,
    )
