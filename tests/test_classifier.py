"""Tests for the error classifier"""

import pytest
import requests

from feedclient.domain.models import ErrorClassification, ErrorKind
from feedclient.infrastructure.http.cancellation import AttemptCancelled, CancelReason
from feedclient.infrastructure.http.classifier import ResponseValidationError, classify, error_detail
from feedclient.infrastructure.http.transport import TransportResponse, json_response


class TestExceptionClassification:
    """Tests for exceptions raised during an attempt"""

    def test_deadline_abort_is_timeout(self):
        result = classify(AttemptCancelled(CancelReason.DEADLINE))
        assert result.kind == ErrorKind.TIMEOUT
        assert result.retryable is True

    def test_caller_abort_is_cancelled(self):
        result = classify(AttemptCancelled(CancelReason.CALLER))
        assert result.kind == ErrorKind.CANCELLED
        assert result.retryable is False

    @pytest.mark.parametrize(
        "exc",
        [
            requests.exceptions.ConnectionError("Connection refused"),
            requests.exceptions.ChunkedEncodingError("broken stream"),
            ConnectionRefusedError(111, "ECONNREFUSED"),
            OSError("Network is unreachable"),
        ],
    )
    def test_network_errors_are_retryable(self, exc):
        result = classify(exc)
        assert result.kind == ErrorKind.NETWORK_FAILURE
        assert result.retryable is True
        assert result.cause is exc

    @pytest.mark.parametrize(
        "exc", [requests.exceptions.ReadTimeout("read"), requests.exceptions.ConnectTimeout("connect")]
    )
    def test_transport_timeouts(self, exc):
        result = classify(exc)
        assert result.kind == ErrorKind.TIMEOUT
        assert result.retryable is True

    @pytest.mark.parametrize(
        "exc",
        [
            requests.exceptions.MissingSchema("no schema"),
            requests.exceptions.InvalidURL("bad url"),
            requests.exceptions.TooManyRedirects("loop"),
        ],
    )
    def test_unusable_requests_are_client_errors(self, exc):
        result = classify(exc)
        assert result.kind == ErrorKind.CLIENT_ERROR
        assert result.retryable is False

    def test_validation_error_keeps_parse_cause(self):
        parse_error = ValueError("Expecting value")
        result = classify(ResponseValidationError("Invalid JSON body", http_status=200, cause=parse_error))
        assert result.kind == ErrorKind.MALFORMED_RESPONSE
        assert result.retryable is False
        assert result.cause is parse_error
        assert result.http_status == 200

    def test_unknown_exception_does_not_raise(self):
        result = classify(KeyError("surprise"))
        assert isinstance(result, ErrorClassification)
        assert result.kind == ErrorKind.NETWORK_FAILURE


class TestResponseClassification:
    """Tests for completed responses with a non-2xx status"""

    @pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
    def test_5xx_is_retryable_server_error(self, status):
        result = classify(json_response({}, status))
        assert result.kind == ErrorKind.SERVER_ERROR
        assert result.http_status == status
        assert result.retryable is True

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 409, 422, 429, 499])
    def test_4xx_is_not_retryable(self, status):
        result = classify(json_response({}, status))
        assert result.kind == ErrorKind.CLIENT_ERROR
        assert result.retryable is False

    def test_unfollowed_redirect_is_client_error(self):
        response = TransportResponse(302, {"Location": "https://elsewhere.test/"}, b"")
        result = classify(response)
        assert result.kind == ErrorKind.CLIENT_ERROR
        assert result.retryable is False
        assert "elsewhere.test" in result.message

    def test_retryable_is_deterministic(self):
        first = classify(json_response({"error": "a"}, 503))
        second = classify(json_response({"error": "b"}, 503))
        assert first.retryable == second.retryable


class TestErrorDetail:
    """Tests for error body summaries"""

    def test_json_message_field(self):
        assert error_detail(json_response({"message": "page too large"}, 400)) == "HTTP 400: page too large"

    def test_json_error_field(self):
        assert error_detail(json_response({"error": "Bad Gateway"}, 502)) == "HTTP 502: Bad Gateway"

    def test_html_error_page(self):
        response = TransportResponse(404, {"Content-Type": "text/html"}, b"<!DOCTYPE html><html>...</html>")
        assert error_detail(response) == "HTTP 404: server returned an HTML error page"

    def test_plain_text_is_truncated(self):
        response = TransportResponse(500, {"Content-Type": "text/plain"}, b"x" * 1000)
        detail = error_detail(response)
        assert detail.startswith("HTTP 500: ")
        assert len(detail) == len("HTTP 500: ") + 200

    def test_empty_body(self):
        assert error_detail(TransportResponse(503)) == "HTTP 503"
