"""Tests for CLI interface"""

from __future__ import annotations

import json
import logging

import click
import pytest
from click.testing import CliRunner

from feedclient.cli import _die, cli, failure_hint, setup_logging
from feedclient.domain.models import ErrorClassification, ErrorKind, FetchError
from feedclient.infrastructure.http.transport import MockTransport, json_response


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    for name in (
        "FEEDCLIENT_ENV",
        "FEEDCLIENT_GATEWAY_URL",
        "FEEDCLIENT_FEED_URL",
        "FEEDCLIENT_NEWS_URL",
        "FEEDCLIENT_TIMEOUT",
        "FEEDCLIENT_TOKEN",
    ):
        monkeypatch.delenv(name, raising=False)
    # no backoff sleeps in CLI runs
    monkeypatch.setenv("FEEDCLIENT_MAX_RETRIES", "0")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fake_transport(monkeypatch):
    """Replace the network transport the CLI builds with a scripted one"""
    holder = {}

    def install(script):
        transport = MockTransport(script)

        def factory(**kwargs):
            holder["kwargs"] = kwargs
            return transport

        monkeypatch.setattr("feedclient.cli.RequestsTransport", factory)
        holder["transport"] = transport
        return holder

    return install


class TestSetupLogging:
    """Tests for setup_logging function"""

    def test_setup_logging_info_level(self):
        """Test that logging is set to INFO level by default"""
        setup_logging(verbose=False)
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test that logging is set to DEBUG level when verbose"""
        setup_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_disabled(self):
        """Test that disabled logging keeps warnings only"""
        setup_logging(verbose=False, enabled=False)
        assert logging.getLogger().level == logging.WARNING

    def test_verbose_wins_over_disabled(self):
        setup_logging(verbose=True, enabled=False)
        assert logging.getLogger().level == logging.DEBUG


class TestDie:
    """Tests for _die function"""

    def test_die_without_exception(self):
        """Test _die without exception"""
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=False)

    def test_die_with_exception_verbose(self):
        """Test _die with exception in verbose mode"""
        exc = ValueError("Test exception")
        with pytest.raises(click.ClickException, match="Test error"):
            _die("Test error", verbose=True, exc=exc)


class TestFailureHint:
    """Tests for failure_hint function"""

    def test_retryable_failure(self):
        error = FetchError(ErrorClassification(ErrorKind.TIMEOUT, "Request timeout after 10s"))
        assert "try again" in failure_hint(error)

    def test_permanent_failure(self):
        error = FetchError(ErrorClassification(ErrorKind.CLIENT_ERROR, "HTTP 404", http_status=404))
        assert "will not succeed" in failure_hint(error)


class TestCommands:
    """Tests for CLI commands"""

    def test_config_command(self):
        """Test config command prints effective settings"""
        result = CliRunner().invoke(cli, ["--env", "production", "config"], catch_exceptions=False)

        assert result.exit_code == 0
        assert '"environment": "production"' in result.output
        assert "Worst-case wait per request: 10.0s" in result.output

    def test_invalid_config_file(self, tmp_path):
        """Test invalid config file exits with the validation message"""
        config_file = tmp_path / "bad.yml"
        config_file.write_text("retry:\n  max_retries: 99\n", encoding="utf-8")

        result = CliRunner().invoke(cli, ["--config", str(config_file), "config"])

        assert result.exit_code != 0
        assert "retry.max_retries" in result.output

    def test_news_list(self, fake_transport):
        """Test news list prints the page envelope"""
        holder = fake_transport([json_response({"content": [{"id": 1, "title": "Hello"}], "hasNext": False})])

        result = CliRunner().invoke(cli, ["news", "list", "--category", "sports"], catch_exceptions=False)

        assert result.exit_code == 0
        assert '"title": "Hello"' in result.output
        request = holder["transport"].requests[0]
        assert request.url.startswith("http://192.168.0.203:8084/api/news?")
        assert "category=sports" in request.url
        assert request.timeout == 15.0
        assert holder["kwargs"] == {"max_workers": 4, "follow_redirects": True}

    def test_news_get_not_found(self, fake_transport):
        """Test a client error exits non-zero with a hint"""
        fake_transport([json_response({"message": "News not found"}, 404)])

        result = CliRunner().invoke(cli, ["--env", "staging", "news", "get", "42"])

        assert result.exit_code != 0
        assert "News not found" in result.output
        assert "will not succeed" in result.output

    def test_feed_all_sends_token(self, fake_transport, monkeypatch):
        """Test feed token is taken from FEEDCLIENT_TOKEN"""
        monkeypatch.setenv("FEEDCLIENT_TOKEN", "secret")
        holder = fake_transport([json_response({"content": [], "last": True})])

        result = CliRunner().invoke(cli, ["feed", "all"], catch_exceptions=False)

        assert result.exit_code == 0
        assert holder["transport"].requests[0].headers["Authorization"] == "Bearer secret"

    def test_health_up(self, fake_transport):
        fake_transport([json_response({"status": "UP"})])
        result = CliRunner().invoke(cli, ["health"], catch_exceptions=False)
        assert result.exit_code == 0
        assert "Feed service is UP" in result.output

    def test_health_down(self, fake_transport):
        fake_transport([json_response({}, 503)])
        result = CliRunner().invoke(cli, ["health"])
        assert result.exit_code != 0
        assert "not reachable" in result.output

    def test_feed_post(self, fake_transport):
        """Test feed post sends the message as JSON"""
        holder = fake_transport([json_response({"id": "p1", "message": "Namaste"}, 201)])

        result = CliRunner().invoke(
            cli, ["feed", "--token", "secret", "post", "Namaste", "--image", "img-1"], catch_exceptions=False
        )

        assert result.exit_code == 0
        assert '"id": "p1"' in result.output
        request = holder["transport"].requests[0]
        assert request.method == "POST"
        assert request.url == "http://192.168.0.203:8080/api/feed/create"
        assert json.loads(request.body) == {"message": "Namaste", "imageIds": ["img-1"]}

    def test_feed_post_requires_token(self, fake_transport):
        holder = fake_transport([json_response({"id": "p1"}, 201)])

        result = CliRunner().invoke(cli, ["feed", "post", "Namaste"])

        assert result.exit_code != 0
        assert "bearer token is required" in result.output
        assert holder["transport"].call_count == 0

    def test_feed_post_rejects_empty_message(self, fake_transport):
        holder = fake_transport([json_response({"id": "p1"}, 201)])

        result = CliRunner().invoke(cli, ["feed", "--token", "secret", "post", "   "])

        assert result.exit_code != 0
        assert "Message cannot be empty" in result.output
        assert holder["transport"].call_count == 0

    def test_config_key_lookup(self):
        """Test config KEY prints a single value"""
        result = CliRunner().invoke(cli, ["config", "retry.max_retries"], catch_exceptions=False)

        assert result.exit_code == 0
        assert result.output.strip().splitlines()[-1] == "0"

    def test_config_unknown_key(self):
        result = CliRunner().invoke(cli, ["config", "retry.nope"])

        assert result.exit_code != 0
        assert "Unknown configuration key: retry.nope" in result.output
