"""CLI interface for feedclient"""

import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Tuple

import click

from feedclient.application.feed_service import FeedService
from feedclient.application.news_service import NewsService
from feedclient.domain.models.outcome import AttemptRecord, FetchError
from feedclient.domain.models.page import Page
from feedclient.infrastructure.config.config_manager import ConfigManager, ConfigurationError
from feedclient.infrastructure.http.executor import RequestExecutor
from feedclient.infrastructure.http.transport import RequestsTransport
from feedclient.infrastructure.retry import RetryOrchestrator

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, enabled: bool = True) -> None:
    """Setup logging configuration

    Args:
        verbose: DEBUG level regardless of ``enabled``
        enabled: INFO level when True, WARNING only when False
    """
    if verbose:
        level = logging.DEBUG
    elif enabled:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)
    for logger_name in logging.Logger.manager.loggerDict:
        logging.getLogger(logger_name).setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.error(message, exc_info=verbose)
    else:
        logger.error(message)
    raise click.ClickException(message)


def failure_hint(error: FetchError) -> str:
    """Tell the user whether retrying later can help"""
    if error.retryable:
        return "The service could not be reached reliably. Please try again."
    return "This request will not succeed without a different input or configuration."


def _log_attempt(record: AttemptRecord) -> None:
    status = "ok" if record.succeeded else record.outcome.classification.kind.value
    logger.debug(f"attempt={record.attempt_index} duration_ms={record.duration_ms} outcome={status}")


def _echo_json(payload: Any) -> None:
    if isinstance(payload, Page):
        payload = payload.raw
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _load_config(ctx: click.Context) -> ConfigManager:
    verbose = ctx.obj.get("verbose", False)
    try:
        config_manager = ConfigManager(
            config_path=ctx.obj.get("config_path"),
            environment=ctx.obj.get("environment"),
        )
    except ConfigurationError as e:
        _die(str(e), verbose=verbose, exc=e)
    setup_logging(verbose, enabled=config_manager.get_environment_config().enable_logging)
    return config_manager


@contextmanager
def _orchestrator(ctx: click.Context) -> Iterator[Tuple[ConfigManager, RetryOrchestrator]]:
    """Yield the loaded config and an orchestrator over a fresh transport"""
    config_manager = _load_config(ctx)
    transport_config = config_manager.get_transport_config()
    with RequestsTransport(
        max_workers=transport_config.max_workers,
        follow_redirects=transport_config.follow_redirects,
    ) as transport:
        observer = _log_attempt if ctx.obj.get("verbose") else None
        yield config_manager, RetryOrchestrator(RequestExecutor(transport), observer=observer)


def _service_kwargs(config_manager: ConfigManager) -> dict:
    return {
        "timeout": config_manager.get_environment_config().timeout,
        "retry": config_manager.get_retry_config(),
        "expected_content_type": config_manager.get_transport_config().expected_content_type,
    }


def _run(ctx: click.Context, call: Callable[[], Any]) -> None:
    """Run a service call and print its result, exiting cleanly on failure"""
    verbose = ctx.obj.get("verbose", False)
    try:
        _echo_json(call())
    except FetchError as e:
        _die(f"{e}\n{failure_hint(e)}", verbose=verbose, exc=e)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to .feedclient.yml config file",
)
@click.option(
    "--env",
    "environment",
    type=click.Choice(["development", "staging", "production"]),
    help="Backend environment. Overrides config and FEEDCLIENT_ENV.",
)
@click.pass_context
def cli(ctx, verbose: bool, config: Path, environment: str):
    """feedclient - resilient client for the news and feed services"""
    ctx.ensure_object(dict)
    setup_logging(verbose)
    ctx.obj["config_path"] = config
    ctx.obj["verbose"] = verbose
    ctx.obj["environment"] = environment


@cli.group()
def news():
    """Read news articles."""


def _news_command(ctx: click.Context, method: str, *args: Any, **kwargs: Any) -> None:
    with _orchestrator(ctx) as (config_manager, orchestrator):
        service = NewsService(
            config_manager.get_environment_config().news_service_url,
            orchestrator,
            **_service_kwargs(config_manager),
        )
        _run(ctx, lambda: getattr(service, method)(*args, **kwargs))


@news.command("list")
@click.option("--page", type=int, default=0, show_default=True)
@click.option("--size", type=int, default=20, show_default=True)
@click.option("--category", type=str)
@click.option("--source", type=str)
@click.option("--search", type=str)
@click.pass_context
def news_list(ctx, page: int, size: int, category: str, source: str, search: str):
    """List news articles."""
    _news_command(ctx, "get_all_news", page=page, size=size, category=category, source=source, search=search)


@news.command("get")
@click.argument("news_id", type=int)
@click.pass_context
def news_get(ctx, news_id: int):
    """Show a single article.

    NEWS_ID: Article ID
    """
    _news_command(ctx, "get_news_by_id", news_id)


@news.command("recent")
@click.option("--page", type=int, default=0, show_default=True)
@click.option("--size", type=int, default=20, show_default=True)
@click.option("--hours", type=int, default=24, show_default=True)
@click.pass_context
def news_recent(ctx, page: int, size: int, hours: int):
    """List articles from the last HOURS hours."""
    _news_command(ctx, "get_recent_news", page=page, size=size, hours=hours)


@news.command("trending")
@click.option("--page", type=int, default=0, show_default=True)
@click.option("--size", type=int, default=20, show_default=True)
@click.pass_context
def news_trending(ctx, page: int, size: int):
    """List trending articles."""
    _news_command(ctx, "get_trending_news", page=page, size=size)


@news.command("summary")
@click.argument("news_id", type=int)
@click.pass_context
def news_summary(ctx, news_id: int):
    """Show an article with its AI-generated summary.

    NEWS_ID: Article ID
    """
    _news_command(ctx, "get_news_with_summary", news_id)


@cli.group()
@click.option("--token", envvar="FEEDCLIENT_TOKEN", help="Bearer token (default: FEEDCLIENT_TOKEN env)")
@click.pass_context
def feed(ctx, token: str):
    """Read the post feed."""
    ctx.obj["token"] = token


def _feed_service(ctx: click.Context, config_manager: ConfigManager, orchestrator: RetryOrchestrator) -> FeedService:
    return FeedService(
        config_manager.get_environment_config().gateway_url,
        orchestrator,
        access_token=ctx.obj.get("token"),
        **_service_kwargs(config_manager),
    )


@feed.command("all")
@click.option("--page", type=int, default=0, show_default=True)
@click.option("--size", type=int, default=20, show_default=True)
@click.pass_context
def feed_all(ctx, page: int, size: int):
    """List the global feed."""
    with _orchestrator(ctx) as (config_manager, orchestrator):
        service = _feed_service(ctx, config_manager, orchestrator)
        _run(ctx, lambda: service.get_all_feeds(page=page, size=size))


@feed.command("post")
@click.argument("message", type=str)
@click.option("--image", "image_ids", multiple=True, help="ID of an uploaded image (repeatable)")
@click.option("--user-id", type=str, help="Author ID sent as userId")
@click.pass_context
def feed_post(ctx, message: str, image_ids: Tuple[str, ...], user_id: Optional[str]):
    """Publish a post.

    MESSAGE: Post text (max 280 characters)
    """
    if not ctx.obj.get("token"):
        _die("A bearer token is required to post (use --token or FEEDCLIENT_TOKEN)")
    with _orchestrator(ctx) as (config_manager, orchestrator):
        service = _feed_service(ctx, config_manager, orchestrator)
        try:
            _run(ctx, lambda: service.create_post(message, list(image_ids), user_id=user_id))
        except ValueError as e:
            _die(str(e))


@feed.command("user")
@click.argument("user_id", type=str)
@click.option("--page", type=int, default=0, show_default=True)
@click.option("--size", type=int, default=20, show_default=True)
@click.pass_context
def feed_user(ctx, user_id: str, page: int, size: int):
    """List posts by a user.

    USER_ID: User ID
    """
    with _orchestrator(ctx) as (config_manager, orchestrator):
        service = _feed_service(ctx, config_manager, orchestrator)
        _run(ctx, lambda: service.get_user_feeds(user_id, page=page, size=size))


@cli.command()
@click.pass_context
def health(ctx):
    """Check that the feed service is up."""
    with _orchestrator(ctx) as (config_manager, orchestrator):
        service = _feed_service(ctx, config_manager, orchestrator)
        if service.check_health():
            click.echo("Feed service is UP")
        else:
            raise click.ClickException(
                f"Feed service is not reachable at {config_manager.get_environment_config().gateway_url}"
            )


@cli.command("config")
@click.argument("key", required=False)
@click.pass_context
def show_config(ctx, key: Optional[str]):
    """Show the effective configuration.

    KEY: Optional dotted key, e.g. retry.max_retries
    """
    config_manager = _load_config(ctx)
    if key:
        value = config_manager.get(key)
        if value is None:
            _die(f"Unknown configuration key: {key}")
        click.echo(json.dumps(value, indent=2))
        return

    sample = config_manager.build_request(config_manager.get_environment_config().news_service_url)
    click.echo(json.dumps(config_manager.config.model_dump(), indent=2))
    click.echo(
        f"\nWorst-case wait per request: {sample.worst_case_wait():.1f}s "
        f"({sample.policy.max_attempts} attempts x {sample.timeout}s + backoff {sample.policy.delays()})"
    )


def main():
    """Main entry point"""
    cli(obj={})


if __name__ == "__main__":
    main()
