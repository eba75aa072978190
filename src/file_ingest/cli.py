"""CLI entry point for the file ingestion service."""

import signal
import threading

import click
from loguru import logger

from .config import IngestionConfig
from .errors import ConfigError, DirectoryError
from .service import IngestionService

log = logger.bind(stage="cli")


@click.command()
@click.option(
    "--interval",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between directory scans (default: SCAN_INTERVAL or 60).",
)
@click.option(
    "--once",
    is_flag=True,
    help="Scan once, process everything found, and exit.",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)
def main(
    interval: float | None,
    once: bool,
    verbose: bool,
    config_file: str | None,
) -> None:
    """Poll INGESTION_DIR for .txt files and move them to COMPLETED_DIR or ERROR_DIR."""
    # Pass CLI flags as kwargs to avoid env pollution
    config_kwargs: dict[str, object] = {}
    if config_file:
        config_kwargs["_env_file"] = config_file
    if interval is not None:
        config_kwargs["scan_interval"] = interval
    if verbose:
        config_kwargs["log_level"] = "DEBUG"

    try:
        config = IngestionConfig.load(**config_kwargs)
        config.setup_logging()
    except (ConfigError, DirectoryError) as e:
        raise click.ClickException(str(e)) from e

    if config_file:
        log.debug(f"Loaded env from {config_file}")

    click.echo(f"Ingestion Directory: {config.ingestion_dir}")
    click.echo(f"Completed Directory: {config.completed_dir}")
    click.echo(f"Error Directory: {config.error_dir}")

    service = IngestionService(config)

    try:
        if once:
            result, stats = service.run_once()
            click.echo(
                f"Scan: {result.enqueued} enqueued, {result.rejected} rejected. "
                f"Processed: {stats.completed} completed, {stats.failed} failed, "
                f"{stats.skipped} skipped"
            )
            return

        stop_event = threading.Event()

        def _request_stop(signum, frame):
            log.info(f"Received {signal.Signals(signum).name}, stopping")
            stop_event.set()

        signal.signal(signal.SIGINT, _request_stop)
        signal.signal(signal.SIGTERM, _request_stop)
        service.run_until(stop_event)
    except DirectoryError as e:
        raise click.ClickException(str(e)) from e
