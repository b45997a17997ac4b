"""Entry point for the dynamic index server.

The server listens for indexing commands and (re)indexes the requested
repositories with the zoekt tools.
"""

import logging
from typing import Optional

import click
import uvicorn
from fastapi import FastAPI

from api.routes import router as api_router
from utils.command_runner import CommandRunner, SubprocessCommandRunner
from utils.directories import ensure_directories
from utils.service_config import (
    DEFAULT_INDEX_TIMEOUT,
    DEFAULT_LISTEN,
    ServiceConfig,
    parse_duration,
    parse_listen_address,
)
from utils.tooling import locate_git, prepend_executable_dir_to_path

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_app(config: ServiceConfig, runner: Optional[CommandRunner] = None) -> FastAPI:
    """Build the FastAPI application bound to one configuration."""
    app = FastAPI(title="Dynamic Index Server", version="0.1.0")
    app.state.config = config
    app.state.command_runner = runner if runner is not None else SubprocessCommandRunner()
    app.include_router(api_router)
    return app


def _duration_option(ctx, param, value):
    try:
        return parse_duration(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


@click.command()
@click.option("--data_dir", envvar="INDEXSERVER_DATA_DIR", default="", help="directory holding all data.")
@click.option(
    "--index_dir",
    envvar="INDEXSERVER_INDEX_DIR",
    default="",
    help="directory holding index shards. Defaults to $data_dir/index/",
)
@click.option(
    "--index_timeout",
    envvar="INDEXSERVER_INDEX_TIMEOUT",
    default=DEFAULT_INDEX_TIMEOUT,
    callback=_duration_option,
    help="kill index job after this much time (e.g. 90s, 15m, 1h).",
)
@click.option("--listen", envvar="INDEXSERVER_LISTEN", default=DEFAULT_LISTEN, help="listen on this address.")
@click.option(
    "--log_level",
    envvar="INDEXSERVER_LOG_LEVEL",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
)
def cli(data_dir: str, index_dir: str, index_timeout: float, listen: str, log_level: str) -> None:
    """Listen for indexing commands and reindex the requested repositories."""
    logging.basicConfig(level=log_level.upper(), format=LOG_FORMAT)

    try:
        config = ServiceConfig.from_options(
            data_dir,
            index_dir=index_dir or None,
            listen=listen,
            index_timeout=index_timeout,
        )
    except ValueError as exc:
        raise click.UsageError(str(exc)) from exc

    prepend_executable_dir_to_path()
    try:
        locate_git()
    except RuntimeError as exc:
        logger.critical("%s", exc)
        raise SystemExit(1) from exc

    ensure_directories(config.managed_directories)

    host, port = parse_listen_address(config.listen)
    logger.info("Listening on %s:%s (data_dir=%s, index_dir=%s)", host, port, config.data_dir, config.index_dir)
    uvicorn.run(create_app(config), host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    cli()
