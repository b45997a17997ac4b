"""API route definitions for the index server."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, Response
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from models.index_request import IndexRequest
from services.index_pipeline import RepoPathError, run_index_pipeline
from utils.command_runner import CommandRunner
from utils.directories import empty_directory
from utils.service_config import ServiceConfig

logger = logging.getLogger(__name__)

router = APIRouter()

JSON_PARSER_ERROR = "JSON parser error"


def get_config(request: Request) -> ServiceConfig:
    return request.app.state.config


def get_command_runner(request: Request) -> CommandRunner:
    return request.app.state.command_runner


def _plain_error(message: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(message + "\n", status_code=status_code)


@router.get("/health")
async def health_check() -> dict:
    """
    Lightweight endpoint for uptime checks.

    Returns:
        dict: Health status payload.
    """
    return {"status": "healthy"}


@router.post("/index")
async def index_repository(
    request: Request,
    config: ServiceConfig = Depends(get_config),
    runner: CommandRunner = Depends(get_command_runner),
) -> Response:
    """
    Clone, fetch and index one repository, blocking until all stages ran.

    Request body:
        {"CloneURL": "https://example.com/repository.git", "RepoID": 100}

    Unknown keys are rejected. Stage failures are only logged, so a 200
    does not guarantee the index was produced.

    Returns:
        200 with an empty body once the pipeline finished.
        400 "JSON parser error" if the body cannot be decoded or the
        repository path cannot be resolved.
    """
    body = await request.body()
    try:
        index_request = IndexRequest.model_validate_json(body)
    except ValidationError as exc:
        logger.warning("Error decoding index request: %s", exc)
        return _plain_error(JSON_PARSER_ERROR, 400)

    try:
        await run_in_threadpool(run_index_pipeline, config, index_request, runner)
    except RepoPathError as exc:
        logger.warning("Error loading git repo path: %s", exc)
        return _plain_error(JSON_PARSER_ERROR, 400)

    return Response(status_code=200)


@router.post("/truncate")
def truncate(config: ServiceConfig = Depends(get_config)) -> Response:
    """
    Delete all cached repositories and index shards.

    The repo directory is emptied first; if that fails the index directory
    is left alone. Removals that already happened are not rolled back.

    Returns:
        200 with an empty body, or 500 naming the directory that failed.
    """
    try:
        empty_directory(config.repo_dir)
    except OSError as exc:
        logger.error("Failed to empty repoDir %s: %s", config.repo_dir, exc)
        return _plain_error("Failed to delete repoDir", 500)

    try:
        empty_directory(config.index_dir)
    except OSError as exc:
        logger.error("Failed to empty indexDir %s: %s", config.index_dir, exc)
        return _plain_error("Failed to delete indexDir", 500)

    logger.info("Truncated %s and %s", config.repo_dir, config.index_dir)
    return Response(status_code=200)
