"""Clone, fetch and index a single repository.

The three stages always run in order under one shared deadline. Each stage is
best-effort: a failed clone (for example because the repository already
exists) must not stop the fetch and index stages, so the outcome of every
command is only logged by the runner. The one failure surfaced to the caller
is an unresolvable repository path.

Concurrent runs for the same RepoID are not serialized and may race on the
same bare repository and index shards.
"""

import logging
import os
import time
from typing import Callable

from models.index_request import IndexRequest
from utils.command_runner import CommandInvocation, CommandRunner, Deadline
from utils.service_config import ServiceConfig

logger = logging.getLogger(__name__)

CLONE_PROGRAM = "zoekt-git-clone"
GIT_PROGRAM = "git"
INDEX_PROGRAM = "zoekt-git-index"


class RepoPathError(ValueError):
    """Raised when the bare repository path cannot be resolved."""


def repo_path_for(repo_dir: str, repo_id: int) -> str:
    """
    Absolute path of the bare clone for a repository: {repo_dir}/{repo_id}.git.

    Raises:
        RepoPathError: If the path cannot be made absolute.
    """
    try:
        return os.path.abspath(os.path.join(repo_dir, f"{repo_id}.git"))
    except OSError as exc:
        raise RepoPathError(f"cannot resolve repository path for {repo_id} in {repo_dir}: {exc}") from exc


def clone_invocation(config: ServiceConfig, request: IndexRequest) -> CommandInvocation:
    # RepoID doubles as the clone name so the on-disk path never depends on the URL.
    repo_id = str(request.RepoID)
    return CommandInvocation(
        CLONE_PROGRAM,
        ("-dest", config.repo_dir, "-name", repo_id, "-repoid", repo_id, request.CloneURL),
    )


def fetch_invocation(git_repo_path: str) -> CommandInvocation:
    return CommandInvocation(GIT_PROGRAM, ("-C", git_repo_path, "fetch"))


def index_invocation(config: ServiceConfig, git_repo_path: str) -> CommandInvocation:
    return CommandInvocation(INDEX_PROGRAM, ("-index", config.index_dir, git_repo_path))


def run_index_pipeline(
    config: ServiceConfig,
    request: IndexRequest,
    runner: CommandRunner,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """
    Run clone -> fetch -> index for one repository.

    Args:
        config: Service configuration providing repo/index directories and
            the pipeline timeout.
        request: The decoded index request.
        runner: Executes each stage; its outcomes are discarded.
        clock: Monotonic clock for the shared deadline.

    Raises:
        RepoPathError: If the bare repository path cannot be resolved. The
            fetch and index stages are skipped in that case.
    """
    with Deadline(config.index_timeout, clock=clock) as scope:
        runner.run(scope, clone_invocation(config, request))

        git_repo_path = repo_path_for(config.repo_dir, request.RepoID)

        runner.run(scope, fetch_invocation(git_repo_path))
        runner.run(scope, index_invocation(config, git_repo_path))

    logger.info("Finished indexing pipeline for repo %s", request.RepoID)
