"""External command execution for the indexing pipeline.

Commands are run best-effort: failures are logged together with the captured
output and reported back as a CommandOutcome, never raised. Callers that only
care about side effects (the indexing pipeline) are free to discard it.
"""

import logging
import subprocess
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

DEADLINE_EXCEEDED = "deadline exceeded"


class Deadline:
    """
    Cancellation scope that expires a fixed time after it is created.

    A single Deadline is shared by every stage of one pipeline run, so time
    spent in an early stage reduces the budget of the later ones. Leaving the
    ``with`` block cancels the scope.
    """

    def __init__(self, timeout: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = clock() + timeout
        self._cancelled = False

    def __enter__(self) -> "Deadline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def expired(self) -> bool:
        return self._cancelled or self._clock() >= self._expires_at

    def remaining(self) -> float:
        """Seconds left before expiry (0.0 once expired)."""
        if self._cancelled:
            return 0.0
        return max(0.0, self._expires_at - self._clock())


@dataclass(frozen=True)
class CommandInvocation:
    """One external process launch."""

    program: str
    args: tuple[str, ...] = ()
    cwd: Optional[str] = None

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


@dataclass
class CommandOutcome:
    """Result of one invocation; returncode is None when the process never ran."""

    argv: list[str]
    returncode: Optional[int] = None
    stdout: bytes = b""
    stderr: bytes = b""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class CommandRunner(Protocol):
    """Anything that can run a command within a cancellation scope."""

    def run(self, scope: Deadline, invocation: CommandInvocation) -> CommandOutcome:
        ...


def format_argv(argv: list[str]) -> str:
    return "[" + " ".join(argv) + "]"


def _log_failure(outcome: CommandOutcome) -> None:
    logger.warning(
        "command %s failed: %s\nOUT: %s\nERR: %s",
        format_argv(outcome.argv),
        outcome.error,
        outcome.stdout.decode("utf-8", errors="replace"),
        outcome.stderr.decode("utf-8", errors="replace"),
    )


class SubprocessCommandRunner:
    """Runs commands as real subprocesses with empty stdin and captured output."""

    def run(self, scope: Deadline, invocation: CommandInvocation) -> CommandOutcome:
        argv = invocation.argv
        logger.info("run %s", format_argv(argv))

        if scope.expired:
            outcome = CommandOutcome(argv=argv, error=DEADLINE_EXCEEDED)
            _log_failure(outcome)
            return outcome

        try:
            completed = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                cwd=invocation.cwd,
                timeout=scope.remaining(),
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            # subprocess.run kills the child before re-raising.
            outcome = CommandOutcome(
                argv=argv,
                stdout=exc.stdout or b"",
                stderr=exc.stderr or b"",
                error=f"{DEADLINE_EXCEEDED} after {exc.timeout:.3f}s",
            )
        except OSError as exc:
            outcome = CommandOutcome(argv=argv, error=str(exc))
        else:
            outcome = CommandOutcome(
                argv=argv,
                returncode=completed.returncode,
                stdout=completed.stdout,
                stderr=completed.stderr,
                error=None if completed.returncode == 0 else f"exit status {completed.returncode}",
            )

        if not outcome.ok:
            _log_failure(outcome)
        return outcome


@dataclass
class RecordingCommandRunner:
    """
    Records invocations instead of running them.

    Each call appends the argv to ``history``. The optional ``hook`` is called
    with (scope, invocation) first, which lets callers observe the scope a
    stage was started with.
    """

    history: list[list[str]] = field(default_factory=list)
    hook: Optional[Callable[[Deadline, CommandInvocation], None]] = None

    def run(self, scope: Deadline, invocation: CommandInvocation) -> CommandOutcome:
        if self.hook is not None:
            self.hook(scope, invocation)
        self.history.append(invocation.argv)
        return CommandOutcome(argv=invocation.argv, returncode=0)
