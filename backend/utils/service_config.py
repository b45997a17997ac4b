"""Process configuration for the index server.

Resolves the working directories and listen address from command-line or
environment input. Directory defaults are derived from the data directory.
"""

import os
import re
from dataclasses import dataclass
from typing import Optional

DEFAULT_LISTEN = ":6060"
DEFAULT_INDEX_TIMEOUT = "1h"

REPOS_SUBDIR = "repos"
INDEX_SUBDIR = "index"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION = re.compile(r"(?:(?:\d+(?:\.\d*)?|\.\d+)(?:ns|us|µs|ms|s|m|h))+")


def parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Accepts Go-style duration strings ("90s", "15m", "1h30m", "250ms") or a
    bare number of seconds ("30", "0.5").

    Raises:
        ValueError: If the value cannot be parsed or is not positive.
    """
    text = (value or "").strip()
    if not text:
        raise ValueError("duration cannot be empty")

    try:
        seconds = float(text)
    except ValueError:
        if not _DURATION.fullmatch(text):
            raise ValueError(f"invalid duration: {value!r}") from None
        seconds = sum(
            float(amount) * _DURATION_UNITS[unit]
            for amount, unit in _DURATION_PART.findall(text)
        )

    if seconds <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return seconds


def parse_listen_address(listen: str) -> tuple[str, int]:
    """
    Split a listen address into (host, port).

    ":6060" listens on all interfaces; "[::1]:6060" is an IPv6 literal.
    """
    host, sep, port_text = (listen or "").rpartition(":")
    if not sep:
        raise ValueError(f"listen address must be host:port, got {listen!r}")

    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    if not host:
        host = "0.0.0.0"

    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port in listen address {listen!r}") from None
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range in listen address {listen!r}")

    return host, port


@dataclass(frozen=True)
class ServiceConfig:
    """Immutable runtime configuration, built once at process start."""

    data_dir: str
    repo_dir: str
    index_dir: str
    listen: str = DEFAULT_LISTEN
    index_timeout: float = 3600.0  # seconds

    @classmethod
    def from_options(
        cls,
        data_dir: str,
        index_dir: Optional[str] = None,
        listen: str = DEFAULT_LISTEN,
        index_timeout: float = 3600.0,
    ) -> "ServiceConfig":
        """
        Build a config from raw process options.

        The repo directory is always {data_dir}/repos; the index directory
        defaults to {data_dir}/index unless overridden.

        Raises:
            ValueError: If data_dir is empty, the timeout is not positive, or
                the listen address is malformed.
        """
        if not data_dir or not data_dir.strip():
            raise ValueError("must set data_dir")
        if index_timeout <= 0:
            raise ValueError("index_timeout must be positive")
        parse_listen_address(listen)

        return cls(
            data_dir=data_dir,
            repo_dir=os.path.join(data_dir, REPOS_SUBDIR),
            index_dir=index_dir or os.path.join(data_dir, INDEX_SUBDIR),
            listen=listen,
            index_timeout=index_timeout,
        )

    @property
    def managed_directories(self) -> tuple[str, str, str]:
        """Directories that must exist before the HTTP surface starts."""
        return (self.data_dir, self.index_dir, self.repo_dir)
