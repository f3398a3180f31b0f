"""Console logging for deployment runs.

Every record carries the network the run targets (``-`` outside a run), so
interleaved output from several ``nftdeploy migrate`` invocations stays
attributable. Forge's own stdout/stderr is logged by ``nftdeploy.proc`` and
has its own level, because it is noisy and usually only wanted when a
deployment fails.
"""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
import logging
import os
import sys
from typing import Iterator

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(network)s | %(name)s | %(message)s"
FORGE_OUTPUT_LOGGER = "nftdeploy.proc"

_NO_NETWORK = "-"
_LEVEL_COLORS = {
    logging.DEBUG: "\x1b[36m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[1;31m",
}
_RESET = "\x1b[0m"

_current_network: ContextVar[str] = ContextVar("nftdeploy_network", default=_NO_NETWORK)


@contextmanager
def network_context(network: str) -> Iterator[None]:
    token = _current_network.set(network)
    try:
        yield
    finally:
        _current_network.reset(token)


class NetworkFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "network"):
            record.network = _current_network.get()
        return True


class _DeployFormatter(logging.Formatter):
    def __init__(self, *, use_color: bool) -> None:
        super().__init__(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        self._use_color = use_color

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        color = _LEVEL_COLORS.get(record.levelno) if self._use_color else None
        return f"{color}{line}{_RESET}" if color else line


def _use_color() -> bool:
    return not os.getenv("NO_COLOR") and sys.stderr.isatty()


def resolve_level(level: str | int | None, *, env_var: str = "NFTDEPLOY_LOG_LEVEL", default: int = logging.INFO) -> int:
    if isinstance(level, int):
        return level
    candidate = level or os.getenv(env_var)
    if not candidate:
        return default
    resolved = logging.getLevelName(candidate.upper())
    return resolved if isinstance(resolved, int) else default


def configure_logging(
    *,
    level: str | int | None = None,
    forge_level: str | int | None = None,
    force: bool = False,
) -> None:
    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    forge_resolved = resolve_level(forge_level, env_var="NFTDEPLOY_FORGE_LOG_LEVEL", default=logging.WARNING)
    logging.getLogger(FORGE_OUTPUT_LOGGER).setLevel(forge_resolved)
    # forge output may be more verbose than everything else
    resolved_level = min(root.level, forge_resolved)

    ours = [h for h in root.handlers if any(isinstance(f, NetworkFilter) for f in h.filters)]
    if ours and not force:
        for handler in ours:
            handler.setLevel(resolved_level)
        return

    for handler in ours:
        root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setLevel(resolved_level)
    handler.addFilter(NetworkFilter())
    handler.setFormatter(_DeployFormatter(use_color=_use_color()))
    root.addHandler(handler)
