from __future__ import annotations

from dataclasses import dataclass
import logging
import subprocess
from typing import Callable, Iterable, Literal

logger = logging.getLogger(__name__)

ErrorCategory = Literal["retryable", "fatal"]
CommandRunner = Callable[[list[str]], subprocess.CompletedProcess[str]]

REDACTED = "***"

_RETRYABLE_PATTERNS = (
    "timed out",
    "timeout",
    "connection refused",
    "connection reset",
    "error sending request",
    "temporarily unavailable",
    "too many requests",
    "rate limit",
    "nonce too low",
    "replacement transaction underpriced",
    "already known",
    "header not found",
)


@dataclass(frozen=True)
class CommandResult:
    command: list[str]
    returncode: int
    stdout: str
    stderr: str


class AdapterCommandError(RuntimeError):
    def __init__(
        self,
        *,
        message: str,
        result: CommandResult,
        category: ErrorCategory,
    ) -> None:
        self.result = result
        self.category = category
        super().__init__(self._build_message(message))

    @property
    def retryable(self) -> bool:
        return self.category == "retryable"

    def _build_message(self, message: str) -> str:
        detail = (self.result.stderr or self.result.stdout).strip()
        if len(detail) > 400:
            detail = f"{detail[:397]}..."
        cmd = " ".join(self.result.command)
        return (
            f"{message} (category={self.category}, returncode={self.result.returncode}, "
            f"command={cmd!r}, detail={detail!r})"
        )


def default_runner(command: list[str]) -> subprocess.CompletedProcess[str]:
    return subprocess.run(command, capture_output=True, text=True, check=False)


def classify_error(*, returncode: int, stderr: str, stdout: str) -> ErrorCategory:
    if returncode < 0:
        return "retryable"
    text = f"{stderr}\n{stdout}".lower()
    if any(pattern in text for pattern in _RETRYABLE_PATTERNS):
        return "retryable"
    return "fatal"


def redact_command(command: list[str], secret_flags: Iterable[str]) -> list[str]:
    """Return a copy of ``command`` with the value after each secret flag masked."""
    flags = set(secret_flags)
    redacted: list[str] = []
    mask_next = False
    for token in command:
        if mask_next:
            redacted.append(REDACTED)
            mask_next = False
            continue
        name, sep, _ = token.partition("=")
        if sep and name in flags:
            redacted.append(f"{name}={REDACTED}")
            continue
        redacted.append(token)
        mask_next = token in flags
    return redacted


def run_command(
    command: list[str],
    *,
    runner: CommandRunner | None = None,
    error_message: str,
    secret_flags: Iterable[str] = (),
) -> CommandResult:
    shown = redact_command(command, secret_flags)
    logger.debug("Running: %s", " ".join(shown))
    active_runner = runner or default_runner
    completed = active_runner(command)
    result = CommandResult(
        command=shown,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if result.returncode != 0:
        category = classify_error(returncode=result.returncode, stderr=result.stderr, stdout=result.stdout)
        logger.warning(
            "%s exited with %s (%s): %s", shown[0], result.returncode, category, result.stderr.strip()
        )
        raise AdapterCommandError(message=error_message, result=result, category=category)
    if result.stderr.strip():
        logger.debug("%s stderr: %s", shown[0], result.stderr.strip())
    return result
