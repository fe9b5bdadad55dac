"""Binding to the external AMP validator command."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, List, Sequence

from .exceptions import ValidatorUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationError:
    line: int
    col: int
    message: str
    severity: str = "ERROR"

    def __str__(self) -> str:
        return f"{self.line}:{self.col} {self.message}"


@dataclass(frozen=True)
class ValidationOutcome:
    status: str
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.status == "PASS"


def parse_validator_output(text: str) -> ValidationOutcome:
    """Parse ``amphtml-validator --format=json`` output.

    The validator keys its result by input name; with stdin input there is
    exactly one entry.
    """

    try:
        data = json.loads(text)
    except ValueError as exc:
        raise ValidatorUnavailable(f"couldn't parse validator output: {text[:100]}") from exc
    if isinstance(data, dict) and "status" not in data and len(data) == 1:
        data = next(iter(data.values()))
    if not isinstance(data, dict) or "status" not in data:
        raise ValidatorUnavailable(f"unexpected validator output: {text[:100]}")
    errors = [_parse_error(item) for item in data.get("errors") or [] if isinstance(item, dict)]
    return ValidationOutcome(status=str(data["status"]), errors=errors)


def _parse_error(item: Any) -> ValidationError:
    return ValidationError(
        line=int(item.get("line", 0)),
        col=int(item.get("col", 0)),
        message=str(item.get("message") or item.get("code") or "unknown error"),
        severity=str(item.get("severity", "ERROR")),
    )


async def validate_html(html: str, command: Sequence[str]) -> ValidationOutcome:
    """Run the validator ``command`` with ``html`` on stdin."""

    if not command:
        raise ValidatorUnavailable("no validator command configured")
    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise ValidatorUnavailable(f"{command[0]} not available: {exc}") from exc
    try:
        stdout, stderr = await process.communicate(html.encode("utf-8"))
    except BaseException:
        # Timed out or cancelled: do not leave the validator running.
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise
    logger.debug("validator exited with %s", process.returncode)
    if not stdout.strip():
        message = stderr.decode("utf-8", errors="replace").strip() or f"exit status {process.returncode}"
        raise ValidatorUnavailable(f"{command[0]} produced no output: {message}")
    return parse_validator_output(stdout.decode("utf-8", errors="replace"))
