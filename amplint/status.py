"""Status definitions for rule results."""

from __future__ import annotations

from enum import Enum


class Status(str, Enum):
    """Enumerate the outcomes a rule can report."""

    PASS = "PASS"
    FAIL = "FAIL"
    WARN = "WARN"
    INFO = "INFO"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    @property
    def blocking(self) -> bool:
        """Return True when the status means the page does not meet a requirement."""

        return self in (Status.FAIL, Status.INTERNAL_ERROR)

    @property
    def rank(self) -> int:
        """Return an integer ranking used to order summaries, most severe first."""

        ordering = {
            Status.INTERNAL_ERROR: 0,
            Status.FAIL: 1,
            Status.WARN: 2,
            Status.INFO: 3,
            Status.PASS: 4,
        }
        return ordering[self]
