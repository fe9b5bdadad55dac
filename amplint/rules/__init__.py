"""Rule contract shared by every lint check."""

from __future__ import annotations

from typing import List, Protocol

from amplint.context import Context
from amplint.result import Result


class Rule(Protocol):
    """Protocol implemented by all rules.

    ``run`` always returns a list: one entry for a single assertion, one per
    offending sub-target otherwise, and an empty list when every sub-target
    passed.
    """

    name: str

    async def run(self, context: Context) -> List[Result]:
        """Check ``context`` without mutating it."""


__all__ = ["Rule", "Context"]
