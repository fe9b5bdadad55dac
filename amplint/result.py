"""Core result data structures for the linter."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .status import Status

STATUS_ORDER: Sequence[Status] = tuple(sorted(Status, key=lambda status: status.rank))

Row = Tuple[str, str, str]


@dataclass(frozen=True)
class Result:
    """Capture a single assertion made by a rule."""

    status: Status
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"status": self.status.value}
        if self.message is not None:
            data["message"] = self.message
        return data


def pass_(message: Optional[str] = None) -> Result:
    return Result(Status.PASS, message)


def fail(message: str) -> Result:
    return Result(Status.FAIL, message)


def warn(message: str) -> Result:
    return Result(Status.WARN, message)


def info(message: str) -> Result:
    return Result(Status.INFO, message)


def internal_error(message: str) -> Result:
    """Build the result the engine substitutes for a rule that raised."""

    return Result(Status.INTERNAL_ERROR, message)


def is_pass(result: Result) -> bool:
    return result.status is Status.PASS


def not_pass(results: Iterable[Result]) -> List[Result]:
    """Drop PASS results, keeping the order of everything else."""

    return [result for result in results if not is_pass(result)]


@dataclass
class Summary:
    """Aggregate result counts by status."""

    internal_error: int = 0
    fail: int = 0
    warn: int = 0
    info: int = 0
    passed: int = 0

    def increment(self, status: Status) -> None:
        attr = self._attr(status)
        setattr(self, attr, getattr(self, attr) + 1)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return status/count pairs ordered for reporting."""

        return [(status.value, getattr(self, self._attr(status))) for status in STATUS_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, self._attr(status)) for status in STATUS_ORDER)

    @staticmethod
    def _attr(status: Status) -> str:
        return "passed" if status is Status.PASS else status.value.lower()


@dataclass
class Report:
    """Outcomes of one lint pass, keyed by lower-cased rule name."""

    outcomes: Dict[str, List[Result]] = field(default_factory=dict)

    @classmethod
    def from_outcomes(cls, outcomes: Mapping[str, Sequence[Result]]) -> "Report":
        return cls({name.lower(): list(results) for name, results in outcomes.items()})

    def __len__(self) -> int:
        return len(self.outcomes)

    def __getitem__(self, name: str) -> List[Result]:
        return self.outcomes[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self.outcomes

    def __iter__(self) -> Iterator[str]:
        return iter(self.outcomes)

    def names(self) -> List[str]:
        return sorted(self.outcomes)

    def to_dict(self) -> Dict[str, List[Dict[str, str]]]:
        return {name: [result.to_dict() for result in results] for name, results in self.outcomes.items()}

    def rows(self) -> List[Row]:
        """Flatten the report into sorted ``(name, status, message)`` rows.

        A rule whose outcome is empty found nothing to complain about among
        its sub-targets, so it is reported as a single PASS row.
        """

        rows: List[Row] = []
        for name in self.names():
            results = self.outcomes[name]
            if not results:
                rows.append((name, Status.PASS.value, ""))
                continue
            for result in results:
                rows.append((name, result.status.value, result.message or ""))
        return rows

    def summary(self) -> Summary:
        summary = Summary()
        for _, status, _ in self.rows():
            summary.increment(Status(status))
        return summary

    @property
    def passed(self) -> bool:
        return not any(result.status.blocking for results in self.outcomes.values() for result in results)
