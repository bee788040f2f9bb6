"""
Result aggregation and pass/fail disposition.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Mapping

from oval_runner.models.verdicts import Verdict

# Verdicts that make a run fail
FAILING_VERDICTS = frozenset({Verdict.FALSE, Verdict.UNKNOWN})

REPORT_BANNER = "===== REPORT ====="


class Disposition(str, Enum):
    """Outcome of an evaluation run as a whole."""

    PASS = "pass"
    FAIL = "fail"


def disposition(verdicts: Mapping[Verdict, int] | Iterable[Verdict]) -> Disposition:
    """
    Decide pass or fail from a multiset of verdicts.

    Accepts either verdict counts or a plain sequence of verdicts, so the
    single-definition and batch modes share one policy: the run fails if
    any ``false`` or ``unknown`` verdict is present.
    """
    counts = Counter(verdicts) if not isinstance(verdicts, Mapping) else Counter(dict(verdicts))
    if any(counts[verdict] > 0 for verdict in FAILING_VERDICTS):
        return Disposition.FAIL
    return Disposition.PASS


@dataclass
class ResultAggregator:
    """
    Per-run verdict counters.

    Example:
        ```python
        aggregator = ResultAggregator()
        for definition_id, verdict in aggregator.consume(session.eval_system()):
            print(definition_id, verdict.text)
        print(aggregator.disposition())
        ```
    """

    true: int = 0
    false: int = 0
    error: int = 0
    unknown: int = 0
    not_evaluated: int = 0
    not_applicable: int = 0

    def add(self, verdict: Verdict) -> None:
        """Count one evaluated definition."""
        field = verdict.name.lower()
        setattr(self, field, getattr(self, field) + 1)

    def consume(self, stream: Iterable[tuple[str, Verdict]]) -> Iterator[tuple[str, Verdict]]:
        """Count every verdict of a stream while passing the pairs through."""
        for definition_id, verdict in stream:
            self.add(verdict)
            yield definition_id, verdict

    @classmethod
    def from_verdicts(cls, verdicts: Iterable[Verdict]) -> "ResultAggregator":
        aggregator = cls()
        for verdict in verdicts:
            aggregator.add(verdict)
        return aggregator

    def count(self, verdict: Verdict) -> int:
        return getattr(self, verdict.name.lower())

    @property
    def counts(self) -> dict[Verdict, int]:
        """Counts keyed by verdict, in verdict order."""
        return {verdict: self.count(verdict) for verdict in Verdict}

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def disposition(self) -> Disposition:
        return disposition(self.counts)

    def report_lines(self) -> list[str]:
        """The aggregated report as printed on the console."""
        lines = [REPORT_BANNER]
        for verdict, count in self.counts.items():
            lines.append(f"{verdict.label + ':':<16}{count}")
        return lines
