"""
Per-item outcomes and per-source run reports.

Normalizers, the merge engine and the enrichers never drop an item
silently: each item either succeeds with a value or is skipped with a
reason, and the reasons are collected so skip rates can be inspected.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple


@dataclass
class Outcome:
    """Result of processing one item: a value, or the reason it was skipped."""
    value: Any = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @classmethod
    def success(cls, value: Any) -> 'Outcome':
        return cls(value=value)

    @classmethod
    def skip(cls, reason: str) -> 'Outcome':
        return cls(reason=reason)


@dataclass
class SourceReport:
    """Counters for one source batch (or one enrichment pass)."""
    source: str
    accepted: int = 0
    merged: int = 0
    added: int = 0
    updated: int = 0
    skipped: List[Dict] = field(default_factory=list)

    def record_skip(self, index: int, reason: str) -> None:
        self.skipped.append({'index': index, 'reason': reason})

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def skip_reasons(self) -> Dict[str, int]:
        """Count skips by reason."""
        return dict(Counter(s['reason'] for s in self.skipped))

    def to_dict(self) -> Dict:
        return {
            'source': self.source,
            'accepted': self.accepted,
            'merged': self.merged,
            'added': self.added,
            'updated': self.updated,
            'skipped': self.skipped_count,
            'skip_reasons': self.skip_reasons(),
        }


def collect_outcomes(source: str, outcomes: Iterable[Outcome]) -> Tuple[List[Any], SourceReport]:
    """
    Split outcomes into accepted values and a report of skipped items.

    Args:
        source: Source ID the outcomes belong to
        outcomes: Outcomes in item order

    Returns:
        (values, report) with values in their original order
    """
    report = SourceReport(source=source)
    values = []
    for index, outcome in enumerate(outcomes):
        if outcome.ok:
            values.append(outcome.value)
            report.accepted += 1
        else:
            report.record_skip(index, outcome.reason)
    return values, report
