"""Domain-level results for dividend reconciliation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from .models import Break, BreakKind, Severity


@dataclass(frozen=True)
class ReconciliationSummary:
    total_events: int
    events_with_breaks: int
    total_breaks: int
    breaks_by_type: Mapping[BreakKind, int]
    breaks_by_severity: Mapping[Severity, int]
    total_cost: float = 0.0
    total_tokens: int = 0
    annotation_failures: int = 0


@dataclass(frozen=True)
class ReconciliationReport:
    summary: ReconciliationSummary
    breaks: Sequence[Break] = field(default_factory=tuple)

    def has_issues(self) -> bool:
        return self.summary.total_breaks > 0

    def iter_breaks(self, kind: BreakKind | None = None) -> Iterable[Break]:
        for item in self.breaks:
            if kind is None or item.kind is kind:
                yield item
