"""Domain services running the deterministic reconciliation."""
from __future__ import annotations

import logging
from typing import Sequence

from .classification import BreakClassifier
from .matching import match_records
from .models import BookingRecord, Break, BreakKind, CustodyRecord, Severity
from .results import ReconciliationReport, ReconciliationSummary
from .tolerances import Tolerances

logger = logging.getLogger(__name__)


class DividendReconciler:
    """Matches both feeds and classifies every matched pair."""

    def __init__(self, tolerances: Tolerances | None = None) -> None:
        self._classifier = BreakClassifier(tolerances)

    def reconcile(self, booking: Sequence[BookingRecord], custody: Sequence[CustodyRecord]) -> list[Break]:
        result = match_records(booking, custody)

        breaks: list[Break] = []
        for entry in result.entries:
            if entry.custody is None:
                breaks.append(entry.missing)
                continue
            breaks.extend(self._classifier.classify(entry.booking, entry.custody))
        breaks.extend(result.missing_in_booking)

        logger.debug(
            "Reconciled %d booking and %d custody records into %d pairs and %d breaks",
            len(booking),
            len(custody),
            len(result.pairs),
            len(breaks),
        )
        return breaks

    def compare(self, booking: Sequence[BookingRecord], custody: Sequence[CustodyRecord]) -> ReconciliationReport:
        breaks = self.reconcile(booking, custody)
        return ReconciliationReport(summary=generate_summary(breaks, booking), breaks=tuple(breaks))


def reconcile(booking: Sequence[BookingRecord], custody: Sequence[CustodyRecord]) -> list[Break]:
    """Run the engine with the default tolerance table."""
    return DividendReconciler().reconcile(booking, custody)


def generate_summary(breaks: Sequence[Break], booking: Sequence[BookingRecord]) -> ReconciliationSummary:
    by_type = {kind: 0 for kind in BreakKind}
    by_severity = {severity: 0 for severity in Severity}
    for item in breaks:
        by_type[item.kind] += 1
        if item.severity is not None:
            by_severity[item.severity] += 1

    return ReconciliationSummary(
        total_events=len({record.event_key for record in booking}),
        events_with_breaks=len({item.event_key for item in breaks}),
        total_breaks=len(breaks),
        breaks_by_type=by_type,
        breaks_by_severity=by_severity,
    )
