"""Application services orchestrating the reconciliation workflow."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from dividend_recon.application.annotation import annotate_breaks
from dividend_recon.application.dto import ReconciliationResponse
from dividend_recon.domain.repositories import BookingRepository, BreakAnnotator, CustodyRepository
from dividend_recon.domain.results import ReconciliationReport
from dividend_recon.domain.services import DividendReconciler, generate_summary

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReconciliationContext:
    booking_repository: BookingRepository
    custody_repository: CustodyRepository
    reconciler: DividendReconciler
    annotator: BreakAnnotator | None = None
    max_concurrency: int = 4
    budget: float | None = None


class ReconcileDividendsUseCase:
    def __init__(self, context: ReconciliationContext) -> None:
        self._context = context

    def execute(self) -> ReconciliationResponse:
        context = self._context
        booking_records = context.booking_repository.list_records()
        custody_records = context.custody_repository.list_records()
        breaks = context.reconciler.reconcile(booking_records, custody_records)

        run = None
        if context.annotator is not None and breaks:
            run = annotate_breaks(
                breaks,
                context.annotator,
                max_concurrency=context.max_concurrency,
                budget=context.budget,
            )
            breaks = list(run.breaks)

        summary = generate_summary(breaks, booking_records)
        if run is not None:
            summary = replace(
                summary,
                total_cost=run.total_cost,
                total_tokens=run.total_tokens,
                annotation_failures=run.failed,
            )
        logger.info(
            "Reconciliation finished: %d events, %d with breaks, %d breaks",
            summary.total_events,
            summary.events_with_breaks,
            summary.total_breaks,
        )
        return ReconciliationResponse(
            report=ReconciliationReport(summary=summary, breaks=tuple(breaks)),
            booking_records=booking_records,
            custody_records=custody_records,
            annotation_run=run,
        )
