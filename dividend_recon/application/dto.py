"""Application-level DTOs for dividend reconciliation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from dividend_recon.application.annotation import AnnotationRun
from dividend_recon.domain.models import BookingRecord, CustodyRecord
from dividend_recon.domain.results import ReconciliationReport


@dataclass(slots=True, frozen=True)
class ReconciliationResponse:
    report: ReconciliationReport
    booking_records: Sequence[BookingRecord]
    custody_records: Sequence[CustodyRecord]
    annotation_run: AnnotationRun | None = None
