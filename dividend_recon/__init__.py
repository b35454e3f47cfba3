"""Deterministic dividend reconciliation with narrative break annotation."""
from dividend_recon.application.use_cases import ReconcileDividendsUseCase, ReconciliationContext
from dividend_recon.domain.services import DividendReconciler, generate_summary, reconcile
from dividend_recon.infrastructure.repositories.file_repositories import (
    CsvBookingRepository,
    CsvCustodyRepository,
)

__all__ = [
    "ReconcileDividendsUseCase",
    "ReconciliationContext",
    "DividendReconciler",
    "reconcile",
    "generate_summary",
    "CsvBookingRepository",
    "CsvCustodyRepository",
]
