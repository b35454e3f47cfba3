"""Exceptions raised by the reconciliation pipeline."""
from __future__ import annotations


class ReconciliationError(Exception):
    """Base class for reconciliation failures."""


class EmptyInputError(ReconciliationError):
    """Input table has no data rows; the run cannot start."""

    def __init__(self, source: str = "input") -> None:
        super().__init__(f"{source} file has no data rows")
        self.source = source


class AnnotationFailure(ReconciliationError):
    """The narrative step failed for a single break."""
