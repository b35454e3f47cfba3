"""Repository and collaborator interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Protocol, Sequence

from .models import Annotation, BookingRecord, Break, CustodyRecord


class BookingRepository(Protocol):
    """Provides normalized records from the internal booking feed."""

    def list_records(self) -> Sequence[BookingRecord]:
        ...


class CustodyRepository(Protocol):
    """Provides normalized records from the custodian feed."""

    def list_records(self) -> Sequence[CustodyRecord]:
        ...


class BreakAnnotator(Protocol):
    """Explains a detected break without touching its numbers.

    Implementations raise ``AnnotationFailure`` when no annotation can be produced.
    """

    def annotate(self, break_: Break) -> Annotation:
        ...
