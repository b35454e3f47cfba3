"""File-backed repositories for booking and custody feeds."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

from dividend_recon.domain.models import BookingRecord, CustodyRecord
from dividend_recon.domain.repositories import BookingRepository, CustodyRepository
from dividend_recon.infrastructure.parsing.booking import booking_to_records
from dividend_recon.infrastructure.parsing.custody import custody_to_records
from dividend_recon.infrastructure.parsing.utils import ensure_bytes


class CsvBookingRepository(BookingRepository):
    def __init__(self, source: BytesIO | Path | str | bytes, delimiter: str = ";") -> None:
        self._source = ensure_bytes(source)
        self._delimiter = delimiter

    def list_records(self) -> Sequence[BookingRecord]:
        return booking_to_records(self._source, delimiter=self._delimiter)


class CsvCustodyRepository(CustodyRepository):
    def __init__(self, source: BytesIO | Path | str | bytes, delimiter: str = ";") -> None:
        self._source = ensure_bytes(source)
        self._delimiter = delimiter

    def list_records(self) -> Sequence[CustodyRecord]:
        return custody_to_records(self._source, delimiter=self._delimiter)
