"""Pair booking and custody records on their match key."""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Mapping, Sequence

from .models import BookingRecord, Break, BreakKind, CustodyRecord, MatchKey

logger = logging.getLogger(__name__)

MISSING_PCT = Decimal("100")


@dataclass(frozen=True)
class BookingMatch:
    """Outcome for one booking record: a counterpart or a missing break."""

    booking: BookingRecord
    custody: CustodyRecord | None = None
    missing: Break | None = None


@dataclass(frozen=True)
class MatchResult:
    entries: Sequence[BookingMatch] = field(default_factory=tuple)
    missing_in_booking: Sequence[Break] = field(default_factory=tuple)
    duplicate_custody_keys: Mapping[MatchKey, int] = field(default_factory=dict)

    @property
    def pairs(self) -> list[tuple[BookingRecord, CustodyRecord]]:
        return [(entry.booking, entry.custody) for entry in self.entries if entry.custody is not None]

    @property
    def missing_in_custody(self) -> list[Break]:
        return [entry.missing for entry in self.entries if entry.missing is not None]


def _detect_duplicates(records: Sequence[CustodyRecord]) -> dict[MatchKey, int]:
    counts: dict[MatchKey, int] = defaultdict(int)
    for record in records:
        counts[record.key()] += 1
    return {key: count for key, count in counts.items() if count > 1}


def _missing_in_custody(record: BookingRecord) -> Break:
    return Break(
        event_key=record.event_key,
        isin=record.isin,
        instrument=record.instrument_name or record.isin,
        account=record.account,
        kind=BreakKind.MISSING_RECORD,
        booking_value=record.nominal_basis,
        custody_value=None,
        difference=record.nominal_basis,
        difference_pct=MISSING_PCT,
        message="Booking record has no custody counterpart",
    )


def _missing_in_booking(record: CustodyRecord) -> Break:
    return Break(
        event_key=record.event_key,
        isin=record.isin,
        instrument=record.isin,
        account=record.account,
        kind=BreakKind.MISSING_RECORD,
        booking_value=None,
        custody_value=record.nominal_basis,
        difference=record.nominal_basis,
        difference_pct=MISSING_PCT,
        message="Custody record has no booking counterpart",
    )


def match_records(
    booking: Sequence[BookingRecord],
    custody: Sequence[CustodyRecord],
) -> MatchResult:
    """Match on (event, ISIN, account).

    Duplicate custody keys keep the last record seen for matching. When no
    booking claims the key, every custody record under it is reported missing.
    """
    duplicates = _detect_duplicates(custody)
    for key, count in duplicates.items():
        logger.warning("%d custody records share key %s; keeping the last one", count, tuple(key))

    custody_map = {record.key(): record for record in custody}
    consumed: set[MatchKey] = set()

    entries: list[BookingMatch] = []
    for record in booking:
        key = record.key()
        counterpart = custody_map.get(key)
        if counterpart is None:
            entries.append(BookingMatch(booking=record, missing=_missing_in_custody(record)))
            continue
        consumed.add(key)
        entries.append(BookingMatch(booking=record, custody=counterpart))

    missing_in_booking = [_missing_in_booking(record) for record in custody if record.key() not in consumed]

    return MatchResult(
        entries=tuple(entries),
        missing_in_booking=tuple(missing_in_booking),
        duplicate_custody_keys=duplicates,
    )
