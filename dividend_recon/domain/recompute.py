"""Derive gross, tax and net from each side's base fields."""
from __future__ import annotations

from decimal import Decimal

from .models import BookingRecord, CustodyRecord, RecomputedAmounts


def recompute_booking(record: BookingRecord) -> RecomputedAmounts:
    gross = record.nominal_basis * record.dividend_per_share
    tax = record.withholding_tax_amount + record.local_tax_amount
    return RecomputedAmounts(gross=gross, tax=tax, net=gross - tax)


def effective_quantity(record: CustodyRecord) -> Decimal:
    """Holding quantity when reported, else the nominal basis."""
    return record.holding_quantity or record.nominal_basis


def recompute_custody(record: CustodyRecord) -> RecomputedAmounts:
    gross = effective_quantity(record) * record.dividend_rate
    tax = record.tax_amount
    return RecomputedAmounts(gross=gross, tax=tax, net=gross - tax)
