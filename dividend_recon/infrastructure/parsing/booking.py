"""Internal booking feed parser producing canonical booking records."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

from dividend_recon.domain.errors import EmptyInputError
from dividend_recon.domain.models import BookingRecord
from dividend_recon.infrastructure.parsing.utils import (
    ColumnSpec,
    Row,
    apply_schema,
    as_code,
    first_entry,
    parse_decimal,
    read_rows,
)

BOOKING_SCHEMA: tuple[ColumnSpec, ...] = (
    ColumnSpec("event_key", ("COAC_EVENT_KEY",)),
    ColumnSpec("isin", ("ISIN",)),
    ColumnSpec("account", ("BANK_ACCOUNT", "ACCOUNT"), first_entry),
    ColumnSpec("instrument_name", ("ORGANISATION_NAME", "INSTRUMENT_DESCRIPTION")),
    ColumnSpec("nominal_basis", ("NOMINAL_BASIS",), parse_decimal),
    ColumnSpec("dividend_per_share", ("DIVIDENDS_PER_SHARE", "DIV_RATE"), parse_decimal),
    ColumnSpec("gross_amount_quotation", ("GROSS_AMOUNT_QUOTATION",), parse_decimal),
    ColumnSpec("net_amount_quotation", ("NET_AMOUNT_QUOTATION",), parse_decimal),
    ColumnSpec("gross_amount_portfolio", ("GROSS_AMOUNT_PORTFOLIO",), parse_decimal),
    ColumnSpec("net_amount_portfolio", ("NET_AMOUNT_PORTFOLIO",), parse_decimal),
    ColumnSpec("withholding_tax_amount", ("WTHTAX_COST_QUOTATION",), parse_decimal),
    ColumnSpec("local_tax_amount", ("LOCALTAX_COST_QUOTATION",), parse_decimal),
    ColumnSpec("withholding_tax_rate", ("WTHTAX_RATE",), parse_decimal),
    ColumnSpec("total_tax_rate", ("TOTAL_TAX_RATE", "WTHTAX_RATE"), parse_decimal),
    ColumnSpec("quotation_currency", ("QUOTATION_CURRENCY",), as_code),
    ColumnSpec("settlement_currency", ("SETTLEMENT_CURRENCY",), as_code),
    ColumnSpec("fx_rate", ("AVG_FX_RATE_QUOTATION_TO_PORTFOLIO", "FX_RATE"), parse_decimal),
    ColumnSpec("ex_date", ("EXDATE", "EX_DATE")),
    ColumnSpec("payment_date", ("PAYMENT_DATE", "PAY_DATE")),
    ColumnSpec("restitution_rate", ("RESTITUTION_RATE",), parse_decimal),
)


def normalize_booking_row(row: Row) -> BookingRecord:
    return BookingRecord(**apply_schema(row, BOOKING_SCHEMA))


def normalize_booking_rows(rows: Sequence[Row]) -> list[BookingRecord]:
    if not rows:
        raise EmptyInputError("booking")
    return [normalize_booking_row(row) for row in rows]


def booking_to_records(source: BytesIO | Path | str | bytes, delimiter: str = ";") -> list[BookingRecord]:
    return normalize_booking_rows(read_rows(source, delimiter=delimiter, label="booking"))
