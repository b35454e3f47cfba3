"""Custodian feed parser producing canonical custody records."""
from __future__ import annotations

from io import BytesIO
from pathlib import Path
from typing import Sequence

from dividend_recon.domain.errors import EmptyInputError
from dividend_recon.domain.models import CustodyRecord
from dividend_recon.infrastructure.parsing.utils import (
    ColumnSpec,
    Row,
    apply_schema,
    as_code,
    first_entry,
    parse_bool,
    parse_decimal,
    read_rows,
)

CUSTODY_SCHEMA: tuple[ColumnSpec, ...] = (
    ColumnSpec("event_key", ("COAC_EVENT_KEY",)),
    ColumnSpec("isin", ("ISIN",)),
    ColumnSpec("account", ("BANK_ACCOUNTS", "BANK_ACCOUNT", "CUSTODY"), first_entry),
    ColumnSpec("custodian", ("CUSTODIAN",)),
    ColumnSpec("nominal_basis", ("NOMINAL_BASIS",), parse_decimal),
    ColumnSpec("holding_quantity", ("HOLDING_QUANTITY",), parse_decimal),
    ColumnSpec("loan_quantity", ("LOAN_QUANTITY",), parse_decimal),
    ColumnSpec("dividend_rate", ("DIV_RATE", "DIVIDENDS_PER_SHARE"), parse_decimal),
    ColumnSpec("gross_amount", ("GROSS_AMOUNT",), parse_decimal),
    ColumnSpec("net_amount_qc", ("NET_AMOUNT_QC",), parse_decimal),
    ColumnSpec("net_amount_sc", ("NET_AMOUNT_SC",), parse_decimal),
    ColumnSpec("tax_amount", ("TAX", "TAX_AMOUNT", "WTHTAX_AMOUNT"), parse_decimal),
    ColumnSpec("tax_rate", ("TAX_RATE",), parse_decimal),
    ColumnSpec("fx_rate", ("FX_RATE",), parse_decimal),
    ColumnSpec("is_cross_currency", ("IS_CROSS_CURRENCY_REVERSAL", "IS_CROSS_CURRENCY"), parse_bool),
    ColumnSpec("quotation_currency", ("QUOTATION_CURRENCY", "CURRENCIES"), as_code),
    ColumnSpec("ex_date", ("EX_DATE", "EVENT_EX_DATE")),
    ColumnSpec("payment_date", ("PAY_DATE", "PAYMENT_DATE", "EVENT_PAYMENT_DATE")),
    ColumnSpec("restitution_amount", ("RESTITUTION_AMOUNT",), parse_decimal),
)


def normalize_custody_row(row: Row) -> CustodyRecord:
    return CustodyRecord(**apply_schema(row, CUSTODY_SCHEMA))


def normalize_custody_rows(rows: Sequence[Row]) -> list[CustodyRecord]:
    if not rows:
        raise EmptyInputError("custody")
    return [normalize_custody_row(row) for row in rows]


def custody_to_records(source: BytesIO | Path | str | bytes, delimiter: str = ";") -> list[CustodyRecord]:
    return normalize_custody_rows(read_rows(source, delimiter=delimiter, label="custody"))
