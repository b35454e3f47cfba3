"""Shared parsing utilities for feed ingestion."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from io import BytesIO
from pathlib import Path
from typing import Callable, Mapping, Sequence

import pandas as pd

from dividend_recon.domain.errors import EmptyInputError

logger = logging.getLogger(__name__)

XLSX_MAGIC = b"PK\x03\x04"
TRUE_VALUES = {"TRUE", "T", "Y", "YES", "1"}

Row = Mapping[str, str]


def ensure_bytes(source: BytesIO | Path | str | bytes) -> bytes:
    if isinstance(source, bytes):
        return source
    if isinstance(source, BytesIO):
        return source.getvalue()
    if isinstance(source, (Path, str)):
        return Path(source).read_bytes()
    raise TypeError(f"Unsupported source type: {type(source)!r}")


def parse_decimal(value: object) -> Decimal:
    """Lenient numeric parse; anything unusable becomes zero."""
    if value is None:
        return Decimal("0")
    s = str(value).strip()
    if not s:
        return Decimal("0")
    if s.upper() == "NAN":
        return Decimal("0")
    negative = False
    if s.startswith("(") and s.endswith(")"):
        negative = True
        s = s[1:-1]
    for ch in [",", "$", "€", "£", " ", "%"]:
        s = s.replace(ch, "")
    try:
        result = Decimal(s)
    except InvalidOperation:
        return Decimal("0")
    if not result.is_finite():
        return Decimal("0")
    if negative:
        result = -result
    return result


def parse_bool(value: object) -> bool:
    return str(value or "").strip().upper() in TRUE_VALUES


def as_text(value: object) -> str:
    return str(value or "").strip()


def as_code(value: object) -> str:
    return first_entry(value).upper()


def first_entry(value: object) -> str:
    """First item of a comma-separated list, e.g. ``"823456789,823456790"``."""
    return str(value or "").split(",")[0].strip()


@dataclass(frozen=True)
class ColumnSpec:
    """Where a record field comes from and how it is defaulted."""

    field: str
    columns: tuple[str, ...]
    parse: Callable[[object], object] = as_text


def lookup(row: Row, columns: Sequence[str]) -> str:
    """Value of the first listed column that is present and non-blank."""
    for column in columns:
        value = row.get(column)
        if value is not None and str(value).strip():
            return str(value)
    return ""


def apply_schema(row: Row, schema: Sequence[ColumnSpec]) -> dict[str, object]:
    return {spec.field: spec.parse(lookup(row, spec.columns)) for spec in schema}


def _is_xlsx(data: bytes) -> bool:
    return data[:4] == XLSX_MAGIC


def read_frame(data: bytes, delimiter: str = ";") -> pd.DataFrame:
    if _is_xlsx(data):
        return pd.read_excel(BytesIO(data), engine="openpyxl", dtype=str, keep_default_na=False)
    return pd.read_csv(
        BytesIO(data),
        sep=delimiter,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        encoding="utf-8-sig",
    )


def read_rows(source: BytesIO | Path | str | bytes, delimiter: str = ";", label: str = "input") -> list[dict[str, str]]:
    """Read a header-driven table into rows keyed by stripped column name.

    Raises ``EmptyInputError`` unless there is a header and at least one data row.
    """
    data = ensure_bytes(source)
    if not data.strip():
        raise EmptyInputError(label)
    try:
        frame = read_frame(data, delimiter=delimiter)
    except pd.errors.EmptyDataError as exc:
        raise EmptyInputError(label) from exc
    frame.columns = [str(column).strip() for column in frame.columns]
    frame = frame.fillna("")
    if frame.empty:
        raise EmptyInputError(label)
    rows = [{column: str(value).strip() for column, value in record.items()} for record in frame.to_dict("records")]
    logger.debug("Read %d %s rows with columns %s", len(rows), label, list(frame.columns))
    return rows
