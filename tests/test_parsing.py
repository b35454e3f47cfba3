from decimal import Decimal
from io import BytesIO

import pandas as pd
import pytest

from dividend_recon.domain.errors import EmptyInputError
from dividend_recon.infrastructure.parsing.booking import (
    booking_to_records,
    normalize_booking_row,
    normalize_booking_rows,
)
from dividend_recon.infrastructure.parsing.custody import custody_to_records, normalize_custody_row
from dividend_recon.infrastructure.parsing.utils import parse_decimal, read_rows

BOOKING_CSV = (
    "COAC_EVENT_KEY;ISIN;ORGANISATION_NAME;BANK_ACCOUNT;NOMINAL_BASIS;DIVIDENDS_PER_SHARE;"
    "GROSS_AMOUNT_QUOTATION;WTHTAX_COST_QUOTATION;WTHTAX_RATE;TOTAL_TAX_RATE;QUOTATION_CURRENCY;PAYMENT_DATE\n"
    "960789012;KR7005930003;Samsung Electronics Co Ltd;823456789;100000;361;36100000;7942000;22;22;krw;20.05.2024\n"
    "\n"
    "970456789;CH0038863350;Nestle SA;712345678;30000;3;90000;31500;35;;CHF;28.04.2024\n"
)

CUSTODY_CSV = (
    "ISIN;COAC_EVENT_KEY;BANK_ACCOUNTS;CUSTODIAN;NOMINAL_BASIS;HOLDING_QUANTITY;LOAN_QUANTITY;DIV_RATE;"
    "GROSS_AMOUNT;TAX;TAX_RATE;IS_CROSS_CURRENCY_REVERSAL;PAY_DATE\n"
    "KR7005930003;960789012;823456789,823456790;CUST/JPMBUS33;100000;92000;8000;361;33212000;6642400;20;FALSE;20.05.2024\n"
)


def test_read_rows_is_header_driven():
    rows = read_rows(CUSTODY_CSV.encode("utf-8"))

    assert len(rows) == 1
    assert rows[0]["COAC_EVENT_KEY"] == "960789012"
    assert rows[0]["ISIN"] == "KR7005930003"


def test_booking_csv_to_records():
    records = booking_to_records(BOOKING_CSV.encode("utf-8"))

    assert len(records) == 2
    samsung, nestle = records
    assert samsung.event_key == "960789012"
    assert samsung.nominal_basis == Decimal("100000")
    assert samsung.dividend_per_share == Decimal("361")
    assert samsung.withholding_tax_amount == Decimal("7942000")
    assert samsung.quotation_currency == "KRW"
    assert samsung.payment_date == "20.05.2024"
    assert nestle.total_tax_rate == Decimal("35")


def test_custody_csv_to_records_takes_first_account():
    (record,) = custody_to_records(BytesIO(CUSTODY_CSV.encode("utf-8")))

    assert record.account == "823456789"
    assert record.holding_quantity == Decimal("92000")
    assert record.loan_quantity == Decimal("8000")
    assert record.tax_amount == Decimal("6642400")
    assert record.is_cross_currency is False
    assert record.payment_date == "20.05.2024"


def test_garbled_numbers_default_to_zero():
    record = normalize_booking_row(
        {
            "COAC_EVENT_KEY": "1",
            "ISIN": "US0000000001",
            "NOMINAL_BASIS": "n/a",
            "DIVIDENDS_PER_SHARE": "",
        }
    )

    assert record.nominal_basis == Decimal("0")
    assert record.dividend_per_share == Decimal("0")
    assert record.fx_rate == Decimal("0")
    assert record.account == ""
    assert record.instrument_name == ""


def test_custody_row_defaults_and_flags():
    record = normalize_custody_row(
        {
            "COAC_EVENT_KEY": "1",
            "ISIN": "US0000000001",
            "CUSTODY": " ACC-9 , ACC-10",
            "IS_CROSS_CURRENCY_REVERSAL": "true",
            "CURRENCIES": "jpy,usd",
        }
    )

    assert record.account == "ACC-9"
    assert record.is_cross_currency is True
    assert record.quotation_currency == "JPY"
    assert record.restitution_amount == Decimal("0")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1,234.50", Decimal("1234.50")),
        ("1,5", Decimal("15")),
        ("(250)", Decimal("-250")),
        ("$ 12", Decimal("12")),
        ("15%", Decimal("15")),
        ("NaN", Decimal("0")),
        ("inf", Decimal("0")),
        ("abc", Decimal("0")),
        (None, Decimal("0")),
    ],
)
def test_parse_decimal(raw, expected):
    assert parse_decimal(raw) == expected


def test_header_only_file_is_rejected():
    with pytest.raises(EmptyInputError, match="booking file has no data rows"):
        booking_to_records(b"COAC_EVENT_KEY;ISIN\n")


def test_empty_file_is_rejected():
    with pytest.raises(EmptyInputError):
        custody_to_records(b"")


def test_empty_row_sequence_is_rejected():
    with pytest.raises(EmptyInputError):
        normalize_booking_rows([])


def test_xlsx_input_is_supported(tmp_path):
    path = tmp_path / "custody.xlsx"
    pd.DataFrame(
        [{"COAC_EVENT_KEY": "960789012", "ISIN": "KR7005930003", "HOLDING_QUANTITY": "92000"}]
    ).to_excel(path, index=False, engine="openpyxl")

    (record,) = custody_to_records(path)

    assert record.event_key == "960789012"
    assert record.holding_quantity == Decimal("92000")
