from dividend_recon.cli import main

BOOKING = (
    "COAC_EVENT_KEY;ISIN;BANK_ACCOUNT;NOMINAL_BASIS;DIVIDENDS_PER_SHARE;GROSS_AMOUNT_QUOTATION;"
    "WTHTAX_COST_QUOTATION;TOTAL_TAX_RATE;QUOTATION_CURRENCY\n"
    "960789012;KR7005930003;823456789;25000;0.5;12500;2750;22;USD\n"
)
CUSTODY = (
    "COAC_EVENT_KEY;ISIN;BANK_ACCOUNTS;NOMINAL_BASIS;HOLDING_QUANTITY;LOAN_QUANTITY;DIV_RATE;"
    "GROSS_AMOUNT;TAX;TAX_RATE\n"
    "960789012;KR7005930003;823456789;25000;23000;2000;0.5;11500;2530;22\n"
)


def test_cli_reports_breaks_and_writes_csv(tmp_path, capsys):
    booking = tmp_path / "booking.csv"
    custody = tmp_path / "custody.csv"
    output = tmp_path / "breaks.csv"
    booking.write_text(BOOKING, encoding="utf-8")
    custody.write_text(CUSTODY, encoding="utf-8")

    code = main([str(booking), str(custody), "--output", str(output)])

    out = capsys.readouterr().out
    assert code == 0
    assert "Total breaks: 1" in out
    assert "- QUANTITY 960789012 KR7005930003 823456789" in out
    assert output.read_text(encoding="utf-8").startswith("event_key,")


def test_cli_rejects_empty_input(tmp_path, capsys):
    booking = tmp_path / "booking.csv"
    custody = tmp_path / "custody.csv"
    booking.write_text("COAC_EVENT_KEY;ISIN\n", encoding="utf-8")
    custody.write_text(CUSTODY, encoding="utf-8")

    code = main([str(booking), str(custody)])

    assert code == 2
    assert "booking file has no data rows" in capsys.readouterr().err
