from __future__ import annotations

from decimal import Decimal

from dividend_recon.domain.models import BookingRecord, CustodyRecord

HUNDRED = Decimal("100")


def make_booking(
    event: str = "960789012",
    isin: str = "KR7005930003",
    account: str = "823456789",
    nominal: str = "20000",
    dps: str = "0.5",
    tax_rate: str = "22",
    **overrides,
) -> BookingRecord:
    nominal_d = Decimal(nominal)
    dps_d = Decimal(dps)
    gross = nominal_d * dps_d
    rate = Decimal(tax_rate)
    fields = dict(
        event_key=event,
        isin=isin,
        account=account,
        instrument_name="Samsung Electronics Co Ltd",
        nominal_basis=nominal_d,
        dividend_per_share=dps_d,
        gross_amount_quotation=gross,
        withholding_tax_amount=gross * rate / HUNDRED,
        withholding_tax_rate=rate,
        total_tax_rate=rate,
        quotation_currency="USD",
        settlement_currency="USD",
        payment_date="2024-05-20",
    )
    fields.update(overrides)
    return BookingRecord(**fields)


def make_custody(
    event: str = "960789012",
    isin: str = "KR7005930003",
    account: str = "823456789",
    holding: str = "20000",
    rate: str = "0.5",
    tax_rate: str = "22",
    **overrides,
) -> CustodyRecord:
    holding_d = Decimal(holding)
    rate_d = Decimal(rate)
    gross = holding_d * rate_d
    tax_rate_d = Decimal(tax_rate)
    tax = gross * tax_rate_d / HUNDRED
    fields = dict(
        event_key=event,
        isin=isin,
        account=account,
        custodian="CUST/JPMBUS33",
        nominal_basis=holding_d,
        holding_quantity=holding_d,
        dividend_rate=rate_d,
        gross_amount=gross,
        net_amount_qc=gross - tax,
        tax_amount=tax,
        tax_rate=tax_rate_d,
        quotation_currency="USD",
        payment_date="2024-05-20",
    )
    fields.update(overrides)
    return CustodyRecord(**fields)
