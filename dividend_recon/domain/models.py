"""Domain models for the dividend reconciliation pipeline.

These dataclasses capture the canonical schema for normalized booking and
custody records, and the breaks detected between them.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import NamedTuple, Union

ZERO = Decimal("0")

BreakValue = Union[Decimal, str, None]


class BreakKind(str, Enum):
    QUANTITY = "QUANTITY"
    AMOUNT = "AMOUNT"
    TAX_RATE = "TAX_RATE"
    TAX_AMOUNT = "TAX_AMOUNT"
    GROSS_AMOUNT = "GROSS_AMOUNT"
    DIVIDEND_RATE = "DIVIDEND_RATE"
    FIELD_INCONSISTENCY = "FIELD_INCONSISTENCY"
    CALCULATION_ERROR = "CALCULATION_ERROR"
    FX_DIFFERENCE = "FX_DIFFERENCE"
    DATE_MISMATCH = "DATE_MISMATCH"
    RESTITUTION_MISMATCH = "RESTITUTION_MISMATCH"
    MISSING_RECORD = "MISSING_RECORD"


class Severity(str, Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class RemediationClass(str, Enum):
    AUTO_RESOLVE = "auto_resolve"
    DATA_CORRECTION = "data_correction"
    CREATE_ENTRY = "create_entry"
    ESCALATION = "escalation"


class MatchKey(NamedTuple):
    """Pairs records across the two feeds."""

    event_key: str
    isin: str
    account: str


@dataclass(frozen=True)
class BookingRecord:
    """Internal booking view of one dividend event on one account."""

    event_key: str
    isin: str
    account: str = ""
    instrument_name: str = ""
    nominal_basis: Decimal = ZERO
    dividend_per_share: Decimal = ZERO
    gross_amount_quotation: Decimal = ZERO
    net_amount_quotation: Decimal = ZERO
    gross_amount_portfolio: Decimal = ZERO
    net_amount_portfolio: Decimal = ZERO
    withholding_tax_amount: Decimal = ZERO
    local_tax_amount: Decimal = ZERO
    withholding_tax_rate: Decimal = ZERO
    total_tax_rate: Decimal = ZERO
    quotation_currency: str = ""
    settlement_currency: str = ""
    fx_rate: Decimal = ZERO
    ex_date: str = ""
    payment_date: str = ""
    restitution_rate: Decimal = ZERO

    def key(self) -> MatchKey:
        return MatchKey(self.event_key, self.isin, self.account)


@dataclass(frozen=True)
class CustodyRecord:
    """Custodian view of one dividend event on one account."""

    event_key: str
    isin: str
    account: str = ""
    custodian: str = ""
    nominal_basis: Decimal = ZERO
    holding_quantity: Decimal = ZERO
    loan_quantity: Decimal = ZERO
    dividend_rate: Decimal = ZERO
    gross_amount: Decimal = ZERO
    net_amount_qc: Decimal = ZERO
    net_amount_sc: Decimal = ZERO
    tax_amount: Decimal = ZERO
    tax_rate: Decimal = ZERO
    fx_rate: Decimal = ZERO
    is_cross_currency: bool = False
    quotation_currency: str = ""
    ex_date: str = ""
    payment_date: str = ""
    restitution_amount: Decimal = ZERO

    def key(self) -> MatchKey:
        return MatchKey(self.event_key, self.isin, self.account)


@dataclass(frozen=True)
class RecomputedAmounts:
    """Gross, tax and net derived from one side's own base fields."""

    gross: Decimal
    tax: Decimal
    net: Decimal


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    cost: float = 0.0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class Annotation:
    """Narrative assessment attached to a break after detection."""

    severity: Severity
    root_cause: str
    explanation: str
    recommendation: str
    confidence: float
    remediation_class: RemediationClass
    usage: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class Break:
    """Represents one discrepancy between the booking and custody views."""

    event_key: str
    isin: str
    instrument: str
    account: str
    kind: BreakKind
    booking_value: BreakValue
    custody_value: BreakValue
    difference: Decimal | None
    difference_pct: Decimal | None
    message: str = ""
    annotation: Annotation | None = None

    def with_annotation(self, annotation: Annotation) -> Break:
        return replace(self, annotation=annotation)

    @property
    def severity(self) -> Severity | None:
        return self.annotation.severity if self.annotation else None
