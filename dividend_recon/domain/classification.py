"""Classify discrepancies between a matched booking and custody pair.

Checks run in a fixed order:

1. field consistency inside the custody record
2. calculation integrity of each side's reported gross amount
3. primary cross-side comparisons (quantity, dividend rate, tax rate)
4. secondary amount comparisons, gated on the primary ones
5. payment date, FX rate and restitution checks

A secondary break is suppressed when a primary break on the same pair
already explains it, so only the root discrepancy is reported.
"""
from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from .models import BookingRecord, Break, BreakKind, BreakValue, CustodyRecord, RecomputedAmounts
from .recompute import recompute_booking, recompute_custody
from .tolerances import Tolerances, exceeds, pct_diff


class BreakClassifier:
    """Applies type-specific tolerances to one matched pair."""

    def __init__(self, tolerances: Tolerances | None = None) -> None:
        self._tolerances = tolerances or Tolerances()

    @property
    def tolerances(self) -> Tolerances:
        return self._tolerances

    def amount_tolerance(self, booking: BookingRecord, custody: CustodyRecord) -> Decimal:
        currency = booking.quotation_currency or custody.quotation_currency
        return self._tolerances.amount(currency)

    def classify(self, booking: BookingRecord, custody: CustodyRecord) -> list[Break]:
        booking_amounts = recompute_booking(booking)
        custody_amounts = recompute_custody(custody)
        amount_tol = self.amount_tolerance(booking, custody)

        breaks: list[Break] = []
        breaks.extend(self._check_field_consistency(booking, custody, amount_tol))
        breaks.extend(self._check_calculations(booking, custody, booking_amounts, custody_amounts, amount_tol))
        breaks.extend(self._compare_values(booking, custody, booking_amounts, custody_amounts, amount_tol))
        breaks.extend(self._compare_dates(booking, custody))
        breaks.extend(self._compare_fx(booking, custody))
        breaks.extend(self._compare_restitution(booking, custody))
        return breaks

    @staticmethod
    def _make(
        booking: BookingRecord,
        kind: BreakKind,
        booking_value: BreakValue,
        custody_value: BreakValue,
        message: str,
    ) -> Break:
        if isinstance(booking_value, Decimal) and isinstance(custody_value, Decimal):
            difference: Decimal | None = booking_value - custody_value
            difference_pct: Decimal | None = pct_diff(booking_value, custody_value)
        else:
            difference = None
            difference_pct = None
        return Break(
            event_key=booking.event_key,
            isin=booking.isin,
            instrument=booking.instrument_name or booking.isin,
            account=booking.account,
            kind=kind,
            booking_value=booking_value,
            custody_value=custody_value,
            difference=difference,
            difference_pct=difference_pct,
            message=message,
        )

    def _check_field_consistency(
        self, booking: BookingRecord, custody: CustodyRecord, amount_tol: Decimal
    ) -> list[Break]:
        if custody.nominal_basis == custody.holding_quantity:
            return []
        # Lending legitimately splits nominal and holding; the gross must still
        # agree with one of them.
        on_nominal = custody.nominal_basis * custody.dividend_rate
        on_holding = custody.holding_quantity * custody.dividend_rate
        if not exceeds(custody.gross_amount - on_nominal, amount_tol):
            return []
        if not exceeds(custody.gross_amount - on_holding, amount_tol):
            return []
        inconsistency = self._make(
            booking,
            BreakKind.FIELD_INCONSISTENCY,
            custody.nominal_basis,
            custody.holding_quantity,
            f"Custody nominal basis {custody.nominal_basis} and holding {custody.holding_quantity} "
            f"both disagree with reported gross {custody.gross_amount}",
        )
        # Percentage is measured against the holding.
        return [
            replace(
                inconsistency,
                difference_pct=pct_diff(custody.holding_quantity, custody.nominal_basis),
            )
        ]

    def _check_calculations(
        self,
        booking: BookingRecord,
        custody: CustodyRecord,
        booking_amounts: RecomputedAmounts,
        custody_amounts: RecomputedAmounts,
        amount_tol: Decimal,
    ) -> list[Break]:
        breaks: list[Break] = []
        if exceeds(booking.gross_amount_quotation - booking_amounts.gross, amount_tol):
            breaks.append(
                self._make(
                    booking,
                    BreakKind.CALCULATION_ERROR,
                    booking.gross_amount_quotation,
                    booking_amounts.gross,
                    f"Booking reports gross {booking.gross_amount_quotation}, "
                    f"recomputed {booking_amounts.gross}",
                )
            )
        if exceeds(custody_amounts.gross - custody.gross_amount, amount_tol):
            breaks.append(
                self._make(
                    booking,
                    BreakKind.CALCULATION_ERROR,
                    custody_amounts.gross,
                    custody.gross_amount,
                    f"Custody reports gross {custody.gross_amount}, recomputed {custody_amounts.gross}",
                )
            )
        return breaks

    def _compare_values(
        self,
        booking: BookingRecord,
        custody: CustodyRecord,
        booking_amounts: RecomputedAmounts,
        custody_amounts: RecomputedAmounts,
        amount_tol: Decimal,
    ) -> list[Break]:
        tol = self._tolerances
        breaks: list[Break] = []

        quantity_break = exceeds(booking.nominal_basis - custody.holding_quantity, tol.quantity)
        if quantity_break:
            breaks.append(
                self._make(
                    booking,
                    BreakKind.QUANTITY,
                    booking.nominal_basis,
                    custody.holding_quantity,
                    f"Booked nominal {booking.nominal_basis} vs custody holding {custody.holding_quantity}",
                )
            )

        rate_break = exceeds(booking.dividend_per_share - custody.dividend_rate, tol.dividend_rate)
        if rate_break:
            breaks.append(
                self._make(
                    booking,
                    BreakKind.DIVIDEND_RATE,
                    booking.dividend_per_share,
                    custody.dividend_rate,
                    f"Dividend per share {booking.dividend_per_share} vs {custody.dividend_rate}",
                )
            )

        tax_rate_break = exceeds(booking.total_tax_rate - custody.tax_rate, tol.tax_rate)
        if tax_rate_break:
            breaks.append(
                self._make(
                    booking,
                    BreakKind.TAX_RATE,
                    booking.total_tax_rate,
                    custody.tax_rate,
                    f"Tax rate {booking.total_tax_rate}% vs {custody.tax_rate}%",
                )
            )

        if not (quantity_break or rate_break) and exceeds(
            booking_amounts.gross - custody_amounts.gross, amount_tol
        ):
            breaks.append(
                self._make(
                    booking,
                    BreakKind.GROSS_AMOUNT,
                    booking_amounts.gross,
                    custody_amounts.gross,
                    f"Recomputed gross {booking_amounts.gross} vs {custody_amounts.gross}",
                )
            )

        if not (quantity_break or tax_rate_break) and exceeds(
            booking_amounts.tax - custody_amounts.tax, amount_tol
        ):
            breaks.append(
                self._make(
                    booking,
                    BreakKind.TAX_AMOUNT,
                    booking_amounts.tax,
                    custody_amounts.tax,
                    f"Tax amount {booking_amounts.tax} vs {custody_amounts.tax}",
                )
            )

        if not (quantity_break or rate_break or tax_rate_break) and exceeds(
            booking_amounts.net - custody_amounts.net, amount_tol
        ):
            breaks.append(
                self._make(
                    booking,
                    BreakKind.AMOUNT,
                    booking_amounts.net,
                    custody_amounts.net,
                    f"Recomputed net {booking_amounts.net} vs {custody_amounts.net}",
                )
            )

        return breaks

    def _compare_dates(self, booking: BookingRecord, custody: CustodyRecord) -> list[Break]:
        booking_date = booking.payment_date.strip()
        custody_date = custody.payment_date.strip()
        # A blank date on either side is not reported.
        if not booking_date or not custody_date or booking_date == custody_date:
            return []
        return [
            self._make(
                booking,
                BreakKind.DATE_MISMATCH,
                booking_date,
                custody_date,
                f"Payment date {booking_date} vs {custody_date}",
            )
        ]

    def _compare_fx(self, booking: BookingRecord, custody: CustodyRecord) -> list[Break]:
        if not booking.fx_rate or not custody.fx_rate:
            return []
        if not exceeds(booking.fx_rate - custody.fx_rate, self._tolerances.fx_rate):
            return []
        return [
            self._make(
                booking,
                BreakKind.FX_DIFFERENCE,
                booking.fx_rate,
                custody.fx_rate,
                f"FX rate {booking.fx_rate} vs {custody.fx_rate}",
            )
        ]

    def _compare_restitution(self, booking: BookingRecord, custody: CustodyRecord) -> list[Break]:
        # Only the direction where custody reports money booking did not expect.
        if custody.restitution_amount <= 0 or booking.restitution_rate != 0:
            return []
        return [
            self._make(
                booking,
                BreakKind.RESTITUTION_MISMATCH,
                booking.restitution_rate,
                custody.restitution_amount,
                f"Custody reports restitution {custody.restitution_amount} with none expected",
            )
        ]
