"""Report generators for reconciliation breaks."""
from __future__ import annotations

import csv
import html
import io
from decimal import Decimal
from typing import Sequence

from dividend_recon.domain.models import Break
from dividend_recon.domain.results import ReconciliationReport, ReconciliationSummary

FIELDNAMES = [
    "event_key",
    "instrument",
    "isin",
    "account",
    "break_type",
    "booking_value",
    "custody_value",
    "difference",
    "difference_pct",
    "message",
    "severity",
    "root_cause",
    "explanation",
    "recommendation",
    "confidence",
    "remediation_class",
]


def _fmt(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return f"{value:f}"
    return str(value)


def _fmt_pct(value: Decimal | None) -> str:
    return "" if value is None else f"{value:.2f}"


def breaks_to_rows(breaks: Sequence[Break]) -> list[dict[str, str]]:
    rows: list[dict[str, str]] = []
    for item in breaks:
        annotation = item.annotation
        rows.append(
            {
                "event_key": item.event_key,
                "instrument": item.instrument,
                "isin": item.isin,
                "account": item.account,
                "break_type": item.kind.value,
                "booking_value": _fmt(item.booking_value),
                "custody_value": _fmt(item.custody_value),
                "difference": _fmt(item.difference),
                "difference_pct": _fmt_pct(item.difference_pct),
                "message": item.message,
                "severity": annotation.severity.value if annotation else "",
                "root_cause": annotation.root_cause if annotation else "",
                "explanation": annotation.explanation if annotation else "",
                "recommendation": annotation.recommendation if annotation else "",
                "confidence": f"{annotation.confidence:.0%}" if annotation else "",
                "remediation_class": annotation.remediation_class.value if annotation else "",
            }
        )
    return rows


def render_csv(breaks: Sequence[Break]) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=FIELDNAMES)
    writer.writeheader()
    writer.writerows(breaks_to_rows(breaks))
    return buffer.getvalue().encode("utf-8")


def render_html(report: ReconciliationReport) -> str:
    rows = breaks_to_rows(report.breaks)
    if not rows:
        return "<p>No breaks detected.</p>"
    header = "".join(f"<th>{col}</th>" for col in FIELDNAMES)
    body_parts = []
    for row in rows:
        body_parts.append("<tr>" + "".join(f"<td>{html.escape(value)}</td>" for value in row.values()) + "</tr>")
    body_html = "".join(body_parts)
    return f"<table><thead><tr>{header}</tr></thead><tbody>{body_html}</tbody></table>"


def average_cost_per_break(summary: ReconciliationSummary) -> float:
    if summary.total_breaks == 0:
        return 0.0
    return summary.total_cost / summary.total_breaks


def summary_lines(summary: ReconciliationSummary) -> list[str]:
    lines = [
        f"Events: {summary.total_events}",
        f"Events with breaks: {summary.events_with_breaks}",
        f"Total breaks: {summary.total_breaks}",
    ]
    lines.extend(f"  {kind.value}: {count}" for kind, count in summary.breaks_by_type.items() if count)
    if any(summary.breaks_by_severity.values()):
        lines.append("By severity:")
        lines.extend(f"  {severity.value}: {count}" for severity, count in summary.breaks_by_severity.items())
    if summary.total_tokens or summary.annotation_failures:
        lines.append(f"Annotation cost: ${summary.total_cost:.4f} ({summary.total_tokens} tokens)")
        lines.append(f"Average cost per break: ${average_cost_per_break(summary):.6f}")
        lines.append(f"Annotation failures: {summary.annotation_failures}")
    return lines
