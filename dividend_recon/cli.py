"""Command-line entrypoint for dividend reconciliation."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dividend_recon.application.use_cases import ReconcileDividendsUseCase, ReconciliationContext
from dividend_recon.config import SETTINGS
from dividend_recon.domain.errors import ReconciliationError
from dividend_recon.domain.services import DividendReconciler
from dividend_recon.infrastructure.narrative.openrouter import OpenRouterAnnotator
from dividend_recon.infrastructure.repositories.file_repositories import (
    CsvBookingRepository,
    CsvCustodyRepository,
)
from dividend_recon.presentation.break_report import render_csv, summary_lines


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile booked dividends against custodian data")
    parser.add_argument("booking", type=str, help="Path to the internal booking file (CSV or XLSX)")
    parser.add_argument("custody", type=str, help="Path to the custodian file (CSV or XLSX)")
    parser.add_argument("--delimiter", default=SETTINGS.csv_delimiter, help="CSV delimiter (default: %(default)r)")
    parser.add_argument("--annotate", action="store_true", help="Explain each break with the narrative service")
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=SETTINGS.annotation.max_concurrency,
        help="Maximum concurrent annotation calls",
    )
    parser.add_argument("--budget", type=float, default=SETTINGS.annotation.budget_usd, help="Annotation budget in USD")
    parser.add_argument("--output", type=str, help="Write breaks to this CSV file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    try:
        context = ReconciliationContext(
            booking_repository=CsvBookingRepository(Path(args.booking), delimiter=args.delimiter),
            custody_repository=CsvCustodyRepository(Path(args.custody), delimiter=args.delimiter),
            reconciler=DividendReconciler(SETTINGS.tolerances),
            annotator=OpenRouterAnnotator() if args.annotate else None,
            max_concurrency=args.max_concurrency,
            budget=args.budget,
        )
        response = ReconcileDividendsUseCase(context).execute()
    except (ReconciliationError, OSError) as exc:
        print(f"Reconciliation failed: {exc}", file=sys.stderr)
        return 2

    report = response.report
    print("Reconciliation Summary")
    print("======================")
    print(f"Booking records: {len(response.booking_records)}")
    print(f"Custody records: {len(response.custody_records)}")
    for line in summary_lines(report.summary):
        print(line)

    if report.has_issues():
        print("\nBreaks detected:")
        for item in report.breaks:
            severity = f" [{item.severity.value}]" if item.severity else ""
            print(f"- {item.kind.value}{severity} {item.event_key} {item.isin} {item.account}: {item.message}")
    else:
        print("\nNo breaks detected.")

    if args.output:
        Path(args.output).write_bytes(render_csv(report.breaks))
        print(f"\nBreaks written to {args.output}")

    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
