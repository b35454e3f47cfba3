"""Streamlit front-end for the dividend reconciliation pipeline."""
from __future__ import annotations

from dataclasses import asdict
from io import BytesIO
from typing import Sequence

import pandas as pd
import streamlit as st

from dividend_recon import (
    CsvBookingRepository,
    CsvCustodyRepository,
    DividendReconciler,
    ReconcileDividendsUseCase,
    ReconciliationContext,
)
from dividend_recon.application.dto import ReconciliationResponse
from dividend_recon.config import SETTINGS
from dividend_recon.domain.errors import ReconciliationError
from dividend_recon.infrastructure.narrative.openrouter import OpenRouterAnnotator
from dividend_recon.presentation.break_report import (
    average_cost_per_break,
    breaks_to_rows,
    render_csv,
    render_html,
)


st.set_page_config(page_title="Dividend Reconciliation", layout="wide")
st.title("Dividend Reconciliation")


def records_to_dataframe(records: Sequence[object]) -> pd.DataFrame:
    return pd.DataFrame([asdict(record) for record in records])


def run_reconciliation(
    booking_bytes: bytes,
    custody_bytes: bytes,
    delimiter: str,
    annotate: bool,
    max_concurrency: int,
    budget: float | None,
) -> ReconciliationResponse:
    context = ReconciliationContext(
        booking_repository=CsvBookingRepository(BytesIO(booking_bytes), delimiter=delimiter),
        custody_repository=CsvCustodyRepository(BytesIO(custody_bytes), delimiter=delimiter),
        reconciler=DividendReconciler(SETTINGS.tolerances),
        annotator=OpenRouterAnnotator() if annotate else None,
        max_concurrency=max_concurrency,
        budget=budget,
    )
    return ReconcileDividendsUseCase(context).execute()


if "view" not in st.session_state:
    st.session_state["view"] = "upload"
if "result" not in st.session_state:
    st.session_state["result"] = None


if st.session_state["view"] == "upload":
    col1, col2 = st.columns(2)
    with col1:
        booking_file = st.file_uploader("Upload booking file", type=["csv", "xlsx"])
    with col2:
        custody_file = st.file_uploader("Upload custody file", type=["csv", "xlsx"])

    with st.expander("Options", expanded=False):
        delimiter = st.text_input("CSV delimiter", value=SETTINGS.csv_delimiter, max_chars=1)
        annotate = st.checkbox(
            "Explain breaks with the narrative service",
            value=False,
            disabled=not SETTINGS.annotation.api_key,
            help="Requires OPEN_ROUTER_API_KEY",
        )
        max_concurrency = st.number_input(
            "Max concurrent calls", min_value=1, max_value=32, value=SETTINGS.annotation.max_concurrency
        )
        budget_value = st.number_input(
            "Budget (USD, 0 = unlimited)", min_value=0.0, value=float(SETTINGS.annotation.budget_usd or 0.0), step=0.01
        )

    run_btn = st.button("Run Reconciliation", disabled=not (booking_file and custody_file))
    if run_btn and booking_file and custody_file:
        with st.spinner("Reconciling..."):
            try:
                response = run_reconciliation(
                    booking_file.read(),
                    custody_file.read(),
                    delimiter or SETTINGS.csv_delimiter,
                    annotate,
                    int(max_concurrency),
                    budget_value or None,
                )
            except ReconciliationError as exc:
                st.error(str(exc))
                response = None
        if response is not None:
            st.session_state["result"] = {
                "response": response,
                "breaks_csv": render_csv(response.report.breaks),
                "breaks_html": render_html(response.report),
            }
            st.session_state["view"] = "results"
            st.rerun()
else:
    back_clicked = st.button("← Back", key="back_to_upload")
    if back_clicked:
        st.session_state["view"] = "upload"
        st.session_state["result"] = None
        st.rerun()

    result = st.session_state.get("result")
    if not result:
        st.info("No results available. Upload files and run reconciliation first.")
    else:
        response: ReconciliationResponse = result["response"]
        summary = response.report.summary

        st.subheader("Summary")
        cols = st.columns(4)
        cols[0].metric("Events", summary.total_events)
        cols[1].metric("Events with breaks", summary.events_with_breaks)
        cols[2].metric("Total breaks", summary.total_breaks)
        cols[3].metric("Annotation failures", summary.annotation_failures)
        if summary.total_tokens:
            st.caption(
                f"Annotation cost ${summary.total_cost:.4f} ({summary.total_tokens} tokens, "
                f"${average_cost_per_break(summary):.6f} per break)"
            )
        run = response.annotation_run
        if run is not None and run.budget_exhausted:
            st.warning(f"Budget reached: {run.skipped} breaks were not annotated.")

        st.bar_chart(
            pd.DataFrame(
                {"breaks": {kind.value: count for kind, count in summary.breaks_by_type.items() if count}}
            )
        )

        tabs = st.tabs(["Breaks", "Booking", "Custody"])
        with tabs[0]:
            st.dataframe(pd.DataFrame(breaks_to_rows(response.report.breaks)))
            st.download_button(
                "Download breaks CSV",
                data=result["breaks_csv"],
                file_name="dividend_breaks.csv",
                mime="text/csv",
            )
            st.download_button(
                "Download breaks HTML",
                data=result["breaks_html"].encode("utf-8"),
                file_name="dividend_breaks.html",
                mime="text/html",
            )
        with tabs[1]:
            st.dataframe(records_to_dataframe(response.booking_records))
        with tabs[2]:
            st.dataframe(records_to_dataframe(response.custody_records))
