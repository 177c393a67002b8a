import logging
from contextlib import contextmanager
from typing import Dict, Optional

import pandas as pd
import streamlit as st

from expiry.classify import BUCKET_COLORS, BUCKET_ORDER, PRIORITY_BY_BUCKET
from expiry.data import load_workbook_rows
from expiry.errors import PipelineError
from expiry.schemas import ProcessRequest, TableFiltersModel
from expiry.session import DashboardSession
from expiry.settings import Settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

CARD_LABELS = {
    "expired": "Expired",
    "urgent": "Expiring in 0-90 days",
    "medium": "Expiring in 91-180 days",
    "low": "More than 180 days",
}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .summary-card {border-radius: 12px;padding: 14px;color: #ffffff;}
        .summary-card .count {font-size: 1.8rem;font-weight: 700;}
        .summary-card .label {font-size: 0.9rem;opacity: 0.9;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def render_page_header(title: str, breadcrumb: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )


def get_session() -> DashboardSession:
    if "dashboard" not in st.session_state:
        st.session_state["dashboard"] = DashboardSession(settings=Settings())
    return st.session_state["dashboard"]


def render_summary_cards(counts: Dict[str, int]):
    cols = st.columns(4)
    for col, bucket in zip(cols, reversed(BUCKET_ORDER)):
        priority = PRIORITY_BY_BUCKET[bucket]
        col.markdown(
            f"<div class='summary-card' style='background:{BUCKET_COLORS[bucket]}'>"
            f"<div class='count'>{counts.get(priority, 0):,}</div>"
            f"<div class='label'>{CARD_LABELS[priority]}</div></div>",
            unsafe_allow_html=True,
        )


def render_bucket_filters(dashboard: DashboardSession, histogram: Dict[str, int]):
    cols = st.columns(len(BUCKET_ORDER) + 1)
    active = dashboard.filters.active_filter
    for col, bucket in zip(cols, BUCKET_ORDER):
        label = f"{'✓ ' if bucket == active else ''}{bucket} ({histogram.get(bucket, 0)})"
        if col.button(label, key=f"bucket_{bucket}", use_container_width=True):
            dashboard.on_filter_changed(bucket)
            st.rerun()
    if cols[-1].button("Show all", disabled=not dashboard.filters.is_filtered, use_container_width=True):
        dashboard.clear_filter()
        st.rerun()


# ---------- UI setup ----------
st.set_page_config(page_title="Contract Expiry Dashboard", layout="wide")
inject_base_styles()
dashboard = get_session()

with st.sidebar:
    st.markdown("### Upload")
    uploaded = st.file_uploader("Contract spreadsheet", type=[ext.lstrip(".") for ext in dashboard.settings.allowed_extensions])
    if uploaded is not None:
        signature = (uploaded.name, uploaded.size)
        if st.session_state.get("_loaded_signature") != signature:
            try:
                rows = load_workbook_rows(uploaded, uploaded.name, settings=dashboard.settings)
            except PipelineError as exc:
                st.error(exc.message)
            else:
                outcome = dashboard.on_data_loaded(rows, source_name=uploaded.name)
                if outcome.ok:
                    st.session_state["_loaded_signature"] = signature
                else:
                    st.error(outcome.message)

    if dashboard.rows:
        st.markdown(f"**File loaded:** {dashboard.source_name}  \n**Rows:** {len(dashboard.rows):,}")
        st.markdown("---")
        st.markdown("### Columns")
        date_column = st.selectbox("Expiry date column", options=[""] + dashboard.columns, format_func=lambda c: c or "Choose a column...")
        display_options = [c for c in dashboard.columns if c != date_column]
        display_column = st.selectbox("Contract name column", options=display_options or dashboard.columns)
        if st.button("Process data", disabled=not date_column, type="primary"):
            outcome = dashboard.on_process_requested(ProcessRequest(date_column=date_column, display_column=display_column))
            if not outcome.ok:
                st.session_state["_last_error"] = "Error processing data: " + (outcome.message or "")
            else:
                st.session_state.pop("_last_error", None)

if st.session_state.get("_last_error"):
    st.error(st.session_state["_last_error"])

reference = dashboard.reference_date
render_page_header(
    "Contract Expiry Dashboard",
    reference.strftime("%A, %B %d, %Y") if reference else pd.Timestamp.now().strftime("%A, %B %d, %Y"),
    export_df=dashboard.export_frame() if dashboard.records else None,
    export_name="contract_expiry.csv",
)

if not dashboard.rows:
    st.info("Upload an Excel file (.xlsx or .xls) to get started.")
    st.stop()

if not dashboard.records:
    st.info("Choose the expiry date column and press **Process data**.")
    st.stop()

summary = dashboard.summary()
render_summary_cards(summary["counts"])

with card("Contracts by expiry"):
    st.vega_lite_chart(summary["charts"]["bucket_bar"], use_container_width=True)

with card("Contracts"):
    render_bucket_filters(dashboard, summary["histogram"])
    search = st.text_input("Search", "", placeholder="Filter rows by any text")
    table = dashboard.table(TableFiltersModel(search=search))
    if table["truncated"]:
        st.caption(f"Showing the first {len(table['rows']):,} of {table['total_visible']:,} matching contracts.")
    st.dataframe(pd.DataFrame(table["rows"]), hide_index=True, use_container_width=True)
