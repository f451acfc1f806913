"""
app.py
-------
Streamlit application entry point for the Subscription Revenue Forecaster.

Run from the project root:
    streamlit run ui/app.py

Architecture:
    - The ledger and the analysis report are cached via st.session_state
      and recomputed only when the year window or top-K changes.
    - Sidebar handles navigation and global controls.
    - Each view is a separate module for maintainability.
"""

import sys
import os
import streamlit as st
import pandas as pd

# Ensure project root is on path regardless of where streamlit is invoked
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from config.config_loader import get_analysis_config, get_output_config
from core.errors import InvalidArgumentError, ParseError
from ingestion.transaction_loader import load_transactions
from pipeline import SubscriptionRevenuePipeline
from ui.revenue_view import render_revenue_view
from ui.subscription_view import render_subscription_view


# =============================================================================
# PAGE CONFIG
# =============================================================================

st.set_page_config(
    page_title="Subscription Revenue",
    page_icon="📈",
    layout="wide",
    initial_sidebar_state="expanded",
)


# =============================================================================
# CUSTOM CSS
# =============================================================================

st.markdown("""
<style>
    .stApp {
        font-family: 'Segoe UI', system-ui, sans-serif;
        background-color: #f4f6f9;
    }

    [data-testid="stSidebar"] {
        background-color: #1a2332 !important;
    }
    [data-testid="stSidebar"] * {
        color: #c8d6e5 !important;
    }

    .main-header {
        background: linear-gradient(135deg, #1a2332 0%, #2c3e50 100%);
        color: white;
        padding: 20px 30px;
        border-radius: 12px;
        margin-bottom: 20px;
    }
    .main-header h1 {
        margin: 0;
        font-size: 24px;
        font-weight: 600;
    }
    .main-header p {
        margin: 4px 0 0 0;
        opacity: 0.7;
        font-size: 13px;
    }

    .kpi-card {
        background: white;
        border-radius: 10px;
        padding: 18px 20px;
        box-shadow: 0 2px 8px rgba(0,0,0,0.06);
        border-left: 4px solid #3498db;
    }
    .kpi-card.green  { border-left-color: #27ae60; }
    .kpi-card.orange { border-left-color: #e67e22; }
    .kpi-card.red    { border-left-color: #e74c3c; }
    .kpi-value {
        font-size: 28px;
        font-weight: 700;
        color: #1a2332;
        line-height: 1.2;
    }
    .kpi-label {
        font-size: 12px;
        color: #7f8c8d;
        text-transform: uppercase;
        letter-spacing: 0.5px;
        margin-top: 4px;
    }

    .section-title {
        font-size: 14px;
        font-weight: 600;
        color: #1a2332;
        text-transform: uppercase;
        letter-spacing: 0.8px;
        padding-bottom: 8px;
        border-bottom: 2px solid #edf1f4;
        margin-bottom: 12px;
    }
</style>
""", unsafe_allow_html=True)


# =============================================================================
# DATA LOADING & CACHING
# =============================================================================

@st.cache_data(show_spinner="Loading transactions...")
def load_ledger(input_path: str) -> pd.DataFrame:
    """Loads and caches the transactions CSV."""
    return load_transactions(input_path)


def run_pipeline(transactions: pd.DataFrame, start_year: int, end_year: int, top_k: int):
    """Runs the full pipeline for the selected window."""
    pipeline = SubscriptionRevenuePipeline(start_year=start_year, end_year=end_year, top_k=top_k)
    return pipeline.run(transactions)


def initialize_data():
    """
    Ensures the ledger and analysis report are loaded into session state.
    The pipeline re-runs only when the window or top-K changes.
    """
    if "transactions" not in st.session_state:
        input_path = os.path.join(PROJECT_ROOT, get_output_config()["default_input"])
        if not os.path.exists(input_path):
            st.error(f"❌ Transactions file not found at: {input_path}")
            st.stop()
        try:
            st.session_state["transactions"] = load_ledger(input_path)
        except ParseError as exc:
            st.error(f"❌ Could not parse transactions: {exc}")
            st.stop()

    settings = (
        st.session_state["start_year"],
        st.session_state["end_year"],
        st.session_state["top_k"],
    )
    if "report" not in st.session_state or st.session_state.get("_settings") != settings:
        try:
            st.session_state["report"] = run_pipeline(st.session_state["transactions"], *settings)
        except InvalidArgumentError as exc:
            st.error(f"❌ {exc}")
            st.stop()
        st.session_state["_settings"] = settings


# =============================================================================
# SIDEBAR
# =============================================================================

def render_sidebar():
    """Renders the sidebar navigation and global controls."""
    defaults = get_analysis_config()

    st.sidebar.markdown("""
        <div style="padding: 10px 0 20px 0; text-align: center;">
            <div style="font-size: 22px; font-weight: 700; color: #fff;">📈 Subscriptions</div>
            <div style="font-size: 11px; color: #7f8c8d; margin-top: 2px;">Revenue Forecaster</div>
        </div>
    """, unsafe_allow_html=True)

    pages = {
        "📊  Revenue View": "revenue",
        "📋  Subscription View": "subscriptions",
    }
    for label, key in pages.items():
        if st.sidebar.button(label, key=f"nav_{key}", use_container_width=True):
            st.session_state["current_page"] = key
            st.rerun()

    st.sidebar.markdown("<hr style='border-color:#2c3e50; margin: 20px 0 12px 0;'>", unsafe_allow_html=True)

    start_year, end_year = st.sidebar.slider(
        "Year Window",
        min_value=defaults["start_year"],
        max_value=defaults["end_year"],
        value=(defaults["start_year"], defaults["end_year"]),
    )
    top_k = st.sidebar.number_input(
        "Top-K Years",
        min_value=1,
        max_value=end_year - start_year + 1,
        value=min(defaults["top_k_years"], end_year - start_year + 1),
    )
    st.session_state["start_year"] = start_year
    st.session_state["end_year"] = end_year
    st.session_state["top_k"] = int(top_k)

    if "transactions" in st.session_state:
        txns = st.session_state["transactions"]
        st.sidebar.markdown(f"""
            <div style='font-size:11px; color:#5a6a7a; line-height:1.6;'>
                <b style='color:#8a9bb0;'>Dataset</b><br>
                {len(txns):,} transactions<br>
                {txns['subscription_id'].nunique():,} subscriptions<br>
                {txns['transaction_date'].min().strftime('%b %Y')} – {txns['transaction_date'].max().strftime('%b %Y')}
            </div>
        """, unsafe_allow_html=True)


# =============================================================================
# MAIN APP
# =============================================================================

def main():
    render_sidebar()
    initialize_data()

    report = st.session_state["report"]
    page = st.session_state.get("current_page", "revenue")

    if page == "revenue":
        render_revenue_view(report)
    elif page == "subscriptions":
        render_subscription_view(report, transactions=st.session_state["transactions"])


if __name__ == "__main__":
    main()
