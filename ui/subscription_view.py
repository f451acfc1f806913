"""
subscription_view.py
----------------------
Subscription View.

Layout:
    Header
    Left column:  Cadence mix (donut) → Classification table
    Right column: Subscription lookup → Transaction timeline
"""

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from pipeline import AnalysisReport
from ui.revenue_view import CADENCE_COLORS


def render_subscription_view(report: AnalysisReport, transactions: pd.DataFrame):
    """Renders the full Subscription View page."""

    st.markdown("""
        <div class="main-header">
            <h1>📋 Subscription View</h1>
            <p>Billing cadence and duration of every subscription</p>
        </div>
    """, unsafe_allow_html=True)

    classifications = report.classification_df
    if classifications.empty:
        st.warning("No subscriptions were classified.")
        return

    left, right = st.columns([1, 1.2], gap="medium")

    with left:
        st.markdown('<div class="section-title">Cadence Mix</div>', unsafe_allow_html=True)
        _render_cadence_mix(report)

        st.markdown('<div class="section-title" style="margin-top:20px;">Classifications</div>', unsafe_allow_html=True)
        cadence_filter = st.multiselect(
            "Cadence",
            options=list(CADENCE_COLORS.keys()),
            default=list(CADENCE_COLORS.keys()),
        )
        filtered = classifications[classifications["cadence_type"].isin(cadence_filter)]
        st.dataframe(filtered, use_container_width=True, hide_index=True, height=420)

    with right:
        st.markdown('<div class="section-title">Subscription Lookup</div>', unsafe_allow_html=True)
        subscription_id = st.selectbox(
            "Subscription ID",
            options=classifications["subscription_id"].tolist(),
            index=0,
        )
        _render_subscription_detail(subscription_id, classifications, transactions)


def _render_cadence_mix(report: AnalysisReport):
    counts = report.cadence_counts()
    labels = [c for c, n in counts.items() if n > 0]
    values = [counts[c] for c in labels]

    fig = go.Figure(go.Pie(
        labels=labels,
        values=values,
        hole=0.55,
        marker=dict(colors=[CADENCE_COLORS.get(c, "#95a5a6") for c in labels]),
        textinfo="label+value",
    ))
    fig.update_layout(
        height=260,
        margin=dict(l=10, r=10, t=10, b=10),
        paper_bgcolor="#f8fafc",
        showlegend=False,
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def _render_subscription_detail(subscription_id: int, classifications: pd.DataFrame, transactions: pd.DataFrame):
    row = classifications[classifications["subscription_id"] == subscription_id].iloc[0]
    sub_txns = transactions[transactions["subscription_id"] == subscription_id]

    st.markdown(f"""
        <div class="kpi-card">
            <div class="kpi-value">{row['cadence_type']}</div>
            <div class="kpi-label">{row['duration']}</div>
            <div style="font-size:11px; color:#95a5a6; margin-top:4px;">
                {len(sub_txns):,} transactions · ${sub_txns['amount'].iloc[0]:,.2f} each
            </div>
        </div>
    """, unsafe_allow_html=True)

    fig = px.scatter(
        sub_txns,
        x="transaction_date",
        y="amount",
        color_discrete_sequence=[CADENCE_COLORS.get(row["cadence_type"], "#95a5a6")],
    )
    fig.update_layout(
        height=280,
        margin=dict(l=40, r=20, t=20, b=30),
        plot_bgcolor="white",
        paper_bgcolor="#f8fafc",
        xaxis=dict(title_text=""),
        yaxis=dict(title_text="", tickprefix="$"),
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})

    st.dataframe(
        sub_txns[["transaction_id", "transaction_date", "amount"]],
        use_container_width=True,
        hide_index=True,
    )
