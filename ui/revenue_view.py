"""
revenue_view.py
-----------------
Revenue View.

Layout:
    Header
    KPI row (4 cards)
    Yearly revenue chart
    Year-over-year delta chart | Top growth / loss tables
    Forecast breakdown by cadence
"""

import streamlit as st
import pandas as pd
import plotly.graph_objects as go

from pipeline import AnalysisReport


CADENCE_COLORS = {
    "DAILY":   "#3498db",
    "MONTHLY": "#e67e22",
    "YEARLY":  "#27ae60",
    "ONE_OFF": "#95a5a6",
}


def render_revenue_view(report: AnalysisReport):
    """Renders the full Revenue View page."""

    st.markdown(f"""
        <div class="main-header">
            <h1>📊 Revenue View</h1>
            <p>Yearly revenue {report.start_year}–{report.end_year} and the {report.forecast_year} forecast</p>
        </div>
    """, unsafe_allow_html=True)

    _render_kpis(report)

    st.markdown('<div class="section-title" style="margin-top:28px;">Yearly Revenue</div>', unsafe_allow_html=True)
    _render_revenue_chart(report)

    col_delta, col_rank = st.columns([1.4, 1], gap="medium")
    with col_delta:
        st.markdown('<div class="section-title" style="margin-top:28px;">Year-over-Year Change</div>', unsafe_allow_html=True)
        _render_delta_chart(report)
    with col_rank:
        st.markdown('<div class="section-title" style="margin-top:28px;">Top Growth / Loss Years</div>', unsafe_allow_html=True)
        _render_rankings(report)

    st.markdown(f'<div class="section-title" style="margin-top:28px;">{report.forecast_year} Forecast by Cadence</div>', unsafe_allow_html=True)
    _render_forecast_breakdown(report)

    if report.errors:
        with st.expander(f"⚠️ {len(report.errors)} records skipped"):
            st.dataframe(report.errors_df, use_container_width=True, hide_index=True)


# =============================================================================
# KPIs
# =============================================================================

def _render_kpis(report: AnalysisReport):
    last_revenue = int(report.revenue.iloc[-1])
    last_delta = int(report.revenue_deltas.iloc[-1])
    total_forecast = report.forecast_total
    change = total_forecast - last_revenue

    cols = st.columns(4, gap="small")
    kpis = [
        (f"Revenue {report.end_year}", f"${last_revenue:,}",
         f"{'+' if last_delta >= 0 else '−'}${abs(last_delta):,} vs prior year", ""),
        (f"Forecast {report.forecast_year}", f"${total_forecast:,.0f}",
         f"{'+' if change >= 0 else '−'}${abs(change):,.0f} vs {report.end_year}", "green"),
        ("From Returning", f"${report.forecast_returning:,.0f}",
         "Subscribers active this year", "orange"),
        ("From New", f"${report.forecast_new:,.0f}",
         "Trend of new subscriptions", "red"),
    ]

    for col, (label, value, sub, color_class) in zip(cols, kpis):
        with col:
            st.markdown(f"""
                <div class="kpi-card {color_class}">
                    <div class="kpi-value">{value}</div>
                    <div class="kpi-label">{label}</div>
                    <div style="font-size:11px; color:#95a5a6; margin-top:4px;">{sub}</div>
                </div>
            """, unsafe_allow_html=True)


# =============================================================================
# CHARTS
# =============================================================================

def _render_revenue_chart(report: AnalysisReport):
    yearly = report.yearly_df

    fig = go.Figure(go.Bar(
        x=yearly["year"],
        y=yearly["revenue"],
        marker_color="#3498db",
        hovertemplate="%{x}: $%{y:,}<extra></extra>",
    ))
    fig.add_trace(go.Bar(
        x=[report.forecast_year],
        y=[report.forecast_total],
        marker_color="#27ae60",
        marker_pattern_shape="/",
        name="Forecast",
        hovertemplate="%{x} (forecast): $%{y:,.0f}<extra></extra>",
    ))
    fig.update_layout(
        height=320,
        margin=dict(l=40, r=20, t=10, b=30),
        plot_bgcolor="white",
        paper_bgcolor="#f8fafc",
        xaxis=dict(showgrid=False, dtick=5),
        yaxis=dict(showgrid=True, gridcolor="#edf1f4", tickprefix="$"),
        showlegend=False,
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def _render_delta_chart(report: AnalysisReport):
    yearly = report.yearly_df
    colors = ["#27ae60" if d >= 0 else "#e74c3c" for d in yearly["delta"]]

    fig = go.Figure(go.Bar(
        x=yearly["year"],
        y=yearly["delta"],
        marker_color=colors,
        hovertemplate="%{x}: $%{y:,}<extra></extra>",
    ))
    fig.update_layout(
        height=300,
        margin=dict(l=40, r=20, t=10, b=30),
        plot_bgcolor="white",
        paper_bgcolor="#f8fafc",
        xaxis=dict(showgrid=False, dtick=5),
        yaxis=dict(showgrid=True, gridcolor="#edf1f4", tickprefix="$", zeroline=True, zerolinecolor="#bdc3c7"),
        showlegend=False,
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})


def _render_rankings(report: AnalysisReport):
    growth = pd.DataFrame({
        "Year": report.growth_years,
        "Growth": [f"${int(report.revenue_deltas[y]):,}" for y in report.growth_years],
    })
    loss = pd.DataFrame({
        "Year": report.loss_years,
        "Loss": [f"(${-int(report.revenue_deltas[y]):,})" for y in report.loss_years],
    })

    col_g, col_l = st.columns(2, gap="small")
    with col_g:
        st.dataframe(growth, use_container_width=True, hide_index=True)
    with col_l:
        st.dataframe(loss, use_container_width=True, hide_index=True)


def _render_forecast_breakdown(report: AnalysisReport):
    forecast = report.forecast_df
    if forecast.empty:
        st.info("No recurring subscriptions to forecast.")
        return

    fig = go.Figure()
    fig.add_trace(go.Bar(
        name="Returning",
        x=forecast["cadence_type"],
        y=forecast["returning_revenue"],
        marker_color=[CADENCE_COLORS.get(c, "#95a5a6") for c in forecast["cadence_type"]],
    ))
    fig.add_trace(go.Bar(
        name="New",
        x=forecast["cadence_type"],
        y=forecast["new_revenue"],
        marker_color="#bdc3c7",
    ))
    fig.update_layout(
        barmode="stack",
        height=280,
        margin=dict(l=40, r=20, t=10, b=30),
        plot_bgcolor="white",
        paper_bgcolor="#f8fafc",
        yaxis=dict(showgrid=True, gridcolor="#edf1f4", tickprefix="$"),
        legend=dict(orientation="h", y=1.1),
    )
    st.plotly_chart(fig, use_container_width=True, config={"displayModeBar": False})
    st.dataframe(forecast, use_container_width=True, hide_index=True)
