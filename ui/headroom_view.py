import streamlit as st
import plotly.graph_objects as go
from headroom import analytics, engine, thresholds
from headroom.errors import MissingProfile, TablesUnavailable
from headroom.models import InsightStatus
from ui.utils import currency, get_provider, selected_ledger

STATUS_COLORS = {
    InsightStatus.CLEAR: "#2ca02c",
    InsightStatus.APPROACHING: "#ff7f0e",
    InsightStatus.EXCEEDED: "#d62728",
}

STATUS_ICONS = {
    InsightStatus.CLEAR: "🟢",
    InsightStatus.APPROACHING: "🟠",
    InsightStatus.EXCEEDED: "🔴",
}

def bar_maximum(result, markers) -> float:
    """Scale for the bar: the bracket ceiling, or enough room past taxable income in the top bracket."""
    if result.bracket_upper is not None:
        return result.bracket_upper
    candidates = [result.taxable_income] + [m["value"] for m in markers]
    return max(max(candidates), result.taxable_income * 1.2 + 10000)

def headroom_figure(result, insights, standard_deduction) -> go.Figure:
    markers = [
        {
            "label": i.detail.label,
            "value": i.detail.taxable_equivalent(standard_deduction),
            "status": i.status,
        }
        for i in insights
    ]
    scale_max = bar_maximum(result, markers)

    fig = go.Figure()
    fig.add_trace(go.Bar(x=[scale_max], y=["Taxable"], orientation="h",
                         marker_color="rgba(128,128,128,0.2)", hoverinfo="skip", showlegend=False))
    fig.add_trace(go.Bar(x=[min(result.taxable_income, scale_max)], y=["Taxable"], orientation="h",
                         marker_color="#1f77b4", name="Taxable Income",
                         hovertemplate="Taxable: $%{x:,.0f}<extra></extra>"))
    for m in markers:
        if m["value"] > scale_max:
            continue
        fig.add_vline(x=m["value"], line_color=STATUS_COLORS[m["status"]], line_dash="dash",
                      annotation_text=m["label"], annotation_position="top")
    fig.update_layout(barmode="overlay", height=180, margin=dict(l=10, r=10, t=40, b=10),
                      xaxis=dict(range=[0, scale_max], tickprefix="$", tickformat=",.0f"),
                      yaxis=dict(showticklabels=False))
    return fig

def render_threshold_chips(bracket_rate, insights):
    cols = st.columns(len(insights) + 1)
    cols[0].metric("Marginal Rate", f"{bracket_rate:.0%}")
    for col, insight in zip(cols[1:], insights):
        if insight.status == InsightStatus.EXCEEDED:
            detail = f"Over by {currency(-insight.proximity)}"
        else:
            detail = f"{currency(insight.proximity)} to go"
        col.metric(f"{STATUS_ICONS[insight.status]} {insight.detail.label}", currency(insight.detail.limit), detail,
                   delta_color="off")

def render_result(result, insights, standard_deduction, key="headroom_bar"):
    c1, c2, c3 = st.columns(3)
    c1.metric("Taxable Income", currency(result.taxable_income))
    upper = currency(result.bracket_upper) if result.bracket_upper is not None else "+"
    c2.metric("Current Bracket", f"{result.bracket_rate:.0%}", f"{currency(result.bracket_lower)} – {upper}",
              delta_color="off")
    if result.dollars_to_next_bracket is not None:
        c3.metric("Headroom to Next Bracket", currency(result.dollars_to_next_bracket))
    else:
        c3.metric("Headroom to Next Bracket", "Top bracket")

    if insights:
        render_threshold_chips(result.bracket_rate, insights)
    st.plotly_chart(headroom_figure(result, insights, standard_deduction), width='stretch', key=key)

def render_headroom():
    ledger = selected_ledger()
    st.header(f"Bracket Headroom — {ledger.year}")

    provider = get_provider()
    try:
        result = engine.compute_for_ledger(ledger, provider=provider)
    except MissingProfile:
        st.warning("Create a filing profile for this year in the Income Ledger tab.")
        return
    except TablesUnavailable as e:
        st.error(f"Data for this year is missing. {e}")
        return

    insights = thresholds.insights_for_ledger(ledger)
    render_result(result, insights, ledger.profile.standard_deduction)

    with st.expander("Bracket Table & Income Curve", expanded=False):
        summary = ledger.to_summary()
        table = provider.get_bracket_table(summary.year, summary.filing_status)
        st.dataframe(analytics.bracket_table_frame(table), hide_index=True)

        df_curve = analytics.headroom_curve(summary, table)
        fig = go.Figure()
        fig.add_trace(go.Scatter(x=df_curve["total_income"], y=df_curve["bracket_rate"], mode="lines",
                                 line_shape="hv", name="Marginal Rate"))
        fig.add_vline(x=summary.total_income, line_dash="dot", annotation_text="You")
        fig.update_layout(xaxis_title="Total Income ($)", yaxis_title="Marginal Rate", yaxis_tickformat=".0%")
        st.plotly_chart(fig, width='stretch')

    with st.expander("Threshold Details", expanded=False):
        st.dataframe(analytics.insights_frame(insights), hide_index=True)
