import streamlit as st
import pandas as pd
from headroom import analytics, equity
from headroom.errors import MissingProfile, TablesUnavailable
from headroom.models import ScenarioInputs
from ui.headroom_view import render_result
from ui.utils import currency, get_provider, selected_ledger

def render_adjustments() -> ScenarioInputs:
    st.subheader("Adjustments")
    c1, c2 = st.columns(2)
    ordinary = c1.number_input("Ordinary Income ($)", value=0.0, step=1000.0, key="scn_ordinary",
                               help="Extra wages, bonus, option exercise spread, IRA withdrawal...")
    ltcg = c2.number_input("Long-term Capital Gains ($)", value=0.0, step=1000.0, key="scn_ltcg")

    with st.expander("Add an option exercise", expanded=False):
        e1, e2, e3 = st.columns(3)
        shares = e1.number_input("Shares", min_value=0.0, value=0.0, step=1.0, key="scn_ex_shares")
        fmv = e2.number_input("FMV / Share ($)", min_value=0.0, value=0.0, step=0.01, key="scn_ex_fmv")
        strike = e3.number_input("Strike / Share ($)", min_value=0.0, value=0.0, step=0.01, key="scn_ex_strike")
        exercise = equity.exercise_as_scenario(shares, fmv, strike)
        st.caption(f"Exercise adds {currency(exercise.additional_ordinary_income)} of ordinary income.")

    return ScenarioInputs(
        additional_ordinary_income=ordinary + exercise.additional_ordinary_income,
        additional_long_term_capital_gains=ltcg,
    )

def render_scenario():
    ledger = selected_ledger()
    st.header(f"Simulate Scenario — {ledger.year}")

    adjustment = render_adjustments()
    try:
        comparison = analytics.compare_scenario(ledger, adjustment, provider=get_provider())
    except MissingProfile:
        st.warning("Create a filing profile for this year to simulate scenarios.")
        return
    except TablesUnavailable as e:
        st.error(f"Tax table not available for this year. {e}")
        return

    deduction = ledger.profile.standard_deduction
    c1, c2 = st.columns(2)
    with c1:
        st.subheader("Baseline")
        render_result(comparison.baseline, comparison.baseline_insights, deduction, key="bar_baseline")
    with c2:
        st.subheader("Scenario with adjustments")
        if adjustment.is_zero:
            st.info("Enter adjustments to compare against your baseline.")
        else:
            render_result(comparison.scenario, comparison.scenario_insights, deduction, key="bar_scenario")

    if not adjustment.is_zero:
        st.divider()
        summary = pd.DataFrame([{
            "Δ Taxable Income": currency(comparison.delta_taxable),
            "Δ Headroom": currency(comparison.delta_headroom),
            "Baseline Rate": f"{comparison.baseline.bracket_rate:.0%}",
            "Scenario Rate": f"{comparison.scenario.bracket_rate:.0%}",
        }])
        st.dataframe(summary, hide_index=True)
        if comparison.rate_changed:
            st.warning(f"Marginal rate changes to {comparison.scenario.bracket_rate:.0%}.")
