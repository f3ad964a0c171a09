import streamlit as st
import pandas as pd
from headroom import engine, equity, market_data
from headroom.errors import HeadroomError
from headroom.income import FilingProfile, IncomeEntry, IncomeSourceType
from headroom.models import FilingStatus
from headroom.tax_rules import standard_deduction_for
from ui.utils import currency, get_provider, save_all, selected_ledger

def render_profile_editor(ledger):
    st.subheader("Filing Profile")
    statuses = list(FilingStatus)
    current = ledger.profile

    c1, c2 = st.columns(2)
    with c1:
        idx = statuses.index(current.status) if current else 0
        status = st.selectbox("Filing Status", statuses, index=idx, format_func=lambda s: s.value,
                              key=f"profile_status_{ledger.year}")
    with c2:
        default_ded = current.standard_deduction if current else standard_deduction_for(ledger.year, status)
        deduction = st.number_input("Standard Deduction ($)", min_value=0.0, value=float(default_ded),
                                    step=100.0, key=f"profile_ded_{ledger.year}")

    label = "Update Profile" if current else "Create Profile"
    if st.button(label, key=f"btn_profile_{ledger.year}"):
        ledger.profile = FilingProfile(year=ledger.year, status=status, standard_deduction=deduction)
        save_all()
        st.success(f"Saved {status.value} profile for {ledger.year}.")
        st.rerun()

def render_entry_list(ledger):
    st.subheader(f"Income Entries ({len(ledger.entries)})")
    if not ledger.entries:
        st.info("No income entries yet. Add one below.")
        return

    # Grouped by section, in menu order
    ordered = sorted(ledger.entries, key=lambda e: (e.source_type.ui_sort_index, e.created_at))
    current_section = None
    for entry in ordered:
        section = entry.source_type.section_title
        if section != current_section:
            st.markdown(f"**{section}**")
            current_section = section
        c1, c2, c3, c4 = st.columns([3, 2, 1.5, 0.5])
        c1.write(entry.display_name)
        c2.caption(entry.source_type.value)
        c3.write(currency(entry.amount))
        if c4.button("X", key=f"del_entry_{entry.id}"):
            ledger.remove_entry(entry.id)
            save_all()
            st.rerun()

    st.metric("Total Income", currency(ledger.total_income))

def render_equity_fields(ledger, source_type):
    """Share-based inputs. Returns (shares, fmv, strike_or_basis, symbol)."""
    c1, c2 = st.columns(2)
    symbol = c1.text_input("Ticker (optional)", key="eq_symbol")
    if symbol and c2.button("Fetch FMV"):
        price = market_data.get_latest_price(symbol)
        if price is None:
            st.warning(f"No price found for {symbol.upper()}.")
        else:
            st.session_state.eq_fmv = price
    shares = c1.number_input("Shares", min_value=0.0, value=0.0, step=1.0, key="eq_shares")
    fmv = c2.number_input("FMV / Share ($)", min_value=0.0, step=0.01, key="eq_fmv")

    if source_type.is_stock_option:
        strike = c1.number_input("Strike (Award) / Share ($)", min_value=0.0, value=0.0, step=0.01, key="eq_strike")
        available = c2.number_input("Shares Available", min_value=0.0, value=0.0, step=1.0, key="eq_available",
                                    help="Leave at 0 to ignore")
        render_option_readouts(ledger, shares, fmv, strike, available or None)
        return shares, fmv, strike, symbol

    basis = c1.number_input("Cost Basis / Share ($)", min_value=0.0, value=0.0, step=0.01, key="eq_basis")
    return shares, fmv, basis, symbol

def render_option_readouts(ledger, shares, fmv, strike, available):
    spread = equity.option_spread_per_share(fmv, strike)
    taxable_add = equity.option_exercise_income(shares, fmv, strike)

    headroom_dollars = None
    try:
        headroom_dollars = engine.compute_for_ledger(ledger, provider=get_provider()).dollars_to_next_bracket
    except HeadroomError as e:
        st.caption(f"Headroom unavailable: {e}")

    c1, c2, c3 = st.columns(3)
    c1.metric("Bargain Element / Share", currency(spread))
    c2.metric("Estimated Taxable Add", currency(taxable_add))
    remaining = equity.remaining_headroom_after(headroom_dollars, taxable_add)
    c3.metric("Remaining Headroom After", currency(remaining))

    max_shares = equity.max_shares_within_headroom(headroom_dollars, spread, available)
    if max_shares is None:
        st.caption("Max Shares Within Headroom: —")
    else:
        st.caption(f"Max Shares Within Headroom: {max_shares:,.0f}")

    if available and shares > available:
        st.error(f"Warning: Shares exceed available ({shares:,.0f} > {available:,.0f}).")
    st.caption("Estimate uses FMV − Strike; AMT not modeled.")

def render_add_entry(ledger):
    with st.expander("➕ Add Income", expanded=not ledger.entries):
        source_type = st.selectbox("Income Type", IncomeSourceType.sorted_for_ui(),
                                   format_func=lambda s: s.value, key="new_entry_type")
        name = st.text_input("Name", placeholder=source_type.value, key="new_entry_name")

        if source_type.is_equity:
            shares, fmv, strike_or_basis, symbol = render_equity_fields(ledger, source_type)
            if st.button("Add Entry", key="btn_add_equity"):
                entry = equity.build_equity_entry(source_type, shares, fmv, strike_or_basis,
                                                  display_name=name, symbol=symbol or None)
                ledger.add_entry(entry)
                save_all()
                st.success(f"Added {entry.display_name}: {currency(entry.amount)}")
                st.rerun()
        else:
            amount = st.number_input("Amount ($)", value=0.0, step=1000.0, key="new_entry_amount")
            if st.button("Add Entry", key="btn_add_entry"):
                ledger.add_entry(IncomeEntry(source_type=source_type, display_name=name or source_type.value,
                                             amount=amount))
                save_all()
                st.success(f"Added {name or source_type.value}: {currency(amount)}")
                st.rerun()

def render_category_breakdown(ledger):
    totals = ledger.totals_by_category()
    if not totals:
        return
    df = pd.DataFrame([{"Category": c.value, "Amount": a} for c, a in totals.items()])
    st.dataframe(df, hide_index=True)

def render_ledger():
    ledger = selected_ledger()
    st.header(f"Income Ledger — {ledger.year}")

    c1, c2 = st.columns([2, 1])
    with c1:
        render_entry_list(ledger)
        render_add_entry(ledger)
    with c2:
        render_profile_editor(ledger)
        st.divider()
        render_category_breakdown(ledger)
