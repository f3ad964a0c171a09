import logging
from datetime import datetime

import streamlit as st
from headroom import persistence
from ui import headroom_view, ledger, report, scenario
from ui.utils import enqueue_banner

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

st.set_page_config(page_title="Headroom Calculator", layout="wide")
st.title("Bracket Headroom Planner")

# --- SESSION STATE INITIALIZATION ---
if "banner_queue" not in st.session_state:
    st.session_state.banner_queue = []

# Load ledgers from disk once per session; repair messages are shown before seed notices
if "ledgers" not in st.session_state:
    first_run = not persistence.store_exists()
    loaded, repair_report = persistence.load_ledgers()
    for msg in repair_report.banner_messages:
        enqueue_banner(msg)
    # Seed only a brand-new store, never over a file that failed to load
    if first_run:
        sample = persistence.seed_sample_ledger()
        loaded[sample.year] = sample
        persistence.save_ledgers(loaded)
        enqueue_banner(f"Sample data added for {sample.year}. You can modify it or delete it and add your own.")
    st.session_state.ledgers = loaded

if "selected_year" not in st.session_state:
    st.session_state.selected_year = datetime.now().year

# --- SIDEBAR: TAX YEAR ---
with st.sidebar:
    years = sorted(set(st.session_state.ledgers) | {datetime.now().year})
    st.selectbox("Tax Year", years, key="selected_year")
    new_year = st.number_input("Add Year", 2000, 2100, datetime.now().year + 1, key="new_year")
    if st.button("Create Year Ledger"):
        persistence.ensure_ledger(st.session_state.ledgers, int(new_year))
        persistence.save_ledgers(st.session_state.ledgers)
        st.rerun()

# --- BANNERS ---
while st.session_state.banner_queue:
    st.info(st.session_state.banner_queue.pop(0))

# --- MAIN TABS ---
tab_ledger, tab_headroom, tab_scenario, tab_report = st.tabs(["Income Ledger", "Headroom", "Simulate Scenario", "Report"])

with tab_ledger:
    ledger.render_ledger()

with tab_headroom:
    headroom_view.render_headroom()

with tab_scenario:
    scenario.render_scenario()

with tab_report:
    report.render_report()
