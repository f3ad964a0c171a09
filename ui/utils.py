import streamlit as st
from headroom import persistence, report
from headroom.tax_tables import BracketTableProvider

@st.cache_resource
def get_provider() -> BracketTableProvider:
    provider = BracketTableProvider()
    provider.prime_current_year()
    return provider

def currency(value) -> str:
    return report.currency(value, cents=False, missing="—")

def selected_ledger():
    """The ledger for the year picked in the sidebar."""
    return persistence.ensure_ledger(st.session_state.ledgers, st.session_state.selected_year)

def save_all():
    persistence.save_ledgers(st.session_state.ledgers)

def enqueue_banner(message: str):
    st.session_state.banner_queue.append(message)
