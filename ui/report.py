import streamlit as st
from headroom import report
from ui.utils import get_provider, selected_ledger

def render_report():
    ledger = selected_ledger()
    st.header("Report")

    data = report.build_report(ledger, provider=get_provider())
    text = report.render_markdown(data)

    st.download_button("Download Report (Markdown)", data=text,
                       file_name=f"HeadroomCalc_Report_{ledger.year}.md", mime="text/markdown")
    with st.container(border=True):
        st.markdown(text)
