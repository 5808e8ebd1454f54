from __future__ import annotations

from datetime import date

import pandas as pd
import streamlit as st

from Home import configure_page, load_tracker_config, render_sidebar
from techlog_entry import TechlogValidationError, build_techlog_entry, submit_techlog_entry
from techlog_store import TechlogStoreError

configure_page(page_title="Daily Techlog Entry")
render_sidebar()
config = load_tracker_config()

st.title("📝 Daily Techlog Entry")

st.write(
    """
    Enter one techlog page: the header details and each sector flown. Rows missing an
    airport or a time are ignored when the entry is saved. Flight time is worked out from
    takeoff and landing; a landing earlier than the takeoff counts as the next day.
    """
)

_EMPTY_SECTORS = pd.DataFrame(
    [{"departure": "", "arrival": "", "takeoff_time": "", "landing_time": ""}],
)

with st.form("techlog-entry-form", clear_on_submit=True):
    header_cols = st.columns(2)
    techlog_number = header_cols[0].text_input("Techlog number *", placeholder="e.g., TL-2024-001")
    entry_date: date = header_cols[1].date_input("Date *", value=config.now().date())
    aircraft_registration = header_cols[0].text_input("Aircraft registration *", placeholder="e.g., N12345")
    pilot_name = header_cols[1].text_input("Pilot name *")
    co_pilot_name = header_cols[0].text_input("Co-pilot name")

    st.subheader("Sectors")
    sector_rows = st.data_editor(
        _EMPTY_SECTORS,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_config={
            "departure": st.column_config.TextColumn("Departure", max_chars=4),
            "arrival": st.column_config.TextColumn("Arrival", max_chars=4),
            "takeoff_time": st.column_config.TextColumn("Takeoff (HH:MM)", max_chars=5),
            "landing_time": st.column_config.TextColumn("Landing (HH:MM)", max_chars=5),
        },
        key="techlog-sector-editor",
    )
    submitted = st.form_submit_button("Save techlog entry", type="primary")

if not submitted:
    st.stop()

now = config.now()
try:
    entry = build_techlog_entry(
        {
            "techlog_number": techlog_number,
            "date": entry_date,
            "aircraft_registration": aircraft_registration,
            "pilot_name": pilot_name,
            "co_pilot_name": co_pilot_name,
        },
        sector_rows.to_dict("records"),
        created_at=now,
    )
except TechlogValidationError as exc:
    st.error("Please fix the following before saving:")
    for message in exc.messages:
        st.write(f"- {message}")
    st.stop()

try:
    aircraft_stats = submit_techlog_entry(config.repository(), entry, now=now)
except TechlogStoreError as exc:
    st.error(f"Unable to save the techlog entry: {exc}")
    st.stop()

st.success(
    f"Saved techlog {entry.techlog_number} for {entry.aircraft_registration} on {entry.date} "
    f"({entry.sector_count} sector{'s' if entry.sector_count != 1 else ''})."
)
st.caption(
    f"{aircraft_stats.registration}: {aircraft_stats.total_cycles} cycles, "
    f"{aircraft_stats.total_flight_hours:.1f}h total."
)
