from __future__ import annotations

import streamlit as st

from Home import configure_page, load_tracker_config, render_sidebar
from crew_status_reports import build_sector_frame, build_techlog_summary_frame
from techlog_store import TechlogStoreError

configure_page(page_title="Techlog Summary")
render_sidebar()
config = load_tracker_config()

st.title("📚 Techlog Summary")

try:
    entries = config.repository().list()
except TechlogStoreError as exc:
    st.error(str(exc))
    st.stop()

if not entries:
    st.info("No techlog entries yet. Add one from the Techlog Entry page.")
    st.stop()

_SORT_OPTIONS = {
    "Date": "date",
    "Techlog number": "techlog_number",
    "Registration": "aircraft_registration",
    "Pilot": "pilot_name",
    "Co-pilot": "co_pilot_name",
    "Sectors": "sectors",
    "Flight time": "flight_time",
}

controls = st.columns([3, 2, 1])
search = controls[0].text_input("Search", placeholder="Techlog, registration, pilot or date…")
sort_label = controls[1].selectbox("Sort by", list(_SORT_OPTIONS))
descending = controls[2].toggle("Descending", value=True)

summary_df = build_techlog_summary_frame(
    entries,
    search=search,
    sort_by=_SORT_OPTIONS[sort_label],
    ascending=not descending,
)

st.caption(f"Showing {len(summary_df)} of {len(entries)} entries.")
st.dataframe(summary_df.drop(columns=["_id"]), use_container_width=True, hide_index=True)

entries_by_id = {entry.id: entry for entry in entries}
for _, row in summary_df.iterrows():
    entry = entries_by_id.get(row["_id"])
    if entry is None:
        continue
    with st.expander(f"{entry.date} • {entry.techlog_number} • {entry.aircraft_registration}"):
        st.write(f"Pilot: {entry.pilot_name}" + (f" • Co-pilot: {entry.co_pilot_name}" if entry.co_pilot_name else ""))
        st.dataframe(build_sector_frame(entry), use_container_width=True, hide_index=True)
