from __future__ import annotations

import streamlit as st

from Home import configure_page, load_tracker_config, render_sidebar
from aircraft_status import calculate_fleet_stats
from crew_status_reports import (
    RECENT_ACTIVITY_LIMIT,
    build_aircraft_stats_frame,
    build_recent_activity_frame,
    summarize_fleet,
)
from techlog_store import TechlogStoreError

configure_page(page_title="Aircraft Status Dashboard")
render_sidebar()
config = load_tracker_config()

st.title("🛩️ Aircraft Status Dashboard")

try:
    entries = config.repository().list()
except TechlogStoreError as exc:
    st.error(str(exc))
    st.stop()

# Rebuilt from the entry set on every run rather than read from the cached rollup.
fleet_stats = calculate_fleet_stats(entries, now=config.now())

if not fleet_stats:
    st.info("No aircraft data available. Add some techlog entries to see aircraft statistics.")
    st.stop()

card_columns = st.columns(3)
for index, stats in enumerate(fleet_stats):
    with card_columns[index % 3]:
        with st.container(border=True):
            st.subheader(stats.registration)
            metric_cols = st.columns(2)
            metric_cols[0].metric("Total cycles", stats.total_cycles)
            metric_cols[1].metric("Flight hours", f"{stats.total_flight_hours:.1f}h")
            average = stats.total_flight_hours / stats.total_cycles if stats.total_cycles else 0.0
            st.caption(f"Avg {average:.1f}h per cycle")

st.subheader("Fleet summary")
summary = summarize_fleet(fleet_stats)
summary_cols = st.columns(4)
summary_cols[0].metric("Total aircraft", summary["total_aircraft"])
summary_cols[1].metric("Total cycles", summary["total_cycles"])
summary_cols[2].metric("Total flight hours", f"{summary['total_flight_hours']:.1f}h")
summary_cols[3].metric("Avg hours / aircraft", f"{summary['average_hours_per_aircraft']:.1f}h")

st.subheader("Recent activity")
st.caption(f"The {RECENT_ACTIVITY_LIMIT} aircraft with the most recent techlog entries.")
st.dataframe(build_recent_activity_frame(fleet_stats), use_container_width=True, hide_index=True)

st.subheader("All aircraft")
st.dataframe(build_aircraft_stats_frame(fleet_stats), use_container_width=True, hide_index=True)
