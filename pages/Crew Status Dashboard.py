from __future__ import annotations

import pandas as pd
import streamlit as st

from Home import configure_page, load_tracker_config, render_sidebar
from crew_limits import DUTY_TIME_LIMITS, FLIGHT_TIME_LIMITS, SECTOR_LIMITS, calculate_all_pilot_stats
from crew_status_reports import (
    build_daily_details_frame,
    build_exceedance_frame,
    build_pilot_stats_frame,
    build_rest_period_frame,
    filter_pilot_stats,
)
from duty_rest import MIN_REST_HOURS, evaluate_rest_compliance, group_daily_duty
from techlog_store import TechlogStoreError

configure_page(page_title="Crew Status Dashboard")
render_sidebar()
config = load_tracker_config()

st.title("🧑‍✈️ Crew Status Dashboard")

try:
    entries = config.repository().list()
except TechlogStoreError as exc:
    st.error(str(exc))
    st.stop()

now = config.now()
all_stats = calculate_all_pilot_stats(entries, now=now)

if not all_stats:
    st.info("No crew data available. Add some techlog entries to see pilot statistics.")
    st.stop()

search = st.text_input("Search pilots", placeholder="Search by pilot name…")
pilot_stats = filter_pilot_stats(all_stats, search)


def _highlight_exceeded(frame: pd.DataFrame, flags: pd.DataFrame, mapping: dict[str, str]):
    def _style(row: pd.Series) -> list[str]:
        flag_row = flags.loc[row.name]
        return [
            "color: #dc2626; font-weight: 600" if column in mapping and flag_row[mapping[column]] else ""
            for column in row.index
        ]

    return frame.style.apply(_style, axis=1)


stats_df = build_pilot_stats_frame(pilot_stats)
flags_df = build_exceedance_frame(pilot_stats)

overview_tab, flight_tab, duty_tab = st.tabs(["Overview", "Flight Time", "Duty Time"])

with overview_tab:
    metrics_row = st.columns(3)
    metrics_row[0].metric("Pilots", len(pilot_stats))
    metrics_row[1].metric("With exceedances", int(stats_df["Exceedance"].sum()) if not stats_df.empty else 0)
    metrics_row[2].metric("Sector limit (24h)", SECTOR_LIMITS["24h"])
    st.dataframe(
        _highlight_exceeded(
            stats_df,
            flags_df,
            {
                "Flight 7d (h)": "flightTime7Days",
                "Flight 28d (h)": "flightTime28Days",
                "Flight 365d (h)": "flightTime365Days",
                "Duty 7d (h)": "dutyTime7Days",
                "Duty 28d (h)": "dutyTime28Days",
                "Duty 365d (h)": "dutyTime365Days",
                "Sectors 24h": "sectors24Hours",
            },
        ),
        use_container_width=True,
        hide_index=True,
    )

with flight_tab:
    st.caption(
        "Limits: "
        + " • ".join(f"{label} {limit}h" for label, limit in FLIGHT_TIME_LIMITS.items())
        + f" • {SECTOR_LIMITS['24h']} sectors in 24h"
    )
    flight_columns = ["Pilot", "Flight 7d (h)", "Flight 28d (h)", "Flight 365d (h)", "Sectors 24h"]
    st.dataframe(
        _highlight_exceeded(
            stats_df[flight_columns],
            flags_df,
            {
                "Flight 7d (h)": "flightTime7Days",
                "Flight 28d (h)": "flightTime28Days",
                "Flight 365d (h)": "flightTime365Days",
                "Sectors 24h": "sectors24Hours",
            },
        ),
        use_container_width=True,
        hide_index=True,
    )

with duty_tab:
    st.caption("Limits: " + " • ".join(f"{label} {limit}h" for label, limit in DUTY_TIME_LIMITS.items()))
    duty_columns = ["Pilot", "Duty 7d (h)", "Duty 28d (h)", "Duty 365d (h)"]
    st.dataframe(
        _highlight_exceeded(
            stats_df[duty_columns],
            flags_df,
            {
                "Duty 7d (h)": "dutyTime7Days",
                "Duty 28d (h)": "dutyTime28Days",
                "Duty 365d (h)": "dutyTime365Days",
            },
        ),
        use_container_width=True,
        hide_index=True,
    )

st.subheader("Pilot details")

for stats in pilot_stats:
    rest = evaluate_rest_compliance(stats.pilot_name, entries, now=now, home_base=config.home_base)
    status_icon = "✅" if rest.is_fully_compliant and not stats.has_exceedance else "⚠️"
    with st.expander(f"{status_icon} {stats.pilot_name}"):
        rest_cols = st.columns(4)
        rest_cols[0].metric("Overnights (total)", rest.total_overnights)
        rest_cols[1].metric("Overnights (7d)", rest.recent_overnights)
        rest_cols[2].metric(
            "Rest periods (7d)",
            f"{rest.recent_compliant_rest_count}/{rest.recent_rest_count}",
        )
        rest_cols[3].metric("Rest compliant (7d)", "Yes" if rest.is_fully_compliant else "No")

        st.caption(
            f"Rest is measured from last landing +15m to next first takeoff +45m and must be at least "
            f"{MIN_REST_HOURS:.0f}h. Overnight means the day ended away from {config.home_base}."
        )

        daily = group_daily_duty(stats.pilot_name, entries, home_base=config.home_base)
        st.markdown("**Daily flight details**")
        st.dataframe(build_daily_details_frame(daily), use_container_width=True, hide_index=True)

        if rest.recent_rest_periods:
            st.markdown("**Rest periods, last 7 days**")
            st.dataframe(build_rest_period_frame(rest.recent_rest_periods), use_container_width=True, hide_index=True)

        if rest.rest_periods:
            st.markdown(
                f"**All rest periods** ({rest.compliant_rest_count} of {rest.total_rest_count} compliant)"
            )
            st.dataframe(build_rest_period_frame(rest.rest_periods), use_container_width=True, hide_index=True)
