from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Optional

import streamlit as st

from aircraft_status import calculate_fleet_stats
from crew_limits import calculate_all_pilot_stats
from techlog_store import TechlogStoreError
from tracker_config import SECRETS_SECTION, TrackerConfig, TrackerConfigError, build_tracker_config


_PAGE_CONFIGURED_KEY = "_page_configured"
_DEFAULT_PAGE_TITLE = "Crew Status Tracker"
_DEFAULT_PAGE_ICON = "✈️"
_CONFIRM_CLEAR_KEY = "_confirm_clear_data"


def _load_tracker_settings() -> Optional[Dict[str, Any]]:
    """Return the ``[crew_tracker]`` secrets section when one is configured."""

    try:
        secrets = st.secrets  # type: ignore[attr-defined]
        section = secrets[SECRETS_SECTION]
    except Exception:
        # No secrets.toml at all, or no section in it: run on defaults.
        return None

    if isinstance(section, Mapping):
        return dict(section)

    items_getter = getattr(section, "items", None)
    if callable(items_getter):
        return dict(items_getter())

    return None


def load_tracker_config() -> TrackerConfig:
    """Build the tracker settings, stopping the page if they are unusable."""

    try:
        return build_tracker_config(_load_tracker_settings())
    except TrackerConfigError as exc:
        st.error(f"{exc} Update `.streamlit/secrets.toml` and refresh the app.")
        st.stop()
        raise


def configure_page(*, page_title: str | None = None) -> None:
    """Set the Streamlit page configuration once per run."""

    if not st.session_state.get(_PAGE_CONFIGURED_KEY):
        st.set_page_config(
            page_title=page_title or _DEFAULT_PAGE_TITLE,
            page_icon=_DEFAULT_PAGE_ICON,
            layout="wide",
        )
        st.session_state[_PAGE_CONFIGURED_KEY] = True

    st.markdown(
        """
        <style>
            section[data-testid="stSidebar"] div[data-testid="stSidebarNav"] {
                display: none;
            }
        </style>
        """,
        unsafe_allow_html=True,
    )


def _sidebar_links() -> list[dict[str, Any]]:
    return [
        {
            "label": "📝 Techlog",
            "expanded": True,
            "links": [
                {"path": "pages/Techlog Entry.py", "label": "Daily Techlog Entry"},
                {"path": "pages/Techlog Summary.py", "label": "Techlog Summary"},
            ],
        },
        {
            "label": "📊 Status Dashboards",
            "expanded": True,
            "links": [
                {"path": "pages/Crew Status Dashboard.py", "label": "Crew Status"},
                {"path": "pages/Aircraft Status Dashboard.py", "label": "Aircraft Status"},
            ],
        },
    ]


def _clear_tracker_data(config: TrackerConfig) -> bool:
    """Delete the techlog data file; entries and aircraft rollups go with it."""

    try:
        config.repository().clear()
    except TechlogStoreError as exc:
        st.sidebar.error(str(exc))
        return False
    st.sidebar.success("All techlog data cleared.")
    return True


def _render_clear_data_control() -> None:
    with st.sidebar.expander("🗑️ Data", expanded=False):
        confirmed = st.checkbox(
            "I understand this deletes every techlog entry and cannot be undone.",
            key=_CONFIRM_CLEAR_KEY,
        )
        if st.button("Clear all data", disabled=not confirmed, key="_clear_data_button"):
            _clear_tracker_data(load_tracker_config())


def render_sidebar() -> None:
    st.sidebar.title("🧭 Navigation")
    st.sidebar.page_link("Home.py", label="🏠 Overview")

    for section in _sidebar_links():
        with st.sidebar.expander(section["label"], expanded=section["expanded"]):
            for link in section["links"]:
                st.page_link(link["path"], label=link["label"])

    _render_clear_data_control()


def main() -> None:
    configure_page()
    render_sidebar()
    config = load_tracker_config()

    st.title("✈️ Crew Status Tracker")
    st.write(
        """
        Record daily techlog pages and keep an eye on flight time, duty time,
        sector and rest limits for every pilot, plus cycles and hours per aircraft.
        """
    )

    try:
        entries = config.repository().list()
    except TechlogStoreError as exc:
        st.error(str(exc))
        st.stop()

    now = config.now()
    pilot_stats = calculate_all_pilot_stats(entries, now=now)
    fleet_stats = calculate_fleet_stats(entries, now=now)

    metrics_row = st.columns(4)
    metrics_row[0].metric("Techlog entries", len(entries))
    metrics_row[1].metric("Pilots", len(pilot_stats))
    metrics_row[2].metric("Pilots over a limit", sum(1 for stats in pilot_stats if stats.has_exceedance))
    metrics_row[3].metric("Aircraft", len(fleet_stats))

    st.caption(f"Home base {config.home_base} • times evaluated in {config.timezone}")


if __name__ == "__main__":
    main()
