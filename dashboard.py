"""Streamlit dashboard for the relief site map.

Run this app with:

    streamlit run dashboard.py

The app loads the site feed configured in ``.env``, lets volunteers filter
sites from the sidebar and shows the result either on a map or as a list.
Both views are rendered from the same filtering pass, so switching between
them never changes which sites are shown.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime

import pandas as pd
import streamlit as st

from relief_map.config import load_config
from relief_map.filtering import OTHER_TYPE, TYPE_KEYWORDS, build_filter_spec
from relief_map.synchronizer import AppState, ViewSynchronizer, load_state
from relief_map.views import ListView, MapView, detail_rows, hidden_fields, status_counts

# Set up logging
logger = logging.getLogger(__name__)

URGENCY_OPTIONS = ["critical", "surplus", "normal", "stale"]
# Basemap choices offered next to the configured MAP_STYLE.
TILE_STYLES = {"Standard": "open-street-map", "Minimal": "carto-positron"}


def _now_ms() -> int:
    return int(time.time() * 1000)


def render_sidebar(state: AppState):
    """Draw the filter controls and return the spec they describe."""
    with st.sidebar:
        st.header("Filters")
        query = st.text_input("Search", placeholder="Rice, Kandy, 077...")
        location = st.text_input("Location contains")
        keywords = st.text_input("Keywords (comma separated)", placeholder="rice, water")

        statuses = sorted({s.status.strip().lower() for s in state.sites if s.status and s.status.strip()})
        urgencies = st.multiselect("Urgency", sorted(set(URGENCY_OPTIONS) | set(statuses)))
        types = st.multiselect("Site type", list(TYPE_KEYWORDS) + [OTHER_TYPE])

        use_since = st.checkbox("Only sites updated since")
        since = st.date_input("Updated since") if use_since else None

        has_needs = st.checkbox("Has needed items")
        has_surplus = st.checkbox("Has surplus items")

    return build_filter_spec(
        query=query,
        updated_since=since,
        keywords=keywords,
        location=location,
        urgencies=urgencies,
        types=types,
        has_needs=has_needs,
        has_surplus=has_surplus,
    )


def render_details(sites, hidden) -> None:
    if not sites:
        return
    labels = {f"{s.location_name or 'Unknown Location'} (#{s.index})": s for s in sites}
    choice = st.selectbox("Site details", list(labels))
    site = labels[choice]
    st.markdown(f"**{site.location_name or 'Unknown Location'}**" + (" `STALE`" if site.is_stale else ""))
    rows = detail_rows(site, hidden)
    if rows:
        st.table(pd.DataFrame(rows, columns=["Field", "Value"]).set_index("Field"))
    coords = site.coordinates()
    links = []
    if coords:
        links.append(f"[Nav](https://www.google.com/maps/search/?api=1&query={coords[0]},{coords[1]})")
    if site.phone:
        links.append(f"[Call](tel:{site.phone})")
    if links:
        st.markdown(" | ".join(links))


def main():
    st.set_page_config(page_title="Relief Map", layout="wide", initial_sidebar_state="expanded")
    logging.basicConfig(level=logging.INFO)

    try:
        config = load_config(".env")
    except Exception as e:
        st.error(f"Configuration error: {str(e)}")
        return

    st.title("Relief Map")

    reload = st.button("Reload data")
    if reload or "app_state" not in st.session_state:
        logger.info("Loading site feed from %s", config.data_url)
        with st.spinner("Loading sites..."):
            st.session_state.app_state = load_state(config, _now_ms())

    state: AppState = st.session_state.app_state
    state = state.with_spec(render_sidebar(state))
    st.session_state.app_state = state

    checked = datetime.fromtimestamp((state.loaded_at_ms or _now_ms()) / 1000).strftime("%H:%M")
    if state.error is not None:
        st.error("Error loading data.")
        st.caption(state.error)
    else:
        st.caption(f"Last Check: {checked} | Last Updated: {state.last_updated}")

    tile_styles = dict(TILE_STYLES)
    if config.map_style not in tile_styles.values():
        tile_styles = {config.map_style: config.map_style, **tile_styles}
    default_tiles = next(name for name, style in tile_styles.items() if style == config.map_style)
    names = list(tile_styles)
    tiles = st.sidebar.selectbox("Map tiles", names, index=names.index(default_tiles))
    map_view = MapView.from_config(replace(config, map_style=tile_styles[tiles]))
    list_view = ListView()
    result = ViewSynchronizer([map_view, list_view]).apply(state)

    counts = status_counts(result.visible)
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Sites Shown", f"{len(result.visible)} / {len(state.sites)}")
    with col2:
        st.metric("Critical", counts.get("critical", 0))
    with col3:
        st.metric("Surplus", counts.get("surplus", 0))
    with col4:
        st.metric("Stale", counts.get("stale", 0))

    view = st.radio("View", ["Map", "List"], horizontal=True, label_visibility="collapsed")
    if view == "Map":
        st.plotly_chart(map_view.figure, use_container_width=True)
    elif list_view.frame.empty:
        st.info("No results found.")
    else:
        st.dataframe(list_view.styled(), use_container_width=True, hide_index=True)

    render_details(result.visible, hidden_fields(config))


if __name__ == "__main__":
    main()
