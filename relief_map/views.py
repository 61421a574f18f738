"""Map and list presentations of the visible sites.

Both views implement ``render_visible`` and are driven by
:class:`~relief_map.synchronizer.ViewSynchronizer`. They only build the
Plotly figure or pandas DataFrame; putting them on screen is left to the
Streamlit app so the views can be exercised without a browser.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

import pandas as pd
import plotly.graph_objects as go

from .classification import to_epoch_ms
from .config import DEFAULT_MAP_STYLE, Config
from .data_ingestion import LOCATION_NAME, PHONE, ItemLine, Site
from .styles import NORMAL_STYLE, MarkerStyle, resolve_style


logger = logging.getLogger(__name__)

LIST_COLUMNS = ["Location Name", "Phone", "Status", "Stale", "Updated", "Needed", "Surplus"]


def hidden_fields(config: Config) -> Set[str]:
    """Fields left out of the detail table: system columns plus those shown in the header."""
    return set(config.system_columns) | {LOCATION_NAME, PHONE}


def format_items(lines: Iterable[ItemLine]) -> str:
    return ", ".join(f"{line.item} ({line.amount})" if line.amount else line.item for line in lines)


def format_updated(value: Any) -> str:
    ms = to_epoch_ms(value)
    if ms is None:
        return "Unknown"
    return pd.Timestamp(ms, unit="ms", tz="UTC").strftime("%Y-%m-%d %H:%M UTC")


def detail_rows(site: Site, hidden: Iterable[str]) -> List[Tuple[str, str]]:
    """Return ``(field, text)`` rows for a site's popup or card.

    Hidden fields are skipped, and so are empty lists.
    """
    rows = []
    for key, value in site.extra_fields(hidden):
        if isinstance(value, list):
            text = format_items(site.items(key))
            if not text:
                continue
        else:
            text = "" if value is None else str(value)
        rows.append((key, text))
    return rows


def status_counts(sites: Sequence[Site]) -> Dict[str, int]:
    if not sites:
        return {}
    counts = pd.Series([site.display_status for site in sites]).value_counts()
    return {str(k): int(v) for k, v in counts.items()}


class MapView:
    """Spatial view: one marker per site, coloured by display status."""

    def __init__(
        self,
        center: Tuple[float, float] = (7.9, 81.0),
        zoom: int = 6,
        style: str = DEFAULT_MAP_STYLE,
    ):
        self.center = center
        self.zoom = zoom
        self.style = style
        self.figure: Optional[go.Figure] = None
        self.keys: Set[int] = set()
        self.styles: Dict[int, MarkerStyle] = {}

    @classmethod
    def from_config(cls, config: Config) -> "MapView":
        return cls((config.map_center_lat, config.map_center_lng), config.map_zoom, config.map_style)

    def render_visible(self, sites: List[Site]) -> None:
        self.keys = {site.index for site in sites}
        self.styles = {site.index: resolve_style(site.display_status) for site in sites}
        groups: "OrderedDict[str, List[Tuple[Site, Tuple[float, float]]]]" = OrderedDict()
        skipped = 0
        for site in sites:
            coords = site.coordinates()
            if coords is None:
                skipped += 1
                continue
            groups.setdefault(site.display_status, []).append((site, coords))
        if skipped:
            logger.debug("%d visible sites have no usable coordinates", skipped)

        fig = go.Figure()
        all_points = []
        for status, members in groups.items():
            style = resolve_style(status)
            all_points.extend(coords for _, coords in members)
            fig.add_trace(
                go.Scattermap(
                    lat=[coords[0] for _, coords in members],
                    lon=[coords[1] for _, coords in members],
                    mode="markers",
                    name=status,
                    marker=dict(size=12, color=style.color, opacity=style.opacity),
                    text=[site.location_name or "Unknown Location" for site, _ in members],
                    customdata=[site.index for site, _ in members],
                    hovertemplate="%{text}<extra>" + status + "</extra>",
                )
            )

        if all_points:
            center = dict(
                lat=sum(p[0] for p in all_points) / len(all_points),
                lon=sum(p[1] for p in all_points) / len(all_points),
            )
        else:
            center = dict(lat=self.center[0], lon=self.center[1])
        fig.update_layout(
            map=dict(center=center, zoom=self.zoom, style=self.style),
            margin={"r": 0, "t": 0, "l": 0, "b": 0},
            height=600,
            legend_title_text="Status",
        )
        self.figure = fig


class ListView:
    """Enumerable view: one table row per site."""

    def __init__(self) -> None:
        self.frame: pd.DataFrame = pd.DataFrame(columns=LIST_COLUMNS)
        self.keys: Set[int] = set()
        self.styles: Dict[int, MarkerStyle] = {}

    def render_visible(self, sites: List[Site]) -> None:
        self.keys = {site.index for site in sites}
        self.styles = {site.index: resolve_style(site.display_status) for site in sites}
        rows = [
            {
                "Location Name": site.location_name or "Unknown Location",
                "Phone": site.phone,
                "Status": site.display_status,
                "Stale": site.is_stale,
                "Updated": format_updated(site.updated_at),
                "Needed": format_items(site.needed),
                "Surplus": format_items(site.surplus),
            }
            for site in sites
        ]
        self.frame = pd.DataFrame(rows, columns=LIST_COLUMNS, index=[site.index for site in sites])

    def row_css(self, row: pd.Series) -> List[str]:
        """CSS for one table row, using the same style as the site's marker."""
        style = self.styles.get(row.name, NORMAL_STYLE)
        css = f"opacity: {style.opacity}"
        return [f"{css}; color: {style.color}; font-weight: bold" if col == "Status" else css for col in row.index]

    def styled(self) -> "pd.io.formats.style.Styler":
        return self.frame.style.apply(self.row_css, axis=1)
