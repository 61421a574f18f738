"""Unit tests for marker styles and the map/list views."""

import pytest

from relief_map.config import Config
from relief_map.styles import NORMAL_STYLE, MarkerStyle, resolve_style
from relief_map.synchronizer import AppState, ViewSynchronizer
from relief_map.filtering import build_filter_spec
from relief_map.views import (
    LIST_COLUMNS,
    ListView,
    MapView,
    detail_rows,
    format_items,
    format_updated,
    hidden_fields,
    status_counts,
)


class TestResolveStyle:
    def test_known_labels(self):
        assert resolve_style("critical") == MarkerStyle("#EF4444", 1.0)
        assert resolve_style("surplus") == MarkerStyle("#10B981", 1.0)
        assert resolve_style("normal") == NORMAL_STYLE

    def test_stale_is_faded(self):
        style = resolve_style("stale")
        assert style.opacity < 1.0
        assert style.color == "#9CA3AF"

    @pytest.mark.parametrize("label", [None, "", "urgent", "CRITICALISH"])
    def test_unknown_labels_fall_back_to_normal(self, label):
        assert resolve_style(label) == NORMAL_STYLE

    def test_case_insensitive(self):
        assert resolve_style(" Critical ") == resolve_style("critical")


class TestFormatting:
    def test_format_items(self, sites):
        assert format_items(sites[0].needed) == "Rice (10kg), Dhal (5kg)"
        assert format_items([]) == ""

    def test_format_updated(self):
        assert format_updated("2024-01-01T10:30:00Z") == "2024-01-01 10:30 UTC"
        assert format_updated("bogus") == "Unknown"

    def test_hidden_fields(self):
        hidden = hidden_fields(Config(system_columns=("id", "lat")))
        assert hidden == {"id", "lat", "Location Name", "Phone"}

    def test_detail_rows_skip_hidden_and_empty_lists(self, sites):
        rows = detail_rows(sites[0], hidden_fields(Config()))
        assert rows == [("needed", "Rice (10kg), Dhal (5kg)"), ("Notes", "Gate B")]

    def test_status_counts(self, sites):
        assert status_counts(sites) == {"critical": 2, "surplus": 1, "stale": 1, "normal": 1}
        assert status_counts([]) == {}


class TestMapView:
    def test_one_trace_per_status(self, sites):
        view = MapView()
        view.render_visible(sites)
        names = [trace.name for trace in view.figure.data]
        assert sorted(names) == ["critical", "normal", "stale", "surplus"]

    def test_stale_trace_is_faded(self, sites):
        view = MapView()
        view.render_visible(sites)
        stale = next(t for t in view.figure.data if t.name == "stale")
        assert stale.marker.opacity == 0.5
        assert stale.marker.color == "#9CA3AF"

    def test_sites_without_coordinates_are_not_plotted(self, sites):
        view = MapView()
        view.render_visible(sites)
        plotted = sum(len(trace.lat) for trace in view.figure.data)
        assert plotted == 4
        assert view.keys == {0, 1, 2, 3, 4}

    def test_empty_uses_default_center(self):
        view = MapView(center=(1.0, 2.0), zoom=4)
        view.render_visible([])
        assert len(view.figure.data) == 0
        assert view.figure.layout.map.center.lat == 1.0
        assert view.figure.layout.map.zoom == 4

    def test_default_tile_style(self):
        view = MapView()
        view.render_visible([])
        assert view.figure.layout.map.style == "open-street-map"

    def test_tile_style_from_config(self, sites):
        view = MapView.from_config(Config(map_style="carto-positron"))
        view.render_visible(sites)
        assert view.style == "carto-positron"
        assert view.figure.layout.map.style == "carto-positron"


class TestListView:
    def test_rows(self, sites):
        view = ListView()
        view.render_visible(sites[:2])
        assert list(view.frame.columns) == LIST_COLUMNS
        assert list(view.frame["Location Name"]) == ["Kandy Central School", "Colombo Town Hall"]
        assert list(view.frame["Surplus"]) == ["", "Water bottles (200)"]

    def test_unknown_location_label(self, sites):
        view = ListView()
        view.render_visible([sites[4]])
        assert view.frame.iloc[0]["Location Name"] == "Unknown Location"

    def test_empty(self):
        view = ListView()
        view.render_visible([])
        assert view.frame.empty

    def test_rows_carry_marker_styles(self, sites):
        view = ListView()
        view.render_visible(sites)
        assert view.styles[2] == MarkerStyle("#9CA3AF", 0.5)
        assert view.styles[0] == resolve_style("critical")

    def test_styled_table_colours_status(self, sites):
        view = ListView()
        view.render_visible(sites[:3])
        html = view.styled().to_html()
        assert "#EF4444" in html
        assert "#9CA3AF" in html
        assert "opacity: 0.5" in html


class TestViewParity:
    def test_map_and_list_show_the_same_sites(self, sites):
        map_view, list_view = MapView(), ListView()
        synchronizer = ViewSynchronizer([map_view, list_view])
        for spec in (
            build_filter_spec(),
            build_filter_spec(urgencies=["critical"]),
            build_filter_spec(keywords=["rice"], has_surplus=True),
            build_filter_spec(query="nothing"),
        ):
            result = synchronizer.apply(AppState(sites=tuple(sites), spec=spec))
            expected = {s.index for s in result.visible}
            assert map_view.keys == list_view.keys == expected
            assert set(list_view.frame.index) == expected

    def test_map_and_list_use_the_same_style(self, sites):
        map_view, list_view = MapView(), ListView()
        synchronizer = ViewSynchronizer([map_view, list_view])
        for spec in (build_filter_spec(), build_filter_spec(urgencies=["stale", "normal"])):
            result = synchronizer.apply(AppState(sites=tuple(sites), spec=spec))
            assert map_view.styles == list_view.styles
            assert set(list_view.styles) == {s.index for s in result.visible}
            for site in result.visible:
                assert list_view.styles[site.index] == resolve_style(site.display_status)
        traces = {trace.name: trace.marker for trace in map_view.figure.data}
        for site in result.visible:
            if site.coordinates() is not None:
                marker = traces[site.display_status]
                assert (marker.color, marker.opacity) == tuple(list_view.styles[site.index])
