"""Tests for FilterSession: selection transitions, render pipeline, fetch failure handling."""

import pytest

from core.errors import DataFetchFailure
from core.models import FilterPredicate
from core.session import FilterChanged, FilterSession, apply_change
from mapview.boundaries import DEFAULT_STYLE
from mapview.viewport import NO_CHANGE, Viewport


def _session(**kw):
    kw.setdefault("padding", (50, 50))
    kw.setdefault("zoom", 6)
    kw.setdefault("map_size", (1024, 768))
    kw.setdefault("max_zoom", 18)
    kw.setdefault("radius_px", 80)
    return FilterSession(**kw)


def _ids(incidents):
    return [i.id for i in incidents]


class TestApplyChange:
    def test_replaces_one_field(self):
        pred = FilterPredicate(district="Bhopal", complaint="Theft")
        new = apply_change(pred, FilterChanged("call_type", "Emergency"))
        assert new == FilterPredicate(district="Bhopal", complaint="Theft", call_type="Emergency")
        assert pred.call_type is None

    def test_empty_value_clears_field(self):
        pred = FilterPredicate(district="Bhopal", complaint="Theft")
        assert apply_change(pred, FilterChanged("district", "")).to_dict() == {"complaint": "Theft"}

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            FilterChanged("address", "MG Road")


class TestInitialState:
    def test_predicate_starts_empty(self, scenario_rows):
        session = _session()
        result = session.load_incidents(scenario_rows)
        assert session.get_active_predicate() == FilterPredicate()
        assert _ids(result.matching) == ["1", "2"]

    def test_vocabularies_from_snapshot(self, mixed_rows):
        session = _session()
        session.load_incidents(mixed_rows)
        vocab = session.get_vocabularies()
        assert vocab.district == ["Bhopal", "Gwalior", "Indore"]
        assert vocab.call_type == ["Emergency", "Information", "Non-Emergency"]

    def test_load_only_once(self, scenario_rows):
        session = _session()
        session.load_incidents(scenario_rows)
        with pytest.raises(RuntimeError):
            session.load_incidents(scenario_rows)


class TestScenarios:
    def test_district_filter_keeps_vocabularies(self, scenario_rows):
        session = _session()
        session.load_incidents(scenario_rows)
        result = session.set_filter({"district": "Bhopal"})
        assert _ids(result.matching) == ["1"]
        assert [_ids(c.members) for c in result.visible_clusters] == [["1"]]
        assert session.get_vocabularies().district == ["Bhopal", "Indore"]

    def test_call_type_matches_both(self, scenario_rows):
        session = _session()
        session.load_incidents(scenario_rows)
        result = session.set_filter({"callType": "Emergency"})
        assert _ids(result.matching) == ["1", "2"]
        assert sum(c.count for c in result.visible_clusters) == 2
        assert isinstance(result.viewport, Viewport)

    def test_match_without_position(self):
        session = _session()
        session.load_incidents([{"id": "x", "district": "Bhopal", "complaint": "Theft", "call_type": "Emergency"}])
        result = session.set_filter(district="Bhopal")
        assert _ids(result.matching) == ["x"]
        assert result.visible_clusters == []
        assert result.viewport is NO_CHANGE

    def test_fetch_failure_reported_once(self):
        errors = []

        def failing_fetch():
            raise DataFetchFailure("HTTP error! status: 500", status_code=500)

        session = _session(on_error=errors.append)
        result = session.load(failing_fetch)
        assert len(errors) == 1
        assert errors[0].status_code == 500
        assert session.fetch_error is errors[0]
        assert session.get_vocabularies().to_dict() == {"district": [], "complaint": [], "call_type": []}
        assert session.get_active_predicate() == FilterPredicate()
        assert result.visible_clusters == []
        assert result.viewport is NO_CHANGE
        session.set_filter(district="Bhopal")
        assert len(errors) == 1


class TestSnapshotRows:
    @pytest.mark.parametrize("bad", ["NaN", "inf"])
    def test_non_finite_position_only_drops_marker(self, bad):
        session = _session()
        result = session.load_incidents([
            {"id": "1", "district": "Bhopal", "lon": 77.4, "lat": 23.3},
            {"id": "2", "district": "Bhopal", "lon": bad, "lat": 23.3},
        ])
        assert _ids(result.matching) == ["1", "2"]
        assert [_ids(c.members) for c in result.visible_clusters] == [["1"]]
        assert isinstance(result.viewport, Viewport)

    def test_non_object_rows_skipped(self, scenario_rows):
        errors = []
        session = _session(on_error=errors.append)
        result = session.load(lambda: [None, 1, "x"] + scenario_rows)
        assert _ids(result.matching) == ["1", "2"]
        assert errors == []

    def test_duplicate_ids_logged(self, scenario_rows, caplog):
        rows = scenario_rows + [dict(scenario_rows[0], district="Sagar")]
        with caplog.at_level("WARNING", logger="incident_map.core.session"):
            result = _session().load_incidents(rows)
        assert "duplicate incident ids: 1" in caplog.text
        assert len(result.matching) == 3


class TestTransitions:
    def test_set_filter_preserves_other_fields(self, mixed_rows):
        session = _session()
        session.load_incidents(mixed_rows)
        session.set_filter(district="Bhopal")
        result = session.set_filter(complaint="Theft")
        assert session.get_active_predicate() == FilterPredicate(district="Bhopal", complaint="Theft")
        assert _ids(result.matching) == ["a", "e"]

    def test_dispatch_message(self, mixed_rows):
        session = _session()
        session.load_incidents(mixed_rows)
        session.dispatch(FilterChanged("complaint", "Theft"))
        result = session.dispatch(FilterChanged("call_type", "Emergency"))
        assert _ids(result.matching) == ["a", "e"]
        result = session.dispatch(FilterChanged("complaint", ""))
        assert session.get_active_predicate().to_dict() == {"call_type": "Emergency"}
        assert _ids(result.matching) == ["a", "d", "e"]

    def test_revision_increases(self, scenario_rows):
        session = _session()
        first = session.load_incidents(scenario_rows)
        second = session.set_filter(district="Indore")
        assert second.revision > first.revision
        assert session.last_result is second


class TestViewport:
    def test_no_match_keeps_previous_viewport(self, scenario_rows):
        session = _session()
        session.load_incidents(scenario_rows)
        before = session.viewport
        assert isinstance(before, Viewport)
        result = session.set_filter(complaint="Arson")
        assert result.matching == []
        assert result.viewport is NO_CHANGE
        assert session.viewport is before

    def test_session_adopts_fit_zoom(self, scenario_rows):
        session = _session()
        result = session.load_incidents(scenario_rows)
        assert session.zoom == result.viewport.zoom
        assert result.clusters.zoom == session.zoom

    def test_district_boundary_drives_viewport(self, scenario_rows, boundary_layer):
        session = _session(boundaries=boundary_layer)
        session.load_incidents(scenario_rows)
        result = session.set_filter(district="Bhopal")
        assert result.viewport.source == "boundary"
        assert result.viewport.bounds == boundary_layer.bounds_of("Bhopal")
        assert result.highlighted_district == "Bhopal"
        assert result.boundary_styles["Bhopal"]["color"] == "yellow"
        assert result.boundary_styles["Indore"]["color"] == "red"

    def test_clearing_district_restores_default_styles(self, scenario_rows, boundary_layer):
        session = _session(boundaries=boundary_layer)
        session.load_incidents(scenario_rows)
        session.set_filter(district="Bhopal")
        result = session.set_filter(district="")
        assert result.highlighted_district is None
        assert result.viewport.source == "clusters"
        assert all(s == DEFAULT_STYLE for s in result.boundary_styles.values())

    def test_boundary_without_markers_still_fits(self, boundary_layer):
        session = _session(boundaries=boundary_layer)
        session.load_incidents([{"id": "x", "district": "Indore", "complaint": "Theft"}])
        result = session.set_filter(district="Indore")
        assert result.visible_clusters == []
        assert isinstance(result.viewport, Viewport)
        assert result.viewport.source == "boundary"


class TestZoom:
    def test_zoom_in_splits_clusters(self):
        rows = [
            {"id": "a", "district": "Bhopal", "lon": 77.400, "lat": 23.300},
            {"id": "b", "district": "Bhopal", "lon": 77.401, "lat": 23.301},
        ]
        session = _session(max_zoom=12)
        result = session.load_incidents(rows)
        assert len(result.visible_clusters) == 1
        zoomed = session.set_zoom(18)
        assert session.zoom == 12
        assert len(zoomed.visible_clusters) == 1
        session.max_zoom = 18
        zoomed = session.set_zoom(18)
        assert len(zoomed.visible_clusters) == 2
        assert zoomed.viewport is NO_CHANGE
        assert session.get_active_predicate() == FilterPredicate()


class TestRenderResultDict:
    def test_to_dict(self, scenario_rows, boundary_layer):
        session = _session(boundaries=boundary_layer)
        session.load_incidents(scenario_rows)
        d = session.set_filter(district="Bhopal").to_dict()
        assert d["predicate"] == {"district": "Bhopal"}
        assert d["matching_count"] == 1
        assert d["positioned_count"] == 1
        assert d["no_change"] is False
        assert d["viewport"]["source"] == "boundary"
        assert d["highlighted_district"] == "Bhopal"

    def test_to_dict_no_change(self, scenario_rows):
        session = _session()
        session.load_incidents(scenario_rows)
        d = session.set_filter(district="Sagar").to_dict()
        assert d["no_change"] is True
        assert d["viewport"] is None
