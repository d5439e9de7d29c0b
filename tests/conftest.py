"""Pytest fixtures for incident map tests."""

import json

import pytest

from core.models import Incident
from mapview.boundaries import BoundaryLayer


def _square(lon: float, lat: float, d: float = 0.5) -> list:
    return [[[lon - d, lat - d], [lon + d, lat - d], [lon + d, lat + d], [lon - d, lat + d], [lon - d, lat - d]]]


@pytest.fixture
def scenario_rows():
    """Two-record snapshot: Bhopal theft and Indore assault, both emergency calls."""
    return [
        {"id": "1", "district": "Bhopal", "complaint": "Theft", "call_type": "Emergency", "lon": 77.4, "lat": 23.3},
        {"id": "2", "district": "Indore", "complaint": "Assault", "call_type": "Emergency", "lon": 75.8, "lat": 22.7},
    ]


@pytest.fixture
def scenario_snapshot(scenario_rows):
    return [Incident.from_row(r) for r in scenario_rows]


@pytest.fixture
def mixed_rows():
    """Rows with missing attributes and a missing position."""
    return [
        {"id": "a", "datetime": "2025-01-01 10:00", "district": "Bhopal", "complaint": "Theft", "call_type": "Emergency",
         "address": "MG Road", "lon": 77.41, "lat": 23.26},
        {"id": "b", "datetime": "2025-01-01 11:00", "district": "Bhopal", "complaint": "Assault", "call_type": "Non-Emergency",
         "address": "Station Road", "lon": 77.40, "lat": 23.27},
        {"id": "c", "datetime": "2025-01-02 09:00", "district": "Indore", "complaint": "Theft", "call_type": "",
         "address": "Rajwada", "lon": 75.86, "lat": 22.72},
        {"id": "d", "datetime": "2025-01-02 12:00", "district": "", "complaint": "Fire", "call_type": "Emergency",
         "address": None, "lon": 78.18, "lat": 26.22},
        {"id": "e", "datetime": "2025-01-03 08:00", "district": "Bhopal", "complaint": "Theft", "call_type": "Emergency",
         "address": "Unknown locality", "lon": None, "lat": None},
        {"id": "f", "datetime": "2025-01-03 15:00", "district": "Gwalior", "complaint": None, "call_type": "Information",
         "address": "Old City", "lon": 78.19, "lat": 26.21},
    ]


@pytest.fixture
def mixed_snapshot(mixed_rows):
    return [Incident.from_row(r) for r in mixed_rows]


@pytest.fixture
def district_geojson():
    """Square boundaries around Bhopal and Indore (NAME_2 keyed, as district boundary files are)."""
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"NAME_2": "Bhopal"},
             "geometry": {"type": "Polygon", "coordinates": _square(77.4, 23.3)}},
            {"type": "Feature", "properties": {"NAME_2": "Indore"},
             "geometry": {"type": "Polygon", "coordinates": _square(75.8, 22.7)}},
        ],
    }


@pytest.fixture
def boundary_layer(district_geojson):
    return BoundaryLayer.from_geojson(district_geojson)


@pytest.fixture
def incidents_file(tmp_path, mixed_rows):
    path = tmp_path / "incidents.json"
    path.write_text(json.dumps(mixed_rows), encoding="utf-8")
    return str(path)


@pytest.fixture
def app_client(monkeypatch, incidents_file, boundary_layer):
    """FastAPI TestClient over a JSON store in tmp_path and the Bhopal/Indore boundaries."""
    from fastapi.testclient import TestClient
    import api.main as main_module
    from storage.json_store import JsonIncidentStore

    monkeypatch.setattr(main_module, "store", JsonIncidentStore(incidents_file))
    monkeypatch.setattr(main_module, "boundaries", boundary_layer)
    return TestClient(main_module.app)
