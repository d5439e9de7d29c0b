"""
FastAPI backend: serve the incident snapshot, server-side filtering, dropdown
vocabularies and one-shot map renders (clusters + viewport + district highlight).
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from dotenv import load_dotenv

from core import config
from core.errors import BoundaryLoadError, DataFetchFailure
from core.models import FilterPredicate, Incident
from core.session import FilterSession
from core.vocabulary import build_vocabularies
from clustering.markers import MARKER_STYLE
from mapview.boundaries import BoundaryLayer, load_boundaries
from storage import get_store

load_dotenv(override=True)

# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("incident_map")

# -----------------------------------------------------------------------------
# Store and boundaries (replaced in tests)
# -----------------------------------------------------------------------------
store = get_store()


def _load_boundary_layer() -> BoundaryLayer:
    path = config.boundaries_file()
    if not os.path.isfile(path):
        logger.info("no boundaries file at %s; district highlighting disabled", path)
        return BoundaryLayer()
    try:
        return load_boundaries(path)
    except BoundaryLoadError as e:
        logger.warning("boundaries not loaded: %s", e)
        return BoundaryLayer()


boundaries = _load_boundary_layer()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("incident map api starting store=%s boundaries=%d", store.name, len(boundaries))
    yield


app = FastAPI(title="Incident Map API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------
class VocabulariesResponse(BaseModel):
    district: list[str]
    complaint: list[str]
    call_type: list[str]


class MapConfigResponse(BaseModel):
    center: list[float]  # [lat, lon]
    zoom: float
    max_zoom: int
    bounds_padding: list[float]
    cluster_radius_px: float
    marker_style: dict


# -----------------------------------------------------------------------------
# No-cache for dynamic API responses (avoid 304 for stale data)
# -----------------------------------------------------------------------------
NO_CACHE_HEADERS = {"Cache-Control": "no-store, no-cache, must-revalidate", "Pragma": "no-cache"}
SERVER_ERROR = {"detail": "Server Error"}


def _predicate(district: Optional[str], complaint: Optional[str], call_type: Optional[str]) -> FilterPredicate:
    return FilterPredicate(district=district, complaint=complaint, call_type=call_type)


def _fresh_boundaries() -> BoundaryLayer:
    """Per-request copy so highlight styling never leaks between requests."""
    return boundaries.copy()


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------
@app.get("/api/incidents")
def list_incidents():
    """Full incident snapshot."""
    try:
        rows = store.fetch_all()
    except DataFetchFailure as e:
        logger.error("list_incidents failed: %s", e)
        return JSONResponse(status_code=500, content=SERVER_ERROR, headers=NO_CACHE_HEADERS)
    logger.info("incidents served rows=%d", len(rows))
    return JSONResponse(content=rows, headers=NO_CACHE_HEADERS)


@app.get("/api/incidents/filter")
def filter_incidents(
    district: Optional[str] = None,
    complaint: Optional[str] = None,
    call_type: Optional[str] = Query(None, alias="callType"),
):
    """Server-side filter; same exact-match semantics as the map session."""
    predicate = _predicate(district, complaint, call_type)
    try:
        rows = store.fetch_filtered(predicate)
    except DataFetchFailure as e:
        logger.error("filter_incidents failed predicate=%s: %s", predicate.to_dict(), e)
        return JSONResponse(status_code=500, content=SERVER_ERROR, headers=NO_CACHE_HEADERS)
    logger.info("incidents filtered predicate=%s rows=%d", predicate.to_dict(), len(rows))
    return JSONResponse(content=rows, headers=NO_CACHE_HEADERS)


@app.get("/api/vocabularies")
def get_vocabularies():
    """Dropdown values per attribute. Keys are snake_case (`call_type`), matching the incident rows;
    the filter routes accept `callType` only as a query alias."""
    try:
        rows = store.fetch_all()
    except DataFetchFailure as e:
        logger.error("get_vocabularies failed: %s", e)
        return JSONResponse(status_code=500, content=SERVER_ERROR, headers=NO_CACHE_HEADERS)
    vocab = build_vocabularies(Incident.from_row(r) for r in rows)
    return JSONResponse(content=VocabulariesResponse(**vocab.to_dict()).model_dump(), headers=NO_CACHE_HEADERS)


@app.get("/api/config")
def get_map_config():
    lat, lon = config.map_center()
    cfg = MapConfigResponse(
        center=[lat, lon],
        zoom=config.map_zoom(),
        max_zoom=config.map_max_zoom(),
        bounds_padding=list(config.bounds_padding()),
        cluster_radius_px=config.cluster_radius_px(),
        marker_style=MARKER_STYLE,
    )
    return JSONResponse(content=cfg.model_dump(), headers=NO_CACHE_HEADERS)


@app.get("/api/boundaries")
def list_boundaries():
    return JSONResponse(
        content={"features": [f.to_dict() for f in _fresh_boundaries().features]},
        headers=NO_CACHE_HEADERS,
    )


@app.get("/api/map")
def render_map(
    district: Optional[str] = None,
    complaint: Optional[str] = None,
    call_type: Optional[str] = Query(None, alias="callType"),
    zoom: Optional[float] = Query(None, ge=0, le=24),
    width: int = Query(config.DEFAULT_MAP_SIZE[0], ge=1, le=10000),
    height: int = Query(config.DEFAULT_MAP_SIZE[1], ge=1, le=10000),
):
    """One render pass: filter -> clusters -> viewport -> district highlight."""
    errors: list[DataFetchFailure] = []
    session = FilterSession(
        boundaries=_fresh_boundaries(),
        zoom=zoom,
        map_size=(width, height),
        on_error=errors.append,
    )
    session.load(store.fetch_all)
    if errors:
        return JSONResponse(status_code=500, content=SERVER_ERROR, headers=NO_CACHE_HEADERS)
    result = session.set_filter(_predicate(district, complaint, call_type).to_dict())
    content = result.to_dict()
    content["vocabularies"] = session.get_vocabularies().to_dict()
    logger.info(
        "map rendered predicate=%s matching=%d clusters=%d",
        result.predicate.to_dict(), len(result.matching), len(result.visible_clusters),
    )
    return JSONResponse(content=content, headers=NO_CACHE_HEADERS)


@app.get("/health")
def health():
    return JSONResponse(
        content={"status": "ok", "store": store.name, "boundaries": len(boundaries)},
        headers=NO_CACHE_HEADERS,
    )


# -----------------------------------------------------------------------------
# Serve frontend static files
# -----------------------------------------------------------------------------
public_path = os.path.join(os.path.dirname(__file__), "..", "public")
if os.path.isdir(public_path):
    app.mount("/public", StaticFiles(directory=public_path, html=True), name="public")

    @app.get("/")
    def root():
        return RedirectResponse(url="/public/")
