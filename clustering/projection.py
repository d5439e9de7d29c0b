"""Spherical Web Mercator pixel projection (the tile grid the base map uses)."""

import math

TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798


def world_size(zoom: float, tile_size: int = TILE_SIZE) -> float:
    return tile_size * (2 ** zoom)


def project(lon: float, lat: float, zoom: float, tile_size: int = TILE_SIZE) -> tuple[float, float]:
    """(lon, lat) -> (x, y) pixels at zoom; y grows southward."""
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, lat))
    size = world_size(zoom, tile_size)
    x = (lon + 180.0) / 360.0 * size
    sin_lat = math.sin(math.radians(lat))
    y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * size
    return x, y


def unproject(x: float, y: float, zoom: float, tile_size: int = TILE_SIZE) -> tuple[float, float]:
    size = world_size(zoom, tile_size)
    lon = x / size * 360.0 - 180.0
    n = math.pi - 2 * math.pi * y / size
    lat = math.degrees(math.atan(math.sinh(n)))
    return lon, lat
