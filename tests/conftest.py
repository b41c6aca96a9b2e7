from __future__ import annotations

import math
from pathlib import Path
from typing import Callable, Optional, Sequence

import geopandas as gpd
import pytest
from shapely.geometry import Point

EARTH_RADIUS_M = 6_371_000.0


def _destination_point(lat_deg: float, lon_deg: float, bearing_deg: float, distance_m: float) -> tuple[float, float]:
    delta = distance_m / EARTH_RADIUS_M
    theta = math.radians(bearing_deg)
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)

    lat2 = math.asin(math.sin(lat) * math.cos(delta) + math.cos(lat) * math.sin(delta) * math.cos(theta))
    lon2 = lon + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(lat),
        math.cos(delta) - math.sin(lat) * math.sin(lat2),
    )
    return math.degrees(lat2), (math.degrees(lon2) + 540.0) % 360.0 - 180.0


@pytest.fixture
def offset_point() -> Callable[[float, float, float, float], tuple[float, float]]:
    """Return ``(lat, lon)`` reached from a point along a great circle."""
    return _destination_point


@pytest.fixture
def write_points() -> Callable[..., Path]:
    """Write a point shapefile (or any OGR format chosen by suffix)."""

    def _write(
        path: Path,
        coords: Sequence[tuple[float, float]],
        crs: Optional[str] = "EPSG:4326",
        **columns: Sequence[object],
    ) -> Path:
        data = {"name": [f"p{i}" for i in range(len(coords))]}
        data.update({key: list(values) for key, values in columns.items()})
        frame = gpd.GeoDataFrame(data, geometry=[Point(x, y) for x, y in coords], crs=crs)
        frame.to_file(path)
        return path

    return _write


@pytest.fixture
def write_geometries() -> Callable[..., Path]:
    """Write arbitrary shapely geometries (``None`` allowed) to a GeoJSON file."""

    def _write(path: Path, geometries: Sequence[object], crs: Optional[str] = "EPSG:4326") -> Path:
        frame = gpd.GeoDataFrame(
            {"name": [f"f{i}" for i in range(len(geometries))]},
            geometry=list(geometries),
            crs=crs,
        )
        frame.to_file(path, driver="GeoJSON")
        return path

    return _write


@pytest.fixture
def make_image() -> Callable[..., Path]:
    """Create an (empty) image file whose name encodes ``lon_lat``."""

    def _make(folder: Path, lon: float, lat: float, suffix: str = ".jpg", extra: str = "") -> Path:
        folder.mkdir(parents=True, exist_ok=True)
        path = folder / f"{lon!r}_{lat!r}{extra}{suffix}"
        path.write_bytes(b"\xff\xd8\xff\xd9")
        return path

    return _make
