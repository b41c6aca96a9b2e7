"""Vector feature source reading for point and line layers.

Sources are opened with :func:`geopandas.read_file`, so any format the
installed I/O engine understands works (Shapefile, GeoJSON, GeoPackage, ...).
A source that cannot be opened yields an empty result. Records that cannot be
interpreted are skipped and listed in the result's reasons.
"""
from __future__ import annotations

import math
import re
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Sequence

import geopandas as gpd
from loguru import logger
from pyproj import CRS
from shapely.geometry.base import BaseGeometry

from ..config import FeatureSourceConfig
from ..models.features import Coordinate
from ..models.load_result import LoadResult

_DECIMAL = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)


def parse_decimal(text: str) -> Optional[float]:
    """Parse plain decimal text into a finite float.

    Only ASCII digits with an optional sign, point and exponent are accepted;
    digit separators, ``nan`` and ``inf`` spellings are rejected.
    """
    text = text.strip()
    if not _DECIMAL.fullmatch(text):
        return None
    value = float(text)
    return value if math.isfinite(value) else None


def read_point_coordinates(
    source: Path,
    config: Optional[FeatureSourceConfig] = None,
) -> tuple[list[Coordinate], LoadResult]:
    """Read ``(lon, lat)`` pairs from a point feature source.

    Parameters
    ----------
    source:
        Path to the vector dataset.
    config:
        Field candidates, reprojection target and required companion files.

    Returns
    -------
    tuple
        Accepted coordinates in record order, and the :class:`LoadResult`
        describing how many records were accepted or skipped.
    """
    config = config or FeatureSourceConfig()
    source = Path(source)
    frame, failure = _open_source(source, config)
    if frame is None:
        return [], LoadResult.empty(failure or "unreadable source", source)

    geometry_name = frame.geometry.name
    attributes = frame.drop(columns=[geometry_name]).to_dict("records")
    lookup = _column_lookup(attr for attr in frame.columns if attr != geometry_name)

    coords: list[Coordinate] = []
    reasons: list[str] = []
    for record_no, (geometry, row) in enumerate(zip(frame.geometry, attributes), start=1):
        if geometry is None or geometry.geom_type != "Point":
            kind = "missing geometry" if geometry is None else geometry.geom_type
            reasons.append(f"record {record_no}: not a point feature ({kind})")
            logger.debug("Record {} in {} is not a point feature, skipping", record_no, source.name)
            continue

        lon = _first_number(row, lookup, config.fields.longitude)
        lat = _first_number(row, lookup, config.fields.latitude)
        if (lon is None or lat is None) and not geometry.is_empty:
            logger.debug("Record {}: coordinate fields missing, using point geometry", record_no)
            lon = float(geometry.x) if lon is None else lon
            lat = float(geometry.y) if lat is None else lat
        if lon is None or lat is None:
            reasons.append(f"record {record_no}: empty point without coordinate fields")
            continue
        coords.append((lon, lat))

    result = LoadResult.from_counts(len(coords), reasons, source)
    logger.info(
        "Read {} point features from {} ({} skipped)",
        result.loaded,
        source,
        result.skipped,
    )
    return coords, result


def read_line_parts(
    source: Path,
    config: Optional[FeatureSourceConfig] = None,
) -> tuple[list[tuple[Coordinate, ...]], LoadResult]:
    """Read polyline parts from a line or multi-line feature source.

    Each single-part geometry contributes one part; multi-part geometries
    contribute one part per member. Parts with fewer than two coordinates are
    dropped.
    """
    config = config or FeatureSourceConfig()
    source = Path(source)
    frame, failure = _open_source(source, config)
    if frame is None:
        return [], LoadResult.empty(failure or "unreadable source", source)

    parts: list[tuple[Coordinate, ...]] = []
    reasons: list[str] = []
    for record_no, geometry in enumerate(frame.geometry, start=1):
        if geometry is None or geometry.is_empty:
            reasons.append(f"record {record_no}: empty geometry")
            continue

        accepted = 0
        for part in _iter_parts(geometry):
            coords = _part_coordinates(part)
            if len(coords) < 2:
                continue
            parts.append(coords)
            accepted += 1

        if accepted == 0:
            reasons.append(f"record {record_no}: no part with two or more coordinates ({geometry.geom_type})")
            logger.debug("Record {} in {} yielded no usable line parts", record_no, source.name)

    result = LoadResult.from_counts(len(parts), reasons, source)
    logger.info(
        "Read {} line parts from {} records in {} ({} records skipped)",
        result.loaded,
        len(frame),
        source,
        result.skipped,
    )
    return parts, result


def _open_source(source: Path, config: FeatureSourceConfig) -> tuple[Optional[gpd.GeoDataFrame], Optional[str]]:
    if not source.is_file():
        logger.warning("Feature source does not exist: {}", source)
        return None, f"source does not exist: {source}"

    if source.suffix.lower() == ".shp":
        missing = [ext for ext in config.shapefile_companions if _companion(source, ext) is None]
        if missing:
            logger.warning("Shapefile {} is incomplete, missing {}", source, ", ".join(missing))
            return None, f"shapefile is missing companion files: {', '.join(missing)}"

    try:
        frame = gpd.read_file(source)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Unable to read feature source {}: {}", source, exc)
        return None, f"unable to read source: {exc}"

    if not isinstance(frame, gpd.GeoDataFrame):
        logger.warning("Feature source {} has no geometry column", source)
        return None, "source has no geometry column"
    return _reproject(frame, source, config.target_crs), None


def _companion(source: Path, extension: str) -> Optional[Path]:
    for candidate in (source.with_suffix(extension.lower()), source.with_suffix(extension.upper())):
        if candidate.is_file():
            return candidate
    return None


def _reproject(frame: gpd.GeoDataFrame, source: Path, target_crs: Optional[str]) -> gpd.GeoDataFrame:
    if target_crs is None or frame.crs is None or frame.empty:
        return frame
    target = CRS.from_user_input(target_crs)
    if frame.crs.equals(target, ignore_axis_order=True):
        return frame
    try:
        reprojected = frame.to_crs(target)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Could not reproject {} from {} to {}: {}", source, frame.crs, target_crs, exc)
        return frame
    logger.debug("Reprojected {} from {} to {}", source.name, frame.crs.to_string(), target_crs)
    return reprojected


def _column_lookup(columns: Iterator[Any]) -> dict[str, Any]:
    lookup: dict[str, Any] = {}
    for column in columns:
        lookup.setdefault(str(column).casefold(), column)
    return lookup


def _first_number(row: Mapping[Any, Any], lookup: Mapping[str, Any], candidates: Sequence[str]) -> Optional[float]:
    for name in candidates:
        column = lookup.get(name.casefold())
        if column is None:
            continue
        value = _parse_number(row.get(column))
        if value is not None:
            return value
    return None


def _parse_number(raw: Any) -> Optional[float]:
    """Parse a field value as a finite float; ``None`` when it does not parse."""
    if raw is None or isinstance(raw, bool):
        return None
    return parse_decimal(str(raw))


def _iter_parts(geometry: BaseGeometry) -> Iterator[BaseGeometry]:
    members = getattr(geometry, "geoms", None)
    if members is None:
        yield geometry
        return
    for member in members:
        yield from _iter_parts(member)


def _part_coordinates(part: BaseGeometry) -> tuple[Coordinate, ...]:
    if part.is_empty:
        return ()
    if part.geom_type == "Polygon":
        ring = part.exterior.coords
    elif part.geom_type in {"LineString", "LinearRing"}:
        ring = part.coords
    else:
        return ()
    return tuple((float(c[0]), float(c[1])) for c in ring)
