"""Configuration objects for loading, binding, viewport and navigation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple

Color = Tuple[int, int, int]


@dataclass(slots=True)
class FieldCandidates:
    """Ordered attribute names tried when reading node coordinates.

    The first name whose value parses as a finite number wins; when none does,
    the record's own point geometry is used.
    """

    longitude: Tuple[str, ...] = ("lon", "longitude", "x", "经度", "long")
    latitude: Tuple[str, ...] = ("lat", "latitude", "y", "纬度", "lati")


@dataclass(slots=True)
class FeatureSourceConfig:
    """Configuration for reading vector feature sources."""

    fields: FieldCandidates = field(default_factory=FieldCandidates)
    target_crs: Optional[str] = "EPSG:4326"  # None keeps source coordinates as-is
    shapefile_companions: Tuple[str, ...] = (".shx", ".dbf")


@dataclass(slots=True)
class BindingConfig:
    """Configuration for matching images to nodes by filename coordinates."""

    tolerance: float = 0.00002  # degrees (L1), roughly 2 m at mid-latitudes
    extensions: Tuple[str, ...] = (".jpg", ".jpeg", ".png")
    separator: str = "_"


@dataclass(slots=True)
class ViewportConfig:
    """Zoom limits and step sizes for the map viewport."""

    min_zoom: float = 0.1
    max_zoom: float = 10000.0
    zoom_step: float = 1.2
    min_zoom_change: float = 1e-4


@dataclass(slots=True)
class NavigationConfig:
    """Defaults for proximity and direction queries."""

    max_distance_m: float = 100.0
    angle_tolerance_deg: float = 45.0
    metric: str = "haversine"  # or "wgs84"


@dataclass(slots=True)
class RasterStyle:
    """Colours and sizes used when painting a map scene (RGB)."""

    background: Color = (255, 248, 220)
    grid: Color = (169, 169, 169)
    road_casing: Color = (128, 128, 128)
    road_fill: Color = (255, 255, 255)
    road_casing_px: int = 6
    road_fill_px: int = 4
    node_image: Color = (255, 0, 0)
    node_plain: Color = (128, 128, 128)
    node_outline: Color = (0, 0, 0)
    node_radius_px: int = 4
    active_outer: Color = (255, 0, 0)
    active_inner: Color = (255, 255, 255)
    active_outer_radius_px: int = 6
    active_inner_radius_px: int = 2
    label: Color = (255, 255, 255)
    caption: Color = (0, 0, 0)
    show_unbound_nodes: bool = False
    show_labels: bool = True
    show_caption: bool = True
