"""Screen-space draw primitives for the 2D map and an OpenCV painter for them."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import cv2
import numpy as np
from loguru import logger

from ..config import RasterStyle
from ..map.feature_store import GeoFeatureStore
from ..math.transform import CoordinateTransformer
from ..models.features import Bounds

# OpenCV fixed-point drawing overflows far outside the canvas.
_DRAW_LIMIT_PX = 16384.0


class GridAxis(Enum):
    VERTICAL = "vertical"  # constant screen x
    HORIZONTAL = "horizontal"  # constant screen y


class MarkerKind(Enum):
    PLAIN = "plain"
    IMAGE = "image"
    ACTIVE = "active"


@dataclass(slots=True, frozen=True)
class GridLine:
    axis: GridAxis
    geo_value: float
    screen_value: float


@dataclass(slots=True, frozen=True)
class Polyline:
    way_id: int
    points: np.ndarray  # (N, 2) float64 screen coordinates


@dataclass(slots=True, frozen=True)
class Marker:
    node_id: int
    x: float
    y: float
    kind: MarkerKind

    @property
    def label(self) -> str:
        return str(self.node_id + 1)


@dataclass(slots=True)
class MapScene:
    """Everything an external canvas needs to paint one frame of the map."""

    bounds: Bounds
    width: int
    height: int
    grid_spacing: float
    grid_lines: list[GridLine] = field(default_factory=list)
    polylines: list[Polyline] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    node_count: int = 0
    image_node_count: int = 0

    @property
    def active_marker(self) -> Optional[Marker]:
        return next((m for m in self.markers if m.kind == MarkerKind.ACTIVE), None)

    @property
    def caption(self) -> str:
        return f"Nodes: {self.node_count}, with images: {self.image_node_count}"


def grid_spacing(bounds: Bounds) -> float:
    """Grid step of 1, 2 or 5 times a power of ten that shows a handful of lines."""
    extent = max(bounds.width, bounds.height)
    if extent <= 0:
        return 10.0
    base = 10.0 ** math.floor(math.log10(extent))
    if extent / base > 5:
        return base * 2
    if extent / base > 2:
        return base
    return base / 2


def grid_positions(start: float, stop: float, spacing: float) -> list[float]:
    """Multiples of ``spacing`` inside ``[start, stop]``."""
    first = math.ceil(start / spacing)
    last = math.floor(stop / spacing)
    return [index * spacing for index in range(first, last + 1)]


class MapRasterizer:
    """Turns store contents and a visible window into screen primitives."""

    def __init__(self, store: GeoFeatureStore, style: Optional[RasterStyle] = None) -> None:
        self.store = store
        self.style = style or RasterStyle()

    def build_scene(
        self,
        bounds: Bounds,
        width: int,
        height: int,
        active_node_id: Optional[int] = None,
    ) -> MapScene:
        width = max(int(width), 1)
        height = max(int(height), 1)
        transformer = CoordinateTransformer(bounds, width, height)
        spacing = grid_spacing(bounds)
        scene = MapScene(bounds=bounds, width=width, height=height, grid_spacing=spacing)

        for x in grid_positions(bounds.min_x, bounds.max_x, spacing):
            scene.grid_lines.append(GridLine(GridAxis.VERTICAL, x, transformer.geo_to_screen(x, bounds.min_y)[0]))
        for y in grid_positions(bounds.min_y, bounds.max_y, spacing):
            scene.grid_lines.append(GridLine(GridAxis.HORIZONTAL, y, transformer.geo_to_screen(bounds.min_x, y)[1]))

        for way in self.store.ways:
            if len(way) < 2:
                continue
            scene.polylines.append(Polyline(way.id, transformer.geo_to_screen_array(np.asarray(way.coordinates))))

        scene.node_count = len(self.store.nodes)
        for node in self.store.nodes:
            if node.has_image:
                scene.image_node_count += 1
            if node.id == active_node_id:
                kind = MarkerKind.ACTIVE
            elif node.has_image:
                kind = MarkerKind.IMAGE
            elif self.style.show_unbound_nodes:
                kind = MarkerKind.PLAIN
            else:
                continue
            px, py = transformer.geo_to_screen(node.lon, node.lat)
            scene.markers.append(Marker(node.id, px, py, kind))

        # Active marker last so it is painted on top.
        scene.markers.sort(key=lambda m: m.kind == MarkerKind.ACTIVE)
        return scene

    # ------------------------------------------------------------------
    def render(self, scene: MapScene) -> np.ndarray:
        """Paint ``scene`` into an RGB ``uint8`` image of the scene size."""
        style = self.style
        canvas = np.empty((scene.height, scene.width, 3), dtype=np.uint8)
        canvas[:] = style.background

        for line in scene.grid_lines:
            pos = int(round(line.screen_value))
            if line.axis == GridAxis.VERTICAL:
                cv2.line(canvas, (pos, 0), (pos, scene.height), style.grid, 1)
            else:
                cv2.line(canvas, (0, pos), (scene.width, pos), style.grid, 1)

        paths = [_to_pixels(polyline.points) for polyline in scene.polylines]
        if paths:
            cv2.polylines(canvas, paths, False, style.road_casing, style.road_casing_px, cv2.LINE_AA)
            cv2.polylines(canvas, paths, False, style.road_fill, style.road_fill_px, cv2.LINE_AA)

        for marker in scene.markers:
            self._draw_marker(canvas, marker)

        if style.show_caption:
            cv2.putText(canvas, scene.caption, (10, 20), cv2.FONT_HERSHEY_SIMPLEX, 0.45, style.caption, 1, cv2.LINE_AA)
        return canvas

    def _draw_marker(self, canvas: np.ndarray, marker: Marker) -> None:
        style = self.style
        px = _to_pixels(np.array([[marker.x, marker.y]])).reshape(2)
        center = (int(px[0]), int(px[1]))
        if marker.kind == MarkerKind.ACTIVE:
            cv2.circle(canvas, center, style.active_outer_radius_px, style.active_outer, -1, cv2.LINE_AA)
            cv2.circle(canvas, center, style.active_inner_radius_px, style.active_inner, -1, cv2.LINE_AA)
            return

        fill = style.node_image if marker.kind == MarkerKind.IMAGE else style.node_plain
        cv2.circle(canvas, center, style.node_radius_px, fill, -1, cv2.LINE_AA)
        cv2.circle(canvas, center, style.node_radius_px, style.node_outline, 1, cv2.LINE_AA)
        if style.show_labels and marker.kind == MarkerKind.IMAGE:
            origin = (center[0] + 6, center[1] - 6)
            cv2.putText(canvas, marker.label, origin, cv2.FONT_HERSHEY_SIMPLEX, 0.35, style.label, 1, cv2.LINE_AA)


def _to_pixels(points: np.ndarray) -> np.ndarray:
    clipped = np.clip(np.rint(points), -_DRAW_LIMIT_PX, _DRAW_LIMIT_PX)
    return clipped.astype(np.int32).reshape(-1, 1, 2)


def save_png(image: np.ndarray, path: Path) -> None:
    """Write an RGB map image to ``path``."""
    bgr = cv2.cvtColor(np.ascontiguousarray(image), cv2.COLOR_RGB2BGR)
    if not cv2.imwrite(str(path), bgr):
        raise OSError(f"Unable to write map image: {path}")
    logger.debug("Map image written to {}", path)

