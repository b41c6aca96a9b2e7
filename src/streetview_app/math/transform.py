"""Mapping between geographic coordinates and pixel coordinates."""
from __future__ import annotations

from typing import Tuple

import numpy as np

from ..models.features import Bounds

# Extent given to a zero-width or zero-height window.
MIN_EXTENT = 0.01


class CoordinateTransformer:
    """Bidirectional geo <-> screen mapping for a fixed window and surface.

    Pixel Y grows downwards while geographic Y grows upwards, so the vertical
    axis is flipped. A degenerate window is widened to ``MIN_EXTENT`` around its
    centre. Build a new transformer whenever the visible bounds or the surface
    size change.
    """

    __slots__ = ("_bounds", "_width", "_height")

    def __init__(self, bounds: Bounds, surface_width: float, surface_height: float) -> None:
        if bounds.width == 0 or bounds.height == 0:
            center_x, center_y = bounds.center
            bounds = Bounds.centered(
                center_x,
                center_y,
                bounds.width or MIN_EXTENT,
                bounds.height or MIN_EXTENT,
            )
        self._bounds = bounds
        self._width = max(float(surface_width), 1.0)
        self._height = max(float(surface_height), 1.0)

    @property
    def bounds(self) -> Bounds:
        return self._bounds

    @property
    def surface_size(self) -> Tuple[float, float]:
        return self._width, self._height

    def geo_to_screen(self, x: float, y: float) -> Tuple[float, float]:
        b = self._bounds
        px = (x - b.min_x) / b.width * self._width
        py = self._height * (1.0 - (y - b.min_y) / b.height)
        return px, py

    def screen_to_geo(self, px: float, py: float) -> Tuple[float, float]:
        b = self._bounds
        x = b.min_x + (px / self._width) * b.width
        y = b.min_y + (1.0 - py / self._height) * b.height
        return x, y

    def geo_to_screen_array(self, coords: np.ndarray) -> np.ndarray:
        """Vectorised :meth:`geo_to_screen` for an ``(N, 2)`` array."""
        pts = np.asarray(coords, dtype=np.float64).reshape(-1, 2)
        b = self._bounds
        out = np.empty_like(pts)
        out[:, 0] = (pts[:, 0] - b.min_x) / b.width * self._width
        out[:, 1] = self._height * (1.0 - (pts[:, 1] - b.min_y) / b.height)
        return out

    def __repr__(self) -> str:
        return f"CoordinateTransformer(bounds={self._bounds!r}, surface={self._width:g}x{self._height:g})"
