"""Host-side composition of store, viewport, binder, navigator and rasterizer.

A :class:`MapSession` mirrors what a map window does with the engine: load a
point layer and bind its panoramas, stack road layers, keep an active node, and
turn map clicks and panorama direction clicks into node selections. It owns its
own :class:`ViewportState`, so several sessions can coexist.
"""
from __future__ import annotations

import math
from pathlib import Path
from typing import Optional

import numpy as np
from loguru import logger

from .config import BindingConfig, FeatureSourceConfig, NavigationConfig, RasterStyle, ViewportConfig
from .io.image_binder import ImageBinder
from .map.feature_store import GeoFeatureStore
from .map.viewport import Viewport
from .math.transform import CoordinateTransformer
from .models.features import Node
from .models.load_result import LoadResult
from .models.viewport_state import ViewportState
from .navigation.navigator import SpatialNavigator
from .render.rasterizer import MapRasterizer, MapScene


class MapSession:
    """One open dataset with its view state and current selection."""

    def __init__(
        self,
        *,
        source_config: Optional[FeatureSourceConfig] = None,
        binding_config: Optional[BindingConfig] = None,
        viewport_config: Optional[ViewportConfig] = None,
        navigation_config: Optional[NavigationConfig] = None,
        style: Optional[RasterStyle] = None,
        keep_aspect: bool = True,
    ) -> None:
        self.store = GeoFeatureStore(source_config)
        self.view_state = ViewportState()
        self.viewport = Viewport(self.view_state, self.store.data_bounds, viewport_config)
        self.binder = ImageBinder(binding_config)
        self.navigator = SpatialNavigator(self.store, navigation_config)
        self.rasterizer = MapRasterizer(self.store, style)
        self.keep_aspect = keep_aspect
        self.active_node_id: Optional[int] = None

    # ------------------------------------------------------------------
    def load_points(self, source: Path, image_folder: Optional[Path] = None) -> LoadResult:
        """Load a point layer, optionally bind images, and select the first panorama."""
        result = self.store.load_points(source)
        self.active_node_id = None
        if image_folder is not None and result.ok:
            self.bind_images(image_folder)
        self.viewport.reset()
        first = next(iter(self.store.image_nodes()), None)
        if first is not None:
            self.select(first.id)
        return result

    def load_lines(self, source: Path) -> LoadResult:
        result = self.store.load_lines(source)
        if result.ok:
            self.viewport.reset()
        return result

    def bind_images(self, folder: Path) -> int:
        count = self.binder.bind(self.store.nodes, folder)
        active = self.active_node
        if active is not None and not active.has_valid_image:
            self.active_node_id = None
        return count

    # ------------------------------------------------------------------
    @property
    def active_node(self) -> Optional[Node]:
        if self.active_node_id is None:
            return None
        return self.store.node_by_id(self.active_node_id)

    def select(self, node_id: int) -> Optional[Node]:
        """Make ``node_id`` active if it exists and has a usable image."""
        node = self.store.node_by_id(node_id)
        if node is None:
            logger.warning("Cannot select node {}: no such node", node_id)
            return None
        if not node.has_valid_image:
            logger.warning("Cannot select node {}: no image bound or file missing", node_id)
            return None
        self.active_node_id = node.id
        logger.info("Active node {} -> {}", node.id, node.image_path)
        return node

    # ------------------------------------------------------------------
    def _aspect(self, width: float, height: float) -> Optional[float]:
        if not self.keep_aspect:
            return None
        return max(float(width), 1.0) / max(float(height), 1.0)

    def transformer(self, width: float, height: float) -> CoordinateTransformer:
        return self.viewport.transformer(width, height, self._aspect(width, height))

    def pan(self, dx: float, dy: float, width: float, height: float) -> None:
        self.viewport.pan(dx, dy, width, height, self._aspect(width, height))

    def zoom_at(self, wheel_delta: float, px: float, py: float, width: float, height: float) -> bool:
        return self.viewport.zoom_at_point(wheel_delta, px, py, width, height, self._aspect(width, height))

    def click_map(
        self,
        px: float,
        py: float,
        width: float,
        height: float,
        hit_radius_px: Optional[float] = None,
    ) -> Optional[Node]:
        """Select the image node nearest to a map click.

        With ``hit_radius_px`` the candidate is only accepted when its marker
        lies within that many pixels of the click.
        """
        transformer = self.transformer(width, height)
        lon, lat = transformer.screen_to_geo(px, py)
        node = self.navigator.nearest_node_with_image(lon, lat)
        if node is None:
            return None
        if hit_radius_px is not None:
            nx, ny = transformer.geo_to_screen(node.lon, node.lat)
            if math.hypot(nx - px, ny - py) > hit_radius_px:
                logger.debug("Click at ({:.0f}, {:.0f}) missed node {}", px, py, node.id)
                return None
        return self.select(node.id)

    def walk(
        self,
        bearing_deg: float,
        max_distance: Optional[float] = None,
        angle_tolerance: Optional[float] = None,
    ) -> Optional[Node]:
        """Move to the nearest panorama in the clicked compass direction."""
        if self.active_node_id is None:
            return None
        node = self.navigator.find_next_node_in_direction(
            self.active_node_id,
            bearing_deg,
            max_distance=max_distance,
            angle_tolerance=angle_tolerance,
        )
        if node is None:
            return None
        return self.select(node.id)

    def step(self, offset: int = 1) -> Optional[Node]:
        """Previous/next panorama in node order."""
        current = -1 if self.active_node_id is None else self.active_node_id
        node = self.navigator.step_image_node(current, offset)
        if node is None:
            return None
        return self.select(node.id)

    # ------------------------------------------------------------------
    def marker_position(self, width: float, height: float) -> Optional[tuple[float, float]]:
        node = self.active_node
        if node is None:
            return None
        return self.transformer(width, height).geo_to_screen(node.lon, node.lat)

    def scene(self, width: int, height: int) -> MapScene:
        bounds = self.viewport.current_bounds(self._aspect(width, height))
        return self.rasterizer.build_scene(bounds, width, height, self.active_node_id)

    def render(self, width: int, height: int) -> np.ndarray:
        return self.rasterizer.render(self.scene(width, height))
