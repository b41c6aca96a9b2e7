"""Proximity and direction queries over the node set.

All queries are linear scans over the store's nodes.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from ..config import NavigationConfig
from ..map.feature_store import GeoFeatureStore
from ..math import geodesy
from ..models.features import Node

DistanceFn = Callable[[float, float, float, float], float]
BearingFn = Callable[[float, float, float, float], float]

_METRICS: dict[str, tuple[DistanceFn, BearingFn]] = {
    "haversine": (geodesy.great_circle_distance_m, geodesy.initial_bearing_deg),
    "wgs84": (geodesy.ellipsoidal_distance_m, geodesy.ellipsoidal_bearing_deg),
}


@dataclass(slots=True, frozen=True)
class NeighbourDirection:
    """A reachable image node seen from another node."""

    node: Node
    bearing_deg: float
    distance_m: float


class SpatialNavigator:
    """Nearest-node lookup and bearing-constrained walking between panoramas."""

    def __init__(self, store: GeoFeatureStore, config: Optional[NavigationConfig] = None) -> None:
        self.store = store
        self.config = config or NavigationConfig()
        try:
            self._distance, self._bearing = _METRICS[self.config.metric]
        except KeyError as exc:
            raise ValueError(f"Unsupported distance metric: {self.config.metric}") from exc

    # ------------------------------------------------------------------
    def great_circle_distance(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Distance in metres using the configured metric (haversine by default)."""
        return self._distance(lat1, lon1, lat2, lon2)

    def bearing(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Compass bearing from point 1 to point 2 in ``[0, 360)``."""
        return self._bearing(lat1, lon1, lat2, lon2)

    # ------------------------------------------------------------------
    def nearest_node(self, lon: float, lat: float) -> Optional[Node]:
        best: Optional[Node] = None
        best_dist = math.inf
        for node in self.store.nodes:
            dist = self.great_circle_distance(lat, lon, node.lat, node.lon)
            if dist < best_dist:
                best = node
                best_dist = dist
        if best is not None:
            logger.debug("Nearest node to ({:.6f}, {:.6f}) is {} at {:.2f} m", lon, lat, best.id, best_dist)
        return best

    def nearest_node_with_image(self, lon: float, lat: float) -> Optional[Node]:
        """Nearest node with a valid image using plane distance on raw lon/lat.

        Intended for click hit-testing at map scale, where plane and geodesic
        ordering agree. Screen-space hit radius checks belong to the caller.
        """
        best: Optional[Node] = None
        best_dist = math.inf
        for node in self.store.nodes:
            if not node.has_valid_image:
                continue
            dist = math.hypot(node.lon - lon, node.lat - lat)
            if dist < best_dist:
                best = node
                best_dist = dist
        return best

    def find_next_node_in_direction(
        self,
        from_node_id: int,
        target_bearing: float,
        max_distance: Optional[float] = None,
        angle_tolerance: Optional[float] = None,
    ) -> Optional[Node]:
        """Closest image node reachable from ``from_node_id`` along a bearing.

        Candidates must lie within ``max_distance`` metres and their bearing
        from the source must differ from ``target_bearing`` by less than
        ``angle_tolerance`` degrees (circular difference).
        """
        max_distance = self.config.max_distance_m if max_distance is None else max_distance
        angle_tolerance = self.config.angle_tolerance_deg if angle_tolerance is None else angle_tolerance

        best: Optional[Node] = None
        best_dist = math.inf
        for neighbour in self.neighbour_directions(from_node_id, max_distance):
            if geodesy.angular_difference_deg(neighbour.bearing_deg, target_bearing) >= angle_tolerance:
                continue
            if neighbour.distance_m < best_dist:
                best = neighbour.node
                best_dist = neighbour.distance_m

        if best is None:
            logger.debug("No image node from {} towards {:.1f} deg", from_node_id, target_bearing)
        else:
            logger.debug(
                "Walking from {} towards {:.1f} deg reaches {} ({:.2f} m)",
                from_node_id,
                target_bearing,
                best.id,
                best_dist,
            )
        return best

    def neighbour_directions(self, from_node_id: int, max_distance: Optional[float] = None) -> list[NeighbourDirection]:
        """Bearing and distance to every other image node within ``max_distance``."""
        source = self.store.node_by_id(from_node_id)
        if source is None:
            return []
        max_distance = self.config.max_distance_m if max_distance is None else max_distance

        neighbours: list[NeighbourDirection] = []
        for node in self.store.nodes:
            if node.id == source.id or not node.has_valid_image:
                continue
            dist = self.great_circle_distance(source.lat, source.lon, node.lat, node.lon)
            if dist > max_distance:
                continue
            bearing = self.bearing(source.lat, source.lon, node.lat, node.lon)
            neighbours.append(NeighbourDirection(node, bearing, dist))
        return neighbours

    def step_image_node(self, current_id: int, offset: int = 1) -> Optional[Node]:
        """Next (``offset > 0``) or previous image node in id order, wrapping around.

        Returns ``None`` when no other node has a valid image.
        """
        nodes = self.store.nodes
        count = len(nodes)
        if count == 0 or offset == 0:
            return None
        start = next((index for index, node in enumerate(nodes) if node.id == current_id), None)
        if start is None:
            start = -1 if offset > 0 else 0
        direction = 1 if offset > 0 else -1
        for step in range(1, count + 1):
            node = nodes[(start + direction * step) % count]
            if node.id == current_id:
                break
            if node.has_valid_image:
                return node
        return None
