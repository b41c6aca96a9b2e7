"""In-memory store of loaded nodes and ways."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional

from loguru import logger

from ..config import FeatureSourceConfig
from ..io.feature_reader import read_line_parts, read_point_coordinates
from ..math.transform import MIN_EXTENT
from ..models.features import Bounds, Coordinate, Node, Way
from ..models.load_result import LoadResult

EMPTY_BOUNDS = Bounds(0.0, 0.0, 100.0, 100.0)
MARGIN_RATIO = 0.1


class GeoFeatureStore:
    """Owns the point ("node") and line ("way") collections of one dataset."""

    def __init__(self, config: Optional[FeatureSourceConfig] = None) -> None:
        self.config = config or FeatureSourceConfig()
        self.nodes: list[Node] = []
        self.ways: list[Way] = []

    # ------------------------------------------------------------------
    def load_points(self, source: Path) -> LoadResult:
        """Replace the node collection with the points read from ``source``.

        Nodes are always cleared first, so a failed load leaves no nodes
        behind. Ways are never touched.
        """
        self.nodes.clear()
        coords, result = read_point_coordinates(Path(source), self.config)
        self.nodes.extend(Node(id=index, lon=lon, lat=lat) for index, (lon, lat) in enumerate(coords))
        if not result.ok:
            logger.warning("No nodes loaded from {}: {}", source, "; ".join(result.reasons))
        return result

    def load_lines(self, source: Path) -> LoadResult:
        """Append the line parts read from ``source`` as new ways.

        Several line layers can be stacked; way ids continue from the current
        collection size.
        """
        parts, result = read_line_parts(Path(source), self.config)
        next_id = len(self.ways)
        self.ways.extend(Way(id=next_id + offset, coordinates=coords) for offset, coords in enumerate(parts))
        if not result.ok:
            logger.warning("No ways loaded from {}: {}", source, "; ".join(result.reasons))
        return result

    def clear_lines(self) -> None:
        self.ways.clear()

    # ------------------------------------------------------------------
    def node_by_id(self, node_id: int) -> Optional[Node]:
        # Ids are dense and match list positions for a single load.
        if 0 <= node_id < len(self.nodes) and self.nodes[node_id].id == node_id:
            return self.nodes[node_id]
        return next((node for node in self.nodes if node.id == node_id), None)

    def image_nodes(self) -> list[Node]:
        """Nodes whose bound image file still exists, in id order."""
        return [node for node in self.nodes if node.has_valid_image]

    def iter_coordinates(self) -> Iterator[Coordinate]:
        for node in self.nodes:
            yield node.lon, node.lat
        for way in self.ways:
            yield from way.coordinates

    def data_bounds(self) -> Bounds:
        """Bounds of every node and way coordinate plus a 10% margin per axis.

        A zero width or height is first padded to a small extent so the margin
        never collapses. Without any data a fixed ``(0, 0, 100, 100)`` box is
        returned.
        """
        tight = Bounds.from_points(self.iter_coordinates())
        if tight is None:
            return EMPTY_BOUNDS

        width = tight.width or MIN_EXTENT
        height = tight.height or MIN_EXTENT
        margin_x = width * MARGIN_RATIO
        margin_y = height * MARGIN_RATIO
        return Bounds(
            tight.min_x - margin_x,
            tight.min_y - margin_y,
            tight.max_x + margin_x,
            tight.max_y + margin_y,
        )
