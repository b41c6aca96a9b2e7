"""Binding of panorama image files to nodes by filename coordinates.

Images are expected to be named ``<lon>_<lat>.<ext>`` (anything after the
second underscore-separated token is ignored), for example
``114.38663_30.51497866.jpg``. Matching uses the L1 difference of the encoded
and node coordinates, in degrees.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from loguru import logger

from ..config import BindingConfig
from ..models.features import Node
from ..models.load_result import LoadResult, LoadStatus
from .feature_reader import parse_decimal


@dataclass(slots=True, frozen=True)
class ImageCandidate:
    """An image file together with the coordinate encoded in its name."""

    lon: float
    lat: float
    path: Path


def parse_image_coordinate(path: Path, separator: str = "_") -> Optional[tuple[float, float]]:
    """Return ``(lon, lat)`` encoded in a file stem, or ``None`` if it does not parse."""
    tokens = path.stem.split(separator)
    if len(tokens) < 2:
        return None
    lon = parse_decimal(tokens[0])
    lat = parse_decimal(tokens[1])
    if lon is None or lat is None:
        return None
    return lon, lat


class ImageBinder:
    """Attach the best matching image file to each node."""

    def __init__(self, config: Optional[BindingConfig] = None) -> None:
        self.config = config or BindingConfig()

    def scan(self, folder: Path) -> tuple[list[ImageCandidate], list[Path]]:
        """Enumerate image candidates under ``folder``.

        Returns the parsed candidates in sorted path order and the image files
        whose names did not encode a coordinate.
        """
        extensions = {ext.lower() for ext in self.config.extensions}
        candidates: list[ImageCandidate] = []
        rejected: list[Path] = []
        for path in sorted(p for p in Path(folder).rglob("*") if p.is_file()):
            if path.suffix.lower() not in extensions:
                continue
            parsed = parse_image_coordinate(path, self.config.separator)
            if parsed is None:
                rejected.append(path)
                continue
            candidates.append(ImageCandidate(parsed[0], parsed[1], path))
        return candidates, rejected

    def bind(self, nodes: Sequence[Node], folder: Path) -> int:
        """Bind images under ``folder`` to ``nodes`` and return how many were bound."""
        return self.bind_with_report(nodes, folder).loaded

    def bind_with_report(self, nodes: Sequence[Node], folder: Path) -> LoadResult:
        """Bind images and describe the outcome.

        Existing bindings are cleared first, even when ``folder`` does not exist,
        so repeated calls with the same inputs always reproduce the same result.
        A node is bound to the candidate with the smallest score, provided the
        score is strictly below the configured tolerance; the first candidate in
        scan order wins ties.
        """
        folder = Path(folder)
        for node in nodes:
            node.clear_image()
        if not folder.is_dir():
            logger.warning("Image folder does not exist: {}", folder)
            return LoadResult.empty(f"image folder does not exist: {folder}", folder)

        candidates, rejected = self.scan(folder)
        logger.info(
            "Scanned {}: {} images with coordinates, {} without",
            folder,
            len(candidates),
            len(rejected),
        )
        for path in rejected:
            logger.debug("Image name does not encode a coordinate: {}", path.name)

        bound = 0
        for node in nodes:
            match = self._best_match(node, candidates)
            if match is None:
                continue
            candidate, score = match
            node.bind_image(candidate.path, score)
            bound += 1

        logger.info("Bound {} of {} nodes to images", bound, len(nodes))
        reasons = [f"unparsable image name: {path.name}" for path in rejected]
        if bound == 0:
            reasons.append("no node matched an image within tolerance")
            return LoadResult(LoadStatus.EMPTY, skipped=len(rejected), reasons=tuple(reasons), source=folder)
        return LoadResult.from_counts(bound, reasons, folder)

    def _best_match(
        self,
        node: Node,
        candidates: Iterable[ImageCandidate],
    ) -> Optional[tuple[ImageCandidate, float]]:
        best: Optional[ImageCandidate] = None
        best_score = math.inf
        for candidate in candidates:
            score = abs(candidate.lon - node.lon) + abs(candidate.lat - node.lat)
            if score < best_score:
                best = candidate
                best_score = score
        if best is None or best_score >= self.config.tolerance:
            return None
        return best, best_score
