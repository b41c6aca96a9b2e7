"""Point, line and bounding-box domain models."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Tuple

Coordinate = Tuple[float, float]


@dataclass(slots=True)
class Node:
    """A geo-referenced point feature, optionally bound to one panorama image."""

    id: int
    lon: float  # degrees
    lat: float  # degrees
    image_path: Optional[Path] = None
    match_score: Optional[float] = None  # L1 coordinate difference in degrees

    @property
    def has_image(self) -> bool:
        return self.image_path is not None

    @property
    def has_valid_image(self) -> bool:
        """True when an image is bound and the file is still on disk."""
        return self.image_path is not None and self.image_path.is_file()

    def bind_image(self, path: Path, score: float) -> None:
        self.image_path = path
        self.match_score = score

    def clear_image(self) -> None:
        self.image_path = None
        self.match_score = None


@dataclass(slots=True, frozen=True)
class Way:
    """A polyline feature such as a road segment."""

    id: int
    coordinates: Tuple[Coordinate, ...]

    def __len__(self) -> int:
        return len(self.coordinates)


@dataclass(slots=True, frozen=True)
class Bounds:
    """Axis-aligned rectangle in geographic (or any planar) units."""

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Coordinate:
        return ((self.min_x + self.max_x) / 2.0, (self.min_y + self.max_y) / 2.0)

    @property
    def aspect(self) -> float:
        """Width over height, or 1.0 for a zero-height box."""
        if self.height == 0:
            return 1.0
        return self.width / self.height

    def contains(self, x: float, y: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_y <= y <= self.max_y

    @classmethod
    def centered(cls, center_x: float, center_y: float, width: float, height: float) -> "Bounds":
        half_w = width / 2.0
        half_h = height / 2.0
        return cls(center_x - half_w, center_y - half_h, center_x + half_w, center_y + half_h)

    @classmethod
    def from_points(cls, points: Iterable[Coordinate]) -> Optional["Bounds"]:
        """Tight bounds of ``points``; ``None`` when the iterable is empty."""
        min_x = min_y = float("inf")
        max_x = max_y = float("-inf")
        seen = False
        for x, y in points:
            seen = True
            min_x = min(min_x, x)
            max_x = max(max_x, x)
            min_y = min(min_y, y)
            max_y = max(max_y, y)
        if not seen:
            return None
        return cls(min_x, min_y, max_x, max_y)
