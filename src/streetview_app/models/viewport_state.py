"""Mutable pan/zoom state for one map display session."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ViewportState:
    """Holds zoom factor and view-centre for a map session.

    One instance is owned by each session and handed to ``Viewport`` by
    reference, so independent sessions never share view state.
    """

    zoom: float = 1.0
    center_x: float = 0.0
    center_y: float = 0.0
    initialized: bool = False

    @property
    def center(self) -> tuple[float, float]:
        return self.center_x, self.center_y
