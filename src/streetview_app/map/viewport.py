"""Pan/zoom viewport over the full data bounds."""
from __future__ import annotations

from typing import Callable, Optional

from loguru import logger

from ..config import ViewportConfig
from ..math.transform import CoordinateTransformer
from ..models.features import Bounds
from ..models.viewport_state import ViewportState

BoundsProvider = Callable[[], Bounds]


class Viewport:
    """Computes the visible geographic window and mutates the shared state.

    ``bounds_provider`` returns the full data bounds (usually
    ``GeoFeatureStore.data_bounds``). Any operation performed while the state is
    still uninitialized resets the view first.
    """

    def __init__(
        self,
        state: ViewportState,
        bounds_provider: BoundsProvider,
        config: Optional[ViewportConfig] = None,
    ) -> None:
        self.state = state
        self._bounds_provider = bounds_provider
        self.config = config or ViewportConfig()

    # ------------------------------------------------------------------
    def reset(self) -> None:
        """Centre on the full data bounds at zoom 1."""
        full = self._bounds_provider()
        self.state.center_x, self.state.center_y = full.center
        self.state.zoom = 1.0
        self.state.initialized = True
        logger.debug("Viewport reset to centre {} over {}", self.state.center, full)

    def _ensure_initialized(self) -> None:
        if not self.state.initialized:
            self.reset()

    def current_bounds(self, screen_aspect: Optional[float] = None) -> Bounds:
        """Visible window: full extent divided by zoom, centred on the view centre.

        When ``screen_aspect`` (width / height of the target surface) is given
        the visible height follows from the visible width, so the map is never
        drawn stretched.
        """
        self._ensure_initialized()
        full = self._bounds_provider()
        width = full.width / self.state.zoom
        height = full.height / self.state.zoom
        if screen_aspect is not None and screen_aspect > 0:
            height = width / screen_aspect
        return Bounds.centered(self.state.center_x, self.state.center_y, width, height)

    def transformer(
        self,
        surface_width: float,
        surface_height: float,
        screen_aspect: Optional[float] = None,
    ) -> CoordinateTransformer:
        return CoordinateTransformer(self.current_bounds(screen_aspect), surface_width, surface_height)

    # ------------------------------------------------------------------
    def pan(
        self,
        dx: float,
        dy: float,
        surface_width: float,
        surface_height: float,
        screen_aspect: Optional[float] = None,
    ) -> None:
        """Shift the view by a pixel drag of ``(dx, dy)``.

        Content follows the cursor: X moves against ``dx`` while Y moves with
        ``dy`` because pixel rows grow downwards.
        """
        bounds = self.current_bounds(screen_aspect)
        ratio_x = bounds.width / max(float(surface_width), 1.0)
        ratio_y = bounds.height / max(float(surface_height), 1.0)
        self.state.center_x -= dx * ratio_x
        self.state.center_y += dy * ratio_y

    def zoom_at_point(
        self,
        wheel_delta: float,
        screen_x: float,
        screen_y: float,
        surface_width: float,
        surface_height: float,
        screen_aspect: Optional[float] = None,
    ) -> bool:
        """Zoom one step keeping the geographic point under the cursor fixed.

        Returns ``False`` when the zoom did not change, for example because it
        is already clamped at a limit.
        """
        self._ensure_initialized()
        if wheel_delta == 0:
            return False
        anchor_x, anchor_y = self.transformer(surface_width, surface_height, screen_aspect).screen_to_geo(
            screen_x, screen_y
        )

        old_zoom = self.state.zoom
        step = self.config.zoom_step
        new_zoom = self._clamp(old_zoom * step if wheel_delta > 0 else old_zoom / step)
        if abs(new_zoom - old_zoom) < self.config.min_zoom_change:
            return False

        factor = new_zoom / old_zoom
        self.state.center_x = anchor_x - (anchor_x - self.state.center_x) / factor
        self.state.center_y = anchor_y - (anchor_y - self.state.center_y) / factor
        self.state.zoom = new_zoom
        return True

    def zoom_in(self) -> None:
        self._ensure_initialized()
        self.state.zoom = self._clamp(self.state.zoom * self.config.zoom_step)

    def zoom_out(self) -> None:
        self._ensure_initialized()
        self.state.zoom = self._clamp(self.state.zoom / self.config.zoom_step)

    def _clamp(self, zoom: float) -> float:
        return min(max(zoom, self.config.min_zoom), self.config.max_zoom)
