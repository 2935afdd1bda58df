"""Aspect-preserving zoom and pan for map charts.

Purpose
-------
``MapZoomEngine`` turns a zoom factor and an optional focal point into new
axis extremes, fitted inside the data bounding box, and issues one redraw.

Concepts and structure
----------------------
- ``fit_to_box`` is the pure box-fitting rule used to clamp a candidate
  view rectangle to the data bounds.
- The engine is a two-state machine (idle / zooming). A zoom with a
  configured transition holds a latch for the transition's duration; zoom
  requests arriving meanwhile are dropped, not queued.
- Pointer helpers translate double-click, wheel, pinch and button input into
  ``zoom`` calls.

Important gotchas
-----------------
The latch is released from a timer: ``loop.call_later`` when an asyncio
loop is running (Jupyter kernels), otherwise a daemon ``threading.Timer``.
"""

from __future__ import annotations

import asyncio
import logging
import math
import threading
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Optional

from .convert import to_float, to_positive_float

if TYPE_CHECKING:  # pragma: no cover
    from .chart import MapChart

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# SECTION: Box fitting [id: fit_to_box]
# =============================================================================


@dataclass(frozen=True)
class Box:
    """Rectangle given by its leading corner and size."""

    x: float
    y: float
    width: float
    height: float


def fit_to_box(inner: Box, outer: Box) -> Box:
    """Fit ``inner`` inside ``outer``, independently along x and y.

    Per dimension: if ``inner`` overflows the trailing edge it either snaps
    to ``outer`` entirely (when it is also larger) or slides back so the
    trailing edges align. Then its size is clamped to ``outer``'s size and its
    leading edge is moved up to ``outer``'s leading edge if below it.
    """
    fitted = {"x": inner.x, "y": inner.y, "width": inner.width, "height": inner.height}
    for pos, size in (("x", "width"), ("y", "height")):
        outer_pos = getattr(outer, pos)
        outer_size = getattr(outer, size)
        if fitted[pos] + fitted[size] > outer_pos + outer_size:
            if fitted[size] > outer_size:
                fitted[size] = outer_size
                fitted[pos] = outer_pos
            else:
                fitted[pos] = outer_pos + outer_size - fitted[size]
        if fitted[size] > outer_size:
            fitted[size] = outer_size
        if fitted[pos] < outer_pos:
            fitted[pos] = outer_pos
    return Box(**fitted)


# SECTION: Input events [id: PointerEvent]
# =============================================================================


@dataclass(frozen=True)
class PointerEvent:
    """Normalized pointer event in chart coordinates.

    ``detail`` (positive when scrolling down) and ``wheel_delta``
    (positive when scrolling up, in steps of 120) are the two wheel
    conventions delivered by browsers; either may be zero.
    """

    chart_x: float
    chart_y: float
    detail: float = 0.0
    wheel_delta: float = 0.0

    @property
    def delta(self) -> float:
        """Return the wheel delta, positive when zooming out."""
        return self.detail or -(self.wheel_delta / 120.0)


@dataclass(frozen=True)
class PinchTransform:
    """Scale factors of an in-progress two-finger gesture."""

    scale_x: float
    scale_y: float
    translate_x: float = 0.0
    translate_y: float = 0.0


def lock_pinch_scale(scale_x: float, scale_y: float) -> tuple[float, float]:
    """Return ``(s, s)`` where ``s`` is the larger of the two raw scales."""
    scale = scale_x if scale_x > scale_y else scale_y
    return scale, scale


@dataclass(frozen=True)
class ZoomState:
    """Visible data rectangle and the zoom-in-progress latch."""

    x_min: Optional[float] = None
    x_max: Optional[float] = None
    y_min: Optional[float] = None
    y_max: Optional[float] = None
    zooming: bool = False


# SECTION: MapZoomEngine [id: MapZoomEngine]
# =============================================================================


class MapZoomEngine:
    """Zoom/pan controller bound to one chart.

    Parameters
    ----------
    chart:
        Chart whose first X/Y axes are zoomed. Its ``options`` provide the
        transition duration and ``navigation`` the interaction switches.
    """

    def __init__(self, chart: "MapChart") -> None:
        self.chart = chart
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._state = ZoomState()

    @property
    def is_zooming(self) -> bool:
        return self._state.zooming

    @property
    def state(self) -> ZoomState:
        return self._state

    # --- Core zoom ---

    def zoom(self, factor: Any, center_x: Any = None, center_y: Any = None) -> bool:
        """Zoom by ``factor`` around ``(center_x, center_y)`` in data units.

        ``factor`` < 1 zooms in and > 1 zooms out; the focal point defaults to
        the middle of the current view. Returns ``False`` when the request was
        dropped because a previous zoom is still in progress.

        Raises
        ------
        ValueError
            If ``factor`` is not a finite positive number.
        """
        factor = to_positive_float(factor, name="zoom factor")
        center_x = to_float(center_x, name="center_x", allow_none=True)
        center_y = to_float(center_y, name="center_y", allow_none=True)
        if self.is_zooming:
            logger.debug("zoom(%s) dropped: previous zoom still in progress", factor)
            return False

        chart = self.chart
        x_axis, y_axis = chart.x_axis, chart.y_axis
        if x_axis.min is None or y_axis.min is None:
            chart.redraw()

        x_range = x_axis.max - x_axis.min
        y_range = y_axis.max - y_axis.min
        if center_x is None:
            center_x = x_axis.min + x_range / 2
        if center_y is None:
            center_y = y_axis.min + y_range / 2
        new_x_range = x_range * factor
        new_y_range = y_range * factor
        candidate = Box(
            x=center_x - new_x_range / 2,
            y=center_y - new_y_range / 2,
            width=new_x_range,
            height=new_y_range,
        )
        fitted = candidate
        if None not in (x_axis.data_min, x_axis.data_max, y_axis.data_min, y_axis.data_max):
            fitted = fit_to_box(
                candidate,
                Box(
                    x=x_axis.data_min,
                    y=y_axis.data_min,
                    width=x_axis.data_max - x_axis.data_min,
                    height=y_axis.data_max - y_axis.data_min,
                ),
            )
        logger.debug("zoom(%s): candidate=%s fitted=%s", factor, candidate, fitted)

        x_axis.set_extremes(fitted.x, fitted.x + fitted.width, redraw=False)
        y_axis.set_extremes(fitted.y, fitted.y + fitted.height, redraw=False)
        self._state = ZoomState(
            x_min=fitted.x,
            x_max=fitted.x + fitted.width,
            y_min=fitted.y,
            y_max=fitted.y + fitted.height,
        )

        delay_ms = chart.options.animation_duration_ms
        if delay_ms > 0:
            self._start_latch(delay_ms)

        chart.redraw()
        return True

    def reset(self) -> None:
        """Drop user extremes so the whole map is visible again."""
        self.cancel()
        self.chart.x_axis.set_extremes(None, None, redraw=False)
        self.chart.y_axis.set_extremes(None, None, redraw=False)
        self._state = ZoomState()
        self.chart.redraw()

    # --- Latch ---

    def _start_latch(self, delay_ms: float) -> None:
        with self._lock:
            self._state = replace(self._state, zooming=True)
            delay_s = delay_ms / 1000.0
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                timer = threading.Timer(delay_s, self._release_latch)
                timer.daemon = True
                self._timer = timer
                timer.start()
                return
            self._timer = loop.call_later(delay_s, self._release_latch)

    def _release_latch(self) -> None:
        with self._lock:
            self._timer = None
            self._state = replace(self._state, zooming=False)

    def cancel(self) -> None:
        """Cancel a pending latch release and return to idle immediately."""
        with self._lock:
            timer, self._timer = self._timer, None
            self._state = replace(self._state, zooming=False)
        if timer is not None:
            timer.cancel()

    # --- Input helpers ---

    def _focal_point(self, event: PointerEvent) -> Optional[tuple[float, float]]:
        chart = self.chart
        plot_x = event.chart_x - chart.options.plot_left
        plot_y = event.chart_y - chart.options.plot_top
        if not chart.is_inside_plot(plot_x, plot_y):
            return None
        if chart.x_axis.trans_a is None:
            chart.redraw()
        return chart.x_axis.to_value(plot_x), chart.y_axis.to_value(plot_y)

    def on_double_click(self, event: PointerEvent) -> bool:
        """Zoom in by 2x around the double-clicked point, if enabled."""
        if not self.chart.navigation.zoom_on_double_click:
            return False
        focal = self._focal_point(event)
        if focal is None:
            return False
        return self.zoom(0.5, *focal)

    def on_mouse_wheel(self, event: PointerEvent) -> bool:
        """Zoom out (delta > 0) or in by 2x around the pointer, if enabled."""
        if not self.chart.navigation.zoom_on_mouse_wheel:
            return False
        delta = event.delta
        if delta == 0 or math.isnan(delta):
            return False
        focal = self._focal_point(event)
        if focal is None:
            return False
        return self.zoom(2 if delta > 0 else 0.5, *focal)

    def press_button(self, name: str) -> bool:
        """Apply the zoom factor of the navigation button ``name``."""
        buttons = self.chart.navigation.buttons
        if name not in buttons:
            raise KeyError(f"Unknown navigation button: {name}")
        return self.zoom(buttons[name].factor)

    @property
    def pinch_axes(self) -> tuple[bool, bool]:
        """Return whether pinching zooms along (x, y)."""
        enabled = self.chart.navigation.enable_touch_zoom
        return enabled, enabled

    def pinch_transform(self, transform: PinchTransform) -> PinchTransform:
        """Lock the gesture's scales together on map charts with touch zoom."""
        if not (self.chart.is_map and self.chart.navigation.enable_touch_zoom):
            return transform
        scale_x, scale_y = lock_pinch_scale(transform.scale_x, transform.scale_y)
        return replace(transform, scale_x=scale_x, scale_y=scale_y)

    def on_pinch_end(self, transform: PinchTransform, event: PointerEvent) -> bool:
        """Commit a finished pinch as a zoom around the gesture center."""
        if not self.chart.navigation.enable_touch_zoom:
            return False
        locked = self.pinch_transform(transform)
        if locked.scale_x <= 0 or not math.isfinite(locked.scale_x):
            return False
        focal = self._focal_point(event)
        if focal is None:
            return False
        return self.zoom(1.0 / locked.scale_x, *focal)


__all__ = [
    "Box",
    "MapZoomEngine",
    "PinchTransform",
    "PointerEvent",
    "ZoomState",
    "fit_to_box",
    "lock_pinch_scale",
]
