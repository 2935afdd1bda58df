"""Cartesian axis model and the map-specific axis adapters.

Purpose
-------
``Axis`` is the minimal two-axis plotting contract the map engine runs on:
it owns a data domain (``min``/``max``), a pixel length and a linear
domain-to-pixel transform. Two steps of its layout pass are extension
points, each delegated to a strategy object:

- extreme discovery (``get_series_extremes``) fills ``data_min``/``data_max``,
- scale computation (``set_axis_translation``) fills ``trans_a`` and
  ``min_pixel_padding``.

Architecture notes
------------------
The map adapters wrap the generic strategies instead of replacing them:
they call through first and then adjust the result.

- :class:`MapGeometryExtremes` adds the shape-derived extents of map-geometry
  series to whatever value-based extremes the generic strategy found, so
  point series overlaid on a map keep working.
- :class:`AspectRatioLock` forces one shared pixels-per-unit scale on both
  axes of a map chart and centers the map along the axis with spare room.

The lock runs when the Y axis is laid out, which relies on the chart laying
out the X axis first in every pass.

Examples
--------
>>> from gu_map.chart import MapChart  # doctest: +SKIP
>>> chart = MapChart(plot_width=200, plot_height=200)  # doctest: +SKIP
>>> chart.x_axis.translation_strategy  # doctest: +SKIP
AspectRatioLock(base=CartesianTranslation())
"""

from __future__ import annotations

import logging
import math
import warnings
from typing import TYPE_CHECKING, Any, Optional, Protocol

import numpy as np

from .series import SeriesKind

if TYPE_CHECKING:  # pragma: no cover
    from .chart import MapChart

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class ExtremesStrategy(Protocol):
    def get_series_extremes(self, axis: "Axis") -> None: ...


class TranslationStrategy(Protocol):
    def set_axis_translation(self, axis: "Axis") -> None: ...


# SECTION: Generic strategies [id: CartesianStrategies]
# =============================================================================


class CartesianExtremes:
    """Value-based extremes over the generic series bound to an axis."""

    def get_series_extremes(self, axis: "Axis") -> None:
        mins: list[float] = []
        maxs: list[float] = []
        for series in axis.series:
            if series.kind is not SeriesKind.GENERIC or not series.visible:
                continue
            values = np.asarray(series.axis_values(axis.is_x_axis), dtype=float)
            if values.size == 0:
                continue
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", RuntimeWarning)
                low, high = np.nanmin(values), np.nanmax(values)
            if math.isnan(low):
                continue
            mins.append(float(low))
            maxs.append(float(high))
        axis.data_min = min(mins) if mins else None
        axis.data_max = max(maxs) if maxs else None

    def __repr__(self) -> str:
        return "CartesianExtremes()"


class CartesianTranslation:
    """Independent linear scale per axis: ``length / (max - min)`` pixels per unit.

    A zero span (a horizontal or vertical line, a single point) counts as one
    data unit, so the axis still spans the plot length.
    """

    def set_axis_translation(self, axis: "Axis") -> None:
        span = axis.span or 1.0
        axis.trans_a = axis.length / span if span > 0 and math.isfinite(span) else 1.0
        axis.min_pixel_padding = 0.0

    def __repr__(self) -> str:
        return "CartesianTranslation()"


# SECTION: Map adapters [id: MapAdapters]
# =============================================================================


class MapGeometryExtremes:
    """Use shape extents, not values, as the extremes of map-geometry series.

    Parameters
    ----------
    base:
        Strategy that computes the value-based extremes of generic series.
    """

    def __init__(self, base: Optional[ExtremesStrategy] = None) -> None:
        self.base = base if base is not None else CartesianExtremes()

    def get_series_extremes(self, axis: "Axis") -> None:
        self.base.get_series_extremes(axis)

        data_min = axis.data_min if axis.data_min is not None else math.inf
        data_max = axis.data_max if axis.data_max is not None else -math.inf
        for series in axis.series:
            if series.kind is not SeriesKind.MAP_GEOMETRY or not series.visible:
                continue
            low, high = series.extent.axis_range(axis.is_x_axis)
            data_min = min(data_min, low)
            data_max = max(data_max, high)

        axis.data_min = data_min if math.isfinite(data_min) else None
        axis.data_max = data_max if math.isfinite(data_max) else None

    def __repr__(self) -> str:
        return f"MapGeometryExtremes(base={self.base!r})"


class AspectRatioLock:
    """Share one pixels-per-unit scale between both axes of a map chart.

    After the base strategy has computed the Y axis scale, both axes take
    the smaller of the two scales. The axis with spare pixels is padded
    symmetrically so the map sits in the middle of the plot: when the
    x/y data-range ratio exceeds the plot's width/height ratio the Y axis is
    padded, otherwise the X axis is.
    """

    def __init__(self, base: Optional[TranslationStrategy] = None) -> None:
        self.base = base if base is not None else CartesianTranslation()

    def set_axis_translation(self, axis: "Axis") -> None:
        self.base.set_axis_translation(axis)

        chart = axis.chart
        if chart is None or not chart.is_map or axis.is_x_axis:
            return
        x_axis = chart.x_axis
        if x_axis.trans_a is None or axis.trans_a is None:
            return

        shared = min(axis.trans_a, x_axis.trans_a)
        axis.trans_a = x_axis.trans_a = shared

        y_span = axis.span
        map_ratio = x_axis.span / y_span if y_span > 0 else math.inf
        plot_ratio = chart.plot_width / chart.plot_height if chart.plot_height else math.inf
        pad_axis = axis if map_ratio > plot_ratio else x_axis

        adjusted_length = pad_axis.span * pad_axis.trans_a
        pad_axis.min_pixel_padding = (pad_axis.length - adjusted_length) / 2
        logger.debug(
            "aspect lock: trans_a=%s map_ratio=%s plot_ratio=%s pad=%s(%s px)",
            shared,
            map_ratio,
            plot_ratio,
            "y" if pad_axis is axis else "x",
            pad_axis.min_pixel_padding,
        )

    def __repr__(self) -> str:
        return f"AspectRatioLock(base={self.base!r})"


# SECTION: Axis [id: Axis]
# =============================================================================


class Axis:
    """One Cartesian axis of a chart.

    Parameters
    ----------
    chart:
        Owning chart; provides plot size and the sibling axis. May be
        ``None`` for standalone use in tests.
    is_x_axis:
        ``True`` for the horizontal axis.
    length:
        Pixel length of the axis (plot width or height).
    reversed:
        When ``True``, larger data values are drawn closer to the axis start.
        Map data authored in screen coordinates (y growing downward) uses a
        reversed Y axis.
    """

    def __init__(
        self,
        chart: Optional["MapChart"] = None,
        *,
        is_x_axis: bool,
        length: float = 0.0,
        reversed: bool = False,
        extremes_strategy: Optional[ExtremesStrategy] = None,
        translation_strategy: Optional[TranslationStrategy] = None,
    ) -> None:
        self.chart = chart
        self.is_x_axis = bool(is_x_axis)
        self.length = float(length)
        self.reversed = bool(reversed)
        self.series: list[Any] = []

        self.data_min: Optional[float] = None
        self.data_max: Optional[float] = None
        self.user_min: Optional[float] = None
        self.user_max: Optional[float] = None
        self.min: Optional[float] = None
        self.max: Optional[float] = None
        self.trans_a: Optional[float] = None
        self.min_pixel_padding = 0.0

        self.extremes_strategy: ExtremesStrategy = extremes_strategy or CartesianExtremes()
        self.translation_strategy: TranslationStrategy = translation_strategy or CartesianTranslation()

    def __repr__(self) -> str:
        name = "x" if self.is_x_axis else "y"
        return f"Axis({name}, min={self.min}, max={self.max}, len={self.length}, trans_a={self.trans_a})"

    @property
    def span(self) -> float:
        """Return ``max - min`` (``0.0`` before the first layout pass)."""
        if self.min is None or self.max is None:
            return 0.0
        return self.max - self.min

    # --- Layout pass ---

    def get_series_extremes(self) -> None:
        """Discover ``data_min``/``data_max`` through the extremes strategy."""
        self.extremes_strategy.get_series_extremes(self)

    def set_scale(self) -> None:
        """Resolve ``min``/``max`` from user extremes or data, then compute the scale."""
        self.min = self.user_min if self.user_min is not None else self.data_min
        self.max = self.user_max if self.user_max is not None else self.data_max
        if self.min is None or self.max is None:
            self.min, self.max = 0.0, 1.0
        self.set_axis_translation()

    def set_axis_translation(self) -> None:
        """Compute ``trans_a``/``min_pixel_padding`` through the translation strategy."""
        self.translation_strategy.set_axis_translation(self)

    def set_extremes(
        self, new_min: Optional[float], new_max: Optional[float], *, redraw: bool = True
    ) -> None:
        """Set user extremes; ``None`` falls back to the data extremes."""
        self.user_min = None if new_min is None else float(new_min)
        self.user_max = None if new_max is None else float(new_max)
        if redraw and self.chart is not None:
            self.chart.redraw()

    # --- Transforms ---

    def translate(self, value: Any) -> Any:
        """Map a data value (or numpy array) to pixels from the axis start."""
        if self.trans_a is None or self.min is None or self.max is None:
            raise RuntimeError("Axis has not been laid out yet; call chart.redraw() first")
        if self.reversed:
            return (self.max - value) * self.trans_a + self.min_pixel_padding
        return (value - self.min) * self.trans_a + self.min_pixel_padding

    def to_pixels(self, value: Any) -> Any:
        """Map a data value to plot-area pixels (y measured downward from the top)."""
        pixels = self.translate(value)
        return pixels if self.is_x_axis else self.length - pixels

    def to_value(self, pixel: float) -> float:
        """Inverse of :meth:`to_pixels`."""
        if self.trans_a is None or self.min is None or self.max is None:
            raise RuntimeError("Axis has not been laid out yet; call chart.redraw() first")
        offset = pixel if self.is_x_axis else self.length - pixel
        units = (offset - self.min_pixel_padding) / self.trans_a
        return self.max - units if self.reversed else self.min + units


__all__ = [
    "AspectRatioLock",
    "Axis",
    "CartesianExtremes",
    "CartesianTranslation",
    "ExtremesStrategy",
    "MapGeometryExtremes",
    "TranslationStrategy",
]
