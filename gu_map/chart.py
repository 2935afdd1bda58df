"""Map chart: axes, series registry and the layout pass.

Purpose
-------
``MapChart`` is the orchestrator that owns the two axes, the series, the
zoom engine and the injected map-data registry. It is renderer-agnostic:
renderers subscribe with :meth:`MapChart.on_redraw` and receive the chart
after every layout pass.

Architecture notes
------------------
``redraw()`` runs one layout pass in a fixed order:

1. extreme discovery on X then Y,
2. scale computation on X then Y (the aspect lock runs on Y and relies on
   X being done),
3. ``translate()`` on every visible series (projection, colors, anchors),
4. redraw callbacks.

Shape extents and value extremes are not part of the pass; series compute
them when their data is assigned.

Examples
--------
>>> chart = MapChart(plot_width=200, plot_height=200)  # doctest: +SKIP
>>> chart.add_series(MapSeries([{"path": "M0,0L10,0L10,5Z", "value": 1}]))  # doctest: +SKIP
>>> chart.redraw()  # doctest: +SKIP
>>> chart.zoom(0.5)  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses
import logging
import time
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from .axis import AspectRatioLock, Axis, MapGeometryExtremes
from .options import ChartOptions, MapNavigationOptions, coerce_options
from .registry import MapDataRegistry
from .series import Series
from .zoom import MapZoomEngine

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

RedrawCallback = Callable[["MapChart"], None]


class MapChart:
    """Map-aware two-axis chart.

    Parameters
    ----------
    options : ChartOptions or mapping, optional
        Plot size/offset, ``is_map``, ``animation`` and ``y_reversed``.
    navigation : MapNavigationOptions or mapping, optional
        Zoom interaction switches and button definitions.
    map_data : MapDataRegistry, optional
        Named shape datasets that series can reference through
        ``options.map_data``. A private empty registry is used by default.
    **option_overrides
        Shorthand for ``ChartOptions`` fields, e.g. ``plot_width=400``.
    """

    def __init__(
        self,
        options: Union[ChartOptions, Mapping[str, Any], None] = None,
        *,
        navigation: Union[MapNavigationOptions, Mapping[str, Any], None] = None,
        map_data: Optional[MapDataRegistry] = None,
        **option_overrides: Any,
    ) -> None:
        chart_options = coerce_options(ChartOptions, options)
        if option_overrides:
            chart_options = dataclasses.replace(chart_options, **option_overrides)
        self.options: ChartOptions = chart_options
        self.navigation: MapNavigationOptions = coerce_options(MapNavigationOptions, navigation)
        self.map_data = map_data if map_data is not None else MapDataRegistry()

        self.x_axis = Axis(
            self,
            is_x_axis=True,
            length=self.options.plot_width,
            extremes_strategy=MapGeometryExtremes(),
            translation_strategy=AspectRatioLock(),
        )
        self.y_axis = Axis(
            self,
            is_x_axis=False,
            length=self.options.plot_height,
            reversed=self.options.y_reversed,
            extremes_strategy=MapGeometryExtremes(),
            translation_strategy=AspectRatioLock(),
        )
        self.series: dict[str, Series] = {}
        self.zoom_engine = MapZoomEngine(self)
        self._redraw_callbacks: list[RedrawCallback] = []
        self._redraw_count = 0
        self._redraw_log_t = 0.0

    def __repr__(self) -> str:
        return (
            f"MapChart({self.options.plot_width:g}x{self.options.plot_height:g}, "
            f"series={list(self.series)})"
        )

    # --- Properties ---

    @property
    def is_map(self) -> bool:
        return self.options.is_map

    @property
    def plot_width(self) -> float:
        return self.options.plot_width

    @property
    def plot_height(self) -> float:
        return self.options.plot_height

    @property
    def redraw_count(self) -> int:
        """Return how many layout passes have run."""
        return self._redraw_count

    def is_inside_plot(self, plot_x: float, plot_y: float) -> bool:
        """Return whether plot-relative pixel coordinates fall inside the plot area."""
        return 0 <= plot_x <= self.plot_width and 0 <= plot_y <= self.plot_height

    # --- Series registry ---

    def add_series(self, series: Series, *, redraw: bool = False) -> Series:
        """Attach ``series`` to the chart and both axes."""
        if series.id in self.series:
            raise ValueError(f"Series '{series.id}' already exists")
        series.bind(self)
        self.series[series.id] = series
        self.x_axis.series.append(series)
        self.y_axis.series.append(series)
        if redraw:
            self.redraw()
        return series

    def get_series(self, series_id: str) -> Series:
        if series_id not in self.series:
            raise KeyError(f"Unknown series: {series_id}")
        return self.series[series_id]

    def remove_series(self, series_id: str, *, redraw: bool = False) -> None:
        series = self.series.pop(series_id, None)
        if series is None:
            return
        self.x_axis.series.remove(series)
        self.y_axis.series.remove(series)
        series.chart = None
        if redraw:
            self.redraw()

    # --- Layout ---

    def set_size(self, plot_width: float, plot_height: float, *, redraw: bool = True) -> None:
        """Resize the plot area."""
        self.options = dataclasses.replace(self.options, plot_width=plot_width, plot_height=plot_height)
        self.x_axis.length = self.options.plot_width
        self.y_axis.length = self.options.plot_height
        if redraw:
            self.redraw()

    def on_redraw(self, callback: RedrawCallback) -> None:
        """Register ``callback(chart)`` to run after every layout pass."""
        self._redraw_callbacks.append(callback)

    def redraw(self) -> None:
        """Run one full layout pass and notify renderers."""
        for axis in (self.x_axis, self.y_axis):
            axis.get_series_extremes()
        for axis in (self.x_axis, self.y_axis):
            axis.set_scale()
        for series in self.series.values():
            if series.visible:
                series.translate()
        self._redraw_count += 1

        now = time.monotonic()
        if logger.isEnabledFor(logging.DEBUG) and (now - self._redraw_log_t) > 0.5:
            self._redraw_log_t = now
            logger.debug("redraw #%d x=%s y=%s", self._redraw_count, self.x_axis, self.y_axis)

        for callback in list(self._redraw_callbacks):
            callback(self)

    # --- Zoom ---

    def zoom(self, factor: Any, center_x: Any = None, center_y: Any = None) -> bool:
        """Zoom the map; see :meth:`MapZoomEngine.zoom`."""
        return self.zoom_engine.zoom(factor, center_x, center_y)


__all__ = ["MapChart"]
