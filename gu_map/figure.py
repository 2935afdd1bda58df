"""Notebook front-end: render a :class:`MapChart` into a Plotly ``FigureWidget``.

Purpose
-------
``MapFigure`` pre-configures a chart for map display and draws every layout
pass into Plotly:

- the Plotly axes are fixed to the plot's pixel box (``x`` in
  ``[0, width]``, ``y`` in ``[height, 0]``), hidden and non-draggable, so the
  engine's projected pixel paths can be drawn as-is;
- each map shape becomes one layout ``path`` shape filled with its mapped
  color;
- every map series gets a trace of transparent centroid markers that
  carries its hover text and data labels; hovering one switches the shape
  to its hover color until the pointer leaves;
- point series and bubble series become scatter traces with hover text;
- ``+``/``-`` zoom buttons and the legend panel are ipywidgets.

Concepts and structure
----------------------
The figure only renders; layout math, color mapping and zoom state live in
:class:`~gu_map.chart.MapChart`. Rendering is driven by
:meth:`MapChart.on_redraw`, so zooming through the chart, the buttons or the
pointer helpers all end in a single Plotly update.

Plotly layout shapes take no pointer events, so a map shape reacts to hover
only around its label anchor, where its centroid marker sits.

Examples
--------
>>> fig = MapFigure(width=400, height=300)  # doctest: +SKIP
>>> fig.map([{"code": "A", "path": "M0,0L10,0L10,10L0,10Z", "value": 3}],
...         value_ranges=[{"to": 5, "color": "#9ecae1"}, {"from": 5, "color": "#08519c"}])  # doctest: +SKIP
>>> fig  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any, Dict, Optional, Tuple, Union

import ipywidgets as widgets
import plotly.graph_objects as go
from IPython.display import display

from .chart import MapChart
from .legend import MapLegendPanel
from .options import LegendOptions, MapNavigationOptions, MapSeriesOptions, coerce_options
from .registry import MapDataRegistry
from .series import MapBubbleSeries, MapLineSeries, MapPointSeries, MapSeries, Series

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

_TRANSPARENT = "rgba(0,0,0,0)"
_HOVER_LABEL = dict(bgcolor="#ffffff", bordercolor="#1f2933", font=dict(color="#1f2933"))
_HOVER_MARKER_SIZE = 12

# (layout shape index, normal style, hover style)
_ShapeStyle = Tuple[int, Dict[str, Any], Dict[str, Any]]


def _plotly_color(color: Optional[str]) -> str:
    if not color or color == "none":
        return _TRANSPARENT
    return color


class MapFigure:
    """Interactive choropleth map for notebooks.

    Parameters
    ----------
    width, height : float
        Plot area size in pixels.
    navigation : MapNavigationOptions or mapping, optional
        Zoom interaction switches. Buttons are shown when
        ``enable_buttons`` is set.
    legend : LegendOptions or mapping, optional
        Legend layout and number formatting.
    map_data : MapDataRegistry, optional
        Shared named shape datasets.
    animation : bool, int or mapping
        Zoom transition; while it runs, further zoom requests are ignored.
    title : str
        Figure title.
    """

    def __init__(
        self,
        *,
        width: float = 600,
        height: float = 400,
        navigation: Union[MapNavigationOptions, Mapping[str, Any], None] = None,
        legend: Union[LegendOptions, Mapping[str, Any], None] = None,
        map_data: Optional[MapDataRegistry] = None,
        animation: Union[bool, int, float, Mapping[str, Any]] = True,
        title: str = "",
    ) -> None:
        self.chart = MapChart(
            plot_width=width,
            plot_height=height,
            animation=animation,
            navigation=navigation,
            map_data=map_data,
        )
        self._figure = go.FigureWidget()
        self._figure.update_layout(**self._default_figure_layout(title))
        self._traces: Dict[str, go.Scatter] = {}
        self._shape_styles: Dict[int, _ShapeStyle] = {}
        self._hover_targets: Dict[str, list[Optional[_ShapeStyle]]] = {}
        self._hovered: list[tuple[int, Dict[str, Any]]] = []

        self._legend_box = widgets.VBox(layout=widgets.Layout(padding="4px", gap="4px"))
        self._legend = MapLegendPanel(self._legend_box, coerce_options(LegendOptions, legend))
        self._buttons = self._create_buttons()
        self._root = widgets.HBox(
            [
                widgets.VBox([widgets.HBox(list(self._buttons.values())), self._figure]),
                self._legend_box,
            ],
            layout=widgets.Layout(align_items="flex-start", gap="8px"),
        )
        self.chart.on_redraw(self._render)

    # --- Properties ---

    @property
    def figure_widget(self) -> go.FigureWidget:
        """Return the Plotly widget the map is drawn into."""
        return self._figure

    @property
    def widget(self) -> widgets.Widget:
        """Return the root widget (buttons, plot and legend)."""
        return self._root

    @property
    def buttons(self) -> Dict[str, widgets.Button]:
        return dict(self._buttons)

    def _default_figure_layout(self, title: str) -> Dict[str, Any]:
        """Return Plotly layout settings that map pixels one-to-one."""
        width = self.chart.plot_width
        height = self.chart.plot_height
        hidden_axis = dict(
            visible=False,
            showgrid=False,
            zeroline=False,
            fixedrange=True,
        )
        layout = dict(
            width=width,
            height=height + (32 if title else 0),
            autosize=False,
            template="plotly_white",
            showlegend=False,
            dragmode=False,
            margin=dict(l=0, r=0, t=32 if title else 0, b=0, pad=0),
            paper_bgcolor="#ffffff",
            plot_bgcolor="#ffffff",
            xaxis=dict(hidden_axis, range=[0, width]),
            yaxis=dict(hidden_axis, range=[height, 0]),
        )
        if title:
            layout["title"] = dict(text=title)
        return layout

    def _create_buttons(self) -> Dict[str, widgets.Button]:
        navigation = self.chart.navigation
        if not navigation.enable_buttons:
            return {}
        buttons: Dict[str, widgets.Button] = {}
        for name, spec in navigation.buttons.items():
            button = widgets.Button(
                description=spec.text,
                tooltip=name.replace("_", " "),
                layout=widgets.Layout(width=f"{spec.width + 14}px", height=f"{spec.height + 10}px"),
            )
            button.on_click(lambda _b, n=name: self.chart.zoom_engine.press_button(n))
            buttons[name] = button
        return buttons

    # --- Series helpers ---

    def add_series(self, series: Series) -> Series:
        """Attach ``series`` and redraw."""
        self.chart.add_series(series, redraw=True)
        return series

    def _options(self, options: Any, kwargs: Dict[str, Any], **defaults: Any) -> MapSeriesOptions:
        if options is not None and kwargs:
            raise ValueError("Pass either options= or style keyword arguments, not both")
        if options is not None:
            return coerce_options(MapSeriesOptions, options)
        return MapSeriesOptions.from_mapping({**defaults, **kwargs})

    def map(self, data: Iterable[Any], *, id: str = "", name: str = "", options: Any = None, **style: Any) -> MapSeries:
        """Add a choropleth area series."""
        opts = self._options(options, style)
        return self.add_series(MapSeries(data, id=id or f"map{len(self.chart.series)}", name=name, options=opts))

    def mapline(self, data: Iterable[Any], *, id: str = "", name: str = "", options: Any = None, **style: Any) -> MapLineSeries:
        """Add a map-geometry line series."""
        opts = self._options(options, style)
        return self.add_series(MapLineSeries(data, id=id or f"mapline{len(self.chart.series)}", name=name, options=opts))

    def mappoint(self, data: Iterable[Any], *, id: str = "", name: str = "", options: Any = None, **style: Any) -> MapPointSeries:
        """Add labelled point markers."""
        opts = self._options(options, style, data_labels=True)
        return self.add_series(MapPointSeries(data, id=id or f"mappoint{len(self.chart.series)}", name=name, options=opts))

    def mapbubble(self, data: Iterable[Any], *, id: str = "", name: str = "", options: Any = None, **style: Any) -> MapBubbleSeries:
        """Add bubbles joined to map shapes by ``join_by``."""
        opts = self._options(options, style)
        return self.add_series(MapBubbleSeries(data, id=id or f"mapbubble{len(self.chart.series)}", name=name, options=opts))

    def zoom(self, factor: Any, center_x: Any = None, center_y: Any = None) -> bool:
        """Zoom the map; see :meth:`MapZoomEngine.zoom`."""
        return self.chart.zoom(factor, center_x, center_y)

    # --- Rendering ---

    def _shape_dicts(self) -> list[Dict[str, Any]]:
        """Build the layout path shapes and record each shape's hover styling."""
        shapes: list[Dict[str, Any]] = []
        self._shape_styles = {}
        skipped = 0
        for series in self.chart.series.values():
            if not isinstance(series, MapSeries) or not series.visible:
                continue
            is_line = isinstance(series, MapLineSeries)
            for shape in series.shapes:
                plot_path = shape.plot_path
                if plot_path is None or plot_path.n_points == 0:
                    continue
                if any(isinstance(t, float) and math.isnan(t) for t in plot_path):
                    skipped += 1
                    continue
                fill = _plotly_color(series.fill_for(shape))
                stroke = _plotly_color(series.stroke_for(shape))
                hover = _plotly_color(series.hover_color_for(shape))
                if is_line:
                    normal, hovered = dict(line=dict(color=stroke)), dict(line=dict(color=hover))
                else:
                    normal, hovered = dict(fillcolor=fill), dict(fillcolor=hover)
                self._shape_styles[id(shape)] = (len(shapes), normal, hovered)
                shapes.append(
                    dict(
                        type="path",
                        path=plot_path.to_svg(),
                        xref="x",
                        yref="y",
                        layer="below",
                        fillcolor=fill,
                        line=dict(color=stroke, width=series.stroke_width()),
                    )
                )
        if skipped:
            logger.debug("skipped %d shapes with non-numeric coordinates", skipped)
        return shapes

    def _trace(self, key: str, **init: Any) -> go.Scatter:
        trace = self._traces.get(key)
        if trace is None:
            self._figure.add_scatter(x=[], y=[], name=key, hoverinfo="text", hoverlabel=_HOVER_LABEL, **init)
            trace = self._figure.data[-1]
            self._traces[key] = trace
        return trace

    def _hover_trace(self, series: MapSeries) -> go.Scatter:
        """Return the centroid marker trace that carries a map series' hover text."""
        key = f"{series.id}:hover"
        if key in self._traces:
            return self._traces[key]
        trace = self._trace(key, textposition="middle center")
        trace.on_hover(lambda _trace, points, _state, k=key: self._hover_shapes(k, points.point_inds))
        trace.on_unhover(lambda _trace, _points, _state: self._clear_hover())
        return trace

    def _hover_shapes(self, key: str, point_inds: Iterable[int]) -> None:
        """Switch the shapes behind ``point_inds`` of trace ``key`` to their hover style."""
        self._clear_hover()
        targets = self._hover_targets.get(key, [])
        shapes = self._figure.layout.shapes
        with self._figure.batch_update():
            for i in point_inds:
                if not 0 <= i < len(targets) or targets[i] is None:
                    continue
                index, normal, hovered = targets[i]
                shapes[index].update(hovered)
                self._hovered.append((index, normal))

    def _clear_hover(self) -> None:
        """Restore the normal style of hovered shapes."""
        if not self._hovered:
            return
        shapes = self._figure.layout.shapes
        with self._figure.batch_update():
            for index, normal in self._hovered:
                if index < len(shapes):
                    shapes[index].update(normal)
        self._hovered = []

    def _render(self, chart: MapChart) -> None:
        shapes = self._shape_dicts()
        self._hovered = []
        # Create traces outside batch_update; the batch only carries property updates.
        updates: list[tuple[go.Scatter, Dict[str, Any]]] = []
        for series in chart.series.values():
            if isinstance(series, MapSeries):
                anchored = [s for s in series.shapes if not math.isnan(s.plot_x)]
                labels = series.options.data_labels
                trace = self._hover_trace(series)
                self._hover_targets[trace.name] = [self._shape_styles.get(id(s)) for s in anchored]
                updates.append(
                    (
                        trace,
                        dict(
                            x=[s.plot_x for s in anchored],
                            y=[s.plot_y for s in anchored],
                            mode="markers+text" if labels else "markers",
                            marker=dict(color=_TRANSPARENT, size=_HOVER_MARKER_SIZE),
                            text=[series.label_for(s) for s in anchored] if labels else None,
                            hovertext=[series.tooltip_for(s) for s in anchored],
                            visible=series.visible,
                        ),
                    )
                )
                continue
            placed = [p for p in series.points if not math.isnan(p.plot_x)]
            mode = "markers+text" if series.options.data_labels else "markers"
            trace = self._trace(series.id, mode=mode, textposition="top center")
            marker: Dict[str, Any] = dict(color=series.options.color or "#1f2933")
            if isinstance(series, MapBubbleSeries):
                marker.update(size=[2 * p.radius for p in placed], sizemode="diameter", opacity=0.7)
            else:
                marker.update(size=series.options.marker_size)
            updates.append(
                (
                    trace,
                    dict(
                        x=[p.plot_x for p in placed],
                        y=[p.plot_y for p in placed],
                        text=[series.label_for(p) for p in placed] if series.options.data_labels else None,
                        hovertext=[series.tooltip_for(p) for p in placed],
                        marker=marker,
                        visible=series.visible,
                    ),
                )
            )

        with self._figure.batch_update():
            self._figure.layout.shapes = tuple(shapes)
            for trace, props in updates:
                trace.update(**props)
        self._legend.refresh(list(chart.series.values()))
        logger.debug("rendered %d shapes, %d traces", len(shapes), len(updates))

    def _ipython_display_(self, **kwargs: Any) -> None:
        """Display the root widget in IPython/Jupyter."""
        if self.chart.redraw_count == 0:
            self.chart.redraw()
        display(self._root)


__all__ = ["MapFigure"]
