from __future__ import annotations

import sys
from unittest.mock import patch

import ipywidgets as widgets
import pytest

from gu_map import MapFigure, MapDataRegistry

RECT = "M0,0L100,0L100,50L0,50Z"


def _figure(**kwargs) -> MapFigure:
    kwargs.setdefault("animation", False)
    return MapFigure(width=200, height=200, **kwargs)


def test_plotly_axes_are_fixed_to_plot_pixels() -> None:
    fig = _figure()
    layout = fig.figure_widget.layout

    assert tuple(layout.xaxis.range) == (0, 200)
    assert tuple(layout.yaxis.range) == (200, 0)
    assert layout.xaxis.visible is False
    assert layout.xaxis.fixedrange is True


def test_map_series_become_path_shapes_with_mapped_fill() -> None:
    fig = _figure()
    fig.map(
        [
            {"code": "A", "path": RECT, "value": 3},
            {"code": "B", "path": "M0,0L1,1"},
        ],
        value_ranges=[{"to": 5, "color": "#9ecae1"}],
        null_color="#eeeeee",
        border_color="#333333",
    )

    shapes = fig.figure_widget.layout.shapes
    assert len(shapes) == 2
    assert shapes[0].type == "path"
    assert shapes[0].path == "M 0 50 L 200 50 L 200 150 L 0 150 Z"
    assert shapes[0].fillcolor == "#9ecae1"
    assert shapes[0].line.color == "#333333"
    assert shapes[1].fillcolor == "#eeeeee"


def test_mapline_draws_transparent_fill_and_colored_stroke() -> None:
    fig = _figure()
    fig.mapline([{"code": "R", "path": "M0,0L10,10"}], color="#ff0000", line_width=2)

    (shape,) = fig.figure_widget.layout.shapes
    assert shape.fillcolor == "rgba(0,0,0,0)"
    assert shape.line.color == "#ff0000"
    assert shape.line.width == 2


def test_zoom_rerenders_shapes() -> None:
    fig = _figure()
    fig.map([{"code": "A", "path": RECT, "value": 1}])
    before = fig.figure_widget.layout.shapes[0].path

    assert fig.zoom(0.5) is True

    assert fig.figure_widget.layout.shapes[0].path != before


def test_point_and_label_traces_are_created_once_and_updated() -> None:
    fig = _figure()
    fig.map([{"code": "A", "name": "Alpha", "path": RECT}], id="areas", data_labels=True)
    fig.mappoint([{"x": 50, "y": 25, "name": "Mid"}], id="pts")
    n_traces = len(fig.figure_widget.data)

    fig.zoom(0.5)

    assert len(fig.figure_widget.data) == n_traces == 2
    labels = next(t for t in fig.figure_widget.data if t.name == "areas:hover")
    points = next(t for t in fig.figure_widget.data if t.name == "pts")
    assert tuple(labels.text) == ("Alpha",)
    assert tuple(points.text) == ("Mid",)
    assert tuple(points.hovertext) == ("Mid",)
    assert tuple(points.x) == (100,)


def test_map_areas_carry_hover_text_without_labels() -> None:
    fig = _figure()
    fig.map([{"code": "A", "name": "Alpha", "path": RECT, "value": 3}], id="areas")

    trace = next(t for t in fig.figure_widget.data if t.name == "areas:hover")
    assert trace.mode == "markers"
    assert trace.text is None
    assert tuple(trace.hovertext) == ("Alpha: 3",)
    assert tuple(trace.x) == (100,)
    assert tuple(trace.y) == (100,)


def test_tooltip_format_overrides_the_default() -> None:
    fig = _figure()
    fig.map([{"code": "A", "name": "Alpha", "path": RECT, "value": 2.5}], id="areas", tooltip_format="{id} = {value}")

    trace = next(t for t in fig.figure_widget.data if t.name == "areas:hover")
    assert tuple(trace.hovertext) == ("A = 2.5",)


def test_hovering_an_area_brightens_it_until_unhovered() -> None:
    fig = _figure()
    fig.map([{"code": "A", "path": RECT, "value": 3}], id="areas", value_ranges=[{"to": 5, "color": "#9ecae1"}])

    fig._hover_shapes("areas:hover", [0])
    assert fig.figure_widget.layout.shapes[0].fillcolor == "rgba(209,253,255,1)"

    fig._clear_hover()
    (shape,) = fig.figure_widget.layout.shapes
    assert shape.fillcolor == "#9ecae1"
    assert shape.line.width == 1


def test_hover_color_option_and_line_hover_stroke() -> None:
    fig = _figure()
    fig.map([{"code": "A", "path": RECT}], id="areas", color="#cccccc", hover_color="#ff8800")
    fig.mapline([{"code": "R", "path": "M0,0L10,10"}], id="roads", color="#000000")

    fig._hover_shapes("areas:hover", [0])
    assert fig.figure_widget.layout.shapes[0].fillcolor == "#ff8800"

    fig._hover_shapes("roads:hover", [0])
    assert fig.figure_widget.layout.shapes[0].fillcolor == "#cccccc"
    assert fig.figure_widget.layout.shapes[1].line.color == "rgba(51,51,51,1)"


def test_bubbles_use_diameter_sizes() -> None:
    maps = MapDataRegistry()
    maps.load("m", [{"code": "A", "path": RECT}, {"code": "B", "path": "M0,0L10,0L10,10Z"}])
    fig = _figure(map_data=maps)
    fig.map([{"code": "A"}, {"code": "B"}], map_data="m")
    fig.mapbubble([("A", 1), ("B", 2)], id="bubbles", map_data="m", min_size=10, max_size=30)

    trace = next(t for t in fig.figure_widget.data if t.name == "bubbles")
    assert tuple(trace.marker.size) == pytest.approx((10.0, 30.0))
    assert tuple(trace.hovertext) == ("A: 1", "B: 2")


def test_zoom_buttons_are_wired_to_engine() -> None:
    fig = _figure(navigation={"enable_buttons": True})
    fig.map([{"code": "A", "path": "M0,0L100,0L100,100L0,100Z"}])

    assert set(fig.buttons) == {"zoom_in", "zoom_out"}
    fig.buttons["zoom_in"].click()

    assert (fig.chart.x_axis.min, fig.chart.x_axis.max) == (25, 75)


def test_no_buttons_without_navigation() -> None:
    assert _figure().buttons == {}


def test_options_and_style_keywords_are_exclusive() -> None:
    fig = _figure()
    with pytest.raises(ValueError, match="either"):
        fig.map([], options={"color": "red"}, border_width=2)


def test_legend_panel_follows_series() -> None:
    fig = _figure()
    fig.map([{"path": RECT, "value": 1}], value_ranges=[{"to": 5, "color": "#9ecae1"}, {"from": 5, "color": "#08519c"}])

    legend_box = fig.widget.children[1]
    assert len(legend_box.children) == 2


def test_ipython_display_shows_root_widget() -> None:
    fig = _figure()
    module = sys.modules[MapFigure.__module__]

    with patch.object(module, "display") as mocked_display:
        fig._ipython_display_()

    mocked_display.assert_called_once()
    assert isinstance(mocked_display.call_args.args[0], widgets.HBox)
    assert fig.chart.redraw_count == 1
