from __future__ import annotations

import math

import numpy as np
import pytest

from gu_map.chart import MapChart
from gu_map.registry import MapDataRegistry
from gu_map.series import (
    MapBubbleSeries,
    MapLineSeries,
    MapPointSeries,
    MapSeries,
    MapShape,
    Series,
    SeriesKind,
    bubble_radii,
)


def _rect(x0: float, y0: float, x1: float, y1: float) -> str:
    return f"M{x0},{y0}L{x1},{y0}L{x1},{y1}L{x0},{y1}Z"


@pytest.fixture
def registry() -> MapDataRegistry:
    maps = MapDataRegistry()
    maps.load(
        "world",
        [
            {"code": "A", "name": "Alpha", "path": _rect(0, 0, 10, 10)},
            {"code": "B", "path": _rect(10, 0, 30, 20)},
        ],
    )
    return maps


def test_series_kind_is_fixed_per_class() -> None:
    assert Series.kind is SeriesKind.GENERIC
    assert MapPointSeries.kind is SeriesKind.GENERIC
    assert MapBubbleSeries.kind is SeriesKind.GENERIC
    assert MapSeries.kind is SeriesKind.MAP_GEOMETRY
    assert MapLineSeries.kind is SeriesKind.MAP_GEOMETRY


def test_shape_from_mapping_reads_value_aliases_and_bias() -> None:
    shape = MapShape.from_mapping({"code": "X", "path": "M0,0L4,0L4,2Z", "y": 3, "middleX": 0.25})
    shape.compute_extent()

    assert shape.id == "X"
    assert shape.value == 3.0
    assert (shape.mid_x, shape.mid_y) == (1.0, 1.0)


def test_shape_value_rejects_booleans() -> None:
    with pytest.raises(ValueError, match="numeric"):
        MapShape.from_mapping({"path": "M0,0L1,1", "value": True})


def test_map_series_computes_extent_and_value_extremes_on_set_data() -> None:
    series = MapSeries(
        [
            {"code": "A", "path": _rect(0, 0, 10, 10), "value": 4},
            {"code": "B", "path": _rect(10, 0, 30, 20), "value": None},
            {"code": "C", "path": _rect(-5, 0, 0, 5), "value": -1},
        ]
    )

    assert len(series) == 3
    assert (series.extent.min_x, series.extent.max_x) == (-5, 30)
    assert (series.data_min, series.data_max) == (-1, 4)
    assert series.shapes[1].is_null


def test_map_series_colors_shapes_on_redraw() -> None:
    chart = MapChart(plot_width=200, plot_height=200, animation=False)
    series = chart.add_series(
        MapSeries(
            [
                {"code": "A", "path": _rect(0, 0, 10, 10), "value": 3},
                {"code": "B", "path": _rect(10, 0, 20, 10), "value": 7},
                {"code": "C", "path": _rect(20, 0, 30, 10)},
            ],
            id="areas",
            options={
                "value_ranges": [{"to": 5, "color": "A"}, {"from": 5, "to": 10, "color": "B"}],
                "null_color": "#EEEEEE",
            },
        )
    )
    chart.redraw()

    assert [series.fill_for(s) for s in series.shapes] == ["A", "B", "#EEEEEE"]


def test_source_mappings_are_not_mutated() -> None:
    item = {"code": "A", "path": _rect(0, 0, 10, 10), "value": 3}
    chart = MapChart(animation=False)
    chart.add_series(
        MapSeries([item], id="areas", options={"color_range": {"from": "#000000", "to": "#ffffff"}}),
        redraw=True,
    )

    assert item == {"code": "A", "path": _rect(0, 0, 10, 10), "value": 3}


def test_update_recolors_with_new_ranges() -> None:
    chart = MapChart(animation=False)
    series = chart.add_series(
        MapSeries(
            [{"code": "A", "path": _rect(0, 0, 1, 1), "value": 3}],
            id="areas",
            options={"value_ranges": [{"color": "red"}]},
        ),
        redraw=True,
    )
    assert series.shapes[0].color == "red"

    series.update(value_ranges=[{"color": "blue"}])

    assert series.shapes[0].color == "blue"


def test_update_to_unmatching_ranges_restores_series_color() -> None:
    chart = MapChart(animation=False)
    series = chart.add_series(
        MapSeries(
            [{"code": "A", "path": _rect(0, 0, 1, 1), "value": 3}],
            id="areas",
            options={"value_ranges": [{"to": 5, "color": "A"}], "color": "#default"},
        ),
        redraw=True,
    )
    shape = series.shapes[0]
    assert series.fill_for(shape) == "A"

    series.update(value_ranges=[{"from": 100, "color": "Z"}])

    assert shape.color is None
    assert series.fill_for(shape) == "#default"

    series.update(value_ranges=[{"to": 5, "color": "A"}])
    assert series.fill_for(shape) == "A"

    series.update(value_ranges=None)
    assert series.fill_for(shape) == "#default"


def test_value_moving_out_of_every_band_restores_data_color() -> None:
    chart = MapChart(animation=False)
    series = chart.add_series(
        MapSeries(
            [{"code": "A", "path": _rect(0, 0, 1, 1), "value": 3, "color": "#abcdef"}],
            id="areas",
            options={"value_ranges": [{"to": 5, "color": "A"}], "color": "#default"},
        ),
        redraw=True,
    )
    shape = series.shapes[0]
    assert series.fill_for(shape) == "A"

    shape.value = 99
    chart.redraw()

    assert series.fill_for(shape) == "#abcdef"


def test_map_series_joins_paths_from_registry(registry: MapDataRegistry) -> None:
    chart = MapChart(plot_width=300, plot_height=200, map_data=registry, animation=False)
    series = chart.add_series(
        MapSeries(
            [{"code": "A", "value": 1}, {"code": "B", "value": 2}, {"code": "Q", "value": 3}],
            id="areas",
            options={"map_data": "world"},
        )
    )
    chart.redraw()

    assert series.shapes[0].path == registry.get("world")[0]["path"]
    assert series.shapes[0].name == "Alpha"
    assert series.shapes[2].bbox.is_empty
    assert (series.extent.min_x, series.extent.max_x) == (0, 30)
    assert math.isnan(series.shapes[2].plot_x)


def test_map_series_joins_inline_map_data() -> None:
    series = MapSeries(
        [{"id": "x", "value": 2}],
        options={"map_data": [{"id": "x", "path": _rect(0, 0, 2, 2)}], "join_by": "id"},
    )
    assert series.shapes[0].bbox.max_x == 2


def test_map_line_series_uses_mapped_color_as_stroke() -> None:
    chart = MapChart(animation=False)
    series = chart.add_series(
        MapLineSeries(
            [{"code": "R", "path": "M0,0L10,10", "value": 1}],
            id="roads",
            options={"value_ranges": [{"color": "#ff0000"}], "line_width": 3},
        ),
        redraw=True,
    )
    shape = series.shapes[0]

    assert series.fill_for(shape) == "none"
    assert series.stroke_for(shape) == "#ff0000"
    assert series.stroke_width() == 3


def test_point_series_translate_to_pixels() -> None:
    chart = MapChart(plot_width=200, plot_height=200, animation=False, y_reversed=False)
    points = chart.add_series(MapPointSeries([{"x": 0, "y": 0, "name": "O"}, [10, 10], {"x": 5}], id="pts"))
    chart.redraw()

    assert (points.points[0].plot_x, points.points[0].plot_y) == (0, 200)
    assert (points.points[1].plot_x, points.points[1].plot_y) == (200, 0)
    assert math.isnan(points.points[2].plot_x)
    assert points.options.data_labels is True
    assert points.label_for(points.points[0]) == "O"


def test_label_format_errors_are_value_errors() -> None:
    series = Series([1], options={"label_format": "{missing}"})
    with pytest.raises(ValueError, match="label_format"):
        series.label_for(series.points[0])


def test_tooltips_default_per_series_type(registry: MapDataRegistry) -> None:
    chart = MapChart(map_data=registry, animation=False)
    areas = chart.add_series(MapSeries([{"code": "A", "name": "Alpha", "value": 3}], id="areas", options={"map_data": "world"}))
    bubbles = chart.add_series(MapBubbleSeries([("A", 7.5)], id="bubbles", options={"map_data": "world"}))
    points = chart.add_series(MapPointSeries([{"x": 1, "y": 2, "name": "P"}], id="pts"))
    plain = chart.add_series(Series([{"x": 1, "y": 4, "name": "S"}], id="plain"))

    assert areas.tooltip_for(areas.shapes[0]) == "Alpha: 3"
    assert bubbles.tooltip_for(bubbles.points[0]) == "Alpha: 7.5"
    assert points.tooltip_for(points.points[0]) == "P"
    assert plain.tooltip_for(plain.points[0]) == "S: 4"


def test_tooltip_format_errors_are_value_errors() -> None:
    series = MapSeries([{"path": _rect(0, 0, 1, 1)}], options={"tooltip_format": "{missing}"})
    with pytest.raises(ValueError, match="tooltip_format"):
        series.tooltip_for(series.shapes[0])


def test_hover_color_brightens_fill_or_stroke() -> None:
    areas = MapSeries([{"path": _rect(0, 0, 1, 1)}], options={"color": "#000000"})
    lines = MapLineSeries([{"path": "M0,0L1,1"}], options={"color": "#646464"})
    fixed = MapSeries([{"path": _rect(0, 0, 1, 1)}], options={"hover_color": "#ff8800"})

    assert areas.hover_color_for(areas.shapes[0]) == "rgba(51,51,51,1)"
    assert lines.hover_color_for(lines.shapes[0]) == "rgba(151,151,151,1)"
    assert fixed.hover_color_for(fixed.shapes[0]) == "#ff8800"


def test_bubbles_sit_on_joined_shape_centroids(registry: MapDataRegistry) -> None:
    chart = MapChart(plot_width=300, plot_height=200, map_data=registry, animation=False)
    chart.add_series(MapSeries([{"code": "A"}, {"code": "B"}], id="areas", options={"map_data": "world"}))
    bubbles = chart.add_series(
        MapBubbleSeries(
            [{"code": "A", "z": 5}, ("B", 10), {"code": "Z", "z": 1}],
            id="bubbles",
            options={"map_data": "world", "min_size": 8, "max_size": 20},
        )
    )
    chart.redraw()

    a, b, missing = bubbles.points
    assert (a.x, a.y, a.name) == (5, 5, "Alpha")
    assert (b.x, b.y, b.name) == (20, 10, "B")
    assert missing.y is None and missing.name == "Z"
    assert a.radius == pytest.approx(4.0)
    assert b.radius == pytest.approx(10.0)
    assert math.isnan(missing.radius)


def test_bubble_lookup_is_cached(registry: MapDataRegistry) -> None:
    chart = MapChart(map_data=registry, animation=False)
    bubbles = chart.add_series(MapBubbleSeries([("A", 1)], id="b", options={"map_data": "world"}))

    assert bubbles.get_map_shape("A") is bubbles.get_map_shape("A")
    assert bubbles.get_map_shape("nope") is None


def test_bubble_series_requires_map_data() -> None:
    chart = MapChart(animation=False)
    with pytest.raises(ValueError, match="map_data"):
        chart.add_series(MapBubbleSeries([("A", 1)], id="b"))


def test_bubble_radii_scale_area_linearly() -> None:
    radii = bubble_radii(np.array([0.0, 1.0, np.nan]), min_size=0, max_size=20)

    assert radii[0] == pytest.approx(0.0)
    assert radii[1] == pytest.approx(10.0)
    assert math.isnan(radii[2])
    assert bubble_radii(np.array([3.0, 3.0]), 8, 20).tolist() == [10.0, 10.0]


def test_chart_series_registry() -> None:
    chart = MapChart(animation=False)
    series = chart.add_series(MapSeries([], id="areas"))

    assert chart.get_series("areas") is series
    with pytest.raises(ValueError, match="already exists"):
        chart.add_series(MapSeries([], id="areas"))

    chart.remove_series("areas")
    assert "areas" not in chart.series
    assert chart.x_axis.series == []
    with pytest.raises(KeyError):
        chart.get_series("areas")


def test_redraw_notifies_callbacks_and_set_size_relayouts() -> None:
    chart = MapChart(plot_width=200, plot_height=200, animation=False)
    chart.add_series(MapSeries([{"path": _rect(0, 0, 100, 100)}], id="areas"))
    seen: list[int] = []
    chart.on_redraw(lambda c: seen.append(c.redraw_count))

    chart.redraw()
    chart.set_size(400, 400)

    assert seen == [1, 2]
    assert chart.x_axis.trans_a == pytest.approx(4.0)


def test_unattached_series_has_no_axes() -> None:
    with pytest.raises(RuntimeError, match="not attached"):
        _ = Series([1]).x_axis
