from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

import pytest

from gu_map.colors import (
    RGBA,
    ColorMapper,
    DiscreteColorRanges,
    GradientColorRange,
    ValueRange,
    brighten,
    parse_color,
    tween_colors,
    value_extremes,
)

RANGES = [{"to": 5, "color": "A"}, {"from": 5, "to": 10, "color": "B"}]


@dataclass
class _Shape:
    value: Any
    color: Optional[str] = None
    base_color: Optional[str] = None
    color_key: Optional[tuple] = None


def test_discrete_ranges_pick_containing_band() -> None:
    ranges = DiscreteColorRanges(RANGES)

    assert ranges.color_for(3) == "A"
    assert ranges.color_for(7) == "B"


def test_discrete_ranges_are_closed_open() -> None:
    ranges = DiscreteColorRanges(RANGES)

    assert ranges.color_for(5) == "B"
    assert ranges.color_for(4.999) == "A"
    assert ranges.color_for(10) is None


def test_later_band_wins_on_overlap() -> None:
    ranges = DiscreteColorRanges(
        [
            ValueRange(color="wide", from_=0, to=100),
            ValueRange(color="narrow", from_=40, to=60),
        ]
    )

    assert ranges.color_for(50) == "narrow"
    assert ranges.color_for(10) == "wide"


def test_null_value_uses_null_color() -> None:
    mapper = ColorMapper(value_ranges=DiscreteColorRanges(RANGES), null_color="#EEEEEE")

    assert mapper.color_for(None) == "#EEEEEE"


def test_gradient_midpoint_rounds_channels_half_up() -> None:
    gradient = GradientColorRange.from_mapping({"from": "rgba(0,0,0,1)", "to": "rgba(255,255,255,1)"})

    assert gradient.color_for(5, 0, 10) == "rgba(128,128,128,1)"
    assert gradient.color_for(0, 0, 10) == "rgba(0,0,0,1)"
    assert gradient.color_for(10, 0, 10) == "rgba(255,255,255,1)"


def test_gradient_position_is_clamped_and_degenerate_range_is_centered() -> None:
    gradient = GradientColorRange(from_color="#000000", to_color="#ffffff")

    assert gradient.position(-5, 0, 10) == 0.0
    assert gradient.position(50, 0, 10) == 1.0
    assert gradient.position(3, 3, 3) == 0.5


def test_gradient_explicit_bounds_override_data_extremes() -> None:
    gradient = GradientColorRange(from_color="#000000", to_color="#ffffff", from_value=0, to_value=100)

    assert gradient.position(25, 20, 30) == pytest.approx(0.25)


def test_gradient_requires_both_colors() -> None:
    with pytest.raises(ValueError, match="both"):
        GradientColorRange.from_mapping({"from": "#000000"})


def test_gradient_rejects_unparsable_colors() -> None:
    with pytest.raises(ValueError, match="Unsupported color"):
        GradientColorRange(from_color="black", to_color="#ffffff")


def test_value_range_rejects_inverted_bounds_and_missing_color() -> None:
    with pytest.raises(ValueError, match="must not exceed"):
        ValueRange(color="A", from_=10, to=5)
    with pytest.raises(ValueError, match="no 'color'"):
        ValueRange.from_mapping({"from": 1})


def test_parse_color_accepts_hex_and_rgb_forms() -> None:
    assert parse_color("#fff") == RGBA(255, 255, 255, 1.0)
    assert parse_color("#102030") == RGBA(16, 32, 48, 1.0)
    assert parse_color("rgb(1, 2, 3)") == RGBA(1, 2, 3, 1.0)
    assert parse_color("rgba(1,2,3,0.5)") == RGBA(1, 2, 3, 0.5)
    assert parse_color((1, 2, 3)) == RGBA(1, 2, 3, 1.0)


def test_tween_keeps_alpha_precision() -> None:
    color = tween_colors(RGBA(0, 0, 0, 0), RGBA(0, 0, 0, 1), 1 / 3)
    assert color == "rgba(0,0,0,0.333)"


def test_value_extremes_skip_non_numbers() -> None:
    assert value_extremes([3, None, "x", math.nan, True, -2, 7.5]) == (-2.0, 7.5)
    assert value_extremes([None]) == (None, None)


def test_apply_writes_colors_and_skips_unchanged_shapes() -> None:
    mapper = ColorMapper(value_ranges=DiscreteColorRanges(RANGES), null_color="#F8F8F8")
    shapes = [_Shape(3), _Shape(7), _Shape(None)]

    assert mapper.apply(shapes, 0, 10) == 3
    assert [s.color for s in shapes] == ["A", "B", "#F8F8F8"]

    assert mapper.apply(shapes, 0, 10) == 0

    shapes[0].value = 8
    assert mapper.apply(shapes, 0, 10) == 1
    assert shapes[0].color == "B"


def test_unmatched_value_falls_back_to_base_color() -> None:
    mapper = ColorMapper(value_ranges=DiscreteColorRanges(RANGES))
    shape = _Shape(99, color="#123456", base_color="#123456")

    assert mapper.apply([shape]) == 0
    assert shape.color == "#123456"


def test_value_leaving_every_band_drops_the_earlier_mapped_color() -> None:
    mapper = ColorMapper(value_ranges=DiscreteColorRanges(RANGES))
    plain, based = _Shape(3), _Shape(3, base_color="#123456")

    assert mapper.apply([plain, based], 0, 10) == 2
    assert plain.color == based.color == "A"

    plain.value = based.value = 99
    assert mapper.apply([plain, based], 0, 10) == 0
    assert plain.color is None
    assert based.color == "#123456"


def test_ranges_replaced_by_unmatching_ones_reset_colors() -> None:
    shape = _Shape(3, base_color="#123456")
    ColorMapper(value_ranges=DiscreteColorRanges(RANGES)).apply([shape], 0, 10)
    assert shape.color == "A"

    shape.color_key = None
    ColorMapper(value_ranges=DiscreteColorRanges([{"from": 100, "color": "Z"}])).apply([shape], 0, 10)

    assert shape.color == "#123456"


def test_inactive_mapper_leaves_unmapped_shapes_alone() -> None:
    mapper = ColorMapper()
    shape = _Shape(1, color="keep")

    assert mapper.is_active is False
    assert mapper.apply([shape]) == 0
    assert shape.color == "keep"


def test_inactive_mapper_resets_previously_mapped_shapes() -> None:
    shape = _Shape(3, base_color="#123456")
    ColorMapper(value_ranges=DiscreteColorRanges(RANGES)).apply([shape], 0, 10)

    assert ColorMapper().apply([shape], 0, 10) == 0
    assert shape.color == "#123456"
    assert shape.color_key is None


def test_gradient_mapper_uses_series_extremes() -> None:
    mapper = ColorMapper(color_range=GradientColorRange(from_color="#000000", to_color="#ffffff"))
    shapes = [_Shape(0), _Shape(5), _Shape(10)]

    mapper.apply(shapes)

    assert [s.color for s in shapes] == [
        "rgba(0,0,0,1)",
        "rgba(128,128,128,1)",
        "rgba(255,255,255,1)",
    ]


def test_brighten_shifts_and_clamps_channels() -> None:
    assert brighten("#9ecae1", 0.2) == "rgba(209,253,255,1)"
    assert brighten("rgba(100,100,100,0.5)", -0.2) == "rgba(49,49,49,0.5)"


def test_brighten_returns_unreadable_colors_unchanged() -> None:
    assert brighten("silver", 0.2) == "silver"
    assert brighten("none", 0.2) == "none"
