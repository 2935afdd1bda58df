"""Property-based checks for path round-trips, box fitting and color mapping."""

from __future__ import annotations

import pytest

from gu_map.colors import GradientColorRange, parse_color
from gu_map.path import Path
from gu_map.zoom import Box, fit_to_box

try:
    from hypothesis import given
    from hypothesis import strategies as st
except ModuleNotFoundError:  # pragma: no cover - environment-specific fallback
    pytest.skip("hypothesis is required for property-based tests", allow_module_level=True)


COORDS = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False, width=64)
SIZES = st.floats(min_value=0, max_value=1e6, allow_nan=False, allow_infinity=False, width=64)


@st.composite
def paths(draw) -> Path:
    tokens: list = ["M", draw(COORDS), draw(COORDS)]
    for command in draw(st.lists(st.sampled_from(["L", "l", "T", "Q", "S", "C", "Z"]), max_size=8)):
        tokens.append(command)
        arity = {"L": 2, "l": 2, "T": 2, "Q": 4, "S": 4, "C": 6, "Z": 0}[command]
        tokens.extend(draw(COORDS) for _ in range(arity))
    return Path(tokens)


@st.composite
def boxes(draw) -> Box:
    return Box(x=draw(COORDS), y=draw(COORDS), width=draw(SIZES), height=draw(SIZES))


@given(path=paths())
def test_serialized_path_reparses_to_identical_tokens(path: Path) -> None:
    assert Path.parse(path.to_svg()) == path


@given(inner=boxes(), outer=boxes())
def test_fitted_box_never_exceeds_outer_size(inner: Box, outer: Box) -> None:
    fitted = fit_to_box(inner, outer)

    assert fitted.width <= outer.width
    assert fitted.height <= outer.height
    assert fitted.x >= outer.x
    assert fitted.y >= outer.y


@given(inner=boxes(), outer=boxes())
def test_fit_to_box_is_idempotent(inner: Box, outer: Box) -> None:
    once = fit_to_box(inner, outer)
    assert fit_to_box(once, outer) == once


@given(value=COORDS, low=COORDS, span=st.floats(min_value=1e-3, max_value=1e6))
def test_gradient_channels_stay_between_end_colors(value: float, low: float, span: float) -> None:
    gradient = GradientColorRange(from_color="rgba(10,20,30,1)", to_color="rgba(200,100,50,1)")
    r, g, b, a = parse_color(gradient.color_for(value, low, low + span))

    assert 10 <= r <= 200
    assert 20 <= g <= 100
    assert 30 <= b <= 50
    assert a == 1
