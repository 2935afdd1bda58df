"""Value-to-color mapping for choropleth series.

Purpose
-------
Computes one fill color per map shape from its value, using one of two
mutually exclusive modes:

- discrete :class:`ValueRange` bands (``DiscreteColorRanges``),
- a continuous two-color :class:`GradientColorRange`.

Concepts and structure
----------------------
Colors are handled as :class:`RGBA` tuples with 0-255 channels and a 0-1
alpha. ``parse_color`` accepts ``#rgb``, ``#rrggbb`` (decoded with
``plotly.colors.hex_to_rgb``), ``rgb(...)`` and ``rgba(...)`` strings.

Band boundaries are closed-open: a band ``from_=5, to=10`` contains ``5``
but not ``10``. Bands are matched in reverse declaration order, so a band
declared later overrides an earlier overlapping one.

Examples
--------
>>> ranges = DiscreteColorRanges([ValueRange(to=5, color="A"), ValueRange(from_=5, to=10, color="B")])
>>> ranges.color_for(3), ranges.color_for(7)
('A', 'B')
>>> tween_colors(parse_color("rgba(0,0,0,1)"), parse_color("rgba(255,255,255,1)"), 0.5)
'rgba(128,128,128,1)'
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Protocol, Union

from plotly.colors import hex_to_rgb

from .convert import to_float

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

_RGB_RE = re.compile(
    r"^rgba?\(\s*([-+\d.eE]+)\s*,\s*([-+\d.eE]+)\s*,\s*([-+\d.eE]+)\s*(?:,\s*([-+\d.eE]+)\s*)?\)$"
)
_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class RGBA(NamedTuple):
    """Color channels: red/green/blue in 0-255, alpha in 0-1."""

    r: float
    g: float
    b: float
    a: float = 1.0


def parse_color(color: Union[str, RGBA, Sequence[float]]) -> RGBA:
    """Parse a color specification into an :class:`RGBA` tuple.

    Raises
    ------
    ValueError
        If ``color`` is not a supported hex/rgb/rgba string or channel tuple.
    """
    if isinstance(color, RGBA):
        return color
    if isinstance(color, str):
        text = color.strip()
        hex_match = _HEX_RE.match(text)
        if hex_match:
            digits = hex_match.group(1)
            if len(digits) == 3:
                digits = "".join(ch * 2 for ch in digits)
            r, g, b = hex_to_rgb("#" + digits)
            return RGBA(float(r), float(g), float(b), 1.0)
        rgb_match = _RGB_RE.match(text)
        if rgb_match:
            r, g, b, a = rgb_match.groups()
            try:
                return RGBA(float(r), float(g), float(b), 1.0 if a is None else float(a))
            except ValueError as e:
                raise ValueError(f"Invalid color channels in {color!r}") from e
        raise ValueError(
            f"Unsupported color {color!r}; use #rgb, #rrggbb, rgb(r,g,b) or rgba(r,g,b,a)."
        )
    channels = tuple(float(c) for c in color)
    if len(channels) == 3:
        return RGBA(*channels)
    if len(channels) == 4:
        return RGBA(*channels)
    raise ValueError(f"Color tuples need 3 or 4 channels, got {len(channels)}")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_alpha(alpha: float) -> str:
    return f"{round(alpha, 3):g}"


def format_rgba(color: RGBA) -> str:
    """Encode ``color`` as an ``rgba(r,g,b,a)`` string."""
    return "rgba({},{},{},{})".format(
        _round_half_up(color.r),
        _round_half_up(color.g),
        _round_half_up(color.b),
        _format_alpha(color.a),
    )


def brighten(color: str, amount: float) -> str:
    """Return ``color`` with ``amount * 255`` added to each RGB channel.

    Channels are clamped to ``[0, 255]``; a negative ``amount`` darkens.
    Colors :func:`parse_color` cannot read (named CSS colors, ``"none"``)
    are returned unchanged.
    """
    try:
        rgba = parse_color(color)
    except ValueError:
        return color
    shift = int(amount * 255)
    channels = [min(255.0, max(0.0, c + shift)) for c in rgba[:3]]
    return format_rgba(RGBA(*channels, rgba.a))


def tween_colors(from_color: RGBA, to_color: RGBA, pos: float) -> str:
    """Return the color ``pos`` of the way from ``from_color`` to ``to_color``.

    ``pos`` of ``0`` is ``from_color`` and ``1`` is ``to_color``. Color
    channels are rounded half-up to integers; alpha keeps three decimals.
    """
    channels = [t + (f - t) * (1 - pos) for f, t in zip(from_color, to_color)]
    return format_rgba(RGBA(*channels))


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(float(value))


def value_extremes(values: Iterable[Any]) -> tuple[Optional[float], Optional[float]]:
    """Return ``(min, max)`` over the numeric entries of ``values``.

    ``None``, booleans, non-numbers and ``nan`` are ignored. Returns
    ``(None, None)`` when no numeric value is present.
    """
    data_min: Optional[float] = None
    data_max: Optional[float] = None
    for value in values:
        if not _is_number(value):
            continue
        value = float(value)
        if data_min is None or value < data_min:
            data_min = value
        if data_max is None or value > data_max:
            data_max = value
    return data_min, data_max


# SECTION: Discrete ranges [id: DiscreteColorRanges]
# =============================================================================


@dataclass(frozen=True)
class ValueRange:
    """One discrete color band ``[from_, to)``; either end may be open."""

    color: str
    from_: Optional[float] = None
    to: Optional[float] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if self.from_ is not None:
            object.__setattr__(self, "from_", to_float(self.from_, name="from"))
        if self.to is not None:
            object.__setattr__(self, "to", to_float(self.to, name="to"))
        if self.from_ is not None and self.to is not None and self.from_ > self.to:
            raise ValueError(f"Range 'from' ({self.from_}) must not exceed 'to' ({self.to})")

    @classmethod
    def from_mapping(cls, spec: Mapping[str, Any]) -> "ValueRange":
        """Build from ``{"from": ..., "to": ..., "color": ..., "name": ...}``."""
        if "color" not in spec:
            raise ValueError(f"Value range {dict(spec)!r} has no 'color'")
        return cls(
            color=spec["color"],
            from_=spec.get("from", spec.get("from_")),
            to=spec.get("to"),
            name=spec.get("name"),
        )

    def contains(self, value: float) -> bool:
        """Return whether ``value`` falls in ``[from_, to)``."""
        if self.from_ is not None and value < self.from_:
            return False
        if self.to is not None and value >= self.to:
            return False
        return True


class DiscreteColorRanges:
    """Ordered collection of :class:`ValueRange` bands."""

    def __init__(self, ranges: Iterable[Union[ValueRange, Mapping[str, Any]]]) -> None:
        self.ranges: tuple[ValueRange, ...] = tuple(
            r if isinstance(r, ValueRange) else ValueRange.from_mapping(r) for r in ranges
        )
        if not self.ranges:
            raise ValueError("At least one value range is required")

    def color_for(self, value: Any) -> Optional[str]:
        """Return the color of the last-declared band containing ``value``.

        Returns ``None`` for missing/non-numeric values or when no band
        matches.
        """
        if not _is_number(value):
            return None
        value = float(value)
        for band in reversed(self.ranges):
            if band.contains(value):
                return band.color
        return None


# SECTION: Gradient [id: GradientColorRange]
# =============================================================================


@dataclass(frozen=True)
class GradientColorRange:
    """Continuous gradient between two colors.

    ``from_value``/``to_value`` pin the gradient ends; when omitted, the
    series' observed data minimum and maximum are used.
    """

    from_color: str
    to_color: str
    from_value: Optional[float] = None
    to_value: Optional[float] = None
    from_label: str = ""
    to_label: str = ""

    def __post_init__(self) -> None:
        if not self.from_color or not self.to_color:
            raise ValueError("A gradient color range needs both 'from' and 'to' colors")
        # Fail early on unparsable colors.
        object.__setattr__(self, "_from_rgba", parse_color(self.from_color))
        object.__setattr__(self, "_to_rgba", parse_color(self.to_color))
        if self.from_value is not None:
            object.__setattr__(self, "from_value", to_float(self.from_value, name="from_value"))
        if self.to_value is not None:
            object.__setattr__(self, "to_value", to_float(self.to_value, name="to_value"))

    @classmethod
    def from_mapping(cls, spec: Mapping[str, Any]) -> "GradientColorRange":
        """Build from ``{"from": color, "to": color, "fromLabel": ..., ...}``."""
        return cls(
            from_color=spec.get("from") or spec.get("from_color") or "",
            to_color=spec.get("to") or spec.get("to_color") or "",
            from_value=spec.get("from_value"),
            to_value=spec.get("to_value"),
            from_label=str(spec.get("fromLabel", spec.get("from_label", "")) or ""),
            to_label=str(spec.get("toLabel", spec.get("to_label", "")) or ""),
        )

    def position(self, value: float, data_min: Optional[float], data_max: Optional[float]) -> float:
        """Return the clamped gradient position of ``value`` in ``[0, 1]``.

        A degenerate range (max equal to min) maps every value to ``0.5``.
        """
        low = self.from_value if self.from_value is not None else data_min
        high = self.to_value if self.to_value is not None else data_max
        if low is None or high is None or high == low:
            return 0.5
        pos = 1 - (high - value) / (high - low)
        return min(1.0, max(0.0, pos))

    def color_for(self, value: Any, data_min: Optional[float], data_max: Optional[float]) -> Optional[str]:
        """Return the interpolated color, or ``None`` for non-numeric values."""
        if not _is_number(value):
            return None
        pos = self.position(float(value), data_min, data_max)
        return tween_colors(self._from_rgba, self._to_rgba, pos)  # type: ignore[attr-defined]


class ColoredShape(Protocol):
    value: Any
    color: Optional[str]
    base_color: Optional[str]
    color_key: Optional[tuple[Any, ...]]


class ColorMapper:
    """Assign choropleth colors to shapes from their values.

    Parameters
    ----------
    value_ranges:
        Discrete bands. Takes precedence over ``color_range`` when both are set.
    color_range:
        Continuous gradient descriptor.
    null_color:
        Color for shapes without a value.
    """

    def __init__(
        self,
        *,
        value_ranges: Optional[DiscreteColorRanges] = None,
        color_range: Optional[GradientColorRange] = None,
        null_color: str = "#F8F8F8",
    ) -> None:
        self.value_ranges = value_ranges
        self.color_range = color_range
        self.null_color = null_color

    @property
    def is_active(self) -> bool:
        return self.value_ranges is not None or self.color_range is not None

    def color_for(
        self, value: Any, data_min: Optional[float] = None, data_max: Optional[float] = None
    ) -> Optional[str]:
        """Return the mapped color, ``null_color`` for ``None``, or ``None`` if unmapped."""
        if not self.is_active:
            return None
        if value is None:
            return self.null_color
        if self.value_ranges is not None:
            return self.value_ranges.color_for(value)
        assert self.color_range is not None
        return self.color_range.color_for(value, data_min, data_max)

    def apply(
        self,
        shapes: Sequence[ColoredShape],
        data_min: Optional[float] = None,
        data_max: Optional[float] = None,
    ) -> int:
        """Write mapped colors onto ``shapes`` and return how many were colored.

        ``data_min``/``data_max`` are the series value extremes; when both
        are omitted they are computed from ``shapes``. A shape whose value
        maps to no color gets its ``base_color`` back, so a color from an
        earlier mapping never lingers. A shape whose value and the extremes
        are unchanged since its last mapping is skipped.

        An inactive mapper maps nothing and resets previously mapped shapes
        to their base color.
        """
        if data_min is None and data_max is None:
            data_min, data_max = value_extremes(shape.value for shape in shapes)
        if not self.is_active:
            for shape in shapes:
                if shape.color_key is not None:
                    shape.color = shape.base_color
                    shape.color_key = None
            return 0
        mapped = 0
        for shape in shapes:
            key = (shape.value, data_min, data_max)
            if shape.color_key == key:
                continue
            color = self.color_for(shape.value, data_min, data_max)
            if color is None:
                shape.color = shape.base_color
            else:
                shape.color = color
                mapped += 1
            shape.color_key = key
        logger.debug(
            "mapped colors for %d/%d shapes (data range %s..%s)", mapped, len(shapes), data_min, data_max
        )
        return mapped


__all__ = [
    "ColorMapper",
    "DiscreteColorRanges",
    "GradientColorRange",
    "RGBA",
    "ValueRange",
    "brighten",
    "format_rgba",
    "parse_color",
    "tween_colors",
    "value_extremes",
]
