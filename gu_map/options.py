"""Configuration contracts for map charts, series and navigation.

This module centralizes the discoverable option metadata (``MAP_OPTIONS``)
and the dataclass option models consumed by :class:`~gu_map.chart.MapChart`,
the map series and :class:`~gu_map.figure.MapFigure`. Every model accepts
keyword arguments directly, or a plain mapping through ``from_mapping``;
mapping keys may be snake_case or the camelCase spelling used by JSON map
configurations (``nullColor``, ``zoomOnDoubleClick``, ...).
"""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, TypeVar, Union

from .colors import DiscreteColorRanges, GradientColorRange, ValueRange
from .convert import to_float, to_positive_float

MAP_OPTIONS: dict[str, str] = {
    "value_ranges": "Discrete color bands: list of {from, to, color} mappings. 'from' is inclusive, 'to' exclusive; either may be omitted.",
    "color_range": "Continuous gradient: {from: color, to: color, fromLabel, toLabel}. Ignored when value_ranges is set.",
    "null_color": "Fill color for shapes without a value.",
    "tooltip_format": "Hover text template with {name}, {value}, {y}, {z} and {id} fields. Defaults per series type: '{name}: {value}' for map areas, '{name}: {z}' for bubbles.",
    "hover_color": "Fill (stroke for map lines) of the hovered shape. Defaults to the normal color brightened by 20%.",
    "middle_x": "Per-shape label anchor bias along x, 0 (left edge) to 1 (right edge). Default 0.5.",
    "middle_y": "Per-shape label anchor bias along y, 0 (min edge) to 1 (max edge). Default 0.5.",
    "enable_buttons": "Show the +/- zoom buttons.",
    "zoom_on_double_click": "Zoom in by 2x around the double-clicked point.",
    "zoom_on_mouse_wheel": "Zoom in/out by 2x around the pointer on wheel events.",
    "enable_touch_zoom": "Enable two-axis pinch zoom with a locked aspect ratio.",
    "animation": "Zoom transition: True (500 ms), False, or {duration: ms}. New zooms are ignored while one is in progress.",
}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

T = TypeVar("T")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _known_fields(cls: type, spec: Mapping[str, Any]) -> dict[str, Any]:
    names = {f.name for f in dataclasses.fields(cls)}
    kwargs: dict[str, Any] = {}
    for key, value in spec.items():
        name = _snake(str(key))
        if name not in names:
            raise ValueError(f"Unknown {cls.__name__} option: {key!r}")
        kwargs[name] = value
    return kwargs


# SECTION: Navigation [id: MapNavigationOptions]
# =============================================================================


@dataclass
class ButtonOptions:
    """One zoom button: its label, zoom factor and vertical offset in pixels."""

    text: str
    factor: float
    y: int = 0
    width: int = 18
    height: int = 18

    def __post_init__(self) -> None:
        self.factor = to_positive_float(self.factor, name="button factor")


def _default_buttons() -> dict[str, ButtonOptions]:
    return {
        "zoom_in": ButtonOptions(text="+", factor=0.5, y=0),
        "zoom_out": ButtonOptions(text="-", factor=2.0, y=28),
    }


@dataclass
class MapNavigationOptions:
    """Zoom/pan user-interaction switches; all interactions are off by default."""

    enable_buttons: bool = False
    enable_touch_zoom: bool = False
    zoom_on_double_click: bool = False
    zoom_on_mouse_wheel: bool = False
    buttons: dict[str, ButtonOptions] = field(default_factory=_default_buttons)
    align: str = "left"
    vertical_align: str = "top"

    @classmethod
    def from_mapping(cls, spec: Optional[Mapping[str, Any]]) -> "MapNavigationOptions":
        if spec is None:
            return cls()
        kwargs = _known_fields(cls, spec)
        if "buttons" in kwargs:
            buttons = _default_buttons()
            for key, value in dict(kwargs["buttons"]).items():
                name = _snake(str(key))
                if isinstance(value, ButtonOptions):
                    buttons[name] = value
                else:
                    base = buttons.get(name)
                    merged = dataclasses.asdict(base) if base is not None else {}
                    merged.update(_known_fields(ButtonOptions, value))
                    buttons[name] = ButtonOptions(**merged)
            kwargs["buttons"] = buttons
        return cls(**kwargs)


# SECTION: Chart [id: ChartOptions]
# =============================================================================


@dataclass
class ChartOptions:
    """Chart-level settings.

    ``animation`` follows the usual convention: ``True`` means the default
    500 ms, a mapping may carry ``duration`` in milliseconds and ``False``
    or ``0`` disables transitions.
    """

    plot_width: float = 600.0
    plot_height: float = 400.0
    plot_left: float = 0.0
    plot_top: float = 0.0
    is_map: bool = True
    animation: Union[bool, int, float, Mapping[str, Any]] = True
    y_reversed: bool = True

    DEFAULT_DURATION_MS = 500

    def __post_init__(self) -> None:
        self.plot_width = to_positive_float(self.plot_width, name="plot_width")
        self.plot_height = to_positive_float(self.plot_height, name="plot_height")
        self.plot_left = to_float(self.plot_left, name="plot_left")
        self.plot_top = to_float(self.plot_top, name="plot_top")

    @property
    def animation_duration_ms(self) -> float:
        """Return the zoom transition duration in milliseconds (``0`` for none)."""
        animation = self.animation
        if animation is True:
            return float(self.DEFAULT_DURATION_MS)
        if isinstance(animation, Mapping):
            duration = animation.get("duration")
            return float(self.DEFAULT_DURATION_MS) if duration is None else float(to_float(duration, name="duration"))
        if not animation:
            return 0.0
        return float(to_float(animation, name="animation"))

    @classmethod
    def from_mapping(cls, spec: Optional[Mapping[str, Any]]) -> "ChartOptions":
        if spec is None:
            return cls()
        return cls(**_known_fields(cls, spec))


# SECTION: Series [id: MapSeriesOptions]
# =============================================================================


@dataclass
class MapSeriesOptions:
    """Styling and color-mapping options shared by the map series types."""

    color: Optional[str] = None
    null_color: str = "#F8F8F8"
    border_color: str = "silver"
    border_width: float = 1.0
    line_width: float = 1.0
    background_color: str = "none"
    value_ranges: Optional[DiscreteColorRanges] = None
    color_range: Optional[GradientColorRange] = None
    data_labels: bool = False
    label_format: str = "{name}"
    tooltip_format: Optional[str] = None
    hover_color: Optional[str] = None
    join_by: str = "code"
    map_data: Optional[Union[str, Sequence[Mapping[str, Any]]]] = None
    marker_size: float = 8.0
    min_size: float = 8.0
    max_size: float = 20.0

    def __post_init__(self) -> None:
        if self.value_ranges is not None and not isinstance(self.value_ranges, DiscreteColorRanges):
            self.value_ranges = DiscreteColorRanges(
                r if isinstance(r, ValueRange) else ValueRange.from_mapping(r)
                for r in self.value_ranges
            )
        if self.color_range is not None and not isinstance(self.color_range, GradientColorRange):
            self.color_range = GradientColorRange.from_mapping(self.color_range)
        if self.min_size > self.max_size:
            raise ValueError("min_size must not exceed max_size")

    @classmethod
    def from_mapping(cls, spec: Optional[Mapping[str, Any]]) -> "MapSeriesOptions":
        if spec is None:
            return cls()
        return cls(**_known_fields(cls, spec))

    def updated(self, **changes: Any) -> "MapSeriesOptions":
        """Return a copy with ``changes`` applied (snake_case or camelCase keys)."""
        merged = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        merged.update(_known_fields(type(self), changes))
        return type(self)(**merged)


@dataclass
class LegendOptions:
    """Legend layout and number formatting."""

    layout: str = "horizontal"
    value_decimals: Optional[int] = None
    rectangle_length: int = 200

    def __post_init__(self) -> None:
        if self.layout not in ("horizontal", "vertical"):
            raise ValueError(f"legend layout must be 'horizontal' or 'vertical', got {self.layout!r}")

    @classmethod
    def from_mapping(cls, spec: Optional[Mapping[str, Any]]) -> "LegendOptions":
        if spec is None:
            return cls()
        return cls(**_known_fields(cls, spec))


def coerce_options(cls: type[T], value: Any) -> T:
    """Return ``value`` if it already is a ``cls`` instance, else build one from a mapping."""
    if isinstance(value, cls):
        return value
    return cls.from_mapping(value)  # type: ignore[attr-defined]


__all__ = [
    "ButtonOptions",
    "ChartOptions",
    "LegendOptions",
    "MAP_OPTIONS",
    "MapNavigationOptions",
    "MapSeriesOptions",
    "coerce_options",
]
