"""Series models: generic point series and map-geometry shape series.

Purpose
-------
Defines the small closed set of series variants a map chart can hold:

- ``SeriesKind.GENERIC``: value-based points (``Series``, ``MapPointSeries``,
  ``MapBubbleSeries``). Their axis extremes come from their x/y values.
- ``SeriesKind.MAP_GEOMETRY``: shapes with paths (``MapSeries``,
  ``MapLineSeries``). Their axis extremes come from the shapes' combined
  bounding box.

The kind is fixed per class at construction time; axis strategies dispatch
on it.

Concepts and structure
----------------------
``MapShape`` is one map entity. Its ``path`` stays in data space and is
never modified; each layout pass derives a fresh ``plot_path`` in pixels.
Bounding boxes, centroids and the series value extremes are computed once
per ``set_data`` call, not per redraw.

Important gotchas
-----------------
- Source option mappings passed as data are copied, never mutated; the
  mapped fill color lives on ``MapShape.color``.
- A ``MapBubbleSeries`` point whose join key is missing from the map data
  gets ``y = None`` and is left out of extremes and rendering.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, Union

import numpy as np

from .colors import ColorMapper, brighten, value_extremes
from .extent import EMPTY_BOX, BoundingBox, centroid, combined_extent, path_bounds
from .path import Path
from .options import MapSeriesOptions, coerce_options
from .projection import project_path

if TYPE_CHECKING:  # pragma: no cover
    from .axis import Axis
    from .chart import MapChart

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())

# Channel shift applied to a hovered shape without an explicit hover_color.
HOVER_BRIGHTNESS = 0.2


class SeriesKind(Enum):
    """Closed set of series variants understood by the axis strategies."""

    GENERIC = "generic"
    MAP_GEOMETRY = "map_geometry"


def _pick(spec: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in spec and spec[key] is not None:
            return spec[key]
    return default


def _optional_number(value: Any) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Shape value must be numeric, got {value!r}")
    return float(value)


def _display_number(value: Any) -> Any:
    """Show whole floats without a trailing ``.0`` in labels and tooltips."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


# SECTION: Data items [id: MapShape]
# =============================================================================


@dataclass(eq=False)
class MapShape:
    """One map area or line.

    Attributes
    ----------
    id : str
        Identifier / join key.
    path : Path
        Data-space outline; never mutated.
    value : float or None
        Value used for coloring.
    middle_x, middle_y : float
        Centroid bias fractions in ``[0, 1]``.
    bbox : BoundingBox
        Computed bounding box.
    mid_x, mid_y : float
        Computed (biased) centroid in data space.
    color : str or None
        Working fill color, written by the color mapper.
    base_color : str or None
        Color given with the shape data. The mapper falls back to it when
        the value no longer maps to a color.
    plot_path : Path or None
        Pixel-space outline from the latest layout pass.
    plot_x, plot_y : float
        Pixel position of the centroid (label anchor).
    """

    id: str
    path: Path
    value: Optional[float] = None
    name: str = ""
    middle_x: float = 0.5
    middle_y: float = 0.5
    options: Mapping[str, Any] = field(default_factory=dict)
    bbox: BoundingBox = EMPTY_BOX
    mid_x: float = math.nan
    mid_y: float = math.nan
    color: Optional[str] = None
    base_color: Optional[str] = None
    color_key: Optional[tuple[Any, ...]] = None
    plot_path: Optional[Path] = None
    plot_x: float = math.nan
    plot_y: float = math.nan

    @property
    def is_null(self) -> bool:
        return self.value is None

    @classmethod
    def from_mapping(cls, spec: Mapping[str, Any], *, index: int = 0, join_by: str = "code") -> "MapShape":
        """Build a shape from ``{"path": ..., "value": ..., "code": ..., ...}``.

        ``value`` may also be given as ``y``; the identifier is taken from
        ``id``, then the ``join_by`` key, then ``name``, then the index.
        """
        source = dict(spec)
        shape_id = _pick(source, "id", join_by, "name", default=str(index))
        return cls(
            id=str(shape_id),
            path=Path.coerce(source.get("path")),
            value=_optional_number(_pick(source, "value", "y")),
            name=str(source.get("name", "") or ""),
            middle_x=float(_pick(source, "middle_x", "middleX", default=0.5)),
            middle_y=float(_pick(source, "middle_y", "middleY", default=0.5)),
            options=source,
            color=source.get("color"),
            base_color=source.get("color"),
        )

    def compute_extent(self) -> BoundingBox:
        """Compute ``bbox`` and the biased centroid from ``path``."""
        self.bbox = path_bounds(self.path)
        self.mid_x, self.mid_y = centroid(self.bbox, self.middle_x, self.middle_y)
        return self.bbox


@dataclass(eq=False)
class SeriesPoint:
    """One value-based point of a generic series."""

    x: Optional[float]
    y: Optional[float]
    name: str = ""
    z: Optional[float] = None
    options: Mapping[str, Any] = field(default_factory=dict)
    plot_x: float = math.nan
    plot_y: float = math.nan
    radius: float = math.nan

    @classmethod
    def coerce(cls, item: Any, *, index: int = 0) -> "SeriesPoint":
        if isinstance(item, SeriesPoint):
            return item
        if isinstance(item, Mapping):
            source = dict(item)
            return cls(
                x=_optional_number(source.get("x", index)),
                y=_optional_number(source.get("y")),
                name=str(source.get("name", "") or ""),
                z=_optional_number(source.get("z")),
                options=source,
            )
        if isinstance(item, Sequence) and not isinstance(item, str):
            if len(item) == 2:
                return cls(x=_optional_number(item[0]), y=_optional_number(item[1]))
            if len(item) == 3:
                return cls(x=_optional_number(item[0]), y=_optional_number(item[1]), z=_optional_number(item[2]))
            raise ValueError(f"Point sequences need 2 or 3 entries, got {len(item)}")
        return cls(x=float(index), y=_optional_number(item))


# SECTION: Series [id: Series]
# =============================================================================


class Series:
    """Generic value-based series (scatter-like).

    Parameters
    ----------
    data : iterable
        Points as ``(x, y)`` pairs, mappings with ``x``/``y``/``name`` or
        plain y values.
    id : str, optional
        Series identifier used by the chart registry.
    options : MapSeriesOptions or mapping, optional
        Styling options.
    """

    kind = SeriesKind.GENERIC
    type = "scatter"
    tooltip_format_default = "{name}: {y}"

    def __init__(
        self,
        data: Iterable[Any] = (),
        *,
        id: str = "",
        name: str = "",
        options: Union["MapSeriesOptions", Mapping[str, Any], None] = None,
        visible: bool = True,
    ) -> None:
        self.id = id or name or self.type
        self.name = name or self.id
        self.options: MapSeriesOptions = coerce_options(MapSeriesOptions, options)
        self.visible = bool(visible)
        self.chart: Optional["MapChart"] = None
        self.points: list[SeriesPoint] = []
        self._raw_data: list[Any] = list(data)
        self.set_data(self._raw_data, redraw=False)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, n={len(self)})"

    def __len__(self) -> int:
        return len(self.points)

    # --- Chart binding ---

    def bind(self, chart: "MapChart") -> None:
        """Attach to ``chart`` and re-run data processing that needs chart context."""
        self.chart = chart
        self.set_data(self._raw_data, redraw=False)

    @property
    def x_axis(self) -> "Axis":
        if self.chart is None:
            raise RuntimeError(f"Series {self.id!r} is not attached to a chart")
        return self.chart.x_axis

    @property
    def y_axis(self) -> "Axis":
        if self.chart is None:
            raise RuntimeError(f"Series {self.id!r} is not attached to a chart")
        return self.chart.y_axis

    # --- Data ---

    def set_data(self, data: Iterable[Any], *, redraw: bool = True) -> None:
        """Replace the series data."""
        self._raw_data = list(data)
        self.points = [SeriesPoint.coerce(item, index=i) for i, item in enumerate(self._raw_data)]
        if redraw and self.chart is not None:
            self.chart.redraw()

    def axis_values(self, is_x_axis: bool) -> list[float]:
        """Return the finite x or y values used for value-based extremes."""
        values = []
        for point in self.points:
            value = point.x if is_x_axis else point.y
            if value is not None and point.y is not None:
                values.append(value)
        return values

    def update(self, *, redraw: bool = True, **options: Any) -> None:
        """Update style options and optionally redraw."""
        self.options = self.options.updated(**options)
        if redraw and self.chart is not None:
            self.chart.redraw()

    # --- Layout ---

    def translate(self) -> None:
        """Compute pixel positions for the current axis scales."""
        x_axis, y_axis = self.x_axis, self.y_axis
        for point in self.points:
            if point.x is None or point.y is None:
                point.plot_x = point.plot_y = math.nan
                continue
            point.plot_x = float(x_axis.to_pixels(point.x))
            point.plot_y = float(y_axis.to_pixels(point.y))

    def _format(self, template: str, option: str, item: Any) -> str:
        fields = {
            "name": getattr(item, "name", ""),
            "value": _display_number(getattr(item, "value", getattr(item, "y", None))),
            "y": _display_number(getattr(item, "y", getattr(item, "value", None))),
            "z": _display_number(getattr(item, "z", None)),
            "id": getattr(item, "id", ""),
        }
        try:
            return template.format(**fields)
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(f"Invalid {option} {template!r}: {exc}") from exc

    def label_for(self, item: Any) -> str:
        """Format the data label of a point or shape."""
        return self._format(self.options.label_format, "label_format", item)

    def tooltip_for(self, item: Any) -> str:
        """Format the hover text of a point or shape.

        ``options.tooltip_format`` wins over the per-type default, which is
        ``"{name}: {y}"`` for plain series, ``"{name}: {value}"`` for map
        areas and ``"{name}: {z}"`` for bubbles.
        """
        template = self.options.tooltip_format or self.tooltip_format_default
        return self._format(template, "tooltip_format", item)


class MapPointSeries(Series):
    """Markers placed by value on top of a map, labelled by name."""

    type = "mappoint"
    tooltip_format_default = "{name}"

    def __init__(self, data: Iterable[Any] = (), **kwargs: Any) -> None:
        options = kwargs.pop("options", None)
        opts = coerce_options(MapSeriesOptions, options) if options is not None else MapSeriesOptions(data_labels=True)
        super().__init__(data, options=opts, **kwargs)


# SECTION: Map geometry [id: MapSeries]
# =============================================================================


class MapSeries(Series):
    """Choropleth area series.

    Shape data are mappings with a ``path`` (path text or token list) and an
    optional ``value``. When ``options.map_data`` names a dataset of the
    chart's map registry (or holds shape mappings directly), data items
    without a path borrow it from the map shape with the same
    ``options.join_by`` key.
    """

    kind = SeriesKind.MAP_GEOMETRY
    type = "map"
    tooltip_format_default = "{name}: {value}"

    def __init__(self, data: Iterable[Any] = (), **kwargs: Any) -> None:
        self.shapes: list[MapShape] = []
        self.extent: BoundingBox = EMPTY_BOX
        self.data_min: Optional[float] = None
        self.data_max: Optional[float] = None
        super().__init__(data, **kwargs)

    def __len__(self) -> int:
        return len(self.shapes)

    @property
    def color_mapper(self) -> ColorMapper:
        return ColorMapper(
            value_ranges=self.options.value_ranges,
            color_range=self.options.color_range,
            null_color=self.options.null_color,
        )

    def _map_shapes(self) -> dict[str, Mapping[str, Any]]:
        map_data = self.options.map_data
        if map_data is None:
            return {}
        if isinstance(map_data, str):
            if self.chart is None:
                return {}
            return self.chart.map_data.index(map_data, self.options.join_by)
        key = self.options.join_by
        return {str(item[key]): item for item in map_data if key in item}

    def set_data(self, data: Iterable[Any], *, redraw: bool = True) -> None:
        """Replace the shapes and recompute extents and value extremes."""
        self._raw_data = list(data)
        join_by = self.options.join_by
        lookup = self._map_shapes()
        shapes: list[MapShape] = []
        for i, item in enumerate(self._raw_data):
            if isinstance(item, MapShape):
                shapes.append(item)
                continue
            spec = dict(item)
            if spec.get("path") is None and lookup:
                joined = lookup.get(str(spec.get(join_by)))
                if joined is None:
                    logger.debug("series %s: no map shape for %s=%r", self.id, join_by, spec.get(join_by))
                else:
                    spec = {**joined, **spec, "path": joined.get("path")}
            shapes.append(MapShape.from_mapping(spec, index=i, join_by=join_by))

        for shape in shapes:
            shape.compute_extent()
            shape.color_key = None
        self.shapes = shapes
        self.points = []
        self.extent = combined_extent(shape.bbox for shape in shapes)
        self.data_min, self.data_max = value_extremes(shape.value for shape in shapes)
        logger.debug("series %s: %d shapes, extent=%s", self.id, len(shapes), self.extent)
        if redraw and self.chart is not None:
            self.chart.redraw()

    def axis_values(self, is_x_axis: bool) -> list[float]:
        low, high = self.extent.axis_range(is_x_axis)
        return [] if self.extent.is_empty else [low, high]

    def update(self, *, redraw: bool = True, **options: Any) -> None:
        super().update(redraw=False, **options)
        for shape in self.shapes:
            shape.color = shape.base_color
            shape.color_key = None
        if redraw and self.chart is not None:
            self.chart.redraw()

    def translate(self) -> None:
        """Project every shape path, map colors and place label anchors."""
        x_axis, y_axis = self.x_axis, self.y_axis
        for shape in self.shapes:
            shape.plot_path = project_path(shape.path, x_axis, y_axis)
            if shape.bbox.is_empty:
                shape.plot_x = shape.plot_y = math.nan
            else:
                shape.plot_x = float(x_axis.to_pixels(shape.mid_x))
                shape.plot_y = float(y_axis.to_pixels(shape.mid_y))
        self.translate_colors()

    def translate_colors(self) -> None:
        """Write value-derived colors onto the shapes."""
        self.color_mapper.apply(self.shapes, self.data_min, self.data_max)

    def fill_for(self, shape: MapShape) -> str:
        """Return the fill used for ``shape``."""
        return shape.color or self.options.color or self.options.null_color

    def stroke_for(self, shape: MapShape) -> str:
        """Return the outline color used for ``shape``."""
        return self.options.border_color

    def stroke_width(self) -> float:
        return self.options.border_width

    def hover_color_for(self, shape: MapShape) -> str:
        """Return the fill of ``shape`` while hovered."""
        return self.options.hover_color or brighten(self.fill_for(shape), HOVER_BRIGHTNESS)


class MapLineSeries(MapSeries):
    """Map-geometry series drawn as outlines: the mapped color is the stroke."""

    type = "mapline"

    def fill_for(self, shape: MapShape) -> str:
        return self.options.background_color

    def stroke_for(self, shape: MapShape) -> str:
        return shape.color or self.options.color or self.options.border_color

    def stroke_width(self) -> float:
        return self.options.line_width

    def hover_color_for(self, shape: MapShape) -> str:
        return self.options.hover_color or brighten(self.stroke_for(shape), HOVER_BRIGHTNESS)


# SECTION: Bubbles [id: MapBubbleSeries]
# =============================================================================


class MapBubbleSeries(Series):
    """Bubbles sized by ``z`` and placed on the centroid of a joined map shape.

    Data items are mappings carrying the ``options.join_by`` key and a ``z``
    value, or ``(key, z)`` pairs.
    """

    type = "mapbubble"
    tooltip_format_default = "{name}: {z}"

    def __init__(self, data: Iterable[Any] = (), **kwargs: Any) -> None:
        self._lookup: dict[str, Optional[MapShape]] = {}
        self._map_shapes: Optional[list[MapShape]] = None
        super().__init__(data, **kwargs)

    def _load_map_shapes(self) -> list[MapShape]:
        map_data = self.options.map_data
        join_by = self.options.join_by
        if map_data is None:
            raise ValueError(f"Series {self.id!r}: mapbubble requires options.map_data")
        if isinstance(map_data, str):
            if self.chart is None:
                return []
            items: Sequence[Mapping[str, Any]] = self.chart.map_data.get(map_data)
        else:
            items = map_data
        shapes = [MapShape.from_mapping(item, index=i, join_by=join_by) for i, item in enumerate(items)]
        for shape in shapes:
            shape.compute_extent()
        return shapes

    def get_map_shape(self, value: Any) -> Optional[MapShape]:
        """Return the map shape whose join key equals ``value`` (cached)."""
        key = str(value)
        if key in self._lookup:
            return self._lookup[key]
        if self._map_shapes is None:
            self._map_shapes = self._load_map_shapes()
        join_by = self.options.join_by
        found = None
        for shape in reversed(self._map_shapes):
            if str(shape.options.get(join_by, shape.id)) == key:
                found = shape
                break
        self._lookup[key] = found
        return found

    def set_data(self, data: Iterable[Any], *, redraw: bool = True) -> None:
        self._raw_data = list(data)
        self._lookup = {}
        self._map_shapes = None
        join_by = self.options.join_by
        points: list[SeriesPoint] = []
        for item in self._raw_data:
            if isinstance(item, Mapping):
                source = dict(item)
                key, z = source.get(join_by), source.get("z")
            else:
                key, z = item
                source = {join_by: key, "z": z}
            shape = self.get_map_shape(key) if self.chart is not None else None
            if shape is None:
                point = SeriesPoint(x=None, y=None, name=str(source.get("name", key)), z=_optional_number(z), options=source)
            else:
                point = SeriesPoint(
                    x=shape.mid_x,
                    y=shape.mid_y,
                    name=str(source.get("name") or shape.name or key),
                    z=_optional_number(z),
                    options={**shape.options, **source},
                )
            points.append(point)
        self.points = points
        if redraw and self.chart is not None:
            self.chart.redraw()

    def translate(self) -> None:
        super().translate()
        z = np.array([np.nan if p.z is None or p.y is None else p.z for p in self.points], dtype=float)
        radii = bubble_radii(z, self.options.min_size, self.options.max_size)
        for point, radius in zip(self.points, radii):
            point.radius = float(radius)


def bubble_radii(z: np.ndarray, min_size: float, max_size: float) -> np.ndarray:
    """Scale ``z`` to bubble radii so that bubble *area* grows linearly with ``z``.

    ``nan`` values give ``nan`` radii; a constant ``z`` gives ``max_size / 2``.
    """
    z = np.asarray(z, dtype=float)
    radii = np.full(z.shape, np.nan)
    finite = np.isfinite(z)
    if not finite.any():
        return radii
    z_min, z_max = z[finite].min(), z[finite].max()
    r_min, r_max = min_size / 2.0, max_size / 2.0
    if z_max == z_min:
        radii[finite] = r_max
        return radii
    pos = (z[finite] - z_min) / (z_max - z_min)
    radii[finite] = np.sqrt(r_min**2 + pos * (r_max**2 - r_min**2))
    return radii


__all__ = [
    "MapBubbleSeries",
    "MapLineSeries",
    "MapPointSeries",
    "MapSeries",
    "MapShape",
    "Series",
    "SeriesKind",
    "SeriesPoint",
    "bubble_radii",
]
