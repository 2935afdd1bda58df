"""Top-level public API for the ``gu_map`` package.

This module re-exports the map-geometry engine so users can import from a
single namespace, for example:

>>> from gu_map import MapFigure, MapDataRegistry  # doctest: +SKIP

It exposes both the notebook-facing figure and the renderer-agnostic building
blocks (path parsing, extents, axes, color mapping and zooming) for direct use
and testing.
"""

from .axis import AspectRatioLock, Axis, CartesianExtremes, CartesianTranslation, MapGeometryExtremes
from .chart import MapChart
from .colors import (
    ColorMapper,
    DiscreteColorRanges,
    GradientColorRange,
    RGBA,
    ValueRange,
    brighten,
    format_rgba,
    parse_color,
    tween_colors,
    value_extremes,
)
from .extent import EMPTY_BOX, BoundingBox, centroid, combined_extent, path_bounds, shape_extent
from .figure import MapFigure
from .legend import LegendItem, MapLegendPanel, legend_items, range_label
from .options import (
    MAP_OPTIONS,
    ButtonOptions,
    ChartOptions,
    LegendOptions,
    MapNavigationOptions,
    MapSeriesOptions,
)
from .path import COMMAND_ARITY, MalformedPathError, Path, split_path
from .projection import project_path, round_pixels
from .registry import MapDataRegistry
from .series import (
    MapBubbleSeries,
    MapLineSeries,
    MapPointSeries,
    MapSeries,
    MapShape,
    Series,
    SeriesKind,
    SeriesPoint,
    bubble_radii,
)
from .zoom import (
    Box,
    MapZoomEngine,
    PinchTransform,
    PointerEvent,
    ZoomState,
    fit_to_box,
    lock_pinch_scale,
)
