"""Bounding boxes and label anchors for map shapes.

Each shape contributes a bounding box over all coordinate pairs of its path
and a centroid interpolated between the box edges. A series contributes the
union of its shapes' boxes; that union drives the axis extremes and bounds
zooming.
"""

from __future__ import annotations

import math
import warnings
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from .path import Path


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned data-space box.

    The default instance is the empty box: its minimums are ``+inf`` and its
    maximums ``-inf`` so it never wins a min/max comparison in a union.
    """

    min_x: float = math.inf
    max_x: float = -math.inf
    min_y: float = math.inf
    max_y: float = -math.inf

    @property
    def is_empty(self) -> bool:
        """Return ``True`` when no coordinate contributed to the box."""
        return not (self.min_x <= self.max_x and self.min_y <= self.max_y)

    @property
    def width(self) -> float:
        return self.max_x - self.min_x if not self.is_empty else 0.0

    @property
    def height(self) -> float:
        return self.max_y - self.min_y if not self.is_empty else 0.0

    def union(self, other: "BoundingBox") -> "BoundingBox":
        """Return the smallest box containing both boxes."""
        return BoundingBox(
            min_x=min(self.min_x, other.min_x),
            max_x=max(self.max_x, other.max_x),
            min_y=min(self.min_y, other.min_y),
            max_y=max(self.max_y, other.max_y),
        )

    def axis_range(self, is_x_axis: bool) -> tuple[float, float]:
        """Return ``(min, max)`` for the x or y dimension."""
        if is_x_axis:
            return self.min_x, self.max_x
        return self.min_y, self.max_y


EMPTY_BOX = BoundingBox()


def _check_bias(name: str, value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"{name} must lie in [0, 1], got {value!r}")
    return value


def path_bounds(path: Path) -> BoundingBox:
    """Return the bounding box of ``path`` (``EMPTY_BOX`` if it has no points).

    ``nan`` operands are skipped so a malformed number cannot poison the box.
    """
    coords = path.coordinates()
    if coords.size == 0:
        return EMPTY_BOX
    xs = coords[:, 0]
    ys = coords[:, 1]
    with warnings.catch_warnings():
        # All-nan columns are expected for degenerate shapes.
        warnings.simplefilter("ignore", RuntimeWarning)
        min_x, max_x = np.nanmin(xs), np.nanmax(xs)
        min_y, max_y = np.nanmin(ys), np.nanmax(ys)
    return BoundingBox(
        min_x=math.inf if math.isnan(min_x) else float(min_x),
        max_x=-math.inf if math.isnan(max_x) else float(max_x),
        min_y=math.inf if math.isnan(min_y) else float(min_y),
        max_y=-math.inf if math.isnan(max_y) else float(max_y),
    )


def centroid(box: BoundingBox, middle_x: float = 0.5, middle_y: float = 0.5) -> tuple[float, float]:
    """Interpolate a label anchor between the box edges.

    ``middle_x``/``middle_y`` of ``0.5`` give the true midpoint; ``0`` and
    ``1`` pin the anchor to the min/max edge. An empty box yields ``nan``.
    """
    middle_x = _check_bias("middle_x", middle_x)
    middle_y = _check_bias("middle_y", middle_y)
    if box.is_empty:
        return math.nan, math.nan
    return (
        box.min_x + (box.max_x - box.min_x) * middle_x,
        box.min_y + (box.max_y - box.min_y) * middle_y,
    )


def shape_extent(
    path: Path, middle_x: float = 0.5, middle_y: float = 0.5
) -> tuple[BoundingBox, tuple[float, float]]:
    """Return ``(bounding_box, (mid_x, mid_y))`` for one shape path."""
    box = path_bounds(path)
    return box, centroid(box, middle_x, middle_y)


def combined_extent(boxes: Iterable[BoundingBox]) -> BoundingBox:
    """Return the union of ``boxes``; empty boxes do not contribute."""
    result = EMPTY_BOX
    for box in boxes:
        result = result.union(box)
    return result


__all__ = [
    "BoundingBox",
    "EMPTY_BOX",
    "centroid",
    "combined_extent",
    "path_bounds",
    "shape_extent",
]
