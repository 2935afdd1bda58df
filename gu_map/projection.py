"""Project data-space shape paths into plot pixel space."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from .path import Path

if TYPE_CHECKING:  # pragma: no cover
    from .axis import Axis


def round_pixels(values: np.ndarray) -> np.ndarray:
    """Round half-up to whole pixels; ``nan`` stays ``nan``."""
    return np.floor(np.asarray(values, dtype=float) + 0.5)


def project_path(path: Path, x_axis: "Axis", y_axis: "Axis") -> Path:
    """Return a new Path with every (x, y) operand translated to pixels.

    x values go through ``x_axis.translate``; y values through
    ``y_axis.length - y_axis.translate(y)`` so that data y grows upward while
    pixel y grows downward. Results are rounded to whole pixels so borders
    shared by neighbouring shapes land on the same pixel. ``path`` itself is
    left untouched.
    """
    coords = path.coordinates()
    if coords.size == 0:
        return path
    projected = np.empty_like(coords)
    projected[:, 0] = x_axis.translate(coords[:, 0])
    projected[:, 1] = y_axis.length - y_axis.translate(coords[:, 1])
    return path.with_coordinates(round_pixels(projected))


__all__ = ["project_path", "round_pixels"]
