"""Legend items and the legend side panel for choropleth series.

Purpose
-------
Builds legend entries from a series' color configuration and renders them
into an ``ipywidgets`` box:

- one swatch row per discrete value range, named ``"< 5"``, ``"5 - 10"``,
  ``"> 10"``;
- one gradient bar with from/to labels for a continuous color range;
- one plain row per series otherwise.

Concepts and structure
----------------------
``legend_items`` is pure and testable without widgets. ``MapLegendPanel``
keeps one row widget per item key and only rebuilds the box children when
the set of rows changes.

Important gotchas
-----------------
For vertical legends the gradient bar is drawn bottom-to-top, so the
from/to labels are swapped to keep the "from" label next to the "from"
color.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import ipywidgets as widgets
import numpy as np

from .options import LegendOptions
from .series import MapSeries, Series


def format_number(value: float, decimals: Optional[int] = None) -> str:
    """Format a range boundary for legend labels.

    With ``decimals`` the value is fixed-point with a space as thousands
    separator; without, the shortest exact representation is used.
    """
    if decimals is None:
        return np.format_float_positional(float(value), trim="-")
    return f"{float(value):,.{int(decimals)}f}".replace(",", " ")


def range_label(from_: Optional[float], to: Optional[float], decimals: Optional[int] = None) -> str:
    """Return the default legend name of a value range."""
    name = ""
    if from_ is None:
        name = "< "
    elif to is None:
        name = "> "
    if from_ is not None:
        name += format_number(from_, decimals)
    if from_ is not None and to is not None:
        name += " - "
    if to is not None:
        name += format_number(to, decimals)
    return name


@dataclass(frozen=True)
class LegendItem:
    """One legend entry.

    ``kind`` is ``"range"``, ``"gradient"`` or ``"series"``. Gradient items
    carry CSS ``gradient`` text and ``from_label``/``to_label``.
    """

    key: str
    kind: str
    name: str
    color: str
    from_label: str = ""
    to_label: str = ""
    gradient: str = ""


def legend_items(series: Series, options: Optional[LegendOptions] = None) -> list[LegendItem]:
    """Return the legend entries describing ``series``."""
    options = options or LegendOptions()
    horizontal = options.layout == "horizontal"
    if isinstance(series, MapSeries):
        ranges = series.options.value_ranges
        if ranges is not None:
            return [
                LegendItem(
                    key=f"{series.id}:range:{i}",
                    kind="range",
                    name=band.name or range_label(band.from_, band.to, options.value_decimals),
                    color=band.color,
                )
                for i, band in enumerate(ranges.ranges)
            ]
        gradient = series.options.color_range
        if gradient is not None:
            from_label, to_label = gradient.from_label, gradient.to_label
            direction = "to right" if horizontal else "to top"
            if not horizontal:
                from_label, to_label = to_label, from_label
            return [
                LegendItem(
                    key=f"{series.id}:gradient",
                    kind="gradient",
                    name=series.name,
                    color=gradient.from_color,
                    from_label=from_label,
                    to_label=to_label,
                    gradient=f"linear-gradient({direction}, {gradient.from_color}, {gradient.to_color})",
                )
            ]
    color = series.options.color or series.options.border_color
    return [LegendItem(key=f"{series.id}:series", kind="series", name=series.name, color=color)]


class MapLegendPanel:
    """Render legend items into an ``ipywidgets`` box."""

    def __init__(self, layout_box: widgets.Box, options: Optional[LegendOptions] = None) -> None:
        self._layout_box = layout_box
        self.options = options or LegendOptions()
        self._rows: Dict[str, widgets.Widget] = {}
        self._items: Dict[str, LegendItem] = {}

    @property
    def has_legend(self) -> bool:
        return bool(self._items)

    def refresh(self, series: Sequence[Series]) -> None:
        """Synchronize rows with the legend items of ``series``."""
        items: list[LegendItem] = []
        for entry in series:
            if entry.visible:
                items.extend(legend_items(entry, self.options))

        wanted = {item.key for item in items}
        for key in [k for k in self._rows if k not in wanted]:
            del self._rows[key]
            del self._items[key]

        children = []
        for item in items:
            row = self._rows.get(item.key)
            if row is None or self._items.get(item.key) != item:
                row = self._create_row(item)
                self._rows[item.key] = row
                self._items[item.key] = item
            children.append(row)
        desired = tuple(children)
        if self._layout_box.children != desired:
            self._layout_box.children = desired

    def _create_row(self, item: LegendItem) -> widgets.Widget:
        if item.kind == "gradient":
            horizontal = self.options.layout == "horizontal"
            length = self.options.rectangle_length
            size = ("{}px".format(length), "14px") if horizontal else ("14px", "{}px".format(length))
            bar = widgets.HTML(
                value=(
                    f'<div style="width:{size[0]};height:{size[1]};border-radius:2px;'
                    f'background:{html.escape(item.gradient)}"></div>'
                )
            )
            start = widgets.HTML(value=html.escape(item.from_label))
            end = widgets.HTML(value=html.escape(item.to_label))
            box_cls = widgets.HBox if horizontal else widgets.VBox
            return box_cls(
                [start, bar, end],
                layout=widgets.Layout(align_items="center", gap="6px", margin="0"),
            )
        swatch = widgets.HTML(
            value=(
                f'<div style="width:14px;height:14px;border-radius:2px;'
                f'background:{html.escape(item.color)}"></div>'
            ),
            layout=widgets.Layout(width="20px", min_width="20px", margin="0"),
        )
        label = widgets.HTML(value=html.escape(item.name), layout=widgets.Layout(margin="0", width="100%"))
        return widgets.HBox(
            [swatch, label],
            layout=widgets.Layout(width="100%", align_items="center", margin="0", gap="6px"),
        )


__all__ = ["LegendItem", "MapLegendPanel", "format_number", "legend_items", "range_label"]
