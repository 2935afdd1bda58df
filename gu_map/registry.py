"""Named map-shape datasets with an explicit load/use/discard lifecycle.

A ``MapDataRegistry`` is created by the caller and handed to each chart that
needs it; there is no module-level registry. Shape paths are parsed once at
load time so every chart and series using a dataset shares the parsed paths.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .path import Path

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class MapDataRegistry:
    """Own named sequences of map-shape mappings."""

    def __init__(self) -> None:
        self._datasets: dict[str, tuple[Mapping[str, Any], ...]] = {}
        self._indexes: dict[tuple[str, str], dict[str, Mapping[str, Any]]] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._datasets

    def __len__(self) -> int:
        return len(self._datasets)

    def names(self) -> tuple[str, ...]:
        """Return the loaded dataset names in load order."""
        return tuple(self._datasets)

    def load(self, name: str, shapes: Iterable[Mapping[str, Any]], *, replace: bool = False) -> int:
        """Register ``shapes`` under ``name`` and return the shape count.

        Raises
        ------
        ValueError
            If ``name`` is already loaded and ``replace`` is not set, or a
            shape path is malformed.
        """
        key = str(name)
        if key in self._datasets and not replace:
            raise ValueError(f"Map dataset '{key}' is already loaded; pass replace=True to reload it")
        items = []
        for item in shapes:
            entry = dict(item)
            if entry.get("path") is not None:
                entry["path"] = Path.coerce(entry["path"])
            items.append(entry)
        self._datasets[key] = tuple(items)
        self._drop_indexes(key)
        logger.info("loaded map dataset %r (%d shapes)", key, len(items))
        return len(items)

    def get(self, name: str) -> tuple[Mapping[str, Any], ...]:
        """Return the shapes of ``name`` or raise ``KeyError``."""
        key = str(name)
        if key not in self._datasets:
            raise KeyError(f"Unknown map dataset: {key}")
        return self._datasets[key]

    def index(self, name: str, join_by: str) -> dict[str, Mapping[str, Any]]:
        """Return ``{str(shape[join_by]): shape}`` for ``name``, cached per key."""
        cache_key = (str(name), str(join_by))
        cached = self._indexes.get(cache_key)
        if cached is None:
            cached = {}
            for item in self.get(name):
                if join_by in item:
                    cached[str(item[join_by])] = item
            self._indexes[cache_key] = cached
        return cached

    def discard(self, name: str) -> None:
        """Forget ``name`` if present."""
        key = str(name)
        if self._datasets.pop(key, None) is not None:
            logger.info("discarded map dataset %r", key)
        self._drop_indexes(key)

    def _drop_indexes(self, name: str) -> None:
        for cache_key in [k for k in self._indexes if k[0] == name]:
            del self._indexes[cache_key]


__all__ = ["MapDataRegistry"]
