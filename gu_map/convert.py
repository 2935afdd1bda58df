# === SECTION: to_float [id: to_float]===
from __future__ import annotations

import math
from typing import Any, Optional

import sympy as sp


def to_float(obj: Any, *, name: str = "value", allow_none: bool = False) -> Optional[float]:
    """
    Convert a numeric option to ``float``.

    Rules:
    - Numbers (excluding ``bool``) are cast with ``float``.
    - Strings are tried with ``float`` first, then parsed as a SymPy
      expression and evaluated, so ``"1/2"`` and ``"sqrt(2)"`` are accepted.
    - ``None`` is returned unchanged when ``allow_none`` is set.

    Raises
    ------
    ValueError
        If the value is not real-valued or cannot be interpreted as a number.
    """
    if obj is None:
        if allow_none:
            return None
        raise ValueError(f"{name} is required, got None.")

    if isinstance(obj, bool):
        raise ValueError(f"{name} must be a number, got bool {obj!r}.")

    if isinstance(obj, (int, float)):
        return float(obj)

    if isinstance(obj, str):
        s = obj.strip()
        if s == "":
            raise ValueError(f"Cannot convert empty string to float for {name}.")
        try:
            return float(s)
        except ValueError:
            pass
        try:
            val = complex(sp.sympify(s).evalf())
        except Exception as e:
            raise ValueError(f"Could not convert {obj!r} to float for {name}.") from e
        if val.imag != 0:
            raise ValueError(f"{name} must be real, got {obj!r}.")
        return float(val.real)

    # numpy scalars and other number-likes
    try:
        return float(obj)
    except Exception as e:
        raise ValueError(f"Could not convert {obj!r} to float for {name}.") from e


def to_positive_float(obj: Any, *, name: str = "value") -> float:
    """Convert ``obj`` like :func:`to_float` and require a finite value > 0."""
    value = to_float(obj, name=name)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a finite number > 0, got {obj!r}.")
    return value

# === END OF SECTION: to_float [id: to_float]===
