"""Shape-path parsing and the immutable :class:`Path` token sequence.

Purpose
-------
Map shapes arrive as vector path strings in the usual move/line/curve/close
mini-language (``"M0,0L10,0L10,5Z"``). This module turns such text into a
typed token sequence and back.

Concepts and structure
----------------------
- ``split_path`` is the raw tokenizer. It never raises: malformed numeric
  text becomes ``nan`` and is carried along so that degenerate shapes render
  degenerately instead of aborting the whole chart.
- ``Path`` wraps the token list and validates its structure once.

Important gotchas
-----------------
Numeric operands are decoded by position only: the 1st, 3rd, 5th ... number
is an x value and the 2nd, 4th, 6th ... number is a y value, regardless of
which command they follow. ``Path`` therefore only accepts commands whose
operand count is even (``H``, ``V`` and ``A`` are rejected).

Numbers may run together when the next one is signed (``"L-3-4"``). A sign
starts a new number unless it follows an exponent marker, so ``"1e-5"``
stays one number.

Examples
--------
>>> Path.parse("M0,0L10,10Z").tokens
('M', 0.0, 0.0, 'L', 10.0, 10.0, 'Z')
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Sequence
from typing import Iterator, Union, overload

import numpy as np

PathToken = Union[str, float]

# Operand count per command. Lowercase (relative) commands share the arity.
COMMAND_ARITY: dict[str, int] = {
    "M": 2,
    "L": 2,
    "T": 2,
    "S": 4,
    "Q": 4,
    "C": 6,
    "Z": 0,
}

# Command letters are separated from their operands; an ``e`` that follows a
# digit or a dot is an exponent marker and stays glued to its number.
_LETTER_RE = re.compile(r"([A-DF-Za-df-z]|(?<![\d.])[eE])")
_SEPARATOR_RE = re.compile(r"[ ,]+")
# A sign right after a digit or a dot starts a new number ("10-5" is 10 and -5).
_SIGN_RE = re.compile(r"(?<=[\d.])(?=[-+])")
_COMMAND_RE = re.compile(r"^[A-Za-z]$")


class MalformedPathError(ValueError):
    """Raised when a token sequence violates the command/operand structure."""


def _parse_number(text: str) -> float:
    try:
        return float(text)
    except ValueError:
        return math.nan


def split_path(text: str) -> list[PathToken]:
    """Split path text into command letters and float operands.

    Parameters
    ----------
    text : str
        Path text such as ``"M 0 0 L 10,10 Z"``. Separators between commands
        and numbers are optional. A sign also separates numbers, so
        ``"M10-5"`` reads as ``M 10 -5``.

    Returns
    -------
    list
        Command tokens as single-character strings, operands as floats.
        Operands that do not parse become ``nan``.
    """
    spaced = _LETTER_RE.sub(r" \1 ", _SIGN_RE.sub(" ", text)).strip()
    if not spaced:
        return []
    tokens: list[PathToken] = []
    for part in _SEPARATOR_RE.split(spaced):
        # Whitespace other than plain spaces (tabs, newlines) survives the
        # comma/space split, so split the remainder once more.
        for piece in part.split():
            if _COMMAND_RE.match(piece):
                tokens.append(piece)
            else:
                tokens.append(_parse_number(piece))
    return tokens


def _format_number(value: float) -> str:
    if math.isnan(value):
        return "nan"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


class Path(Sequence):
    """Immutable, validated sequence of path tokens.

    Parameters
    ----------
    tokens : Iterable
        Command strings and numeric operands, e.g. the output of
        :func:`split_path`.

    Raises
    ------
    MalformedPathError
        If an operand appears before the first command, a command is
        unknown or has odd arity, or a command has a dangling operand list.
    """

    __slots__ = ("_tokens", "_n_coordinates")

    def __init__(self, tokens: Iterable[PathToken] = ()) -> None:
        normalized: list[PathToken] = []
        for token in tokens:
            if isinstance(token, str):
                normalized.append(token)
            elif isinstance(token, bool):
                raise MalformedPathError(f"Boolean is not a valid path token: {token!r}")
            else:
                normalized.append(float(token))
        self._n_coordinates = self._validate(normalized)
        self._tokens: tuple[PathToken, ...] = tuple(normalized)

    @staticmethod
    def _validate(tokens: Sequence[PathToken]) -> int:
        """Check command/operand consistency and return the number of numbers."""
        if tokens and not isinstance(tokens[0], str):
            raise MalformedPathError("Path must start with a command, got an operand first")

        count = 0
        command = ""
        operands = 0

        def _close_segment() -> None:
            if not command:
                return
            arity = COMMAND_ARITY[command.upper()]
            if arity == 0:
                if operands:
                    raise MalformedPathError(f"Command '{command}' takes no operands, got {operands}")
            elif operands == 0 or operands % arity:
                raise MalformedPathError(
                    f"Command '{command}' expects a multiple of {arity} operands, got {operands}"
                )

        for token in tokens:
            if isinstance(token, str):
                _close_segment()
                if len(token) != 1 or token.upper() not in COMMAND_ARITY:
                    raise MalformedPathError(
                        f"Unsupported path command {token!r}; supported: "
                        f"{', '.join(sorted(COMMAND_ARITY))} (and lowercase variants)"
                    )
                command = token
                operands = 0
            else:
                operands += 1
                count += 1
        _close_segment()
        return count

    # --- Construction ---

    @classmethod
    def parse(cls, text: str) -> "Path":
        """Parse path text into a validated :class:`Path`."""
        return cls(split_path(text))

    @classmethod
    def from_tokens(cls, tokens: Iterable[PathToken]) -> "Path":
        """Build a :class:`Path` from an already split token sequence."""
        if isinstance(tokens, Path):
            return tokens
        return cls(tokens)

    @classmethod
    def coerce(cls, value: Union[str, Iterable[PathToken], "Path", None]) -> "Path":
        """Accept path text, a token sequence, a Path or ``None`` (empty)."""
        if value is None:
            return cls()
        if isinstance(value, str):
            return cls.parse(value)
        return cls.from_tokens(value)

    # --- Sequence protocol ---

    @overload
    def __getitem__(self, index: int) -> PathToken: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[PathToken, ...]: ...

    def __getitem__(self, index):
        return self._tokens[index]

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self) -> Iterator[PathToken]:
        return iter(self._tokens)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Path):
            other_tokens: Sequence[PathToken] = other._tokens
        elif isinstance(other, (list, tuple)):
            other_tokens = other
        else:
            return NotImplemented
        if len(other_tokens) != len(self._tokens):
            return False
        for mine, theirs in zip(self._tokens, other_tokens):
            if isinstance(mine, str) or isinstance(theirs, str):
                if mine != theirs:
                    return False
            elif not (mine == theirs or (math.isnan(mine) and math.isnan(float(theirs)))):
                return False
        return True

    def __hash__(self) -> int:
        return hash(self.to_svg())

    def __repr__(self) -> str:
        return f"Path({self.to_svg()!r})"

    # --- Views ---

    @property
    def tokens(self) -> tuple[PathToken, ...]:
        """Return the raw token tuple."""
        return self._tokens

    @property
    def n_points(self) -> int:
        """Return the number of (x, y) coordinate pairs."""
        return self._n_coordinates // 2

    def coordinates(self) -> np.ndarray:
        """Return operands as an ``(n_points, 2)`` float array of (x, y) pairs."""
        values = np.fromiter(
            (token for token in self._tokens if not isinstance(token, str)),
            dtype=float,
            count=self._n_coordinates,
        )
        return values.reshape(-1, 2)

    def with_coordinates(self, coords: np.ndarray) -> "Path":
        """Return a new Path with the same commands and replaced operands."""
        flat = np.asarray(coords, dtype=float).reshape(-1)
        if flat.size != self._n_coordinates:
            raise ValueError(
                f"Expected {self._n_coordinates} coordinate values, got {flat.size}"
            )
        values = iter(flat.tolist())
        return Path(
            token if isinstance(token, str) else next(values)
            for token in self._tokens
        )

    def to_svg(self) -> str:
        """Serialize to path text; ``Path.parse(p.to_svg()) == p``."""
        parts: list[str] = []
        for token in self._tokens:
            parts.append(token if isinstance(token, str) else _format_number(token))
        return " ".join(parts)


__all__ = [
    "COMMAND_ARITY",
    "MalformedPathError",
    "Path",
    "PathToken",
    "split_path",
]
