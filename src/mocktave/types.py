"""Typed values decoded from (and passed to) Octave.

``OctaveType`` is the base of a closed set of frozen dataclasses, one per
kind of value mocktave understands:

* :class:`Scalar` — a real number (``double``, ``bool`` or integer types)
* :class:`ComplexScalar` — a real/imaginary pair
* :class:`Matrix` — a rectangular grid of floats
* :class:`Text` — character data, single or double quoted
* :class:`CellArray` — a rectangular grid of values, nested arbitrarily
* :class:`Empty` — absence of a value
* :class:`Error` — a failed interpreter call, never produced by the decoder

Every value exposes narrowing accessors (``as_scalar``, ``as_matrix`` ...)
that raise :class:`~mocktave.errors.OctaveTryIntoError` when called on the
wrong variant.  :func:`to_octave` goes the other way, from native Python
objects to values, and :func:`narrow` casts numeric values to a numpy dtype.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from numpy.typing import DTypeLike

from mocktave.errors import OctaveTryIntoError

_REAL_TYPES = (bool, int, float, np.bool_, np.integer, np.floating)
_COMPLEX_TYPES = (complex, np.complexfloating)


def _format_number(value: float) -> str:
    """Render a float the way Octave reads it back, without a trailing ``.0``."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Inf" if value > 0 else "-Inf"
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def _escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def _check_rectangular(rows: list[tuple[Any, ...]], what: str) -> None:
    if rows and any(len(row) != len(rows[0]) for row in rows):
        lengths = sorted({len(row) for row in rows})
        raise ValueError(f"{what} rows must all have the same length, got lengths {lengths}")


class OctaveType:
    """Common base of every decoded Octave value."""

    __slots__ = ()

    @property
    def kind(self) -> str:
        return type(self).__name__

    def _mismatch(self, expected: str) -> OctaveTryIntoError:
        return OctaveTryIntoError(
            f"This is not an instance of `{expected}` (got `{self.kind}`) "
            f"and therefore cannot be converted."
        )

    # -- narrowing accessors -------------------------------------------------

    def as_scalar(self) -> float:
        """Return the value as a ``float``."""
        raise self._mismatch("Scalar")

    def as_complex(self) -> complex:
        raise self._mismatch("ComplexScalar")

    def as_matrix(self) -> list[list[float]]:
        """Return a copy of the value as a list of float rows."""
        raise self._mismatch("Matrix")

    def as_vector(self) -> list[float]:
        """Return a row or column matrix as a flat list of floats."""
        raise self._mismatch("Matrix")

    def as_string(self) -> str:
        raise self._mismatch("Text")

    def as_cell_array(self) -> list[list[OctaveType]]:
        raise self._mismatch("CellArray")

    def as_empty(self) -> None:
        raise self._mismatch("Empty")

    # -- rendering -----------------------------------------------------------

    def to_literal(self) -> str:
        """Render the value as Octave source text."""
        raise NotImplementedError

    def to_python(self) -> Any:
        """Convert the value into plain Python objects."""
        raise NotImplementedError


@dataclass(frozen=True)
class Scalar(OctaveType):
    """A real number; the underlying type is ``float``."""

    value: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "value", float(self.value))

    def as_scalar(self) -> float:
        return self.value

    def to_literal(self) -> str:
        return _format_number(self.value)

    def to_python(self) -> float:
        return self.value

    def __str__(self) -> str:
        return _format_number(self.value)


@dataclass(frozen=True)
class ComplexScalar(OctaveType):
    """A complex number stored as its real and imaginary parts."""

    real: float
    imag: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "real", float(self.real))
        object.__setattr__(self, "imag", float(self.imag))

    def as_complex(self) -> complex:
        return complex(self.real, self.imag)

    def to_literal(self) -> str:
        return f"complex({_format_number(self.real)}, {_format_number(self.imag)})"

    def to_python(self) -> complex:
        return complex(self.real, self.imag)

    def __str__(self) -> str:
        sign = "-" if math.copysign(1.0, self.imag) < 0 else "+"
        return f"{_format_number(self.real)}{sign}{_format_number(abs(self.imag))}i"


@dataclass(frozen=True)
class Matrix(OctaveType):
    """A rectangular two-dimensional grid of floats.

    ``rows[i][j]`` is the element at row ``i``, column ``j``.  A matrix with
    no rows has shape ``(0, 0)``; ``r`` empty rows give shape ``(r, 0)``.
Rows are stored as tuples; any nested sequence is accepted on construction.
    """

    rows: tuple[tuple[float, ...], ...]

    def __post_init__(self) -> None:
        rows = [tuple(float(x) for x in row) for row in self.rows]
        _check_rectangular(rows, "Matrix")
        object.__setattr__(self, "rows", tuple(rows))

    @classmethod
    def zeros(cls, rows: int, columns: int) -> Matrix:
        return cls([[0.0] * columns for _ in range(rows)])

    @property
    def shape(self) -> tuple[int, int]:
        if not self.rows:
            return (0, 0)
        return (len(self.rows), len(self.rows[0]))

    def as_matrix(self) -> list[list[float]]:
        return [list(row) for row in self.rows]

    def as_vector(self) -> list[float]:
        n_rows, n_cols = self.shape
        if n_rows == 1:
            return list(self.rows[0])
        if n_cols == 1:
            return [row[0] for row in self.rows]
        if n_rows == 0:
            return []
        raise OctaveTryIntoError(
            f"A {n_rows}x{n_cols} Matrix is not a row or column vector."
        )

    def to_literal(self) -> str:
        n_rows, n_cols = self.shape
        if n_rows == 0 or n_cols == 0:
            return f"zeros({n_rows}, {n_cols})"
        body = "; ".join(", ".join(_format_number(x) for x in row) for row in self.rows)
        return f"[{body}]"

    def to_python(self) -> list[list[float]]:
        return self.as_matrix()

    def __str__(self) -> str:
        return "[" + ", ".join(
            "[" + ", ".join(_format_number(x) for x in row) + "]" for row in self.rows
        ) + "]"


@dataclass(frozen=True)
class Text(OctaveType):
    """Character data; both ``string`` and ``sq_string`` decode to this."""

    value: str

    def as_string(self) -> str:
        return self.value

    def to_literal(self) -> str:
        return f'"{_escape(self.value)}"'

    def to_python(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CellArray(OctaveType):
    """A rectangular grid of arbitrary values, cells included."""

    rows: tuple[tuple[OctaveType, ...], ...]

    def __post_init__(self) -> None:
        rows = [tuple(row) for row in self.rows]
        _check_rectangular(rows, "CellArray")
        for row in rows:
            for item in row:
                if not isinstance(item, OctaveType):
                    raise TypeError(f"CellArray items must be OctaveType, got {type(item).__name__}")
        object.__setattr__(self, "rows", tuple(rows))

    @property
    def shape(self) -> tuple[int, int]:
        if not self.rows:
            return (0, 0)
        return (len(self.rows), len(self.rows[0]))

    def as_cell_array(self) -> list[list[OctaveType]]:
        return [list(row) for row in self.rows]

    def to_literal(self) -> str:
        n_rows, n_cols = self.shape
        if n_rows == 0 or n_cols == 0:
            return f"cell({n_rows}, {n_cols})"
        body = "; ".join(", ".join(item.to_literal() for item in row) for row in self.rows)
        return "{" + body + "}"

    def to_python(self) -> list[list[Any]]:
        return [[item.to_python() for item in row] for row in self.rows]

    def __str__(self) -> str:
        return "{" + ", ".join(
            "{" + ", ".join(repr(item) for item in row) + "}" for row in self.rows
        ) + "}"


@dataclass(frozen=True)
class Empty(OctaveType):
    """No value.  Also the default for undecodable cell elements."""

    def as_empty(self) -> None:
        return None

    def to_literal(self) -> str:
        return "[]"

    def to_python(self) -> None:
        return None

    def __str__(self) -> str:
        return ""


@dataclass(frozen=True)
class Error(OctaveType):
    """The outcome of a failed interpreter call."""

    message: str

    def to_literal(self) -> str:
        raise ValueError(f"An Error value cannot be passed to Octave: {self.message}")

    def to_python(self) -> dict[str, str]:
        return {"error": self.message}

    def __str__(self) -> str:
        return f"Error: {self.message}"


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------


def _is_real(obj: Any) -> bool:
    return isinstance(obj, _REAL_TYPES)


def _is_sequence(obj: Any) -> bool:
    return isinstance(obj, (Sequence, np.ndarray)) and not isinstance(obj, (str, bytes))


def to_octave(obj: Any) -> OctaveType:
    """Convert a native Python object into an :class:`OctaveType`.

    ``None`` becomes :class:`Empty`, numbers become :class:`Scalar` or
    :class:`ComplexScalar`, strings :class:`Text`, flat numeric sequences a
    1 x n :class:`Matrix`, nested numeric sequences and 2-D numpy arrays a
    :class:`Matrix`, anything else that is a sequence a :class:`CellArray`.
    """
    if isinstance(obj, OctaveType):
        return obj
    if obj is None:
        return Empty()
    if isinstance(obj, str):
        return Text(obj)
    if _is_real(obj):
        return Scalar(float(obj))
    if isinstance(obj, _COMPLEX_TYPES):
        return ComplexScalar(obj.real, obj.imag)
    if isinstance(obj, np.ndarray):
        if obj.ndim == 0:
            return to_octave(obj.item())
        if obj.dtype.kind in "biuf":
            if obj.ndim == 1:
                return Matrix([obj.astype(np.float64).tolist()])
            if obj.ndim == 2:
                return Matrix(obj.astype(np.float64).tolist())
            raise ValueError(f"Only 1-D and 2-D arrays can be converted, got {obj.ndim}-D")
        obj = obj.tolist()
    if _is_sequence(obj):
        items = list(obj)
        if all(_is_real(x) for x in items):
            return Matrix([[float(x) for x in items]]) if items else Matrix([])
        if all(_is_sequence(x) for x in items):
            rows = [list(x) for x in items]
            if all(_is_real(x) for row in rows for x in row):
                return Matrix(rows)
            return CellArray([[to_octave(x) for x in row] for row in rows])
        return CellArray([[to_octave(x) for x in items]])
    raise TypeError(f"Cannot convert {type(obj).__name__} to an Octave value")


def to_literal(obj: Any) -> str:
    """Render a value (or anything :func:`to_octave` accepts) as Octave source."""
    return to_octave(obj).to_literal()


def _float_bounds(dtype: np.dtype) -> tuple[float, float]:
    """Integer bounds that survive the round trip through float64."""
    info = np.iinfo(dtype)
    low, high = float(info.min), float(info.max)
    if int(high) > info.max:
        high = float(np.nextafter(high, 0.0))
    return low, high


def narrow(value: Any, dtype: DTypeLike = np.float64) -> np.generic | np.ndarray:
    """Cast a :class:`Scalar` or :class:`Matrix` to the numpy type *dtype*.

    Scalars give a numpy scalar, matrices a 2-D array.  Integer targets
    truncate toward zero, saturate at the bounds of the type and map NaN to
    zero; boolean targets are ``value != 0``.
    """
    value = to_octave(value)
    if isinstance(value, Scalar):
        data = np.asarray(value.value, dtype=np.float64)
    elif isinstance(value, Matrix):
        data = np.array(value.rows, dtype=np.float64).reshape(value.shape)
    else:
        raise OctaveTryIntoError(
            f"Only Scalar and Matrix values can be narrowed, got `{value.kind}`."
        )

    target = np.dtype(dtype)
    if target.kind in "iu":
        low, high = _float_bounds(target)
        data = np.clip(np.nan_to_num(np.trunc(data), nan=0.0, posinf=high, neginf=low), low, high)
    elif target.kind == "b":
        data = data != 0
    elif target.kind not in "fc":
        raise ValueError(f"Cannot narrow to non-numeric dtype {target}")

    result = data.astype(target)
    return result[()] if result.ndim == 0 else result
