"""Decoders that turn lexed declarations into :mod:`mocktave.types` values.

Each decoder handles one family of type tags.  Cell arrays are decoded by
recursive descent over a :class:`DeclarationStream`: a cell header consumes
exactly ``rows * columns`` following ``<cell-element>`` declarations.
"""

from __future__ import annotations

import logging
import math
import re
import sys
from collections.abc import Callable, Iterable, Iterator

from mocktave.dump.lexer import STRING_TAGS, Declaration
from mocktave.errors import CellArrayError, DecodeError
from mocktave.types import CellArray, ComplexScalar, Empty, Matrix, OctaveType, Scalar, Text

logger = logging.getLogger(__name__)

_INTEGER_TYPES = ("int8", "int16", "int32", "int64", "uint8", "uint16", "uint32", "uint64")

SCALAR_TAGS = frozenset({"scalar", "bool", *(f"{t} scalar" for t in _INTEGER_TYPES)})
MATRIX_TAGS = frozenset({"matrix", "bool matrix", *(f"{t} matrix" for t in _INTEGER_TYPES)})
DIAGONAL_TAG = "diagonal matrix"
COMPLEX_SCALAR_TAG = "complex scalar"
RANGE_TAG = "range"
CELL_TAG = "cell"
STRUCT_TAGS = frozenset({"scalar struct", "struct"})

_COMPLEX_RE = re.compile(r"^\(\s*(?P<real>[^,\s]+)\s*,\s*(?P<imag>[^)\s]+)\s*\)$")


class DeclarationStream(Iterator[Declaration]):
    """Iterator over declarations with one-item lookahead."""

    def __init__(self, declarations: Iterable[Declaration]) -> None:
        self._items = list(declarations)
        self._pos = 0

    def __next__(self) -> Declaration:
        if self._pos >= len(self._items):
            raise StopIteration
        item = self._items[self._pos]
        self._pos += 1
        return item

    def peek(self) -> Declaration | None:
        """Return the next declaration without consuming it."""
        if self._pos >= len(self._items):
            return None
        return self._items[self._pos]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _error(decl: Declaration, message: str) -> DecodeError:
    return DecodeError(message, name=decl.name, line=decl.line)


def _dimensions(decl: Declaration) -> tuple[int, int]:
    """Declared ``(rows, columns)``, from rows/columns or a 2-D ndims header."""
    if decl.dims is not None:
        if len(decl.dims) != 2:
            raise _error(decl, f"only 2-D values are supported, got dimensions {decl.dims}")
        rows, columns = decl.dims
    else:
        if decl.rows is None or decl.columns is None:
            raise _error(decl, "missing '# rows:' or '# columns:' header")
        rows, columns = decl.rows, decl.columns
    if rows < 0 or columns < 0:
        raise _error(decl, f"negative dimensions {rows}x{columns}")
    return rows, columns


def _parse_token(token: str) -> float:
    try:
        return float(token)
    except ValueError:
        return math.nan


def _values(decl: Declaration) -> list[float]:
    return [_parse_token(token) for line in decl.data for token in line.split()]


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------


def decode_scalar(decl: Declaration) -> Scalar:
    """Decode a one-line numeric literal."""
    if not decl.data:
        raise _error(decl, "scalar has no data line")
    text = decl.data[0].strip()
    try:
        return Scalar(float(text))
    except ValueError as exc:
        raise _error(decl, f"cannot parse {text!r} as a float") from exc


def decode_complex_scalar(decl: Declaration) -> ComplexScalar:
    """Decode a ``(real,imag)`` literal."""
    text = decl.data[0].strip() if decl.data else ""
    m = _COMPLEX_RE.match(text)
    if m is None:
        raise _error(decl, f"cannot parse {text!r} as a complex number")
    try:
        return ComplexScalar(float(m.group("real")), float(m.group("imag")))
    except ValueError as exc:
        raise _error(decl, f"cannot parse {text!r} as a complex number") from exc


def decode_string(decl: Declaration) -> Text:
    """Decode character data; multi-row char arrays are joined with newlines."""
    if decl.elements == 0:
        return Text("")
    return Text("\n".join(decl.data))


def decode_matrix(decl: Declaration) -> Matrix:
    """Decode a dense real matrix.

    The rows/columns form lists the values row by row; the ``ndims`` form
    lists them in column-major order.  Tokens that are not numbers become
    NaN and missing values stay zero.
    """
    rows, columns = _dimensions(decl)
    values = _values(decl)
    expected = rows * columns
    if values and len(values) != expected:
        logger.warning(
            "Matrix '%s' declares %dx%d but lists %d values",
            decl.name, rows, columns, len(values),
        )

    grid = Matrix.zeros(rows, columns).as_matrix()
    column_major = decl.dims is not None
    for k, value in enumerate(values[:expected]):
        if column_major:
            grid[k % rows][k // rows] = value
        else:
            grid[k // columns][k % columns] = value
    return Matrix(grid)


def decode_diagonal(decl: Declaration) -> Matrix:
    """Scatter the compact diagonal listing onto an all-zero grid."""
    rows, columns = _dimensions(decl)
    values = _values(decl)
    size = min(rows, columns)
    if values and len(values) != size:
        logger.warning(
            "Diagonal matrix '%s' (%dx%d) lists %d values, expected %d",
            decl.name, rows, columns, len(values), size,
        )

    grid = Matrix.zeros(rows, columns).as_matrix()
    for i, value in enumerate(values[:size]):
        grid[i][i] = value
    return Matrix(grid)


def decode_range(decl: Declaration) -> Matrix:
    """Expand a ``base limit increment`` range into a row vector."""
    values = _values(decl)
    if len(values) < 3 or any(math.isnan(v) for v in values[:3]):
        raise _error(decl, "range needs numeric base, limit and increment")
    base, limit, increment = values[:3]
    if increment == 0 or (limit - base) / increment < 0:
        return Matrix([[]])
    count = int(math.floor((limit - base) / increment * (1 + 3 * sys.float_info.epsilon))) + 1
    row = [base + k * increment for k in range(count)]
    # the last element never overshoots the limit
    row[-1] = min(row[-1], limit) if increment > 0 else max(row[-1], limit)
    return Matrix([row])


def _skip_children(decl: Declaration, stream: DeclarationStream) -> None:
    """Consume the nested declarations owned by a container we do not decode."""
    if decl.type_tag == CELL_TAG:
        try:
            rows, columns = _dimensions(decl)
        except DecodeError:
            return
        count = rows * columns
    elif decl.type_tag in STRUCT_TAGS and decl.lengths:
        count = max(decl.lengths[0], 0)
    else:
        return
    for _ in range(count):
        child = next(stream, None)
        if child is None:
            return
        _skip_children(child, stream)


def _decode_element(element: Declaration, stream: DeclarationStream) -> OctaveType:
    try:
        return decode_declaration(element, stream)
    except CellArrayError:
        raise
    except DecodeError as exc:
        logger.debug("Cell element decoded as Empty: %s", exc)
        return Empty()


def decode_cell(decl: Declaration, stream: DeclarationStream) -> CellArray:
    """Decode a cell array by consuming its elements from *stream*.

    Elements fill the grid in row-major order.  Running out of
    ``<cell-element>`` declarations raises :class:`CellArrayError` and leaves
    the interrupting declaration in the stream.
    """
    try:
        rows, columns = _dimensions(decl)
    except DecodeError as exc:
        raise CellArrayError(exc.reason, name=decl.name, line=decl.line) from exc

    grid: list[list[OctaveType]] = [[Empty() for _ in range(columns)] for _ in range(rows)]
    for i in range(rows):
        for j in range(columns):
            element = stream.peek()
            if element is None or not element.is_cell_element:
                raise CellArrayError(
                    f"cell declares {rows}x{columns} = {rows * columns} elements "
                    f"but only {i * columns + j} follow",
                    name=decl.name,
                    line=decl.line,
                )
            next(stream)
            grid[i][j] = _decode_element(element, stream)
    return CellArray(grid)


_DECODERS: dict[str, Callable[[Declaration], OctaveType]] = {
    **{tag: decode_scalar for tag in SCALAR_TAGS},
    **{tag: decode_matrix for tag in MATRIX_TAGS},
    **{tag: decode_string for tag in STRING_TAGS},
    DIAGONAL_TAG: decode_diagonal,
    COMPLEX_SCALAR_TAG: decode_complex_scalar,
    RANGE_TAG: decode_range,
}


def decode_declaration(decl: Declaration, stream: DeclarationStream) -> OctaveType:
    """Dispatch *decl* to the decoder for its type tag.

    Cells pull their elements from *stream*.  Unsupported tags raise
    :class:`DecodeError` after consuming any nested declarations they own.
    """
    tag = decl.type_tag
    if tag is None:
        raise _error(decl, "missing '# type:' header")
    if tag == CELL_TAG:
        return decode_cell(decl, stream)
    decoder = _DECODERS.get(tag)
    if decoder is None:
        _skip_children(decl, stream)
        raise _error(decl, f"unsupported type '{tag}'")
    logger.debug("Decoding '%s' as %s", decl.name, tag)
    return decoder(decl)
