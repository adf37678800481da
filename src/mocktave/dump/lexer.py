"""Line lexer for the Octave text save format.

``save("-", "*")`` prints every variable as a block of ``# key: value``
header lines followed by its data::

    # name: b
    # type: matrix
    # rows: 2
    # columns: 2
     1 2
     3 4

:func:`lex` splits a dump into a flat list of :class:`Declaration` objects.
It does not interpret type tags: cell arrays are simply followed by their
``<cell-element>`` declarations, which the decoder consumes.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

CELL_ELEMENT = "<cell-element>"
STRING_TAGS = frozenset({"string", "sq_string"})

_HEADER_RE = re.compile(
    r"^# (?P<key>name|type|rows|columns|elements|length|ndims):[ \t]*(?P<value>.*?)\s*$"
)


@dataclass
class Declaration:
    """One header-plus-data block of a dump.

    For string types ``data`` holds one entry per character row (which may
    itself span several lines); for every other type it holds the verbatim
    data lines.
    """

    name: str
    line: int
    """1-based line number of the ``# name:`` header."""
    type_tag: str | None = None
    rows: int | None = None
    columns: int | None = None
    elements: int | None = None
    lengths: list[int] = field(default_factory=list)
    dims: list[int] | None = None
    """Dimensions from an ``# ndims:`` header, if the block used that form."""
    data: list[str] = field(default_factory=list)

    @property
    def is_cell_element(self) -> bool:
        return self.name == CELL_ELEMENT

    @property
    def is_string(self) -> bool:
        return self.type_tag in STRING_TAGS


def _match(line: str) -> tuple[str, str] | None:
    m = _HEADER_RE.match(line)
    if m is None:
        return None
    return m.group("key"), m.group("value")


def _to_int(value: str, key: str, line_no: int) -> int | None:
    try:
        return int(value)
    except ValueError:
        logger.debug("Ignoring non-integer '# %s: %s' at line %d", key, value, line_no)
        return None


def _read_headers(lines: list[str], i: int, decl: Declaration) -> int:
    """Consume the header lines after ``# name:``; return the next index."""
    while i < len(lines):
        header = _match(lines[i])
        if header is None:
            break
        key, value = header
        if key == "name":
            break
        i += 1
        if key == "type":
            decl.type_tag = value
        elif key == "rows":
            decl.rows = _to_int(value, key, i)
        elif key == "columns":
            decl.columns = _to_int(value, key, i)
        elif key == "elements":
            decl.elements = _to_int(value, key, i)
        elif key == "ndims":
            if i < len(lines):
                try:
                    decl.dims = [int(tok) for tok in lines[i].split()]
                except ValueError:
                    logger.debug("Malformed dimension line at line %d", i + 1)
                i += 1
        elif key == "length":
            length = _to_int(value, key, i)
            decl.lengths.append(length if length is not None else -1)
            if decl.is_string:
                # character data follows the first length header
                break
    return i


def _trim_separator(text: str, length: int | None) -> str:
    """Drop the blank-line separator the dump writes after a string value."""
    if length is None or length < 0:
        return text.rstrip("\n")
    while text.endswith("\n") and len(text.encode("utf-8")) > length:
        text = text[:-1]
    return text


def _read_string_block(lines: list[str], i: int, decl: Declaration) -> int:
    rows: list[list[str]] = [[]]
    while i < len(lines):
        header = _match(lines[i])
        if header is not None and header[0] == "name":
            break
        if header is not None and header[0] == "length":
            length = _to_int(header[1], "length", i + 1)
            decl.lengths.append(length if length is not None else -1)
            rows.append([])
        else:
            rows[-1].append(lines[i])
        i += 1

    texts = ["\n".join(row) for row in rows]
    last = len(texts) - 1
    length = decl.lengths[last] if last < len(decl.lengths) else None
    texts[last] = _trim_separator(texts[last], length)
    decl.data = texts
    return i


def _read_numeric_block(lines: list[str], i: int, decl: Declaration) -> int:
    # comment lines such as "# base, limit, increment" precede some blocks
    while i < len(lines) and lines[i].startswith("#") and _match(lines[i]) is None:
        i += 1
    while i < len(lines):
        line = lines[i]
        if not line.strip() or line.startswith("#"):
            break
        decl.data.append(line)
        i += 1
    return i


def lex(text: str) -> list[Declaration]:
    """Split a raw dump into declarations, in document order.

    Text that is not part of a declaration (anything the script printed
    before the dump, the ``# Created by Octave`` banner, blank separators) is
    skipped.  Declarations without data keep their header dimensions.
    """
    lines = text.splitlines()
    declarations: list[Declaration] = []
    i = 0
    while i < len(lines):
        header = _match(lines[i])
        if header is None or header[0] != "name":
            i += 1
            continue
        decl = Declaration(name=header[1], line=i + 1)
        i = _read_headers(lines, i + 1, decl)
        if decl.is_string:
            i = _read_string_block(lines, i, decl)
        else:
            i = _read_numeric_block(lines, i, decl)
        declarations.append(decl)

    logger.debug("Lexed %d declarations from %d lines", len(declarations), len(lines))
    return declarations
