"""The decoded workspace: variable name -> :class:`~mocktave.types.OctaveType`.

:func:`decode` is the single entry point from raw dump text to a
:class:`Workspace`.  It never raises for malformed input; declarations that
cannot be decoded are logged and left out.
"""

from __future__ import annotations

import logging
from operator import methodcaller
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import TypeVar

from mocktave.dump.decoders import DeclarationStream, decode_declaration
from mocktave.dump.lexer import lex
from mocktave.errors import DecodeError, OctaveTryIntoError
from mocktave.types import Empty, OctaveType

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Workspace(Mapping[str, OctaveType]):
    """Immutable set of variables decoded from one dump.

    ``workspace[name]`` raises :class:`KeyError` for unknown names,
    ``workspace.get(name)`` returns :class:`~mocktave.types.Empty` instead,
    and the ``get_<shape>`` helpers return ``None`` when the variable is
    missing or holds another variant.
    """

    def __init__(self, raw: str = "", variables: Mapping[str, OctaveType] | None = None) -> None:
        self._raw = raw
        self._variables: Mapping[str, OctaveType] = MappingProxyType(dict(variables or {}))

    @classmethod
    def from_dump(cls, raw: str) -> Workspace:
        return decode(raw)

    @property
    def raw(self) -> str:
        """The dump text this workspace was decoded from."""
        return self._raw

    # -- Mapping protocol ----------------------------------------------------

    def __getitem__(self, name: str) -> OctaveType:
        try:
            return self._variables[name]
        except KeyError:
            raise KeyError(f"The variable `{name}` does not exist") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        names = ", ".join(sorted(self._variables))
        return f"Workspace({names})"

    # -- lookups -------------------------------------------------------------

    def get(self, name: str, default: OctaveType | None = None) -> OctaveType:  # type: ignore[override]
        """Return the variable, or *default* (``Empty()``) when absent."""
        value = self._variables.get(name)
        if value is not None:
            return value
        return default if default is not None else Empty()

    def _typed(self, name: str, accessor: Callable[[OctaveType], T]) -> T | None:
        value = self._variables.get(name)
        if value is None:
            return None
        try:
            return accessor(value)
        except OctaveTryIntoError:
            return None

    def get_scalar(self, name: str) -> float | None:
        return self._typed(name, methodcaller("as_scalar"))

    def get_complex(self, name: str) -> complex | None:
        return self._typed(name, methodcaller("as_complex"))

    def get_matrix(self, name: str) -> list[list[float]] | None:
        return self._typed(name, methodcaller("as_matrix"))

    def get_string(self, name: str) -> str | None:
        return self._typed(name, methodcaller("as_string"))

    def get_cell_array(self, name: str) -> list[list[OctaveType]] | None:
        return self._typed(name, methodcaller("as_cell_array"))


def decode(raw: str) -> Workspace:
    """Decode the text of ``save("-", "*")`` into a :class:`Workspace`.

    Declarations are decoded in document order; a name that appears twice
    keeps its last value.
    """
    stream = DeclarationStream(lex(raw))
    variables: dict[str, OctaveType] = {}

    for decl in stream:
        if decl.is_cell_element:
            logger.warning("Skipping cell element outside a cell array at line %d", decl.line)
            continue
        try:
            value = decode_declaration(decl, stream)
        except DecodeError as exc:
            logger.warning("Skipping variable: %s", exc)
            continue
        if decl.name in variables:
            logger.debug("Variable '%s' redeclared at line %d; keeping the later value", decl.name, decl.line)
        variables[decl.name] = value

    logger.debug("Decoded %d variables", len(variables))
    return Workspace(raw, variables)
