"""Exception hierarchy shared by the decoder, the value model and the
interpreter handle."""

from __future__ import annotations


class MocktaveError(Exception):
    """Base class for every error raised by mocktave."""


class DecodeError(MocktaveError):
    """A single declaration of a workspace dump could not be decoded.

    Raised inside the decoder only; :func:`mocktave.dump.workspace.decode`
    catches it, logs it and leaves the variable out of the workspace.
    """

    def __init__(self, message: str, *, name: str | None = None, line: int | None = None) -> None:
        self.reason = message
        self.name = name
        self.line = line
        where = ""
        if name is not None:
            where += f" (variable '{name}'"
            where += f", line {line})" if line is not None else ")"
        super().__init__(message + where)


class CellArrayError(DecodeError):
    """A cell array header is not followed by ``rows * columns`` elements."""


class OctaveTryIntoError(MocktaveError, TypeError):
    """A narrowing accessor was called on a value of another variant."""


class InterpreterError(MocktaveError):
    """The Octave interpreter could not be started or reached."""
