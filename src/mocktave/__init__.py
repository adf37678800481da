"""mocktave — run GNU Octave out-of-process and decode its workspace.

Octave is asked to print its whole workspace in the text save format; the
dump is decoded into typed values (:mod:`mocktave.types`) collected in a
:class:`~mocktave.dump.Workspace`.

    >>> import mocktave
    >>> ws = mocktave.eval("a = 5 + 2")          # doctest: +SKIP
    >>> ws.get_scalar("a")                       # doctest: +SKIP
    7.0
"""

from __future__ import annotations

from mocktave.call import build_call, call, wrap
from mocktave.dump import Workspace, decode
from mocktave.errors import (
    CellArrayError,
    DecodeError,
    InterpreterError,
    MocktaveError,
    OctaveTryIntoError,
)
from mocktave.interpreter.session import ExecutionResult, Interpreter, eval
from mocktave.types import (
    CellArray,
    ComplexScalar,
    Empty,
    Error,
    Matrix,
    OctaveType,
    Scalar,
    Text,
    narrow,
    to_literal,
    to_octave,
)

__version__ = "0.2.0"

__all__ = [
    "CellArray",
    "CellArrayError",
    "ComplexScalar",
    "DecodeError",
    "Empty",
    "Error",
    "ExecutionResult",
    "Interpreter",
    "InterpreterError",
    "Matrix",
    "MocktaveError",
    "OctaveTryIntoError",
    "OctaveType",
    "Scalar",
    "Text",
    "Workspace",
    "__version__",
    "build_call",
    "call",
    "decode",
    "eval",
    "narrow",
    "to_literal",
    "to_octave",
    "wrap",
]
