"""Out-of-process Octave: container lifecycle and the interpreter handle."""

from __future__ import annotations

from mocktave.interpreter.session import ExecutionResult, Interpreter

__all__ = ["ExecutionResult", "Interpreter"]
