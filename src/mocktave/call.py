"""Call Octave functions with Python arguments.

:func:`call` renders ``<result> = <name>(<arg1>, <arg2>, ...);``, runs it
through an :class:`~mocktave.interpreter.session.Interpreter` and returns the
decoded result.  Failures come back as :class:`~mocktave.types.Error` values
rather than exceptions, so callers can narrow the result themselves::

    norm = wrap("norm")
    norm([[0, 0], [0, 0]], 2).as_scalar()   # 0.0
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any

from mocktave.config.settings import get_settings
from mocktave.dump.workspace import decode
from mocktave.interpreter.session import Interpreter
from mocktave.types import Error, OctaveType, to_literal

logger = logging.getLogger(__name__)

_FUNCTION_NAME_RE = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")


def build_call(name: str, args: Iterable[Any], result_variable: str | None = None) -> str:
    """Render the Octave statement that calls *name* with *args*.

    Arguments may be :class:`~mocktave.types.OctaveType` values or anything
    :func:`~mocktave.types.to_octave` accepts.
    """
    if not _FUNCTION_NAME_RE.match(name):
        raise ValueError(f"{name!r} is not a valid Octave function name")
    target = result_variable or get_settings().interpreter.result_variable
    rendered = ", ".join(to_literal(arg) for arg in args)
    return f"{target} = {name}({rendered});"


def call(interpreter: Interpreter, name: str, *args: Any) -> OctaveType:
    """Call the Octave function *name* and return its first output."""
    statement = build_call(name, args, interpreter.result_variable)
    logger.debug("Calling %s", statement)

    result = interpreter.run(statement)
    if not result.ok:
        message = result.stderr.strip() or f"Octave exited with status {result.exit_code}"
        logger.warning("Call to '%s' failed: %s", name, message)
        return Error(message)

    workspace = decode(result.stdout)
    if interpreter.result_variable not in workspace:
        return Error(f"'{name}' did not produce a value that could be decoded")
    return workspace[interpreter.result_variable]


def wrap(name: str, interpreter: Interpreter | None = None) -> Callable[..., OctaveType]:
    """Return a Python callable bound to the Octave function *name*.

    Without *interpreter*, every call starts and stops its own handle.
    """
    if not _FUNCTION_NAME_RE.match(name):
        raise ValueError(f"{name!r} is not a valid Octave function name")

    def wrapped(*args: Any) -> OctaveType:
        if interpreter is not None:
            return call(interpreter, name, *args)
        with Interpreter() as octave:
            return call(octave, name, *args)

    wrapped.__name__ = name.replace(".", "_")
    wrapped.__qualname__ = wrapped.__name__
    wrapped.__doc__ = f"Call the Octave function `{name}`."
    return wrapped
