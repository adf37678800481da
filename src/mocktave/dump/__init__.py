"""Decoder for the Octave text save format.

Splits a dump into declarations (:mod:`~mocktave.dump.lexer`), turns each
into a typed value (:mod:`~mocktave.dump.decoders`) and collects them in a
:class:`~mocktave.dump.workspace.Workspace`.
"""

from __future__ import annotations

from mocktave.dump.lexer import Declaration, lex
from mocktave.dump.workspace import Workspace, decode

__all__ = ["Declaration", "Workspace", "decode", "lex"]
