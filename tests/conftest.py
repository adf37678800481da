"""Shared test fixtures for mocktave.

Provides realistic ``save("-", "*")`` dumps, a mocked Docker client and a
fake interpreter handle so individual test modules stay focused.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from mocktave.config.settings import InterpreterSettings
from mocktave.interpreter.session import ExecutionResult

# ---------------------------------------------------------------------------
# Dumps
# ---------------------------------------------------------------------------

SAMPLE_DUMP = """\
# Created by Octave 8.1.0, Sat Jan 06 12:00:00 2024 UTC <octave@3f2a1b>
# name: a
# type: scalar
5


# name: b
# type: matrix
# rows: 2
# columns: 3
 1 2 3
 4 5 6


# name: c
# type: sq_string
# elements: 1
# length: 4
asdf


# name: d
# type: cell
# rows: 1
# columns: 2
# name: <cell-element>
# type: sq_string
# elements: 1
# length: 1
a



# name: <cell-element>
# type: scalar
1





"""

RESULT_DUMP = """\
# Created by Octave 8.1.0, Sat Jan 06 12:00:00 2024 UTC <octave@3f2a1b>
# name: mocktave_result
# type: scalar
0


"""


@pytest.fixture()
def sample_dump() -> str:
    """Dump with a scalar, a 2x3 matrix, a string and a 1x2 cell."""
    return SAMPLE_DUMP


@pytest.fixture()
def result_dump() -> str:
    """Dump holding only ``mocktave_result = 0``."""
    return RESULT_DUMP


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture()
def docker_config() -> InterpreterSettings:
    return InterpreterSettings(backend="docker", image="gnuoctave/octave", tag="8.1.0")


@pytest.fixture()
def local_config() -> InterpreterSettings:
    return InterpreterSettings(backend="local", octave_binary="octave", timeout_seconds=5)


# ---------------------------------------------------------------------------
# Mock Docker
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_docker():
    """Patch the ``docker`` module to avoid real container operations."""
    mock_client = MagicMock()
    mock_container = MagicMock()
    mock_container.short_id = "abc123"
    mock_container.exec_run.return_value = MagicMock(
        exit_code=0, output=(SAMPLE_DUMP.encode(), b"")
    )

    mock_client.containers.create.return_value = mock_container
    mock_client.images.get.return_value = True

    with patch("docker.from_env", return_value=mock_client):
        yield mock_client, mock_container


# ---------------------------------------------------------------------------
# Fake interpreter
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_interpreter() -> MagicMock:
    """Interpreter stand-in whose ``run`` returns ``RESULT_DUMP``."""
    interpreter = MagicMock()
    interpreter.result_variable = "mocktave_result"
    interpreter.run.return_value = ExecutionResult(stdout=RESULT_DUMP, stderr="", exit_code=0)
    return interpreter
