"""Tests for calling Octave functions with Python arguments."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from mocktave.call import build_call, call, wrap
from mocktave.interpreter.session import ExecutionResult
from mocktave.types import Error, Scalar, Text


class TestBuildCall:
    def test_renders_statement(self) -> None:
        statement = build_call("norm", [[[0, 0], [0, 0]], 2], "mocktave_result")
        assert statement == "mocktave_result = norm([0, 0; 0, 0], 2);"

    def test_no_arguments(self) -> None:
        assert build_call("pi", [], "r") == "r = pi();"

    def test_default_result_variable(self) -> None:
        assert build_call("rand", []).startswith("mocktave_result = ")

    def test_mixed_arguments(self) -> None:
        statement = build_call("strcat", ["a", Text("b"), None], "r")
        assert statement == 'r = strcat("a", "b", []);'

    def test_package_function_name(self) -> None:
        assert build_call("pkg.fn", [1], "r") == "r = pkg.fn(1);"

    @pytest.mark.parametrize("name", ["", "1abc", "system('rm')", "a b", "a;b"])
    def test_invalid_name(self, name: str) -> None:
        with pytest.raises(ValueError, match="not a valid Octave function name"):
            build_call(name, [], "r")


class TestCall:
    def test_norm_of_zero_matrix(self, fake_interpreter: MagicMock) -> None:
        result = call(fake_interpreter, "norm", [[0, 0], [0, 0]], 2)
        assert result == Scalar(0.0)
        fake_interpreter.run.assert_called_once_with(
            "mocktave_result = norm([0, 0; 0, 0], 2);"
        )

    def test_failure_returns_error(self, fake_interpreter: MagicMock) -> None:
        fake_interpreter.run.return_value = ExecutionResult(
            stdout="", stderr="error: 'nrm' undefined\n", exit_code=1
        )
        result = call(fake_interpreter, "nrm", 1)
        assert result == Error("error: 'nrm' undefined")

    def test_failure_without_stderr(self, fake_interpreter: MagicMock) -> None:
        fake_interpreter.run.return_value = ExecutionResult(stdout="", stderr="", exit_code=3)
        result = call(fake_interpreter, "f")
        assert isinstance(result, Error)
        assert "status 3" in result.message

    def test_missing_result_variable(self, fake_interpreter: MagicMock) -> None:
        fake_interpreter.run.return_value = ExecutionResult(
            stdout="# name: other\n# type: scalar\n1\n", stderr="", exit_code=0
        )
        result = call(fake_interpreter, "disp", 1)
        assert isinstance(result, Error)
        assert "disp" in result.message

    def test_result_can_be_narrowed(self, fake_interpreter: MagicMock) -> None:
        assert call(fake_interpreter, "norm", [1, 2]).as_scalar() == 0.0


class TestWrap:
    def test_bound_interpreter(self, fake_interpreter: MagicMock) -> None:
        norm = wrap("norm", fake_interpreter)
        assert norm([[0, 0], [0, 0]], 2) == Scalar(0.0)
        assert norm.__name__ == "norm"
        assert "norm" in norm.__doc__

    def test_dotted_name(self, fake_interpreter: MagicMock) -> None:
        assert wrap("pkg.fn", fake_interpreter).__name__ == "pkg_fn"

    def test_invalid_name_fails_early(self) -> None:
        with pytest.raises(ValueError):
            wrap("not valid")

    def test_own_interpreter_per_call(self, fake_interpreter: MagicMock) -> None:
        with patch("mocktave.call.Interpreter") as interpreter_cls:
            interpreter_cls.return_value.__enter__.return_value = fake_interpreter
            norm = wrap("norm")
            assert norm(0) == Scalar(0.0)
            assert norm(0) == Scalar(0.0)
        assert interpreter_cls.call_count == 2
        assert interpreter_cls.return_value.__exit__.call_count == 2
