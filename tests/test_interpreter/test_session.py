"""Tests for the Interpreter handle (Docker SDK and subprocess mocked)."""

from __future__ import annotations

import subprocess
from unittest.mock import MagicMock, patch

import pytest
from docker.errors import APIError

import mocktave
from mocktave.errors import InterpreterError
from mocktave.interpreter.policy import ContainerPolicy
from mocktave.interpreter.session import (
    SAVE_COMMAND,
    TIMEOUT_EXIT_CODE,
    ExecutionResult,
    Interpreter,
    build_script,
    octave_argv,
)
from mocktave.types import Matrix, Scalar


class TestHelpers:
    def test_build_script_appends_save(self) -> None:
        script = build_script("a = 1;")
        assert script.startswith("a = 1;")
        assert script.endswith(SAVE_COMMAND)

    def test_octave_argv(self) -> None:
        assert octave_argv("octave", "x") == ["octave", "--no-gui", "--quiet", "--eval", "x"]

    def test_execution_result_ok(self) -> None:
        assert ExecutionResult(exit_code=0).ok
        assert not ExecutionResult(exit_code=1).ok
        assert not ExecutionResult().ok


class TestDockerBackend:
    def test_eval_decodes_workspace(self, mock_docker, docker_config) -> None:
        client, container = mock_docker
        with Interpreter(docker_config) as octave:
            assert octave.is_running
            ws = octave.eval("a = 5;")

        assert ws.get_scalar("a") == 5.0
        assert ws["b"] == Matrix([[1, 2, 3], [4, 5, 6]])
        container.start.assert_called_once()
        argv = container.exec_run.call_args.args[0]
        assert argv[:2] == ["timeout", "120"]
        assert argv[1:5] == ["120", "octave", "--no-gui", "--quiet"]
        assert argv[-1].endswith(SAVE_COMMAND)
        assert "a = 5;" in argv[-1]

    def test_exit_tears_down(self, mock_docker, docker_config) -> None:
        client, container = mock_docker
        octave = Interpreter(docker_config)
        with octave:
            pass
        container.remove.assert_called_once_with(force=True)
        client.close.assert_called_once()
        assert not octave.is_running

    def test_container_is_reused(self, mock_docker, docker_config) -> None:
        client, container = mock_docker
        with Interpreter(docker_config) as octave:
            octave.run("a = 1;")
            octave.run("a = 2;")
        client.containers.create.assert_called_once()
        assert container.exec_run.call_count == 2

    def test_run_starts_lazily(self, mock_docker, docker_config) -> None:
        client, _ = mock_docker
        octave = Interpreter(docker_config)
        assert not octave.is_running
        result = octave.run("a = 5;")
        assert result.ok
        assert octave.is_running
        client.containers.create.assert_called_once()
        octave.stop()

    def test_stop_is_idempotent(self, mock_docker, docker_config) -> None:
        client, container = mock_docker
        octave = Interpreter(docker_config).start()
        octave.stop()
        octave.stop()
        container.remove.assert_called_once()

    def test_start_twice_creates_one_container(self, mock_docker, docker_config) -> None:
        client, _ = mock_docker
        octave = Interpreter(docker_config)
        octave.start()
        octave.start()
        client.containers.create.assert_called_once()
        octave.stop()

    def test_policy_timeout_is_used(self, mock_docker, docker_config) -> None:
        _, container = mock_docker
        with Interpreter(docker_config, ContainerPolicy(timeout_seconds=9)) as octave:
            octave.run("x = 1;")
        assert container.exec_run.call_args.args[0][:2] == ["timeout", "9"]

    def test_start_failure_is_wrapped(self, mock_docker, docker_config) -> None:
        client, _ = mock_docker
        client.containers.create.side_effect = APIError("no space left")
        octave = Interpreter(docker_config)
        with pytest.raises(InterpreterError, match="Could not start"):
            octave.start()
        assert not octave.is_running
        client.close.assert_called_once()

    def test_start_failure_removes_created_container(self, mock_docker, docker_config) -> None:
        _, container = mock_docker
        container.start.side_effect = APIError("cannot start")
        with pytest.raises(InterpreterError):
            Interpreter(docker_config).start()
        container.remove.assert_called_once_with(force=True)

    def test_failed_script_still_decodes(self, mock_docker, docker_config) -> None:
        _, container = mock_docker
        container.exec_run.return_value = MagicMock(
            exit_code=1, output=(b"", b"error: 'foo' undefined")
        )
        with Interpreter(docker_config) as octave:
            result = octave.run("foo")
            ws = octave.eval("foo")
        assert result.exit_code == 1
        assert result.stderr == "error: 'foo' undefined"
        assert len(ws) == 0


class TestLocalBackend:
    def test_missing_binary(self, local_config) -> None:
        with patch("mocktave.interpreter.session.shutil.which", return_value=None):
            with pytest.raises(InterpreterError, match="not found on PATH"):
                Interpreter(local_config).start()

    def test_eval(self, local_config, sample_dump: str) -> None:
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=sample_dump, stderr="")
        with (
            patch("mocktave.interpreter.session.shutil.which", return_value="/usr/bin/octave"),
            patch("mocktave.interpreter.session.subprocess.run", return_value=completed) as run,
        ):
            with Interpreter(local_config) as octave:
                ws = octave.eval("a = 5;")

        assert ws.get_string("c") == "asdf"
        argv = run.call_args.args[0]
        assert argv[:4] == ["octave", "--no-gui", "--quiet", "--eval"]
        assert run.call_args.kwargs["timeout"] == 5

    def test_timeout(self, local_config) -> None:
        with (
            patch("mocktave.interpreter.session.shutil.which", return_value="/usr/bin/octave"),
            patch(
                "mocktave.interpreter.session.subprocess.run",
                side_effect=subprocess.TimeoutExpired(cmd="octave", timeout=5),
            ),
        ):
            result = Interpreter(local_config).run("while true; end")

        assert result.exit_code == TIMEOUT_EXIT_CODE
        assert not result.ok
        assert "Timeout" in result.stderr

    def test_os_error_is_wrapped(self, local_config) -> None:
        with (
            patch("mocktave.interpreter.session.shutil.which", return_value="/usr/bin/octave"),
            patch("mocktave.interpreter.session.subprocess.run", side_effect=PermissionError("denied")),
        ):
            with pytest.raises(InterpreterError, match="Could not run"):
                Interpreter(local_config).run("a = 1;")


class TestModuleEval:
    def test_eval(self, local_config) -> None:
        dump = "# name: a\n# type: scalar\n7\n\n\n"
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout=dump, stderr="")
        with (
            patch("mocktave.interpreter.session.shutil.which", return_value="/usr/bin/octave"),
            patch("mocktave.interpreter.session.subprocess.run", return_value=completed),
        ):
            ws = mocktave.eval("a = 5 + 2", local_config)
        assert ws["a"] == Scalar(7.0)
