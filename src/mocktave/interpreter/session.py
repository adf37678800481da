"""The interpreter handle: run Octave scripts and decode their workspace.

An :class:`Interpreter` owns one Octave backend for its whole lifetime:

* ``docker`` — a long-lived container created from the configured image;
  every script runs in it with ``exec``.
* ``local`` — an ``octave`` binary on ``PATH``, one process per script.

Each script gets ``save("-", "*");`` appended so that Octave prints its
whole workspace in the text save format on stdout, which
:func:`mocktave.dump.decode` turns into a :class:`~mocktave.dump.Workspace`.

Use it as a context manager to guarantee tear-down::

    with Interpreter() as octave:
        ws = octave.eval("a = ones(2, 2)")
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from docker.errors import DockerException

from mocktave.config.settings import InterpreterSettings, get_settings
from mocktave.dump.workspace import Workspace, decode
from mocktave.errors import InterpreterError
from mocktave.interpreter.manager import ContainerManager
from mocktave.interpreter.policy import ContainerPolicy, default_policy

if TYPE_CHECKING:
    from docker.models.containers import Container

logger = logging.getLogger(__name__)

SAVE_COMMAND = 'save("-", "*");'
KEEPALIVE_COMMAND = ["sleep", "infinity"]
TIMEOUT_EXIT_CODE = 124


@dataclass
class ExecutionResult:
    """Raw output captured from one Octave run."""

    stdout: str = ""
    stderr: str = ""
    exit_code: int = -1
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def build_script(script: str) -> str:
    """Append the workspace dump to *script*."""
    return f"{script}\n\n{SAVE_COMMAND}"


def octave_argv(binary: str, script: str) -> list[str]:
    return [binary, "--no-gui", "--quiet", "--eval", script]


def _discard(manager: ContainerManager, container: Container | None) -> None:
    if container is not None:
        manager.destroy(container)
    manager.close()


class Interpreter:
    """Explicit handle on an Octave backend.

    Parameters
    ----------
    config:
        Interpreter settings (defaults to ``settings.interpreter``).
    policy:
        Container policy for the docker backend (defaults to settings-derived
        policy).
    """

    def __init__(
        self,
        config: InterpreterSettings | None = None,
        policy: ContainerPolicy | None = None,
    ) -> None:
        self._config = config or get_settings().interpreter
        self._policy = policy
        self._manager: ContainerManager | None = None
        self._container: Container | None = None
        self._running = False

    @property
    def backend(self) -> str:
        return self._config.backend

    @property
    def result_variable(self) -> str:
        return self._config.result_variable

    @property
    def is_running(self) -> bool:
        return self._running

    # -- lifecycle ------------------------------------------------------------

    def start(self) -> Interpreter:
        """Bring the backend up.  Calling it on a running handle is a no-op."""
        if self._running:
            return self

        if self.backend == "docker":
            self._start_container()
        elif shutil.which(self._config.octave_binary) is None:
            raise InterpreterError(f"Octave binary '{self._config.octave_binary}' not found on PATH")

        self._running = True
        logger.info("Octave interpreter started (backend=%s).", self.backend)
        return self

    def _start_container(self) -> None:
        policy = self._policy or default_policy()
        manager = ContainerManager(
            self._config.image_ref, policy, pull_missing=self._config.pull_missing
        )
        container = None
        try:
            manager.ensure_image()
            container = manager.create_container(KEEPALIVE_COMMAND)
            manager.start(container)
        except InterpreterError:
            _discard(manager, container)
            raise
        except DockerException as exc:
            _discard(manager, container)
            raise InterpreterError(f"Could not start the interpreter container: {exc}") from exc
        self._manager = manager
        self._container = container

    def stop(self) -> None:
        """Tear the backend down.  Safe to call more than once."""
        if self._manager is not None:
            if self._container is not None:
                self._manager.destroy(self._container)
            self._manager.close()
        was_running = self._running
        self._manager = None
        self._container = None
        self._running = False
        if was_running:
            logger.info("Octave interpreter stopped.")

    def __enter__(self) -> Interpreter:
        return self.start()

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    # -- execution ------------------------------------------------------------

    def run(self, script: str) -> ExecutionResult:
        """Run *script* followed by a workspace dump; return the raw output."""
        if not self._running:
            self.start()

        full_script = build_script(script)
        timeout = self._policy.timeout_seconds if self._policy else self._config.timeout_seconds

        t0 = time.perf_counter()
        if self.backend == "docker":
            assert self._manager is not None and self._container is not None
            argv = ["timeout", str(timeout), *octave_argv(self._config.octave_binary, full_script)]
            exit_code, stdout, stderr = self._manager.exec_command(self._container, argv)
        else:
            exit_code, stdout, stderr = self._run_local(full_script, timeout)
        duration_ms = (time.perf_counter() - t0) * 1000

        if exit_code == TIMEOUT_EXIT_CODE:
            logger.warning("Octave script timed out after %ds.", timeout)
        logger.info(
            "Octave run finished: exit=%d  duration=%.1fms  stdout=%d chars",
            exit_code,
            duration_ms,
            len(stdout),
        )
        return ExecutionResult(
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=round(duration_ms, 2),
        )

    def _run_local(self, script: str, timeout: int) -> tuple[int, str, str]:
        try:
            proc = subprocess.run(
                octave_argv(self._config.octave_binary, script),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            partial = exc.stdout or ""
            if isinstance(partial, bytes):
                partial = partial.decode(errors="replace")
            return TIMEOUT_EXIT_CODE, partial, f"Timeout after {timeout}s"
        except OSError as exc:
            raise InterpreterError(f"Could not run '{self._config.octave_binary}': {exc}") from exc
        return proc.returncode, proc.stdout, proc.stderr

    def eval(self, script: str) -> Workspace:
        """Run *script* and decode the resulting workspace."""
        result = self.run(script)
        if not result.ok:
            logger.warning(
                "Octave exited with status %d: %s", result.exit_code, result.stderr.strip()[:300]
            )
        return decode(result.stdout)


def eval(script: str, config: InterpreterSettings | None = None) -> Workspace:  # noqa: A001
    """Run *script* in a throw-away interpreter and return its workspace.

    >>> eval("a = 5 + 2").get_scalar("a")  # doctest: +SKIP
    7.0
    """
    with Interpreter(config) as octave:
        return octave.eval(script)
