"""Docker container lifecycle for the Octave interpreter.

Handles image verification (pulling it when allowed), creation of one
long-lived container, command execution inside it, and tear-down.  All
operations go through the Docker SDK.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import docker
from docker.errors import DockerException, ImageNotFound

from mocktave.errors import InterpreterError

if TYPE_CHECKING:
    from docker.models.containers import Container

    from mocktave.interpreter.policy import ContainerPolicy

logger = logging.getLogger(__name__)


def split_image_ref(ref: str) -> tuple[str, str]:
    """Split ``repository:tag`` (registry ports included) into its parts."""
    repository, sep, tag = ref.rpartition(":")
    if not sep or "/" in tag:
        return ref, "latest"
    return repository, tag


class ContainerManager:
    """Create, drive and destroy the interpreter container.

    Parameters
    ----------
    image:
        Image reference, e.g. ``gnuoctave/octave:8.1.0``.
    policy:
        Resource and privilege constraints applied at creation.
    pull_missing:
        Pull the image when it is not present locally.
    """

    def __init__(self, image: str, policy: ContainerPolicy, *, pull_missing: bool = True) -> None:
        self._image = image
        self._policy = policy
        self._pull_missing = pull_missing
        try:
            self._client = docker.from_env()
        except DockerException as exc:
            raise InterpreterError(f"Cannot connect to the Docker daemon: {exc}") from exc

    @property
    def image(self) -> str:
        return self._image

    def ensure_image(self) -> None:
        """Make sure the interpreter image exists locally."""
        try:
            self._client.images.get(self._image)
            logger.info("Interpreter image '%s' verified.", self._image)
            return
        except ImageNotFound:
            if not self._pull_missing:
                raise InterpreterError(
                    f"Image '{self._image}' not found locally and pulling is disabled."
                ) from None

        repository, tag = split_image_ref(self._image)
        logger.info("Pulling interpreter image '%s' (this can take a while).", self._image)
        try:
            self._client.images.pull(repository, tag=tag)
        except DockerException as exc:
            raise InterpreterError(f"Could not pull image '{self._image}': {exc}") from exc

    def create_container(self, command: list[str]) -> Container:
        """Create (but do not start) a container running *command*."""
        container: Container = self._client.containers.create(
            image=self._image,
            command=command,
            tty=True,
            detach=True,
            auto_remove=False,
            **self._policy.to_container_kwargs(),
        )
        logger.debug("Container %s created (image=%s).", container.short_id, self._image)
        return container

    def start(self, container: Container) -> None:
        container.start()
        logger.debug("Container %s started.", container.short_id)

    def exec_command(
        self,
        container: Container,
        cmd: list[str],
        *,
        environment: dict[str, str] | None = None,
    ) -> tuple[int, str, str]:
        """Execute *cmd* inside a running container.

        Returns
        -------
        tuple[int, str, str]
            ``(exit_code, stdout, stderr)``
        """
        result = container.exec_run(cmd, environment=environment or {}, demux=True)
        exit_code: int = result.exit_code if result.exit_code is not None else -1
        raw_out, raw_err = result.output or (b"", b"")
        stdout = (raw_out or b"").decode(errors="replace")
        stderr = (raw_err or b"").decode(errors="replace")
        return exit_code, stdout, stderr

    def destroy(self, container: Container) -> None:
        """Force-remove the container."""
        try:
            container.remove(force=True)
            logger.debug("Container %s destroyed.", container.short_id)
        except DockerException as exc:
            logger.error("Failed to destroy container %s: %s", container.short_id, exc)

    def close(self) -> None:
        """Close the underlying Docker client."""
        self._client.close()
