"""Isolation policy for the interpreter container.

``ContainerPolicy`` collects every Docker flag the container is created
with.  The defaults come from :mod:`mocktave.config.settings` but a policy
can be built by hand and passed to :class:`~mocktave.interpreter.session.Interpreter`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContainerPolicy:
    """Immutable set of Docker resource and privilege constraints.

    Octave needs a writable home directory, so unlike a code sandbox the root
    filesystem stays writable and the image's default user is kept.
    """

    # Network
    network_mode: str = "none"

    # Resource limits
    memory_limit: str = "1g"
    cpu_limit: float = 2.0
    pids_limit: int = 256

    # Privilege
    cap_drop: list[str] = field(default_factory=lambda: ["ALL"])
    security_opts: list[str] = field(
        default_factory=lambda: ["no-new-privileges"]
    )

    # Scratch space
    tmpfs: dict[str, str] = field(
        default_factory=lambda: {"/tmp": "rw,nosuid,size=64m"}
    )

    # Per-script timeout (seconds), enforced with coreutils ``timeout``
    timeout_seconds: int = 120

    def to_container_kwargs(self) -> dict[str, Any]:
        """Convert to keyword arguments for ``client.containers.create()``."""
        return {
            "network_mode": self.network_mode,
            "mem_limit": self.memory_limit,
            "nano_cpus": int(self.cpu_limit * 1e9),
            "pids_limit": self.pids_limit,
            "cap_drop": list(self.cap_drop),
            "security_opt": list(self.security_opts),
            "tmpfs": dict(self.tmpfs),
        }


def default_policy() -> ContainerPolicy:
    """Build a ``ContainerPolicy`` from the current application settings."""
    from mocktave.config.settings import settings

    cfg = settings.container
    policy = ContainerPolicy(
        network_mode=cfg.network,
        memory_limit=cfg.memory_limit,
        cpu_limit=cfg.cpu_limit,
        pids_limit=cfg.pids_limit,
        tmpfs={"/tmp": f"rw,nosuid,size={cfg.tmpfs_size}"},
        timeout_seconds=settings.interpreter.timeout_seconds,
    )
    logger.debug("Container policy: %s", policy)
    return policy
