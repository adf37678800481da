"""Environment-driven settings.

Values are loaded from environment variables (prefix ``MOCKTAVE_``) or a
``.env`` file in the working directory.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class InterpreterSettings(BaseSettings):
    """Where and how Octave is run."""

    model_config = SettingsConfigDict(env_prefix="MOCKTAVE_")

    backend: Literal["docker", "local"] = "docker"
    """'docker' runs Octave in a long-lived container, 'local' runs a binary on PATH."""
    image: str = "gnuoctave/octave"
    tag: str = "8.1.0"
    octave_binary: str = "octave"
    timeout_seconds: int = Field(default=120, ge=1, le=3600)
    pull_missing: bool = True
    """Pull the image when it is not available locally."""
    result_variable: str = "mocktave_result"
    """Temporary variable the call layer assigns function results to."""

    @property
    def image_ref(self) -> str:
        return f"{self.image}:{self.tag}"


class ContainerSettings(BaseSettings):
    """Resource limits for the interpreter container."""

    model_config = SettingsConfigDict(env_prefix="MOCKTAVE_CONTAINER_")

    memory_limit: str = "1g"
    cpu_limit: float = Field(default=2.0, ge=0.1, le=16.0)
    pids_limit: int = Field(default=256, ge=8, le=4096)
    network: str = "none"
    tmpfs_size: str = "64m"


class Settings(BaseSettings):
    """Top-level settings aggregator."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    interpreter: InterpreterSettings = Field(default_factory=InterpreterSettings)
    container: ContainerSettings = Field(default_factory=ContainerSettings)


# Module-level singleton; import and use directly.
settings = Settings()


def get_settings() -> Settings:
    """Return the module-level Settings singleton."""
    return settings
