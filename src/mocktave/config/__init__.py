"""Environment-driven configuration."""

from __future__ import annotations

from mocktave.config.settings import (
    ContainerSettings,
    InterpreterSettings,
    Settings,
    get_settings,
    settings,
)

__all__ = ["ContainerSettings", "InterpreterSettings", "Settings", "get_settings", "settings"]
