"""Port for the installed-plugin registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence


class RegistryError(RuntimeError):
    """Raised when the registry cannot be queried."""


class UpdateApplyError(RuntimeError):
    """Raised when the platform's own update operation fails."""


class PluginRegistry(ABC):
    """Plugins installed in the target installation."""

    @abstractmethod
    def list_installed(self) -> Sequence[str]:
        """Return installed plugin identifiers in registry order."""

    @abstractmethod
    def current_version(self, identifier: str) -> str | None:
        """Return the installed version, or ``None`` if the plugin is not installed."""

    @abstractmethod
    def update_available(self, identifier: str) -> bool:
        """Report whether the registry offers an update for the plugin."""

    @abstractmethod
    def apply_update(self, identifier: str, version: str) -> None:
        """Update the plugin, pinned to ``version``."""

    def flush_cache(self) -> None:
        """Invalidate cached registry/download data. No-op by default."""


__all__ = ["PluginRegistry", "RegistryError", "UpdateApplyError"]
