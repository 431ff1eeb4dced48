"""Port for upstream release archives."""

from __future__ import annotations

from abc import ABC, abstractmethod

from pluginguard.domain.artifact import ArtifactRef


class ArtifactSourceError(RuntimeError):
    """Raised when an archive cannot be retrieved."""


class ArtifactNotFoundError(ArtifactSourceError):
    """The upstream source has no such release."""


class ArtifactNetworkError(ArtifactSourceError):
    """The upstream source could not be reached."""


class ArtifactSource(ABC):
    @abstractmethod
    def exists(self, ref: ArtifactRef) -> bool:
        """Check that the release is published without downloading it."""

    @abstractmethod
    def download(self, ref: ArtifactRef) -> bytes:
        """Return the archive bytes for ``ref``."""

    def invalidate_cache(self) -> None:
        """Drop cached download data before a fetch. No-op by default."""


__all__ = [
    "ArtifactNetworkError",
    "ArtifactNotFoundError",
    "ArtifactSource",
    "ArtifactSourceError",
]
