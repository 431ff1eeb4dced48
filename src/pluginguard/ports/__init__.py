"""Ports consumed by the verification engine."""

from .artifact_source import (
    ArtifactNetworkError,
    ArtifactNotFoundError,
    ArtifactSource,
    ArtifactSourceError,
)
from .registry import PluginRegistry, RegistryError, UpdateApplyError

__all__ = [
    "ArtifactNetworkError",
    "ArtifactNotFoundError",
    "ArtifactSource",
    "ArtifactSourceError",
    "PluginRegistry",
    "RegistryError",
    "UpdateApplyError",
]
