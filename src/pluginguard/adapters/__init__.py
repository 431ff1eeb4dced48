"""Production adapters for the registry and artifact source ports."""

from .http_artifact_source import HttpArtifactSource
from .wpcli_registry import WPCLIRegistry

__all__ = ["HttpArtifactSource", "WPCLIRegistry"]
