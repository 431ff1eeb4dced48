"""Public registry existence check."""

from __future__ import annotations

from enum import Enum

from pluginguard.domain.artifact import ArtifactRef
from pluginguard.ports.artifact_source import ArtifactSource, ArtifactSourceError


class ProbeResult(str, Enum):
    PUBLISHED = "published"
    NOT_PUBLISHED = "not-published"


class ExistenceProbe:
    """Classifies a release as published or premium/private.

    Anything that cannot be confirmed as published, including network errors, is
    reported as ``NOT_PUBLISHED``.
    """

    def __init__(self, source: ArtifactSource) -> None:
        self._source = source

    def probe(self, identifier: str, version: str) -> ProbeResult:
        try:
            published = self._source.exists(ArtifactRef(identifier, version))
        except (ArtifactSourceError, ValueError):
            return ProbeResult.NOT_PUBLISHED
        return ProbeResult.PUBLISHED if published else ProbeResult.NOT_PUBLISHED


__all__ = ["ExistenceProbe", "ProbeResult"]
