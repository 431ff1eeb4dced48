"""Reference to a published plugin release."""

from __future__ import annotations

from dataclasses import dataclass


def is_valid_identifier(identifier: str) -> bool:
    """Identifiers double as directory names, so path separators are rejected."""

    return bool(identifier) and identifier not in {".", ".."} and not any(sep in identifier for sep in ("/", "\\"))


@dataclass(frozen=True)
class ArtifactRef:
    """An ``(identifier, version)`` pair naming one upstream release archive.

    The version is an opaque label taken verbatim from the local installation.
    """

    identifier: str
    version: str

    def __post_init__(self) -> None:
        if not is_valid_identifier(self.identifier):
            raise ValueError(f"invalid plugin identifier: {self.identifier!r}")
        if not self.version or "/" in self.version or "\\" in self.version:
            raise ValueError(f"invalid version for plugin {self.identifier}: {self.version!r}")

    @property
    def archive_name(self) -> str:
        return f"{self.identifier}.{self.version}.zip"


__all__ = ["ArtifactRef", "is_valid_identifier"]
