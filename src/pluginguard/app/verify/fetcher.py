"""Download and unpack upstream release archives into scratch storage."""

from __future__ import annotations

import zipfile
from enum import Enum
from pathlib import Path

from pluginguard.domain.artifact import ArtifactRef
from pluginguard.ports.artifact_source import ArtifactNotFoundError, ArtifactSource, ArtifactSourceError


class FetchErrorKind(str, Enum):
    NETWORK_FAILURE = "network-failure"
    NOT_FOUND = "not-found"
    EXTRACTION_FAILURE = "extraction-failure"


class FetchError(RuntimeError):
    def __init__(self, kind: FetchErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


class ArtifactFetcher:
    def __init__(self, source: ArtifactSource, *, flush_cache: bool = False) -> None:
        self._source = source
        self._flush_cache = flush_cache

    def fetch(self, identifier: str, version: str, destination: Path) -> Path:
        """Materialise the release under ``destination`` and return its tree root.

        The root is ``destination / identifier``, the layout of published
        archives. The downloaded archive itself never outlives this call.
        """

        try:
            ref = ArtifactRef(identifier, version)
        except ValueError as exc:
            raise FetchError(FetchErrorKind.NOT_FOUND, str(exc)) from exc

        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise FetchError(
                FetchErrorKind.EXTRACTION_FAILURE,
                f"could not create scratch directory {destination}: {exc}",
            ) from exc
        try:
            if self._flush_cache:
                self._source.invalidate_cache()
            payload = self._source.download(ref)
        except ArtifactNotFoundError as exc:
            raise FetchError(FetchErrorKind.NOT_FOUND, str(exc)) from exc
        except ArtifactSourceError as exc:
            raise FetchError(FetchErrorKind.NETWORK_FAILURE, str(exc)) from exc

        archive_path = destination / ref.archive_name
        try:
            archive_path.write_bytes(payload)
            _extract(archive_path, destination)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, OSError, ValueError) as exc:
            raise FetchError(
                FetchErrorKind.EXTRACTION_FAILURE,
                f"could not unpack {ref.archive_name}: {exc}",
            ) from exc
        finally:
            archive_path.unlink(missing_ok=True)
        return destination / ref.identifier


def _extract(archive_path: Path, destination: Path) -> None:
    root = destination.resolve()
    with zipfile.ZipFile(archive_path) as archive:
        corrupt = archive.testzip()
        if corrupt is not None:
            raise zipfile.BadZipFile(f"corrupt member {corrupt}")
        for info in archive.infolist():
            target = (root / info.filename).resolve()
            if target != root and root not in target.parents:
                raise ValueError(f"archive member escapes destination: {info.filename}")
        archive.extractall(root)


__all__ = ["ArtifactFetcher", "FetchError", "FetchErrorKind"]
