"""Artifact source backed by the public plugin download service."""

from __future__ import annotations

from typing import Callable

import requests

from pluginguard.domain.artifact import ArtifactRef
from pluginguard.ports.artifact_source import (
    ArtifactNetworkError,
    ArtifactNotFoundError,
    ArtifactSource,
)
from pluginguard.settings import DEFAULT_REGISTRY_URL

USER_AGENT = "pluginguard"


class HttpArtifactSource(ArtifactSource):
    def __init__(
        self,
        base_url: str = DEFAULT_REGISTRY_URL,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
        on_invalidate: Callable[[], None] | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._timeout = timeout
        self._on_invalidate = on_invalidate

    def url_for(self, ref: ArtifactRef) -> str:
        return f"{self._base_url}/{ref.archive_name}"

    def exists(self, ref: ArtifactRef) -> bool:
        try:
            response = self._session.head(
                self.url_for(ref),
                headers={"User-Agent": USER_AGENT},
                allow_redirects=True,
                timeout=self._timeout,
            )
        except requests.RequestException:
            return False
        return response.status_code < 400

    def download(self, ref: ArtifactRef) -> bytes:
        url = self.url_for(ref)
        try:
            response = self._session.get(url, headers={"User-Agent": USER_AGENT}, timeout=self._timeout)
        except requests.RequestException as exc:
            raise ArtifactNetworkError(f"download of {url} failed: {exc}") from exc
        if response.status_code == 404:
            raise ArtifactNotFoundError(f"{url} not found")
        if response.status_code >= 400:
            raise ArtifactNetworkError(f"download of {url} failed: HTTP {response.status_code}")
        return response.content

    def invalidate_cache(self) -> None:
        if self._on_invalidate is not None:
            self._on_invalidate()


__all__ = ["HttpArtifactSource"]
