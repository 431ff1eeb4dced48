"""Structural and byte-level comparison of two plugin trees."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import List

from pluginguard.domain.comparison import ComparisonReport

LOCAL_LABEL = "local"
UPSTREAM_LABEL = "upstream"
NO_NEWLINE_MARKER = "\\ No newline at end of file\n"


class ComparisonError(RuntimeError):
    """Raised when one of the trees to compare is missing or unreadable."""


class TreeComparator:
    """Compares presence and byte content only; metadata is ignored.

    A directory present on one side only is reported once, without listing its
    contents. An entry that is a file on one side and a directory on the other
    counts as changed content.
    """

    def __init__(self, *, context_lines: int = 1) -> None:
        self._context_lines = context_lines

    def compare(self, local_dir: Path, upstream_dir: Path) -> ComparisonReport:
        if not local_dir.is_dir():
            raise ComparisonError(f"Local plugin directory '{local_dir}' does not exist.")
        if not upstream_dir.is_dir():
            raise ComparisonError(f"Downloaded plugin directory '{upstream_dir}' does not exist.")

        only_local: List[str] = []
        only_upstream: List[str] = []
        changed: List[str] = []
        try:
            self._walk(local_dir, upstream_dir, "", only_local, only_upstream, changed)
        except OSError as exc:
            raise ComparisonError(f"Could not read plugin files: {exc}") from exc

        changed.sort()
        report = ComparisonReport(
            only_local=tuple(sorted(only_local)),
            only_upstream=tuple(sorted(only_upstream)),
            changed_content=tuple(changed),
        )
        if report.identical:
            return report
        try:
            diff_text = "".join(self._diff_entry(local_dir, upstream_dir, rel) for rel in changed)
        except OSError as exc:
            raise ComparisonError(f"Could not read plugin files: {exc}") from exc
        return ComparisonReport(
            only_local=report.only_local,
            only_upstream=report.only_upstream,
            changed_content=report.changed_content,
            unified_diff=diff_text,
        )

    def _walk(
        self,
        local: Path,
        upstream: Path,
        prefix: str,
        only_local: List[str],
        only_upstream: List[str],
        changed: List[str],
    ) -> None:
        local_names = {entry.name for entry in local.iterdir()}
        upstream_names = {entry.name for entry in upstream.iterdir()}
        for name in sorted(local_names | upstream_names):
            rel = f"{prefix}{name}"
            if name not in upstream_names:
                only_local.append(rel)
                continue
            if name not in local_names:
                only_upstream.append(rel)
                continue
            local_entry = local / name
            upstream_entry = upstream / name
            local_is_dir = local_entry.is_dir()
            upstream_is_dir = upstream_entry.is_dir()
            if local_is_dir and upstream_is_dir:
                self._walk(local_entry, upstream_entry, f"{rel}/", only_local, only_upstream, changed)
            elif local_is_dir != upstream_is_dir or not _same_content(local_entry, upstream_entry):
                changed.append(rel)

    def _diff_entry(self, local_dir: Path, upstream_dir: Path, rel: str) -> str:
        local_entry = local_dir / rel
        upstream_entry = upstream_dir / rel
        from_label = f"{LOCAL_LABEL}/{rel}"
        to_label = f"{UPSTREAM_LABEL}/{rel}"
        if local_entry.is_dir() != upstream_entry.is_dir():
            return (
                f"File {from_label} is a {_kind(local_entry)} "
                f"while file {to_label} is a {_kind(upstream_entry)}\n"
            )
        local_bytes = local_entry.read_bytes()
        upstream_bytes = upstream_entry.read_bytes()
        if _is_binary(local_bytes) or _is_binary(upstream_bytes):
            return f"Binary files {from_label} and {to_label} differ\n"
        lines = difflib.unified_diff(
            _text_lines(local_bytes),
            _text_lines(upstream_bytes),
            fromfile=from_label,
            tofile=to_label,
            n=self._context_lines,
        )
        text = "".join(_terminate(line) for line in lines)
        # bytes that only differ in undecodable sequences
        return text or f"Files {from_label} and {to_label} differ\n"


def _same_content(left: Path, right: Path) -> bool:
    if left.stat().st_size != right.stat().st_size:
        return False
    return left.read_bytes() == right.read_bytes()


def _kind(path: Path) -> str:
    return "directory" if path.is_dir() else "regular file"


def _is_binary(data: bytes) -> bool:
    return b"\0" in data


def _text_lines(data: bytes) -> List[str]:
    return data.decode("utf-8", errors="replace").splitlines(keepends=True)


def _terminate(line: str) -> str:
    if line.endswith("\n"):
        return line
    return line + "\n" + NO_NEWLINE_MARKER


__all__ = ["ComparisonError", "TreeComparator"]
