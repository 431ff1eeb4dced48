"""Per-plugin outcomes and run-scoped counters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict

from pluginguard.domain.comparison import ComparisonReport
from pluginguard.settings import RunOptions


class PluginState(str, Enum):
    START = "start"
    VERSION_RESOLVED = "version-resolved"
    ARTIFACT_FETCHED = "artifact-fetched"
    COMPARED = "compared"
    UPDATE_APPLIED = "update-applied"
    SKIPPED_MODIFIED = "skipped-modified"
    SKIPPED_UP_TO_DATE = "skipped-up-to-date"
    ABORTED = "aborted"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {
        PluginState.UPDATE_APPLIED,
        PluginState.SKIPPED_MODIFIED,
        PluginState.SKIPPED_UP_TO_DATE,
        PluginState.ABORTED,
    }
)


class AbortReason(str, Enum):
    NOT_INSTALLED = "not-installed"
    FETCH_FAILED = "fetch-failed"
    COMPARE_FAILED = "compare-failed"
    UPDATE_APPLY_FAILED = "update-apply-failed"
    REGISTRY_FAILED = "registry-failed"


@dataclass(frozen=True)
class CounterDelta:
    updated: int = 0
    differing: int = 0
    up_to_date: int = 0
    premium: int = 0

    def __add__(self, other: "CounterDelta") -> "CounterDelta":
        return CounterDelta(
            updated=self.updated + other.updated,
            differing=self.differing + other.differing,
            up_to_date=self.up_to_date + other.up_to_date,
            premium=self.premium + other.premium,
        )

    def to_dict(self) -> Dict[str, int]:
        return {
            "updated": self.updated,
            "differing": self.differing,
            "up_to_date": self.up_to_date,
            "premium": self.premium,
        }


@dataclass(frozen=True)
class ProcessOutcome:
    identifier: str
    kind: PluginState
    message: str
    version: str | None = None
    reason: AbortReason | None = None
    detail: str | None = None
    report: ComparisonReport | None = None
    delta: CounterDelta = field(default_factory=CounterDelta)

    def __post_init__(self) -> None:
        if not self.kind.terminal:
            raise ValueError(f"outcome kind must be a terminal state, got {self.kind.value}")
        if (self.kind is PluginState.ABORTED) != (self.reason is not None):
            raise ValueError("an abort reason is required for, and only for, aborted outcomes")

    @property
    def completed(self) -> bool:
        return self.kind is not PluginState.ABORTED

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "plugin": self.identifier,
            "outcome": self.kind.value,
            "version": self.version,
            "message": self.message,
            "counters": self.delta.to_dict(),
        }
        if self.reason is not None:
            payload["reason"] = self.reason.value
        if self.detail:
            payload["detail"] = self.detail
        if self.report is not None:
            payload["report"] = self.report.to_dict()
        return payload


@dataclass
class RunState:
    """Counters and configuration for one run; counters never decrease."""

    options: RunOptions
    scratch_dir: Path
    updated: int = 0
    differing: int = 0
    up_to_date: int = 0
    premium: int = 0

    def apply(self, delta: CounterDelta) -> None:
        for name, value in delta.to_dict().items():
            if value < 0:
                raise ValueError(f"counter {name} cannot be decremented")
            setattr(self, name, getattr(self, name) + value)

    @property
    def completed(self) -> int:
        return self.updated + self.differing + self.up_to_date

    def counters(self) -> Dict[str, int]:
        return {
            "updated": self.updated,
            "differing": self.differing,
            "up_to_date": self.up_to_date,
            "premium": self.premium,
        }


__all__ = ["AbortReason", "CounterDelta", "PluginState", "ProcessOutcome", "RunState"]
