"""Verify-then-update engine and its components."""

from .comparator import ComparisonError, TreeComparator
from .engine import DecisionEngine
from .fetcher import ArtifactFetcher, FetchError, FetchErrorKind
from .probe import ExistenceProbe, ProbeResult

__all__ = [
    "ArtifactFetcher",
    "ComparisonError",
    "DecisionEngine",
    "ExistenceProbe",
    "FetchError",
    "FetchErrorKind",
    "ProbeResult",
    "TreeComparator",
]
