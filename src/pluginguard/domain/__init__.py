"""Domain exports."""

from .artifact import ArtifactRef, is_valid_identifier
from .comparison import ComparisonReport
from .installation import Installation, InstallationNotFoundError
from .outcome import AbortReason, CounterDelta, PluginState, ProcessOutcome, RunState

__all__ = [
    "AbortReason",
    "ArtifactRef",
    "ComparisonReport",
    "CounterDelta",
    "Installation",
    "InstallationNotFoundError",
    "PluginState",
    "ProcessOutcome",
    "RunState",
    "is_valid_identifier",
]
