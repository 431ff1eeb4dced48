"""Result of comparing a local plugin tree with its upstream release."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

SEPARATOR = "-" * 40


@dataclass(frozen=True)
class ComparisonReport:
    only_local: Tuple[str, ...] = ()
    only_upstream: Tuple[str, ...] = ()
    changed_content: Tuple[str, ...] = ()
    unified_diff: str = ""

    @property
    def identical(self) -> bool:
        return not (self.only_local or self.only_upstream or self.changed_content)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identical": self.identical,
            "only_local": list(self.only_local),
            "only_upstream": list(self.only_upstream),
            "changed_content": list(self.changed_content),
            "unified_diff": self.unified_diff,
        }

    def format_text(self, plugin: str) -> str:
        """Render the review block written to the terminal and the run log."""

        lines = [
            f"Plugin: {plugin}",
            SEPARATOR,
            "Checking for modified files...",
            SEPARATOR,
            "Files only in local version:",
            *self.only_local,
            SEPARATOR,
            "Files only in upstream version:",
            *self.only_upstream,
            SEPARATOR,
            "Files with different content:",
            *self.changed_content,
            SEPARATOR,
            "Detailed differences (with line numbers):",
        ]
        if self.unified_diff:
            lines.append(self.unified_diff.rstrip("\n"))
        lines.append(SEPARATOR)
        return "\n".join(lines) + "\n"


__all__ = ["ComparisonReport", "SEPARATOR"]
