"""WordPress installation layout."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

CONFIG_FILENAME = "wp-config.php"
_TEMP_DIR_PATTERN = re.compile(r"""define\s*\(\s*['"]WP_TEMP_DIR['"]\s*,\s*['"]([^'"]+)['"]""")


class InstallationNotFoundError(RuntimeError):
    """Raised when a path does not hold a WordPress installation."""


@dataclass(frozen=True)
class Installation:
    root: Path

    @classmethod
    def from_path(cls, path: Path) -> "Installation":
        resolved = path.expanduser().resolve()
        if not (resolved / CONFIG_FILENAME).is_file():
            raise InstallationNotFoundError(f"WordPress installation not found at {resolved}")
        return cls(root=resolved)

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILENAME

    @property
    def plugins_dir(self) -> Path:
        return self.root / "wp-content" / "plugins"

    def temp_dir(self) -> Path:
        """Return ``WP_TEMP_DIR`` from wp-config.php, or ``wp-content/temp``."""

        try:
            text = self.config_path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            text = ""
        match = _TEMP_DIR_PATTERN.search(text)
        if match:
            candidate = Path(match.group(1)).expanduser()
            return candidate if candidate.is_absolute() else self.root / candidate
        return self.root / "wp-content" / "temp"


__all__ = ["CONFIG_FILENAME", "Installation", "InstallationNotFoundError"]
