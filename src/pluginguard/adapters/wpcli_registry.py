"""Plugin registry driven through WP-CLI."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from pluginguard.ports.registry import PluginRegistry, RegistryError, UpdateApplyError

Runner = Callable[..., "subprocess.CompletedProcess[str]"]


class WPCLIRegistry(PluginRegistry):
    def __init__(
        self,
        root: Path,
        *,
        allow_root: bool = False,
        executable: str = "wp",
        runner: Runner = subprocess.run,
    ) -> None:
        self._root = root
        self._allow_root = allow_root
        self._executable = executable
        self._runner = runner

    def list_installed(self) -> Sequence[str]:
        return [str(entry["name"]) for entry in self._plugin_list() if entry.get("name")]

    def current_version(self, identifier: str) -> str | None:
        entry = self._entry(identifier)
        if entry is None:
            return None
        version = str(entry.get("version") or "").strip()
        return version or None

    def update_available(self, identifier: str) -> bool:
        entry = self._entry(identifier)
        if entry is None:
            raise RegistryError(f"plugin {identifier} is not installed")
        return str(entry.get("update", "")).strip().lower() == "available"

    def apply_update(self, identifier: str, version: str) -> None:
        try:
            self._run("plugin", "update", identifier, f"--version={version}")
        except RegistryError as exc:
            raise UpdateApplyError(str(exc)) from exc

    def flush_cache(self) -> None:
        self._run("cache", "flush")

    def _entry(self, identifier: str) -> Dict[str, Any] | None:
        for entry in self._plugin_list(f"--name={identifier}"):
            if entry.get("name") == identifier:
                return entry
        return None

    def _plugin_list(self, *filters: str) -> List[Dict[str, Any]]:
        output = self._run("plugin", "list", *filters, "--format=json", "--fields=name,version,update")
        try:
            payload = json.loads(output or "[]")
        except json.JSONDecodeError as exc:
            raise RegistryError(f"unexpected output from wp plugin list: {exc}") from exc
        if not isinstance(payload, list):
            raise RegistryError("unexpected output from wp plugin list: expected a JSON array")
        return [item for item in payload if isinstance(item, dict)]

    def _run(self, *args: str) -> str:
        command = [self._executable, *args, f"--path={self._root}"]
        if self._allow_root:
            command.append("--allow-root")
        try:
            result = self._runner(command, capture_output=True, text=True)
        except FileNotFoundError as exc:
            raise RegistryError(f"WP-CLI executable not found: {self._executable}") from exc
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise RegistryError(f"{' '.join(args[:2])} failed (exit {result.returncode}): {stderr}")
        return result.stdout or ""


__all__ = ["WPCLIRegistry"]
