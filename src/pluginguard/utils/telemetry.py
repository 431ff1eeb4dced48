"""Structured run events (opt-out), one JSON record per line."""

from __future__ import annotations

import json
import os
import time
from functools import lru_cache
from importlib import resources
from typing import Any, Iterator

import jsonschema

from pluginguard.settings import RuntimeSettings

LEVELS = {"info", "warn", "error"}
TELEMETRY_FILENAME = "telemetry.jsonl"

_DISABLE_VALUES = {"0", "false", "no", "off"}


def telemetry_enabled() -> bool:
    value = os.getenv("PLUGINGUARD_TELEMETRY", "1").lower()
    return value not in _DISABLE_VALUES


def record_event(
    settings: RuntimeSettings,
    event: str,
    payload: dict[str, Any] | None = None,
    *,
    level: str = "info",
    status: str | None = None,
    plugin: str | None = None,
    duration_ms: float | None = None,
) -> None:
    if not telemetry_enabled():
        return
    record: dict[str, Any] = {
        "ts": time.time(),
        "event": event,
        "payload": payload or {},
        "level": level,
    }
    if status:
        record["status"] = status
    if plugin:
        record["plugin"] = plugin
    if duration_ms is not None:
        record["durationMs"] = duration_ms
    _validate_record(record)
    _telemetry_validator().validate(record)
    log_path = settings.log_dir / TELEMETRY_FILENAME
    log_path.parent.mkdir(parents=True, exist_ok=True)
    with log_path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False) + "\n")


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    log_path = settings.log_dir / TELEMETRY_FILENAME
    if not log_path.exists():
        return iter(())
    return _read_events(log_path.read_text(encoding="utf-8").splitlines())


def _read_events(lines: list[str]) -> Iterator[dict[str, Any]]:
    for line in lines:
        line = line.strip()
        if not line:
            continue
        try:
            yield json.loads(line)
        except json.JSONDecodeError:
            continue


def _validate_record(record: dict[str, Any]) -> None:
    if not isinstance(record.get("event"), str) or not record["event"].strip():
        raise ValueError("Telemetry event must have non-empty string 'event'")
    if not isinstance(record.get("payload"), dict):
        raise ValueError("Telemetry payload must be a dict")
    level = record.get("level", "info")
    if level not in LEVELS:
        raise ValueError(f"Telemetry level '{level}' is not supported")
    if "durationMs" in record and record["durationMs"] is not None:
        if not isinstance(record["durationMs"], (int, float)) or record["durationMs"] < 0:
            raise ValueError("Telemetry durationMs must be a non-negative number")
    record["ts"] = float(record.get("ts", time.time()))


@lru_cache(maxsize=1)
def _telemetry_validator() -> jsonschema.Draft202012Validator:
    schema_resource = resources.files("pluginguard.resources") / "telemetry.schema.json"
    schema = json.loads(schema_resource.read_text(encoding="utf-8"))
    return jsonschema.Draft202012Validator(schema)


__all__ = ["LEVELS", "TELEMETRY_FILENAME", "iter_events", "record_event", "telemetry_enabled"]
