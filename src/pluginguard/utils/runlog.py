"""Leveled run log echoed to the terminal and optionally persisted."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, TextIO

LEVELS = ("INFO", "WARNING", "ERROR", "DRY-RUN")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%d-%H%M%S"

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class LogEvent:
    timestamp: datetime
    level: str
    message: str

    def format_line(self) -> str:
        return f"[{self.timestamp.strftime(TIMESTAMP_FORMAT)}] {self.level}: {self.message}"


def backup_path_for(log_path: Path, moment: datetime) -> Path:
    """``plugin-updates.log`` -> ``plugin-updates-2024-05-01-120000.bak.log``."""

    stamp = moment.strftime(BACKUP_TIMESTAMP_FORMAT)
    return log_path.with_name(f"{log_path.stem}-{stamp}.bak{log_path.suffix}")


def init_log_file(log_path: Path, *, keep_old: bool = False, clock: Clock = datetime.now) -> Path | None:
    """Prepare ``log_path`` for a new run.

    An existing log is moved to a timestamped backup when ``keep_old`` is set and
    truncated otherwise. Returns the backup path, if one was written.
    """

    log_path.parent.mkdir(parents=True, exist_ok=True)
    if not log_path.exists():
        return None
    if keep_old:
        backup = backup_path_for(log_path, clock())
        log_path.replace(backup)
        return backup
    log_path.write_text("", encoding="utf-8")
    return None


class RunLogger:
    """Append-only event log for one run.

    Messages flagged as ``progress`` are dropped entirely in diffs-only mode;
    warnings, errors, dry-run notices, report blocks and the summary are kept.
    """

    def __init__(
        self,
        log_path: Path | None = None,
        *,
        diffs_only: bool = False,
        stream: TextIO | None = None,
        clock: Clock = datetime.now,
    ) -> None:
        self._log_path = log_path
        self._diffs_only = diffs_only
        self._stream = stream
        self._clock = clock
        self._events: List[LogEvent] = []

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    @property
    def diffs_only(self) -> bool:
        return self._diffs_only

    @property
    def events(self) -> List[LogEvent]:
        return list(self._events)

    def log(self, level: str, message: str, *, progress: bool = False) -> LogEvent | None:
        if level not in LEVELS:
            raise ValueError(f"unsupported log level: {level}")
        if progress and self._diffs_only:
            return None
        event = LogEvent(timestamp=self._clock(), level=level, message=message)
        self._events.append(event)
        self._echo(message)
        self._persist(event.format_line() + "\n")
        return event

    def info(self, message: str, *, progress: bool = False) -> LogEvent | None:
        return self.log("INFO", message, progress=progress)

    def warning(self, message: str) -> LogEvent | None:
        return self.log("WARNING", message)

    def error(self, message: str) -> LogEvent | None:
        return self.log("ERROR", message)

    def dry_run(self, message: str) -> LogEvent | None:
        return self.log("DRY-RUN", message)

    def report(self, block: str) -> None:
        """Write a comparison report block verbatim."""

        self._echo(block.rstrip("\n"))
        self._persist(block if block.endswith("\n") else block + "\n")

    def _echo(self, text: str) -> None:
        print(text, file=self._stream or sys.stdout)

    def _persist(self, text: str) -> None:
        if self._log_path is None:
            return
        with self._log_path.open("a", encoding="utf-8") as fh:
            fh.write(text)


__all__ = ["LEVELS", "LogEvent", "RunLogger", "backup_path_for", "init_log_file"]
