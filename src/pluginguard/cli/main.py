#!/usr/bin/env python3
"""Entry point for the pluginguard CLI."""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from textwrap import dedent
from typing import Any, Callable, Dict, List, TextIO

from pluginguard import __version__
from pluginguard.adapters.http_artifact_source import HttpArtifactSource
from pluginguard.adapters.wpcli_registry import WPCLIRegistry
from pluginguard.app.verify import ArtifactFetcher, DecisionEngine, ExistenceProbe, TreeComparator
from pluginguard.app.verify.engine import SEPARATOR
from pluginguard.domain.installation import Installation, InstallationNotFoundError
from pluginguard.domain.outcome import PluginState, ProcessOutcome, RunState
from pluginguard.ports.artifact_source import ArtifactSource, ArtifactSourceError
from pluginguard.ports.registry import PluginRegistry, RegistryError
from pluginguard.settings import CONFIG_FILENAME, SETTINGS, ConfigError, RunOptions, load_run_options
from pluginguard.utils.runlog import RunLogger, init_log_file
from pluginguard.utils.telemetry import record_event

ALL_PLUGINS = "all"
SCRATCH_SUBDIR = "pluginguard"

HELP_EPILOG = dedent(
    """
    Examples:
      pluginguard contact-form-7
      pluginguard --path=/var/www/html contact-form-7
      pluginguard --dry-run contact-form-7
      pluginguard --no-log contact-form-7
      pluginguard --log-file=custom.log contact-form-7
      pluginguard --flush-cache contact-form-7
      pluginguard --save-diffs-only --save-old-logs all

    A plugin is only updated when its files are byte-identical to the published
    release of the installed version. Back up files and database first and try
    --dry-run before a real run.
    """
)

_OUTCOME_LEVELS = {
    PluginState.UPDATE_APPLIED: "info",
    PluginState.SKIPPED_UP_TO_DATE: "info",
    PluginState.SKIPPED_MODIFIED: "warn",
    PluginState.ABORTED: "error",
}


def _installation_path(path_arg: str | None) -> Path:
    if path_arg:
        return Path(path_arg).expanduser()
    return Path.cwd()


def _option_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    def flag(value: bool) -> bool | None:
        # unset flags must not mask values from the config file
        return True if value else None

    return {
        "dry_run": flag(args.dry_run),
        "no_log": flag(args.no_log),
        "log_file": args.log_file,
        "flush_cache": flag(args.flush_cache),
        "save_diffs_only": flag(args.save_diffs_only),
        "save_old_logs": flag(args.save_old_logs),
        "allow_root": flag(args.allow_root),
        "registry_url": args.registry_url,
    }


def _build_registry(installation: Installation, options: RunOptions) -> PluginRegistry:
    return WPCLIRegistry(
        installation.root,
        allow_root=options.allow_root,
        executable=options.wp_executable,
    )


def _cache_flusher(registry: PluginRegistry) -> Callable[[], None]:
    def flush() -> None:
        try:
            registry.flush_cache()
        except RegistryError as exc:
            raise ArtifactSourceError(f"cache flush failed: {exc}") from exc

    return flush


def _build_source(options: RunOptions, registry: PluginRegistry) -> ArtifactSource:
    return HttpArtifactSource(
        options.registry_url,
        timeout=options.http_timeout,
        on_invalidate=_cache_flusher(registry),
    )


def _build_logger(installation: Installation, options: RunOptions, stream: TextIO | None) -> RunLogger:
    if options.no_log:
        return RunLogger(None, diffs_only=options.save_diffs_only, stream=stream)
    log_path = Path(options.log_file).expanduser()
    if not log_path.is_absolute():
        log_path = installation.root / log_path
    backup = init_log_file(log_path, keep_old=options.save_old_logs)
    if backup is not None:
        print(f"Backed up existing log file to: {backup}", file=stream or sys.stdout)
    return RunLogger(log_path, diffs_only=options.save_diffs_only, stream=stream)


def _record_outcome(outcome: ProcessOutcome, duration_ms: float | None = None) -> None:
    payload: Dict[str, Any] = {
        "version": outcome.version,
        "counters": outcome.delta.to_dict(),
    }
    if outcome.reason is not None:
        payload["reason"] = outcome.reason.value
    if outcome.detail:
        payload["detail"] = outcome.detail
    if outcome.report is not None and not outcome.report.identical:
        payload["changed"] = {
            "only_local": len(outcome.report.only_local),
            "only_upstream": len(outcome.report.only_upstream),
            "changed_content": len(outcome.report.changed_content),
        }
    record_event(
        SETTINGS,
        "plugin.outcome",
        payload,
        level=_OUTCOME_LEVELS[outcome.kind],
        status=outcome.kind.value,
        plugin=outcome.identifier,
        duration_ms=duration_ms,
    )


def _record_run(
    outcomes: List[ProcessOutcome],
    durations: Dict[str, float],
    summary: Dict[str, Any],
    duration_ms: float,
) -> None:
    # telemetry never fails a run
    try:
        for outcome in outcomes:
            _record_outcome(outcome, durations.get(outcome.identifier))
        record_event(SETTINGS, "plugins.check", summary, duration_ms=duration_ms)
    except OSError as exc:
        print(f"Warning: telemetry not recorded: {exc}", file=sys.stderr)


def _check_cmd(args: argparse.Namespace) -> int:
    if not args.plugin:
        print("Error: No plugin slug provided.", file=sys.stderr)
        print("Use 'all' to process all plugins or specify a plugin slug.", file=sys.stderr)
        print("Run with --help for more information.", file=sys.stderr)
        return 1

    try:
        installation = Installation.from_path(_installation_path(args.path))
    except InstallationNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    config_path = Path(args.config).expanduser() if args.config else installation.root / CONFIG_FILENAME
    if args.config and not config_path.exists():
        print(f"Error: configuration file not found: {config_path}", file=sys.stderr)
        return 1
    try:
        options = load_run_options(config_path, _option_overrides(args))
    except ConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # keep stdout clean for the JSON document
    stream = sys.stderr if args.json else None
    out = stream or sys.stdout
    scratch_dir = installation.temp_dir() / SCRATCH_SUBDIR
    print(f"Using temp directory: {scratch_dir}", file=out)
    if options.dry_run:
        print("Running in dry-run mode. No changes will be made.", file=out)
    if options.no_log:
        print("Logging disabled.", file=out)

    logger = _build_logger(installation, options, stream)
    registry = _build_registry(installation, options)
    source = _build_source(options, registry)
    state = RunState(options=options, scratch_dir=scratch_dir)
    engine = DecisionEngine(
        registry,
        ArtifactFetcher(source, flush_cache=options.flush_cache),
        TreeComparator(),
        logger,
        state,
        plugins_dir=installation.plugins_dir,
        probe=ExistenceProbe(source),
    )

    if not options.no_log:
        logger.info("Starting plugin update check")

    started = time.monotonic()
    outcomes: List[ProcessOutcome] = []
    durations: Dict[str, float] = {}
    if args.plugin == ALL_PLUGINS:
        outcomes = engine.process_all()
    else:
        logger.info("This process might take several minutes to complete...")
        logger.info(SEPARATOR)
        plugin_started = time.monotonic()
        outcomes.append(engine.process_plugin(args.plugin))
        durations[args.plugin] = (time.monotonic() - plugin_started) * 1000

    engine.report_summary()
    if not options.no_log:
        logger.info("Plugin update check completed")

    counters = state.counters()
    _record_run(
        outcomes,
        durations,
        {
            "mode": ALL_PLUGINS if args.plugin == ALL_PLUGINS else "single",
            "version": SETTINGS.cli_version,
            "processed": len(outcomes),
            "dry_run": options.dry_run,
            "counters": counters,
        },
        (time.monotonic() - started) * 1000,
    )

    if args.json:
        payload = {
            "installation": str(installation.root),
            "options": options.to_dict(),
            "log_file": str(logger.log_path) if logger.log_path else None,
            "outcomes": [outcome.to_dict() for outcome in outcomes],
            "counters": counters,
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pluginguard",
        description="Update WordPress plugins only when they match the published release.",
        epilog=HELP_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"pluginguard {__version__}")
    parser.add_argument("plugin", nargs="?", help="Plugin slug, or 'all' to process every installed plugin")
    parser.add_argument("--path", help="WordPress installation path (default: current directory)")
    parser.add_argument("--dry-run", action="store_true", help="Run in dry-run mode (no changes)")
    parser.add_argument("--no-log", action="store_true", help="Disable logging to file")
    parser.add_argument("--log-file", help="Log file name, relative to the installation root")
    parser.add_argument("--flush-cache", action="store_true", help="Clear WP-CLI cache before downloading")
    parser.add_argument("--allow-root", action="store_true", help="Allow running WP-CLI commands as root")
    parser.add_argument("--save-diffs-only", action="store_true", help="Save only differences to log file")
    parser.add_argument("--save-old-logs", action="store_true", help="Backup existing log file with date")
    parser.add_argument("--registry-url", help="Base URL of the plugin download service")
    parser.add_argument("--config", help=f"Options file (default: <path>/{CONFIG_FILENAME} when present)")
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON outcomes on stdout")
    parser.set_defaults(func=_check_cmd)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
