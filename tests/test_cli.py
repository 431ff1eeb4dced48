from __future__ import annotations

import json
from pathlib import Path

import pytest

from _fakes import FakeArtifactSource, FakeRegistry, write_tree
from pluginguard.cli import main as cli_main
from pluginguard.ports.artifact_source import ArtifactSourceError
from pluginguard.settings import RunOptions, RuntimeSettings
from pluginguard.utils.telemetry import iter_events

PLUGIN = "akismet"
VERSION = "5.0"


@pytest.fixture(autouse=True)
def _no_telemetry(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUGINGUARD_TELEMETRY", "0")


def _site(tmp_path: Path, local: dict | None = None) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    (root / "wp-config.php").write_text("<?php\n", encoding="utf-8")
    write_tree(root / "wp-content" / "plugins" / PLUGIN, local or {"akismet.php": "<?php"})
    return root


def _wire(monkeypatch: pytest.MonkeyPatch, registry: FakeRegistry, source: FakeArtifactSource) -> None:
    monkeypatch.setattr(cli_main, "_build_registry", lambda installation, options: registry)
    monkeypatch.setattr(cli_main, "_build_source", lambda options, reg: source)


def test_missing_slug(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_main.main([]) == 1
    assert "No plugin slug provided" in capsys.readouterr().err


def test_missing_installation(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_main.main(["--path", str(tmp_path), PLUGIN]) == 1
    assert "WordPress installation not found at" in capsys.readouterr().err


def test_single_plugin_update(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    root = _site(tmp_path)
    registry = FakeRegistry({PLUGIN: VERSION}, updates=[PLUGIN])
    _wire(monkeypatch, registry, FakeArtifactSource({(PLUGIN, VERSION): {"akismet.php": "<?php"}}))

    assert cli_main.main([f"--path={root}", PLUGIN]) == 0

    out = capsys.readouterr().out
    assert f"Using temp directory: {root.resolve() / 'wp-content' / 'temp' / 'pluginguard'}" in out
    assert "Plugins updated: 1" in out
    assert registry.applied == [(PLUGIN, VERSION)]
    log_text = (root / "plugin-updates.log").read_text(encoding="utf-8")
    assert "INFO: Starting plugin update check" in log_text
    assert "INFO: Plugin update check completed" in log_text
    assert not (root / "wp-content" / "temp" / "pluginguard" / PLUGIN).exists()


def test_dry_run_all(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    root = _site(tmp_path)
    registry = FakeRegistry({PLUGIN: VERSION}, updates=[PLUGIN])
    _wire(monkeypatch, registry, FakeArtifactSource({(PLUGIN, VERSION): {"akismet.php": "<?php"}}))

    assert cli_main.main(["--path", str(root), "--dry-run", "all"]) == 0

    out = capsys.readouterr().out
    assert "Running in dry-run mode. No changes will be made." in out
    assert f"Would update {PLUGIN} to version {VERSION}" in out
    assert "Total plugins found: 1" in out
    assert "Plugins already up to date: 1" in out
    assert registry.applied == []


def test_json_output(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    root = _site(tmp_path, {"akismet.php": "<?php // patched"})
    registry = FakeRegistry({PLUGIN: VERSION}, updates=[PLUGIN])
    _wire(monkeypatch, registry, FakeArtifactSource({(PLUGIN, VERSION): {"akismet.php": "<?php"}}))

    assert cli_main.main(["--path", str(root), "--no-log", "--json", PLUGIN]) == 0

    captured = capsys.readouterr()
    payload = json.loads(captured.out)
    assert payload["log_file"] is None
    assert payload["options"]["no_log"] is True
    assert payload["counters"]["differing"] == 1
    assert payload["outcomes"][0]["outcome"] == "skipped-modified"
    assert payload["outcomes"][0]["report"]["changed_content"] == ["akismet.php"]
    assert "Logging disabled." in captured.err
    assert not (root / "plugin-updates.log").exists()


def test_config_file_and_log_rotation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    root = _site(tmp_path)
    (root / "pluginguard.yaml").write_text("log-file: logs/updates.log\nsave-old-logs: true\n", encoding="utf-8")
    (root / "logs").mkdir()
    (root / "logs" / "updates.log").write_text("previous run\n", encoding="utf-8")
    _wire(monkeypatch, FakeRegistry({PLUGIN: VERSION}), FakeArtifactSource({(PLUGIN, VERSION): {"akismet.php": "<?php"}}))

    assert cli_main.main(["--path", str(root), PLUGIN]) == 0

    assert "Backed up existing log file to:" in capsys.readouterr().out
    backups = list((root / "logs").glob("updates-*.bak.log"))
    assert len(backups) == 1
    assert backups[0].read_text(encoding="utf-8") == "previous run\n"
    assert "already up to date" in (root / "logs" / "updates.log").read_text(encoding="utf-8")


def test_invalid_config(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _site(tmp_path)
    (root / "pluginguard.yaml").write_text("dry-run: maybe\n", encoding="utf-8")

    assert cli_main.main(["--path", str(root), PLUGIN]) == 1
    assert "must be true or false" in capsys.readouterr().err


def test_explicit_config_must_exist(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    root = _site(tmp_path)

    assert cli_main.main(["--path", str(root), "--config", str(tmp_path / "nope.yaml"), PLUGIN]) == 1
    assert "configuration file not found" in capsys.readouterr().err


def test_telemetry_events(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUGINGUARD_TELEMETRY", "1")
    settings = RuntimeSettings(home_dir=tmp_path / "home", log_dir=tmp_path / "home" / "logs")
    monkeypatch.setattr(cli_main, "SETTINGS", settings)
    root = _site(tmp_path)
    _wire(monkeypatch, FakeRegistry({PLUGIN: VERSION, "gone": None}), FakeArtifactSource({(PLUGIN, VERSION): {"akismet.php": "<?php"}}))

    assert cli_main.main(["--path", str(root), "--no-log", "all"]) == 0

    events = list(iter_events(settings))
    outcomes = [event for event in events if event["event"] == "plugin.outcome"]
    assert [(event["plugin"], event["status"], event["level"]) for event in outcomes] == [
        (PLUGIN, "skipped-up-to-date", "info"),
        ("gone", "aborted", "error"),
    ]
    assert outcomes[1]["payload"]["reason"] == "not-installed"
    summary = events[-1]
    assert summary["event"] == "plugins.check"
    assert summary["payload"]["processed"] == 2
    assert summary["payload"]["counters"]["up_to_date"] == 1


def test_cache_flush_goes_through_registry() -> None:
    registry = FakeRegistry({})
    source = cli_main._build_source(RunOptions(), registry)

    source.invalidate_cache()

    assert registry.flushes == 1


def test_cache_flush_failure_is_a_source_error() -> None:
    flush = cli_main._cache_flusher(FakeRegistry({}, fail_flush=True))

    with pytest.raises(ArtifactSourceError, match="cache flush failed"):
        flush()


def test_unwritable_telemetry_does_not_abort_the_run(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("PLUGINGUARD_TELEMETRY", "1")
    blocker = tmp_path / "home"
    blocker.write_text("not a directory", encoding="utf-8")
    monkeypatch.setattr(cli_main, "SETTINGS", RuntimeSettings(home_dir=blocker, log_dir=blocker / "logs"))
    root = _site(tmp_path)
    registry = FakeRegistry({PLUGIN: VERSION}, updates=[PLUGIN])
    _wire(monkeypatch, registry, FakeArtifactSource({(PLUGIN, VERSION): {"akismet.php": "<?php"}}))

    assert cli_main.main([f"--path={root}", PLUGIN]) == 0

    captured = capsys.readouterr()
    assert registry.applied == [(PLUGIN, VERSION)]
    assert "Plugins updated: 1" in captured.out
    assert "Warning: telemetry not recorded" in captured.err
    assert "INFO: Plugin update check completed" in (root / "plugin-updates.log").read_text(encoding="utf-8")
