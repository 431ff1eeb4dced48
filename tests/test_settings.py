from __future__ import annotations

from pathlib import Path

import pytest

from pluginguard.settings import DEFAULT_LOG_FILE, ConfigError, RunOptions, load_run_options, load_settings


def _config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "pluginguard.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults_without_config(tmp_path: Path) -> None:
    options = load_run_options(tmp_path / "missing.yaml")

    assert options == RunOptions()
    assert options.log_file == DEFAULT_LOG_FILE
    assert not options.dry_run


def test_yaml_keys_accept_dashes(tmp_path: Path) -> None:
    path = _config(tmp_path, "dry-run: true\nsave_diffs_only: true\nlog-file: custom.log\nhttp_timeout: 30\n")

    options = load_run_options(path)

    assert options.dry_run
    assert options.save_diffs_only
    assert options.log_file == "custom.log"
    assert options.http_timeout == 30


def test_overrides_win_but_none_is_ignored(tmp_path: Path) -> None:
    path = _config(tmp_path, "no_log: true\nlog_file: from-file.log\n")

    options = load_run_options(path, {"no_log": None, "log_file": "cli.log", "dry_run": True})

    assert options.no_log
    assert options.log_file == "cli.log"
    assert options.dry_run


@pytest.mark.parametrize(
    "text, message",
    [
        ("colour: blue\n", "unknown keys"),
        ("dry_run: yes please\n", "true or false"),
        ("log_file: 12\n", "must be a string"),
        ("http_timeout: soon\n", "must be a number"),
        ("- dry_run\n", "must be a mapping"),
        ("dry_run: [\n", "invalid YAML"),
    ],
)
def test_invalid_config(tmp_path: Path, text: str, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        load_run_options(_config(tmp_path, text))


def test_unknown_override_is_rejected() -> None:
    with pytest.raises(ConfigError, match="unknown run options"):
        load_run_options(None, {"colour": "blue"})


def test_options_to_dict() -> None:
    assert RunOptions(dry_run=True).to_dict()["dry_run"] is True


def test_home_dir_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLUGINGUARD_HOME", str(tmp_path / "home"))

    settings = load_settings()

    assert settings.home_dir == tmp_path / "home"
    assert settings.log_dir == tmp_path / "home" / "logs"
