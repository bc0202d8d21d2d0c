from __future__ import annotations

import json
from pathlib import Path

import pytest

import main
from conftest import make_mod


@pytest.fixture(autouse=True)
def _keep_test_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keeps logging on the session log directory set up in conftest
    monkeypatch.setattr(main, "configure_logging", lambda log_dir: None)


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"logging": {"log_dir": str(tmp_path / "logs")}}), encoding="utf-8")
    return path


def _run(capsys, *argv: str):
    code = main.main(list(argv))
    captured = capsys.readouterr()
    data = json.loads(captured.out) if code == 0 and captured.out.strip() else None
    return code, data, captured.err


def test_list_prints_mods(library: Path, config_path: Path, capsys) -> None:
    make_mod(library, "A", {"id": "a"})
    make_mod(library, "disabled B", {"id": "b"})

    code, data, _ = _run(capsys, "--config", str(config_path), "--root", str(library), "list", "--enabled", "true")

    assert code == 0
    assert [m["name"] for m in data] == ["A"]


def test_enable_and_preset_commands(library: Path, config_path: Path, capsys) -> None:
    make_mod(library, "A", {"id": "a"})
    b_dir = make_mod(library, "disabled B", {"id": "b"})
    base = ("--config", str(config_path), "--root", str(library))

    code, preset_id, _ = _run(capsys, *base, "preset", "save", "Just A")
    assert code == 0

    code, toggled, _ = _run(capsys, *base, "enable", str(b_dir))
    assert code == 0
    assert toggled["enabled"] is True

    code, report, _ = _run(capsys, *base, "preset", "apply", preset_id)
    assert code == 0
    assert report["renamed"] == ["B"]
    assert {p.name for p in library.iterdir() if p.is_dir()} == {"A", "disabled B"}

    code, presets, _ = _run(capsys, *base, "preset", "list")
    assert presets == {preset_id: {"name": "Just A", "enabled_mods": ["a"]}}


def test_missing_root_is_a_usage_error(config_path: Path, capsys) -> None:
    code, _, err = _run(capsys, "--config", str(config_path), "list")
    assert code == 2
    assert "--root" in err


def test_failures_exit_non_zero(tmp_path: Path, config_path: Path, capsys) -> None:
    code, _, err = _run(capsys, "--config", str(config_path), "--root", str(tmp_path / "nope"), "list")
    assert code == 1
    assert err.startswith("Error:")
