from __future__ import annotations

import json
from pathlib import Path

import pytest

from modlib.core.exceptions import LibraryIOError
from modlib.models.mod_item_model import ModSidecar
from modlib.models.preset_model import Preset, PresetStore
from modlib.services.sidecar_service import SidecarService


def test_missing_sidecar_gives_defaults(tmp_path: Path, sidecar_service: SidecarService) -> None:
    assert sidecar_service.load_sidecar(tmp_path) == ModSidecar()


def test_corrupt_sidecar_gives_defaults(tmp_path: Path, sidecar_service: SidecarService) -> None:
    (tmp_path / "mod.json").write_text("{not json", encoding="utf-8")
    assert sidecar_service.load_sidecar(tmp_path) == ModSidecar()


def test_non_object_sidecar_gives_defaults(tmp_path: Path, sidecar_service: SidecarService) -> None:
    (tmp_path / "mod.json").write_text("[1, 2]", encoding="utf-8")
    assert sidecar_service.load_sidecar(tmp_path) == ModSidecar()


def test_unknown_and_non_string_values_are_ignored(tmp_path: Path, sidecar_service: SidecarService) -> None:
    (tmp_path / "mod.json").write_text(
        json.dumps({"id": "abc", "author": 42, "extra": "x"}), encoding="utf-8"
    )
    assert sidecar_service.load_sidecar(tmp_path) == ModSidecar(id="abc")


def test_save_writes_stable_key_order(tmp_path: Path, sidecar_service: SidecarService) -> None:
    sidecar_service.save_sidecar(tmp_path, ModSidecar(id="1", url="https://example.com/a.zip"))
    data = json.loads((tmp_path / "mod.json").read_text(encoding="utf-8"))
    assert list(data) == ["id", "author", "description", "version", "category", "url"]
    assert sidecar_service.load_sidecar(tmp_path).url == "https://example.com/a.zip"


def test_save_into_missing_directory_fails(tmp_path: Path, sidecar_service: SidecarService) -> None:
    with pytest.raises(LibraryIOError):
        sidecar_service.save_sidecar(tmp_path / "gone", ModSidecar(id="1"))


def test_presets_tolerate_malformed_entries(tmp_path: Path, sidecar_service: SidecarService) -> None:
    (tmp_path / "presets.json").write_text(
        json.dumps(
            {
                "presets": {
                    "good": {"name": "Raid", "enabled_mods": ["a", "b"]},
                    "no-name": {"enabled_mods": ["a"]},
                    "bad-list": {"name": "Odd", "enabled_mods": "a"},
                }
            }
        ),
        encoding="utf-8",
    )
    store = sidecar_service.load_presets(tmp_path)

    assert store.presets["good"] == Preset("Raid", frozenset({"a", "b"}))
    assert "no-name" not in store.presets
    assert store.presets["bad-list"].enabled_mod_ids == frozenset()


def test_corrupt_presets_give_empty_store(tmp_path: Path, sidecar_service: SidecarService) -> None:
    (tmp_path / "presets.json").write_text("oops", encoding="utf-8")
    assert sidecar_service.load_presets(tmp_path) == PresetStore()


def test_presets_file_layout(tmp_path: Path, sidecar_service: SidecarService) -> None:
    store = PresetStore(presets={"p1": Preset("Raid", frozenset({"b", "a"}))})
    sidecar_service.save_presets(tmp_path, store)

    data = json.loads((tmp_path / "presets.json").read_text(encoding="utf-8"))
    assert data == {"presets": {"p1": {"name": "Raid", "enabled_mods": ["a", "b"]}}}
