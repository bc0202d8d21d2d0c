from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from conftest import CATEGORIES, make_mod
from modlib.core.exceptions import NotFound, PresetApplyError, RenameFailed
from modlib.models.preset_model import Preset
from modlib.services.preset_service import PresetService


def _folder_names(root: Path) -> set[str]:
    return {p.name for p in root.iterdir() if p.is_dir()}


@pytest.fixture
def two_mods(library: Path) -> Path:
    make_mod(library, "A", {"id": "a"})
    make_mod(library, "disabled B", {"id": "b"})
    return library


# --- Store ---


def test_save_upserts_by_name(library: Path, preset_service: PresetService) -> None:
    first = preset_service.save_preset(library, "Raid", ["a"])
    second = preset_service.save_preset(library, "Raid", ["a", "b"])
    other = preset_service.save_preset(library, "Solo", [])

    assert first == second
    assert other != first
    assert preset_service.list_presets(library) == {
        first: Preset("Raid", frozenset({"a", "b"})),
        other: Preset("Solo", frozenset()),
    }


def test_save_rejects_blank_name(library: Path, preset_service: PresetService) -> None:
    with pytest.raises(ValueError):
        preset_service.save_preset(library, "  ", ["a"])


def test_delete_preset(library: Path, preset_service: PresetService) -> None:
    preset_id = preset_service.save_preset(library, "Raid", ["a"])
    preset_service.delete_preset(library, preset_id)

    assert preset_service.list_presets(library) == {}
    with pytest.raises(NotFound):
        preset_service.delete_preset(library, preset_id)


def test_rename_preset_keeps_identity(library: Path, preset_service: PresetService) -> None:
    raid = preset_service.save_preset(library, "Raid", ["a"])
    solo = preset_service.save_preset(library, "Solo", [])

    preset_service.rename_preset(library, raid, "Dungeon")
    assert preset_service.list_presets(library)[raid] == Preset("Dungeon", frozenset({"a"}))

    with pytest.raises(RenameFailed):
        preset_service.rename_preset(library, solo, "Dungeon")
    with pytest.raises(NotFound):
        preset_service.rename_preset(library, "missing", "Other")


# --- Apply ---


def test_apply_reconciles_library(two_mods: Path, preset_service: PresetService) -> None:
    preset_id = preset_service.save_preset(two_mods, "Only B", ["b"])

    report = preset_service.apply_preset(two_mods, preset_id, CATEGORIES)

    assert _folder_names(two_mods) == {"disabled A", "B"}
    assert sorted(step.name for step in report.renamed) == ["A", "B"]
    assert report.unchanged == 0


def test_second_apply_is_a_no_op(two_mods: Path, preset_service: PresetService) -> None:
    preset_id = preset_service.save_preset(two_mods, "Only B", ["b"])
    preset_service.apply_preset(two_mods, preset_id, CATEGORIES)

    assert preset_service.plan_apply(two_mods, preset_id, CATEGORIES) == []
    report = preset_service.apply_preset(two_mods, preset_id, CATEGORIES)
    assert report.renamed == []
    assert report.unchanged == 2
    assert _folder_names(two_mods) == {"disabled A", "B"}


def test_unlisted_mods_are_disabled(two_mods: Path, preset_service: PresetService) -> None:
    preset_id = preset_service.save_preset(two_mods, "Nothing", [])
    preset_service.apply_preset(two_mods, preset_id, CATEGORIES)
    assert _folder_names(two_mods) == {"disabled A", "disabled B"}


def test_apply_unknown_preset(two_mods: Path, preset_service: PresetService) -> None:
    with pytest.raises(NotFound):
        preset_service.apply_preset(two_mods, "missing", CATEGORIES)


def test_apply_skips_mods_that_vanished(
    two_mods: Path, preset_service: PresetService, monkeypatch: pytest.MonkeyPatch
) -> None:
    preset_id = preset_service.save_preset(two_mods, "Only B", ["b"])
    original_plan = preset_service._plan

    def plan_then_delete(root, pid, categories):
        planned = original_plan(root, pid, categories)
        shutil.rmtree(root / "A")
        return planned

    monkeypatch.setattr(preset_service, "_plan", plan_then_delete)
    report = preset_service.apply_preset(two_mods, preset_id, CATEGORIES)

    assert [step.name for step in report.skipped_missing] == ["A"]
    assert [step.name for step in report.renamed] == ["B"]
    assert _folder_names(two_mods) == {"B"}


def test_apply_stops_on_rename_conflict(library: Path, preset_service: PresetService) -> None:
    make_mod(library, "disabled B", {"id": "b"})
    make_mod(library, "B", {"id": "b-copy"})
    preset_id = preset_service.save_preset(library, "Both", ["b", "b-copy"])

    with pytest.raises(PresetApplyError) as excinfo:
        preset_service.apply_preset(library, preset_id, CATEGORIES)

    assert excinfo.value.report.renamed == []
    assert _folder_names(library) == {"disabled B", "B"}


def test_apply_toggles_names_with_punctuation(library: Path, preset_service: PresetService) -> None:
    make_mod(library, "Mod: Part 2?", {"id": "x"})
    make_mod(library, "disabled Trailing.", {"id": "y"})
    preset_id = preset_service.save_preset(library, "Only Y", ["y"])

    report = preset_service.apply_preset(library, preset_id, CATEGORIES)

    assert report.skipped_missing == []
    assert _folder_names(library) == {"disabled Mod: Part 2?", "Trailing."}


def test_apply_stops_when_a_present_mod_cannot_be_renamed(library: Path, preset_service: PresetService) -> None:
    # A legacy sidecar name that cannot become a folder name
    make_mod(library, "Legacy", {"id": "l", "name": "Legacy/Pack"})
    preset_id = preset_service.save_preset(library, "Nothing", [])

    with pytest.raises(PresetApplyError) as excinfo:
        preset_service.apply_preset(library, preset_id, CATEGORIES)

    assert excinfo.value.report.skipped_missing == []
    assert _folder_names(library) == {"Legacy"}


# --- Migration ---


def test_migrate_rewrites_folder_name_ids(two_mods: Path, preset_service: PresetService) -> None:
    preset_id = preset_service.save_preset(two_mods, "Legacy", ["A", "disabled B", "Ghost"])

    assert preset_service.migrate_folder_name_ids(two_mods, CATEGORIES) == 2
    assert preset_service.list_presets(two_mods)[preset_id].enabled_mod_ids == {"a", "b", "Ghost"}
    assert preset_service.migrate_folder_name_ids(two_mods, CATEGORIES) == 0
