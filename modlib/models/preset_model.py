# modlib/models/preset_model.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class Preset:
    """Represents a single saved mod preset."""

    name: str
    enabled_mod_ids: frozenset[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict:
        return {"name": self.name, "enabled_mods": sorted(self.enabled_mod_ids)}


@dataclass(frozen=True)
class PresetStore:
    """All presets of one library root, keyed by preset id."""

    presets: dict[str, Preset] = field(default_factory=dict)

    def find_id_by_name(self, name: str) -> str | None:
        for preset_id, preset in self.presets.items():
            if preset.name == name:
                return preset_id
        return None

    def to_dict(self) -> dict:
        return {
            "presets": {
                preset_id: preset.to_dict()
                for preset_id, preset in self.presets.items()
            }
        }


@dataclass(frozen=True)
class ApplyStep:
    """A single rename planned by a preset apply."""

    mod_id: str
    name: str
    path: Path
    enable: bool


@dataclass
class ApplyReport:
    """Outcome of a preset apply. Mutable while the apply runs."""

    preset_id: str
    renamed: list[ApplyStep] = field(default_factory=list)
    skipped_missing: list[ApplyStep] = field(default_factory=list)
    unchanged: int = 0

    def to_dict(self) -> dict:
        return {
            "preset_id": self.preset_id,
            "renamed": [step.name for step in self.renamed],
            "skipped_missing": [step.name for step in self.skipped_missing],
            "unchanged": self.unchanged,
        }
