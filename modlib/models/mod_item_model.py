# modlib/models/mod_item_model.py

from __future__ import annotations
from dataclasses import dataclass, fields, asdict
from enum import Enum, auto
from pathlib import Path


class ModStatus(Enum):
    """Represents the enabled/disabled state of a mod."""

    ENABLED = auto()
    DISABLED = auto()


class IdentifierPolicy(Enum):
    """Where a mod's identifier comes from."""

    # Generated once and persisted in mod.json. Survives renames.
    SIDECAR = "sidecar"
    # Legacy: the folder base name. Changes whenever the folder is renamed.
    FOLDER_NAME = "folder_name"


@dataclass(frozen=True)
class ModSidecar:
    """The persisted part of a mod, stored as mod.json inside its folder."""

    id: str = ""
    author: str = ""
    description: str = ""
    version: str = ""
    category: str = ""
    url: str = ""
    # Only read from older sidecars; an explicit name overrides the folder name.
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> ModSidecar:
        """Builds a sidecar from loose JSON, ignoring unknown keys and non-string values."""
        known = {f.name for f in fields(cls)}
        values = {
            key: value
            for key, value in data.items()
            if key in known and isinstance(value, str)
        }
        return cls(**values)

    def to_dict(self) -> dict:
        data = asdict(self)
        if not data["name"]:
            del data["name"]
        return data


@dataclass(frozen=True)
class ModRecord:
    """One mod as currently observed on disk. Rebuilt on every scan."""

    id: str
    name: str
    path: Path
    enabled: bool
    author: str = ""
    description: str = ""
    version: str = ""
    category: str = ""
    url: str = ""
    thumbnail: str = ""

    @property
    def status(self) -> ModStatus:
        return ModStatus.ENABLED if self.enabled else ModStatus.DISABLED

    def to_dict(self) -> dict:
        """JSON-friendly form handed to the GUI layer."""
        data = asdict(self)
        data["path"] = str(self.path)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> ModRecord:
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            path=Path(data.get("path", "")),
            enabled=bool(data.get("enabled", True)),
            author=str(data.get("author", "")),
            description=str(data.get("description", "")),
            version=str(data.get("version", "")),
            category=str(data.get("category", "")),
            url=str(data.get("url", "")),
            thumbnail=str(data.get("thumbnail", "")),
        )
