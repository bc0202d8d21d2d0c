# modlib/services/sidecar_service.py
import json
from pathlib import Path

from modlib.core.constants import PRESETS_FILE_NAME, SIDECAR_FILE_NAME
from modlib.core.exceptions import LibraryIOError, SerializationError
from modlib.models.mod_item_model import ModSidecar
from modlib.models.preset_model import Preset, PresetStore
from modlib.utils.logger_utils import logger


class SidecarService:
    """
    Reads and writes the JSON files that live next to the mods.

    Reads are tolerant: a missing or corrupt file yields defaults so one bad
    file never blocks a scan. Writes are strict and raise.
    """

    # --- Per-mod sidecar ---
    @staticmethod
    def sidecar_path(mod_dir: Path) -> Path:
        return mod_dir / SIDECAR_FILE_NAME

    def load_sidecar(self, mod_dir: Path) -> ModSidecar:
        data = self._read_json(self.sidecar_path(mod_dir))
        if not isinstance(data, dict):
            return ModSidecar()
        return ModSidecar.from_dict(data)

    def save_sidecar(self, mod_dir: Path, sidecar: ModSidecar):
        if not mod_dir.is_dir():
            raise LibraryIOError(f"Mod directory does not exist: {mod_dir}")
        self._write_json(self.sidecar_path(mod_dir), sidecar.to_dict())

    # --- Per-library preset store ---
    @staticmethod
    def presets_path(root: Path) -> Path:
        return root / PRESETS_FILE_NAME

    def load_presets(self, root: Path) -> PresetStore:
        data = self._read_json(self.presets_path(root))
        if not isinstance(data, dict):
            return PresetStore()

        presets = {}
        raw_presets = data.get("presets", {})
        if not isinstance(raw_presets, dict):
            logger.warning(f"'presets' in {PRESETS_FILE_NAME} is not an object. Ignoring it.")
            return PresetStore()

        for preset_id, raw in raw_presets.items():
            if not isinstance(raw, dict) or not isinstance(raw.get("name"), str):
                logger.warning(f"Malformed preset entry '{preset_id}'. Skipping.")
                continue
            mod_ids = raw.get("enabled_mods", [])
            if not isinstance(mod_ids, list):
                mod_ids = []
            presets[preset_id] = Preset(
                name=raw["name"],
                enabled_mod_ids=frozenset(str(m) for m in mod_ids),
            )
        return PresetStore(presets=presets)

    def save_presets(self, root: Path, store: PresetStore):
        if not root.is_dir():
            raise LibraryIOError(f"Library directory does not exist: {root}")
        self._write_json(self.presets_path(root), store.to_dict())

    # --- JSON helpers ---
    def _read_json(self, json_path: Path):
        if not json_path.is_file():
            return None
        try:
            with open(json_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"{json_path.name} in '{json_path.parent}' is corrupted ({e}). Using defaults.")
        except OSError as e:
            logger.warning(f"Could not read {json_path}: {e}. Using defaults.")
        return None

    def _write_json(self, json_path: Path, data: dict):
        """
        Serializes first, then overwrites the file, so a serialization error
        never leaves a truncated file behind.
        """
        try:
            text = json.dumps(data, indent=4, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Could not serialize {json_path.name}: {e}") from e

        logger.debug(f"Writing {json_path}...")
        try:
            with open(json_path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            logger.error(f"Failed to write to JSON file {json_path}: {e}")
            raise LibraryIOError(f"Failed to write {json_path}: {e}") from e
