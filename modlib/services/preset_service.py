# modlib/services/preset_service.py
import dataclasses
from pathlib import Path
from typing import Iterable, Sequence

from modlib.core.exceptions import InvalidPath, NotFound, PresetApplyError, RenameFailed
from modlib.models.preset_model import ApplyReport, ApplyStep, Preset
from modlib.utils.logger_utils import logger
from modlib.utils.system_utils import SystemUtils

from .mod_service import ModService
from .sidecar_service import SidecarService


class PresetService:
    """
    Orchestrates presets: named sets of mod ids that should be enabled.
    Applying a preset renames every mod whose state differs; mods the preset
    does not list are disabled.
    """

    def __init__(
        self,
        mod_service: ModService,
        sidecar_service: SidecarService,
        system_utils: SystemUtils,
    ):
        # --- Injected Services ---
        self.mod_service = mod_service
        self.sidecar_service = sidecar_service
        self.system_utils = system_utils

    # --- Store Management ---
    def list_presets(self, root: Path) -> dict[str, Preset]:
        return dict(self.sidecar_service.load_presets(root).presets)

    def save_preset(self, root: Path, preset_name: str, enabled_ids: Iterable[str]) -> str:
        """
        Saves a preset and returns its id. A preset with the same name is
        overwritten in place and keeps its id.
        """
        if not preset_name.strip():
            raise ValueError("Preset name cannot be empty.")

        store = self.sidecar_service.load_presets(root)
        preset_id = store.find_id_by_name(preset_name)
        if preset_id is None:
            preset_id = self.system_utils.generate_id()
            logger.info(f"Creating preset '{preset_name}' ({preset_id})")
        else:
            logger.info(f"Updating preset '{preset_name}' ({preset_id})")

        presets = dict(store.presets)
        presets[preset_id] = Preset(name=preset_name, enabled_mod_ids=frozenset(enabled_ids))
        self.sidecar_service.save_presets(root, dataclasses.replace(store, presets=presets))
        return preset_id

    def delete_preset(self, root: Path, preset_id: str):
        store = self.sidecar_service.load_presets(root)
        if preset_id not in store.presets:
            raise NotFound(f"Preset not found: {preset_id}")

        presets = dict(store.presets)
        removed = presets.pop(preset_id)
        self.sidecar_service.save_presets(root, dataclasses.replace(store, presets=presets))
        logger.info(f"Deleted preset '{removed.name}' ({preset_id})")

    def rename_preset(self, root: Path, preset_id: str, new_name: str):
        if not new_name.strip():
            raise ValueError("Preset name cannot be empty.")

        store = self.sidecar_service.load_presets(root)
        if preset_id not in store.presets:
            raise NotFound(f"Preset not found: {preset_id}")
        owner = store.find_id_by_name(new_name)
        if owner is not None and owner != preset_id:
            raise RenameFailed(f"A preset named '{new_name}' already exists.")

        presets = dict(store.presets)
        presets[preset_id] = dataclasses.replace(presets[preset_id], name=new_name)
        self.sidecar_service.save_presets(root, dataclasses.replace(store, presets=presets))
        logger.info(f"Renamed preset {preset_id} to '{new_name}'")

    # --- Apply ---
    def plan_apply(self, root: Path, preset_id: str, categories: Sequence[str]) -> list[ApplyStep]:
        """
        Lists the renames needed to bring the library in line with the preset,
        in scan order. An empty plan means the library already matches.
        """
        return self._plan(root, preset_id, categories)[0]

    def _plan(self, root: Path, preset_id: str, categories: Sequence[str]) -> tuple[list[ApplyStep], int]:
        store = self.sidecar_service.load_presets(root)
        preset = store.presets.get(preset_id)
        if preset is None:
            raise NotFound(f"Preset not found: {preset_id}")

        steps = []
        records = self.mod_service.scan(root, categories)
        for record in records:
            should_enable = record.id in preset.enabled_mod_ids
            if record.enabled != should_enable:
                steps.append(
                    ApplyStep(mod_id=record.id, name=record.name, path=record.path, enable=should_enable)
                )
        return steps, len(records)

    def apply_preset(self, root: Path, preset_id: str, categories: Sequence[str]) -> ApplyReport:
        """
        Executes the plan step by step. A mod folder that disappeared since the
        scan is skipped. A rename conflict, or a name the folder cannot take,
        stops the apply; steps already done stay done, and running the apply
        again picks up the remaining ones.
        """
        steps, scanned = self._plan(root, preset_id, categories)
        report = ApplyReport(preset_id=preset_id, unchanged=scanned - len(steps))
        logger.info(f"Applying preset {preset_id}: {len(steps)} mod(s) to change")

        for step in steps:
            try:
                self.mod_service.set_enabled(step.path, step.enable, step.name, categories)
            except InvalidPath as e:
                if step.path.is_dir():
                    logger.error(f"Preset apply stopped at '{step.name}': {e}")
                    raise PresetApplyError(str(e), report) from e
                logger.warning(f"Mod '{step.name}' disappeared before it could be changed. Skipping.")
                report.skipped_missing.append(step)
                continue
            except RenameFailed as e:
                logger.error(f"Preset apply stopped at '{step.name}': {e}")
                raise PresetApplyError(str(e), report) from e
            report.renamed.append(step)

        logger.info(
            f"Preset {preset_id} applied. Renamed: {len(report.renamed)}, "
            f"skipped: {len(report.skipped_missing)}"
        )
        return report

    # --- Migration ---
    def migrate_folder_name_ids(self, root: Path, categories: Sequence[str]) -> int:
        """
        Rewrites preset entries that still hold a folder name (legacy ids) to
        the sidecar id of the matching mod. Returns the number of rewritten
        entries; entries that match nothing are kept as they are.
        """
        store = self.sidecar_service.load_presets(root)
        records = self.mod_service.scan(root, categories)
        known_ids = {record.id for record in records}
        by_name = {}
        for record in records:
            by_name.setdefault(record.path.name, record.id)
            by_name.setdefault(record.name, record.id)

        rewritten = 0
        presets = {}
        for preset_id, preset in store.presets.items():
            new_ids = set()
            for mod_id in preset.enabled_mod_ids:
                if mod_id not in known_ids and mod_id in by_name:
                    new_ids.add(by_name[mod_id])
                    rewritten += 1
                else:
                    new_ids.add(mod_id)
            presets[preset_id] = dataclasses.replace(preset, enabled_mod_ids=frozenset(new_ids))

        if rewritten:
            self.sidecar_service.save_presets(root, dataclasses.replace(store, presets=presets))
            logger.info(f"Migrated {rewritten} legacy preset entries in '{root}'")
        return rewritten
