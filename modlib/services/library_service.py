# modlib/services/library_service.py
from pathlib import Path
from typing import Any, Callable, Iterable

from PyQt6.QtCore import QThreadPool

from modlib.core.exceptions import ModLibraryError, PresetApplyError
from modlib.core.signals import global_signals
from modlib.models.mod_item_model import ModRecord
from modlib.utils.async_utils import Worker
from modlib.utils.logger_utils import logger

from .ingestion_service import IngestionService
from .mod_service import ModService
from .preset_service import PresetService


class LibraryService:
    """
    The operations offered to the GUI layer. Every call returns a result dict:
    {"success": True, "data": ...} or {"success": False, "error": "message"}.
    """

    def __init__(
        self,
        mod_service: ModService,
        ingestion_service: IngestionService,
        preset_service: PresetService,
        categories: tuple[str, ...],
    ):
        # --- Injected Services ---
        self.mod_service = mod_service
        self.ingestion_service = ingestion_service
        self.preset_service = preset_service
        # Read-only catalog, passed explicitly into every resolve
        self.categories = categories

    def _run(self, description: str, fn: Callable, *args: Any, changed_root: Path | None = None, **kwargs: Any) -> dict:
        try:
            data = fn(*args, **kwargs)
        except PresetApplyError as e:
            logger.error(f"Failed to {description}: {e}")
            if changed_root is not None:
                global_signals.library_changed.emit(str(changed_root))
            return {"success": False, "error": str(e), "data": e.report.to_dict()}
        except (ModLibraryError, ValueError) as e:
            logger.error(f"Failed to {description}: {e}")
            return {"success": False, "error": str(e)}
        except Exception as e:
            error_msg = f"An unexpected error occurred while trying to {description}: {e}"
            logger.critical(error_msg, exc_info=True)
            return {"success": False, "error": error_msg}

        if changed_root is not None:
            global_signals.library_changed.emit(str(changed_root))
        return {"success": True, "data": data}

    # --- Mods ---
    def list_mods(self, root_path: Path) -> dict:
        return self._run(
            "list mods",
            lambda: [r.to_dict() for r in self.mod_service.scan(Path(root_path), self.categories)],
        )

    def set_thumbnail(self, mod_path: Path, source: str) -> dict:
        mod_path = Path(mod_path)
        return self._run(
            "set thumbnail",
            self.mod_service.set_thumbnail,
            mod_path,
            source,
            changed_root=mod_path.parent,
        )

    def update_mod_info(self, mod: ModRecord | dict) -> dict:
        """Saves metadata and renames the folder if the name or enabled flag changed."""
        record = mod if isinstance(mod, ModRecord) else ModRecord.from_dict(mod)
        return self._run(
            "update mod info",
            lambda: self.mod_service.set_metadata(record.path, record, self.categories).to_dict(),
            changed_root=record.path.parent,
        )

    def set_mod_enabled(self, mod_path: Path, enabled: bool) -> dict:
        mod_path = Path(mod_path)

        def toggle():
            display_name, _ = self.mod_service.parse_folder_name(mod_path.name)
            return self.mod_service.set_enabled(mod_path, enabled, display_name, self.categories).to_dict()

        return self._run("toggle mod", toggle, changed_root=mod_path.parent)

    def delete_mod(self, mod_path: Path) -> dict:
        mod_path = Path(mod_path)
        return self._run("delete mod", self.mod_service.delete_mod, mod_path, changed_root=mod_path.parent)

    def filter_mods(self, mods: Iterable[dict], **criteria: str) -> dict:
        return self._run(
            "filter mods",
            lambda: [
                r.to_dict()
                for r in self.mod_service.filter_mods((ModRecord.from_dict(m) for m in mods), **criteria)
            ],
        )

    def filter_options(self, mods: Iterable[dict]) -> dict:
        return self._run(
            "collect filter options",
            lambda: self.mod_service.filter_options(ModRecord.from_dict(m) for m in mods),
        )

    # --- Ingestion ---
    def download_and_ingest(self, url: str, target_root: Path, progress_callback=None) -> dict:
        target_root = Path(target_root)
        return self._run(
            "download mod",
            lambda: str(self.ingestion_service.download_and_ingest(url, target_root, progress_callback)),
            changed_root=target_root,
        )

    def start_download(
        self,
        url: str,
        target_root: Path,
        on_progress: Callable[[int, int], None] | None = None,
        on_result: Callable[[dict], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ) -> Worker:
        """
        Runs download_and_ingest on the global thread pool and returns the worker.
        `on_progress` receives (downloaded, total) byte counts; `on_result` gets the
        result dict.
        """
        worker = Worker(self.download_and_ingest, url, Path(target_root), with_progress=True)
        if on_progress:
            worker.signals.progress.connect(on_progress)
        if on_result:
            worker.signals.result.connect(on_result)
        if on_error:
            worker.signals.error.connect(on_error)

        logger.info(f"Queueing download of '{url}'")
        QThreadPool.globalInstance().start(worker)
        return worker

    def ingest_local(self, source_path: Path, target_root: Path) -> dict:
        target_root = Path(target_root)
        return self._run(
            "import mod",
            lambda: str(self.ingestion_service.ingest_local(Path(source_path), target_root)),
            changed_root=target_root,
        )

    # --- Presets ---
    def save_preset(self, root: Path, preset_name: str, enabled_ids: Iterable[str]) -> dict:
        return self._run("save preset", self.preset_service.save_preset, Path(root), preset_name, list(enabled_ids))

    def list_presets(self, root: Path) -> dict:
        return self._run(
            "list presets",
            lambda: {
                preset_id: preset.to_dict()
                for preset_id, preset in self.preset_service.list_presets(Path(root)).items()
            },
        )

    def delete_preset(self, root: Path, preset_id: str) -> dict:
        return self._run("delete preset", self.preset_service.delete_preset, Path(root), preset_id)

    def rename_preset(self, root: Path, preset_id: str, new_name: str) -> dict:
        return self._run("rename preset", self.preset_service.rename_preset, Path(root), preset_id, new_name)

    def apply_preset(self, root: Path, preset_id: str) -> dict:
        root = Path(root)
        return self._run(
            "apply preset",
            lambda: self.preset_service.apply_preset(root, preset_id, self.categories).to_dict(),
            changed_root=root,
        )

    def migrate_preset_ids(self, root: Path) -> dict:
        return self._run(
            "migrate preset ids",
            self.preset_service.migrate_folder_name_ids,
            Path(root),
            self.categories,
        )
