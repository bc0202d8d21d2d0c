# modlib/services/mod_service.py
import dataclasses
import os
from pathlib import Path
from typing import Iterable, Sequence, Tuple

from modlib.core.constants import (
    DISABLED_PREFIX,
    FILTERABLE_FIELDS,
    THUMBNAIL_FILE_NAME,
    VERSION_PATTERN,
)
from modlib.core.exceptions import (
    InvalidImage,
    InvalidPath,
    LibraryIOError,
    LibraryNotADirectory,
    ModLibraryError,
    RenameFailed,
)
from modlib.models.mod_item_model import (
    IdentifierPolicy,
    ModRecord,
    ModSidecar,
    ModStatus,
)
from modlib.utils.image_utils import ImageUtils
from modlib.utils.logger_utils import logger
from modlib.utils.system_utils import SystemUtils

from .sidecar_service import SidecarService


class ModService:
    """Handles all file system and sidecar operations for single mods and a library scan."""

    def __init__(
        self,
        sidecar_service: SidecarService,
        image_utils: ImageUtils,
        system_utils: SystemUtils,
        identifier_policy: IdentifierPolicy = IdentifierPolicy.SIDECAR,
        use_recycle_bin: bool = False,
    ):
        # --- Injected Services & Utilities ---
        self.sidecar_service = sidecar_service
        self.image_utils = image_utils
        self.system_utils = system_utils
        self.identifier_policy = identifier_policy
        self.use_recycle_bin = use_recycle_bin

    # --- Naming Rules ---
    @staticmethod
    def parse_folder_name(folder_name: str) -> Tuple[str, ModStatus]:
        """Returns (display_name, status) for a folder base name."""
        if folder_name.startswith(DISABLED_PREFIX):
            return folder_name[len(DISABLED_PREFIX):], ModStatus.DISABLED
        return folder_name, ModStatus.ENABLED

    @staticmethod
    def folder_name_for(display_name: str, enabled: bool) -> str:
        return display_name if enabled else f"{DISABLED_PREFIX}{display_name}"

    @staticmethod
    def parse_version(folder_name: str) -> str:
        match = VERSION_PATTERN.search(folder_name)
        return match.group(1) if match else ""

    @staticmethod
    def match_category(display_name: str, categories: Sequence[str]) -> str:
        """First catalog entry contained (case-insensitively) in the display name."""
        lowered = display_name.lower()
        for category in categories:
            if category and category.lower() in lowered:
                return category
        return ""

    # --- Resolve & Scan ---
    def resolve(self, mod_dir: Path, categories: Sequence[str]) -> ModRecord:
        """
        Builds the record for one mod folder. The only write is the one-time
        identifier backfill into mod.json.
        """
        if not mod_dir.is_dir():
            raise InvalidPath(f"Mod directory does not exist: {mod_dir}")

        folder_name = mod_dir.name
        display_name, status = self.parse_folder_name(folder_name)
        sidecar = self.sidecar_service.load_sidecar(mod_dir)

        if self.identifier_policy is IdentifierPolicy.FOLDER_NAME:
            mod_id = folder_name
        else:
            mod_id = sidecar.id
            if not mod_id:
                mod_id = self.system_utils.generate_id()
                logger.info(f"Assigning identifier {mod_id} to '{folder_name}'")
                self.sidecar_service.save_sidecar(
                    mod_dir, dataclasses.replace(sidecar, id=mod_id)
                )

        name = sidecar.name or display_name
        thumbnail_path = mod_dir / THUMBNAIL_FILE_NAME

        return ModRecord(
            id=mod_id,
            name=name,
            path=mod_dir.absolute(),
            enabled=status is ModStatus.ENABLED,
            author=sidecar.author,
            description=sidecar.description,
            version=sidecar.version or self.parse_version(folder_name),
            category=sidecar.category or self.match_category(name, categories),
            url=sidecar.url,
            thumbnail=str(thumbnail_path.absolute()) if thumbnail_path.is_file() else "",
        )

    def scan(self, root: Path, categories: Sequence[str]) -> list[ModRecord]:
        """
        Resolves every immediate subdirectory of `root`, in enumeration order.
        A mod that fails to resolve is skipped; failing to list `root` aborts.
        """
        if not root.is_dir():
            raise LibraryNotADirectory(f"Invalid directory path: {root}")

        logger.info(f"Scanning mod library '{root}'")
        records = []
        try:
            with os.scandir(root) as it:
                entries = [Path(entry.path) for entry in it if entry.is_dir()]
        except OSError as e:
            logger.error(f"Failed to list library '{root}': {e}")
            raise LibraryIOError(f"Failed to read directory '{root}': {e}") from e

        for mod_dir in entries:
            try:
                records.append(self.resolve(mod_dir, categories))
            except (ModLibraryError, OSError) as e:
                logger.warning(f"Skipping '{mod_dir.name}': {e}")

        logger.info(f"Found {len(records)} mod(s) in '{root}'")
        return records

    # --- Activation & Metadata ---
    def set_enabled(
        self,
        mod_dir: Path,
        enabled: bool,
        display_name: str,
        categories: Sequence[str],
    ) -> ModRecord:
        """
        Renames the folder so its name encodes `enabled` and `display_name`,
        then returns the record re-read from the new location.
        """
        if not mod_dir.is_dir():
            raise InvalidPath(f"Mod directory does not exist: {mod_dir}")
        self._check_display_name(display_name)

        desired_name = self.folder_name_for(display_name, enabled)
        new_dir = mod_dir
        if mod_dir.name != desired_name:
            new_dir = mod_dir.with_name(desired_name)
            # os.rename silently replaces an empty directory on POSIX
            if new_dir.exists() and not self._is_same_folder(mod_dir, new_dir):
                raise RenameFailed(f"Folder name conflict: '{desired_name}' already exists.")

            logger.info(f"Renaming '{mod_dir.name}' to '{desired_name}'")
            try:
                os.rename(mod_dir, new_dir)
            except OSError as e:
                logger.error(f"Rename of '{mod_dir.name}' failed: {e}")
                raise RenameFailed(f"Could not rename '{mod_dir.name}' to '{desired_name}': {e}") from e

        # A name stored by older sidecars would hide the new folder name
        sidecar = self.sidecar_service.load_sidecar(new_dir)
        if sidecar.name and sidecar.name != display_name:
            self.sidecar_service.save_sidecar(new_dir, dataclasses.replace(sidecar, name=""))

        return self.resolve(new_dir, categories)

    @staticmethod
    def _check_display_name(display_name: str):
        """
        A display name must map to exactly one folder next to the current one
        and must read back unchanged from that folder name. Characters that only
        some platforms refuse are left to the rename itself.
        """
        if not display_name or display_name in (".", ".."):
            raise InvalidPath(f"'{display_name}' is not a valid mod folder name.")
        if any(sep in display_name for sep in ("/", "\\", "\x00")):
            raise InvalidPath(f"'{display_name}' must not contain path separators.")
        if display_name.startswith(DISABLED_PREFIX):
            raise InvalidPath(f"'{display_name}' must not start with '{DISABLED_PREFIX}'.")

    @staticmethod
    def _is_same_folder(a: Path, b: Path) -> bool:
        try:
            return os.path.samefile(a, b)
        except OSError:
            return False

    def set_metadata(
        self, mod_dir: Path, fields: ModRecord, categories: Sequence[str]
    ) -> ModRecord:
        """
        Overwrites mod.json with the editable fields of `fields`, then applies
        its name and enabled flag through set_enabled.
        """
        if not mod_dir.is_dir():
            raise InvalidPath(f"Mod directory does not exist: {mod_dir}")

        existing = self.sidecar_service.load_sidecar(mod_dir)
        mod_id = existing.id
        if not mod_id and self.identifier_policy is IdentifierPolicy.SIDECAR:
            mod_id = fields.id

        sidecar = ModSidecar(
            id=mod_id,
            author=fields.author,
            description=fields.description,
            version=fields.version,
            category=fields.category,
            url=fields.url,
        )
        self.sidecar_service.save_sidecar(mod_dir, sidecar)
        logger.info(f"Saved metadata for '{mod_dir.name}'")

        return self.set_enabled(mod_dir, fields.enabled, fields.name, categories)

    # --- Thumbnail & Deletion ---
    def set_thumbnail(self, mod_dir: Path, source: str):
        """
        Stores `source` (an image file path or base64 image data) as the mod's
        thumbnail.png.
        """
        if not mod_dir.is_dir():
            raise InvalidPath(f"Mod directory does not exist: {mod_dir}")
        if not source:
            raise InvalidImage("No thumbnail provided.")

        if source.startswith("data:"):
            image = self.image_utils.decode_base64_image(source)
        elif self._is_existing_file(source):
            image = self.image_utils.open_image(Path(source))
        else:
            try:
                image = self.image_utils.decode_base64_image(source)
            except InvalidImage as e:
                raise InvalidImage(
                    f"Thumbnail source is neither an existing file nor image data: {e}"
                ) from e

        self.image_utils.save_thumbnail(image, mod_dir / THUMBNAIL_FILE_NAME)

    @staticmethod
    def _is_existing_file(source: str) -> bool:
        try:
            return Path(source).is_file()
        except (OSError, ValueError):
            # Long base64 strings can exceed the OS path limits
            return False

    def delete_mod(self, mod_dir: Path):
        if not mod_dir.is_dir():
            raise InvalidPath(f"Mod directory does not exist: {mod_dir}")

        if self.use_recycle_bin:
            logger.info(f"Moving mod folder to recycle bin: {mod_dir}")
            self.system_utils.move_to_recycle_bin(mod_dir)
        else:
            logger.info(f"Deleting mod folder: {mod_dir}")
            self.system_utils.remove_tree(mod_dir)

    # --- Filtering ---
    @staticmethod
    def _field_string(record: ModRecord, key: str) -> str:
        value = getattr(record, key)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    @staticmethod
    def filter_options(records: Iterable[ModRecord]) -> dict[str, list[str]]:
        """Distinct non-empty values per filterable field, sorted."""
        options: dict[str, set[str]] = {key: set() for key in FILTERABLE_FIELDS}
        for record in records:
            for key in FILTERABLE_FIELDS:
                value = ModService._field_string(record, key)
                if value:
                    options[key].add(value)
        return {key: sorted(values) for key, values in options.items()}

    @staticmethod
    def filter_mods(records: Iterable[ModRecord], **criteria: str) -> list[ModRecord]:
        """Keeps records matching every non-empty criterion exactly."""
        unknown = set(criteria) - set(FILTERABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot filter on: {', '.join(sorted(unknown))}")

        active = {key: value for key, value in criteria.items() if value}
        return [
            record
            for record in records
            if all(ModService._field_string(record, k) == v for k, v in active.items())
        ]
