# modlib/utils/system_utils.py
import shutil
import tempfile
import uuid
from pathlib import Path

from send2trash import send2trash

from modlib.core.constants import INVALID_NAME_CHARS, TEMP_EXTRACT_PREFIX
from modlib.core.exceptions import LibraryIOError
from modlib.utils.logger_utils import logger


class SystemUtils:
    """A collection of static utility functions for OS-level interactions."""

    @staticmethod
    def generate_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def sanitize_folder_name(name: str) -> str:
        """Replaces characters that are not allowed in folder names and trims dots/spaces."""
        cleaned = INVALID_NAME_CHARS.sub("_", name)
        return cleaned.strip().strip(".").strip()

    @staticmethod
    def find_available_path(parent: Path, name: str) -> Path:
        """
        Finds an unused child path like 'name', 'name-1', 'name-2', etc.
        """
        path = parent / name
        if not path.exists():
            return path

        i = 1
        while True:
            numbered_path = parent / f"{name}-{i}"
            if not numbered_path.exists():
                return numbered_path
            i += 1

    @staticmethod
    def copy_tree(source: Path, destination: Path, merge: bool = False):
        """
        Recursively copies a directory. Without `merge` the destination must not
        exist; with it, files are written over an existing tree.
        """
        try:
            shutil.copytree(source, destination, dirs_exist_ok=merge)
        except (shutil.Error, OSError) as e:
            raise LibraryIOError(f"Failed to copy '{source}' to '{destination}': {e}") from e

    @staticmethod
    def remove_tree(path: Path):
        """Permanently removes a directory and everything in it."""
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise LibraryIOError(f"Failed to delete '{path}': {e}") from e

    @staticmethod
    def move_to_recycle_bin(path: Path):
        """Moves a file or folder to the system's recycle bin."""
        try:
            send2trash(str(path))
        except OSError as e:
            raise LibraryIOError(f"Failed to move '{path}' to recycle bin: {e}") from e

    @staticmethod
    def cleanup_lingering_temp_folders() -> int:
        """
        Removes leftover extraction folders from interrupted sessions.
        Returns the number of folders removed.
        """
        temp_dir = Path(tempfile.gettempdir())
        logger.info(
            f"Scanning for leftover temporary folders with prefix '{TEMP_EXTRACT_PREFIX}' in '{temp_dir}'..."
        )

        folders_to_delete = [
            d for d in temp_dir.iterdir()
            if d.is_dir() and d.name.startswith(TEMP_EXTRACT_PREFIX)
        ]
        if not folders_to_delete:
            logger.info("No leftover temporary folders found.")
            return 0

        deleted_count = 0
        for folder in folders_to_delete:
            try:
                shutil.rmtree(folder)
                deleted_count += 1
            except OSError as e:
                logger.error(f"Failed to remove leftover temp folder {folder}: {e}")

        logger.info(f"Removed {deleted_count} leftover temporary folder(s).")
        return deleted_count
