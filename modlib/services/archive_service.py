# modlib/services/archive_service.py
import io
import posixpath
import shutil
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from modlib.core.constants import WRAPPER_NAME_PARTS, WRAPPER_PREFIX, ZIP_MAGIC
from modlib.core.exceptions import InvalidArchive, LibraryIOError
from modlib.utils.logger_utils import logger
from modlib.utils.system_utils import SystemUtils


@dataclass(frozen=True)
class RootLayout:
    """
    Top-level structure of an archive. `root` is set only when every entry
    shares the same first path component.
    """

    root: str | None

    @property
    def is_single_root(self) -> bool:
        return self.root is not None


MULTI_ROOT = RootLayout(root=None)


class ArchiveService:
    """Inspects and extracts ZIP payloads. Never touches the library by itself."""

    @staticmethod
    def is_zip(data: bytes) -> bool:
        """True iff the payload starts with the ZIP local-file-header magic."""
        return len(data) >= len(ZIP_MAGIC) and data[: len(ZIP_MAGIC)] == ZIP_MAGIC

    @staticmethod
    def open_zip(data: bytes) -> zipfile.ZipFile:
        try:
            return zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, ValueError, EOFError) as e:
            raise InvalidArchive(
                f"Invalid ZIP archive: {e}. Possible causes: "
                "1) File is corrupted 2) Not a ZIP file 3) Download was interrupted"
            ) from e

    @staticmethod
    def _components(entry_name: str) -> list[str]:
        """Path parts of an entry name, without empty and "." parts."""
        return [p for p in entry_name.replace("\\", "/").split("/") if p and p != "."]

    @staticmethod
    def _first_component(entry_name: str) -> str:
        parts = ArchiveService._components(entry_name)
        return parts[0] if parts else ""

    @staticmethod
    def classify_roots(entry_names: Iterable[str]) -> RootLayout:
        """
        Collects the first path component of each entry and stops as soon as a
        second distinct one shows up.
        """
        roots: set[str] = set()
        for name in entry_names:
            first = ArchiveService._first_component(name)
            if not first:
                continue
            roots.add(first)
            if len(roots) > 1:
                return MULTI_ROOT
        if len(roots) == 1:
            return RootLayout(root=roots.pop())
        return MULTI_ROOT

    @staticmethod
    def entry_names(archive: zipfile.ZipFile) -> list[str]:
        try:
            return [info.filename for info in archive.infolist()]
        except (zipfile.BadZipFile, OSError) as e:
            raise InvalidArchive(f"Could not read archive entries: {e}") from e

    @staticmethod
    def root_is_folder(entry_names: list[str], root: str) -> bool:
        """A single root counts as a mod folder only if some entry lives beneath it."""
        for name in entry_names:
            parts = ArchiveService._components(name)
            if len(parts) > 1 and parts[0] == root:
                return True
        return False

    @staticmethod
    def wrapper_name(entry_names: list[str]) -> str:
        """Name for the folder that wraps a multi-root archive."""
        name_parts = []
        for name in entry_names[:WRAPPER_NAME_PARTS]:
            parts = ArchiveService._components(name)
            base = SystemUtils.sanitize_folder_name(parts[-1]) if parts else ""
            if base:
                name_parts.append(base)
        if name_parts:
            return WRAPPER_PREFIX + "_".join(name_parts)
        return WRAPPER_PREFIX + SystemUtils.generate_id().replace("-", "")[:8]

    @staticmethod
    def _safe_target(extraction_dir: Path, entry_name: str) -> Path:
        normalized = posixpath.normpath(entry_name.replace("\\", "/"))
        if (
            normalized.startswith("/")
            or normalized == ".."
            or normalized.startswith("../")
            or ":" in normalized.split("/")[0]
        ):
            raise InvalidArchive(f"Archive entry '{entry_name}' points outside the extraction folder.")
        return extraction_dir / normalized

    @staticmethod
    def extract(archive: zipfile.ZipFile, extraction_dir: Path) -> int:
        """
        Extracts every entry below `extraction_dir`. Not transactional: entries
        written before a failure stay on disk. Returns the number of files written.
        """
        written = 0
        try:
            extraction_dir.mkdir(parents=True, exist_ok=True)
            for info in archive.infolist():
                target = ArchiveService._safe_target(extraction_dir, info.filename)
                if info.filename.endswith("/"):
                    target.mkdir(parents=True, exist_ok=True)
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(info) as source, open(target, "wb") as out:
                    shutil.copyfileobj(source, out)
                written += 1
        except (zipfile.BadZipFile, RuntimeError, EOFError) as e:
            raise InvalidArchive(f"Could not read archive entry: {e}") from e
        except OSError as e:
            raise LibraryIOError(f"Failed to extract into '{extraction_dir}': {e}") from e

        logger.info(f"Extracted {written} file(s) into '{extraction_dir}'")
        return written
