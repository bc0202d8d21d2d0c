# modlib/services/ingestion_service.py
import dataclasses
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse

import patoolib
import requests
from patoolib.util import PatoolError

from modlib.core.constants import (
    DOWNLOAD_CHUNK_SIZE,
    DOWNLOAD_TIMEOUT_SECONDS,
    MAX_DOWNLOAD_BYTES,
    RAW_PAYLOAD_FALLBACK_NAME,
    TEMP_EXTRACT_PREFIX,
    WRAPPER_PREFIX,
)
from modlib.core.exceptions import (
    HttpError,
    InvalidArchive,
    InvalidPath,
    LibraryIOError,
    PayloadTooLarge,
    RenameFailed,
)
from modlib.utils.logger_utils import logger
from modlib.utils.system_utils import SystemUtils

from .archive_service import ArchiveService, RootLayout
from .sidecar_service import SidecarService

_CONTENT_DISPOSITION_FILENAME = re.compile(r'filename\*?=(?:UTF-8\'\')?"?([^";]+)"?', re.IGNORECASE)


@dataclass(frozen=True)
class DownloadedPayload:
    data: bytes
    file_name: str = ""


class IngestionService:
    """
    Turns downloaded bytes, local folders and local archives into mod folders
    under a library root. None of these operations are transactional; a
    failure leaves whatever was already written in place.
    """

    def __init__(
        self,
        archive_service: ArchiveService,
        sidecar_service: SidecarService,
        system_utils: SystemUtils,
        max_download_bytes: int = MAX_DOWNLOAD_BYTES,
        download_timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
    ):
        # --- Injected Services & Utilities ---
        self.archive_service = archive_service
        self.sidecar_service = sidecar_service
        self.system_utils = system_utils
        self.max_download_bytes = max_download_bytes
        self.download_timeout = download_timeout

    # --- Download ---
    def download_archive(self, url: str, progress_callback=None) -> DownloadedPayload:
        """
        Streams `url` into memory. Reports (downloaded, total) through
        `progress_callback.emit` after every chunk; total is 0 when the server
        sends no Content-Length.
        """
        logger.info(f"Downloading '{url}'")
        try:
            response = requests.get(url, stream=True, timeout=self.download_timeout)
        except requests.RequestException as e:
            raise HttpError(f"Failed to download: {e}") from e

        with response:
            if not response.ok:
                raise HttpError(f"HTTP error: {response.status_code} {response.reason}")

            total = self._content_length(response)
            if total > self.max_download_bytes:
                raise PayloadTooLarge(total, self.max_download_bytes)

            buffer = bytearray()
            try:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if not chunk:
                        continue
                    buffer.extend(chunk)
                    if len(buffer) > self.max_download_bytes:
                        raise PayloadTooLarge(len(buffer), self.max_download_bytes)
                    if progress_callback:
                        progress_callback.emit(len(buffer), total)
            except requests.RequestException as e:
                raise HttpError(f"Failed to read response: {e}") from e

            file_name = self._file_name_from_response(response, url)

        logger.info(f"Downloaded {len(buffer)} bytes from '{url}'")
        return DownloadedPayload(data=bytes(buffer), file_name=file_name)

    @staticmethod
    def _content_length(response) -> int:
        try:
            return max(int(response.headers.get("Content-Length", 0)), 0)
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def _file_name_from_response(response, url: str) -> str:
        disposition = response.headers.get("Content-Disposition", "")
        match = _CONTENT_DISPOSITION_FILENAME.search(disposition)
        if match:
            return unquote(match.group(1).strip())
        return unquote(Path(urlparse(url).path).name)

    def download_and_ingest(self, url: str, target_root: Path, progress_callback=None) -> Path:
        if not target_root.is_dir():
            raise InvalidPath(f"Library directory does not exist: {target_root}")
        payload = self.download_archive(url, progress_callback=progress_callback)
        return self.ingest_from_bytes(
            payload.data,
            self.max_download_bytes,
            target_root,
            url,
            file_name_hint=payload.file_name,
        )

    # --- Bytes ---
    def ingest_from_bytes(
        self,
        data: bytes,
        size_limit: int,
        target_root: Path,
        origin_url: str | None,
        file_name_hint: str = "",
    ) -> Path:
        """
        Places `data` under `target_root` and returns the resulting mod folder.

        A ZIP whose entries all sit in one folder is extracted as-is, so that
        folder becomes the mod. Any other ZIP is wrapped in a new folder. Non-ZIP
        data is stored as a single file in a new folder.
        """
        if len(data) > size_limit:
            raise PayloadTooLarge(len(data), size_limit)
        if not target_root.is_dir():
            raise InvalidPath(f"Library directory does not exist: {target_root}")

        if not self.archive_service.is_zip(data):
            mod_dir = self._store_raw_file(data, target_root, file_name_hint)
        else:
            mod_dir = self._extract_zip(data, target_root)

        self._stamp_sidecar(mod_dir, origin_url)
        return mod_dir

    def _store_raw_file(self, data: bytes, target_root: Path, file_name_hint: str) -> Path:
        file_name = self.system_utils.sanitize_folder_name(file_name_hint)
        folder_name = self.system_utils.sanitize_folder_name(Path(file_name).stem) if file_name else ""
        if not folder_name:
            folder_name = WRAPPER_PREFIX + self.system_utils.generate_id().replace("-", "")[:8]

        mod_dir = self.system_utils.find_available_path(target_root, folder_name)
        logger.info(f"Payload is not a ZIP archive. Storing it as a single file in '{mod_dir.name}'")
        try:
            mod_dir.mkdir()
            (mod_dir / (file_name or RAW_PAYLOAD_FALLBACK_NAME)).write_bytes(data)
        except OSError as e:
            raise LibraryIOError(f"Failed to write '{mod_dir}': {e}") from e
        return mod_dir

    def _extract_zip(self, data: bytes, target_root: Path) -> Path:
        with self.archive_service.open_zip(data) as archive:
            names = self.archive_service.entry_names(archive)
            if not names:
                raise InvalidArchive("The provided archive is empty.")

            layout = self.archive_service.classify_roots(names)
            if self._is_direct_root(names, layout, target_root):
                logger.info(f"Archive contains a single root folder ('{layout.root}'). Extracting directly.")
                mod_dir = target_root / layout.root
                self.archive_service.extract(archive, target_root)
            else:
                mod_dir = self.system_utils.find_available_path(
                    target_root, self.archive_service.wrapper_name(names)
                )
                logger.info(f"Archive contains multiple root items. Wrapping them in '{mod_dir.name}'.")
                self.archive_service.extract(archive, mod_dir)
        return mod_dir

    def _is_direct_root(self, names: list[str], layout: RootLayout, target_root: Path) -> bool:
        """True when the archive's single root can become a folder directly below `target_root`."""
        if not layout.is_single_root or not self.archive_service.root_is_folder(names, layout.root):
            return False
        return (target_root / layout.root).resolve().parent == target_root.resolve()

    def _stamp_sidecar(self, mod_dir: Path, origin_url: str | None = None):
        """Records the origin url (when given) and makes sure an identifier exists."""
        sidecar = self.sidecar_service.load_sidecar(mod_dir)
        changes = {}
        if origin_url is not None:
            changes["url"] = origin_url
        if not sidecar.id:
            changes["id"] = self.system_utils.generate_id()
        if changes:
            self.sidecar_service.save_sidecar(mod_dir, dataclasses.replace(sidecar, **changes))

    # --- Local sources ---
    def ingest_local(self, source: Path, target_root: Path) -> Path:
        """
        Moves a local mod folder into the library, or installs a local archive
        file. A moved folder never merges into an existing one; archives are
        placed the same way downloaded ZIPs are.
        """
        if not target_root.is_dir():
            raise InvalidPath(f"Library directory does not exist: {target_root}")
        if not source.exists():
            raise InvalidPath(f"Source does not exist: {source}")

        if source.is_dir():
            return self._move_folder(source, target_root)

        try:
            with open(source, "rb") as f:
                header = f.read(4)
        except OSError as e:
            raise LibraryIOError(f"Failed to read '{source}': {e}") from e

        if self.archive_service.is_zip(header):
            try:
                data = source.read_bytes()
            except OSError as e:
                raise LibraryIOError(f"Failed to read '{source}': {e}") from e
            # Local files are not subject to the download ceiling
            return self.ingest_from_bytes(data, len(data), target_root, None, file_name_hint=source.name)

        if patoolib.is_archive(str(source)):
            return self._extract_other_archive(source, target_root)

        raise InvalidArchive(f"Unsupported file type: {source.name}")

    def _move_folder(self, source: Path, target_root: Path) -> Path:
        destination = target_root / source.name
        if destination.exists():
            raise RenameFailed(f"Folder '{source.name}' already exists in the library.")

        logger.info(f"Copying folder from '{source}' to '{destination}'")
        self.system_utils.copy_tree(source, destination)
        self.system_utils.remove_tree(source)
        self._stamp_sidecar(destination)
        return destination

    def _extract_other_archive(self, source: Path, target_root: Path) -> Path:
        logger.info(f"Extracting archive '{source.name}'...")
        try:
            with tempfile.TemporaryDirectory(prefix=TEMP_EXTRACT_PREFIX) as temp_dir:
                temp_path = Path(temp_dir)
                patoolib.extract_archive(
                    str(source), outdir=str(temp_path), verbosity=-1, interactive=False
                )

                extracted_contents = list(temp_path.iterdir())
                if not extracted_contents:
                    raise InvalidArchive("The provided archive is empty.")

                # Same placement as a ZIP: one folder lands as-is, anything else is wrapped
                if len(extracted_contents) == 1 and extracted_contents[0].is_dir():
                    source_for_copy = extracted_contents[0]
                    destination = target_root / source_for_copy.name
                    logger.info(f"Archive contains a single root folder ('{destination.name}'). Copying directly.")
                else:
                    source_for_copy = temp_path
                    destination = self.system_utils.find_available_path(
                        target_root,
                        self.archive_service.wrapper_name(sorted(p.name for p in extracted_contents)),
                    )
                    logger.info(f"Archive contains multiple root items. Wrapping them in '{destination.name}'.")

                self.system_utils.copy_tree(source_for_copy, destination, merge=True)

        except PatoolError as e:
            error_str = str(e).lower()
            if "password" in error_str:
                raise InvalidArchive(f"Archive '{source.name}' is password-protected.") from e
            raise InvalidArchive(f"Archive Error: {source.name}. It may be corrupt. ({e})") from e

        self._stamp_sidecar(destination)
        return destination
