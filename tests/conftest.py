from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest

from modlib.services import (
    ArchiveService,
    IngestionService,
    LibraryService,
    ModService,
    PresetService,
    SidecarService,
)
from modlib.utils import ImageUtils, SystemUtils
from modlib.utils.logger_utils import configure_logging

CATEGORIES = ("Weapon", "Character", "UI")


@pytest.fixture(scope="session", autouse=True)
def _log_to_temp(tmp_path_factory: pytest.TempPathFactory) -> None:
    # Keep log files out of the working tree
    configure_logging(tmp_path_factory.mktemp("logs"))


class FakeResponse:
    """Just enough of requests.Response for streaming downloads."""

    def __init__(
        self,
        body: bytes = b"",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
        chunk_size: int = 4,
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.reason = "OK" if status_code < 400 else "Not Found"
        self.headers = headers or {}
        self._chunk_size = chunk_size
        self.closed = False

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def iter_content(self, chunk_size: int = 1):
        for start in range(0, len(self.body), self._chunk_size):
            yield self.body[start : start + self._chunk_size]

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class ProgressRecorder:
    """Stands in for a pyqtSignal(int, int)."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, int]] = []

    def emit(self, downloaded: int, total: int) -> None:
        self.calls.append((downloaded, total))


def make_zip(entries: Dict[str, Optional[bytes]]) -> bytes:
    """Builds a ZIP in memory. A value of None adds a directory entry."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            if content is None:
                archive.writestr(zipfile.ZipInfo(name), b"")
            else:
                archive.writestr(name, content)
    return buffer.getvalue()


def make_mod(root: Path, folder_name: str, sidecar: Optional[dict] = None) -> Path:
    mod_dir = root / folder_name
    mod_dir.mkdir(parents=True)
    (mod_dir / "payload.txt").write_text("data", encoding="utf-8")
    if sidecar is not None:
        (mod_dir / "mod.json").write_text(json.dumps(sidecar), encoding="utf-8")
    return mod_dir


def read_sidecar(mod_dir: Path) -> dict:
    return json.loads((mod_dir / "mod.json").read_text(encoding="utf-8"))


@pytest.fixture
def library(tmp_path: Path) -> Path:
    root = tmp_path / "mods"
    root.mkdir()
    return root


@pytest.fixture
def sidecar_service() -> SidecarService:
    return SidecarService()


@pytest.fixture
def mod_service(sidecar_service: SidecarService) -> ModService:
    return ModService(sidecar_service, ImageUtils(), SystemUtils())


@pytest.fixture
def ingestion_service(sidecar_service: SidecarService) -> IngestionService:
    return IngestionService(ArchiveService(), sidecar_service, SystemUtils(), max_download_bytes=1024)


@pytest.fixture
def preset_service(mod_service: ModService, sidecar_service: SidecarService) -> PresetService:
    return PresetService(mod_service, sidecar_service, SystemUtils())


@pytest.fixture
def library_service(
    mod_service: ModService,
    ingestion_service: IngestionService,
    preset_service: PresetService,
) -> LibraryService:
    return LibraryService(mod_service, ingestion_service, preset_service, CATEGORIES)
