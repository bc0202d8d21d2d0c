# modlib/services/__init__.py
from .archive_service import ArchiveService, RootLayout
from .catalog_service import CatalogService
from .config_service import ConfigSaveError, ConfigService
from .ingestion_service import IngestionService
from .library_service import LibraryService
from .mod_service import ModService
from .preset_service import PresetService
from .sidecar_service import SidecarService

__all__ = [
    "ArchiveService",
    "RootLayout",
    "CatalogService",
    "ConfigSaveError",
    "ConfigService",
    "IngestionService",
    "LibraryService",
    "ModService",
    "PresetService",
    "SidecarService",
]
