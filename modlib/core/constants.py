# modlib/core/constants.py
import re

# --- Application Info ---
APP_NAME: str = "Mod Library Manager"
APP_VERSION: str = "0.1.0"

# --- Folder Naming Conventions ---
# A folder is disabled if and only if its base name starts with this literal.
DISABLED_PREFIX: str = "disabled "
VERSION_PATTERN = re.compile(r"v?\.?(\d+\.\d+)", re.IGNORECASE)
# Characters that cannot appear in a folder name on any supported platform
INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

# --- File & Directory Names ---
CONFIG_FILE_NAME: str = "config.json"
SIDECAR_FILE_NAME: str = "mod.json"
PRESETS_FILE_NAME: str = "presets.json"
THUMBNAIL_FILE_NAME: str = "thumbnail.png"
LOG_DIR_NAME: str = "logs"
TEMP_EXTRACT_PREFIX: str = "MODLIB_extract_"

# --- Archive Constants ---
ZIP_MAGIC: bytes = b"PK\x03\x04"
WRAPPER_PREFIX: str = "mod_"
WRAPPER_NAME_PARTS: int = 3
RAW_PAYLOAD_FALLBACK_NAME: str = "payload.bin"

# --- Download Constants ---
MAX_DOWNLOAD_BYTES: int = 100 * 1024 * 1024
DOWNLOAD_TIMEOUT_SECONDS: float = 30.0
DOWNLOAD_CHUNK_SIZE: int = 8192

# --- Thumbnail Constants ---
THUMBNAIL_MAX_SIZE: tuple[int, int] = (1280, 720)

# --- Category Catalog ---
DEFAULT_CATEGORIES: tuple[str, ...] = (
    "Character",
    "Weapon",
    "UI",
    "Map",
    "Audio",
    "Texture",
    "Gameplay",
    "Other",
)

# --- Filtering ---
FILTERABLE_FIELDS: tuple[str, ...] = ("author", "category", "version", "enabled")
