# modlib/models/config_model.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path

from modlib.core.constants import DOWNLOAD_TIMEOUT_SECONDS, MAX_DOWNLOAD_BYTES
from .mod_item_model import IdentifierPolicy


@dataclass(frozen=True)
class AppConfig:
    """Holds the application's entire configuration state. Immutable."""

    # --- Library ---
    library_root: Path | None = None
    categories_path: Path | None = None
    identifier_policy: IdentifierPolicy = IdentifierPolicy.SIDECAR
    use_recycle_bin: bool = False

    # --- Downloads ---
    max_download_bytes: int = MAX_DOWNLOAD_BYTES
    download_timeout: float = DOWNLOAD_TIMEOUT_SECONDS

    # --- Logging ---
    log_dir: Path | None = None
