# modlib/services/catalog_service.py
import json
from pathlib import Path

from modlib.core.constants import DEFAULT_CATEGORIES
from modlib.core.signals import global_signals
from modlib.utils.logger_utils import logger


class CatalogService:
    """
    Loads the category catalog once. The result is a plain tuple handed to
    every resolve call; nothing here is consulted implicitly.

    Accepted file shapes:
        {"categories": [{"name": "Weapon", "icon": "..."}, ...]}
        {"categories": ["Weapon", ...]}
        ["Weapon", ...]
    """

    def __init__(self, catalog_path: Path | None = None):
        self._catalog_path = catalog_path
        self._user_notified_of_error = False

    def load_catalog(self) -> tuple[str, ...]:
        if self._catalog_path is None:
            return DEFAULT_CATEGORIES

        try:
            logger.info(f"Loading category catalog from: {self._catalog_path}")
            with open(self._catalog_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load or parse category catalog. Error: {e}")
            self._notify_fallback()
            return DEFAULT_CATEGORIES

        entries = raw_data.get("categories", []) if isinstance(raw_data, dict) else raw_data
        if not isinstance(entries, list):
            logger.error("Category catalog has no 'categories' list.")
            self._notify_fallback()
            return DEFAULT_CATEGORIES

        names = []
        for entry in entries:
            name = entry.get("name") if isinstance(entry, dict) else entry
            if not isinstance(name, str):
                continue
            name = name.strip()
            if name and name not in names:
                names.append(name)

        logger.info(f"Category catalog loaded with {len(names)} categories.")
        return tuple(names)

    def _notify_fallback(self):
        if not self._user_notified_of_error:
            global_signals.toast_requested.emit(
                "Warning: category catalog is missing or corrupted. Using built-in categories.",
                "warning",
            )
            self._user_notified_of_error = True
