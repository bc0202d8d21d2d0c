# modlib/services/config_service.py
import json
from pathlib import Path
from typing import Any

from modlib.core.exceptions import LibraryIOError
from modlib.models.config_model import AppConfig
from modlib.models.mod_item_model import IdentifierPolicy
from modlib.utils.logger_utils import logger


class ConfigSaveError(LibraryIOError):
    pass


class ConfigService:
    """Manages all read/write operations for the config.json file."""

    def __init__(self, config_path: Path):
        # --- Service Setup ---
        self.config_path = config_path

    def load_config(self) -> AppConfig:
        """
        Loads the entire configuration from config.json.
        Missing or unparsable files give a default AppConfig; bad single values
        fall back to their default.
        """
        if not self.config_path.exists():
            logger.warning(
                f"Config file not found at '{self.config_path}'. Returning default config."
            )
            return AppConfig()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.error(f"Failed to parse config.json: {e}. Returning default config.")
            return AppConfig()

        if not isinstance(data, dict):
            logger.error("config.json does not contain an object. Returning default config.")
            return AppConfig()

        defaults = AppConfig()

        # --- Parse [library] object ---
        library = self._section(data, "library")
        library_root = self._optional_path(library.get("library_root"))
        categories_path = self._optional_path(library.get("categories_path"))
        use_recycle_bin = bool(library.get("use_recycle_bin", defaults.use_recycle_bin))

        policy_value = library.get("identifier_policy", defaults.identifier_policy.value)
        try:
            identifier_policy = IdentifierPolicy(policy_value)
        except ValueError:
            logger.warning(f"Unknown identifier_policy '{policy_value}'. Using '{defaults.identifier_policy.value}'.")
            identifier_policy = defaults.identifier_policy

        # --- Parse [downloads] object ---
        downloads = self._section(data, "downloads")
        max_download_bytes = self._positive_number(
            downloads.get("max_download_bytes"), defaults.max_download_bytes, "max_download_bytes", int
        )
        download_timeout = self._positive_number(
            downloads.get("download_timeout"), defaults.download_timeout, "download_timeout", float
        )

        # --- Parse [logging] object ---
        log_dir = self._optional_path(self._section(data, "logging").get("log_dir"))

        logger.info("Successfully loaded configuration from config.json.")
        return AppConfig(
            library_root=library_root,
            categories_path=categories_path,
            identifier_policy=identifier_policy,
            use_recycle_bin=use_recycle_bin,
            max_download_bytes=max_download_bytes,
            download_timeout=download_timeout,
            log_dir=log_dir,
        )

    @staticmethod
    def _section(data: dict, name: str) -> dict:
        section = data.get(name, {})
        if not isinstance(section, dict):
            logger.warning(f"Section '{name}' in config.json is not an object. Ignoring it.")
            return {}
        return section

    @staticmethod
    def _optional_path(value) -> Path | None:
        return Path(value) if isinstance(value, str) and value else None

    @staticmethod
    def _positive_number(value, default, key: str, kind):
        if value is None:
            return default
        try:
            number = kind(value)
        except (TypeError, ValueError):
            number = 0
        if number <= 0:
            logger.warning(f"{key} must be a positive number, got {value!r}. Using {default}.")
            return default
        return number

    def save_config(self, config: AppConfig):
        """
        Saves the entire AppConfig object to the config.json file.
        """
        logger.info(f"Saving configuration to {self.config_path}...")

        config_data = {
            "library": {
                "library_root": str(config.library_root) if config.library_root else None,
                "categories_path": str(config.categories_path) if config.categories_path else None,
                "identifier_policy": config.identifier_policy.value,
                "use_recycle_bin": config.use_recycle_bin,
            },
            "downloads": {
                "max_download_bytes": config.max_download_bytes,
                "download_timeout": config.download_timeout,
            },
            "logging": {
                "log_dir": str(config.log_dir) if config.log_dir else None,
            },
        }

        try:
            text = json.dumps(config_data, indent=4)
        except TypeError as e:
            logger.error(f"TypeError during JSON serialization: {e}", exc_info=True)
            raise ConfigSaveError(f"A data type could not be saved to JSON: {e}") from e

        try:
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(text)
        except OSError as e:
            logger.error(f"IOError while saving config: {e}", exc_info=True)
            raise ConfigSaveError(f"Failed to write to config file: {e}") from e

        logger.info("Configuration saved successfully to config.json.")

    def save_setting(self, key: str, value: Any, section: str = "library"):
        """
        Saves a single key-value pair to the config.json file.
        This operation reads the entire file, updates one value, and writes it back.
        """
        section = section.lower()

        try:
            if self.config_path.exists():
                with open(self.config_path, "r", encoding="utf-8") as f:
                    config_data = json.load(f)
            else:
                config_data = {"library": {}, "downloads": {}, "logging": {}}

            config_data.setdefault(section, {})[key] = value

            with open(self.config_path, "w", encoding="utf-8") as f:
                json.dump(config_data, f, indent=4)

            logger.info(f"Saved setting: [{section}] {key} = {value}")

        except (OSError, TypeError, json.JSONDecodeError) as e:
            logger.error(f"Failed to save setting '{key}' to config file: {e}")
            raise ConfigSaveError(f"Failed to update setting '{key}': {e}") from e
