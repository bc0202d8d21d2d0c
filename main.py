# main.py
import argparse
import json
import sys
from pathlib import Path

from modlib.core.constants import APP_NAME, APP_VERSION, CONFIG_FILE_NAME, LOG_DIR_NAME
from modlib.models.config_model import AppConfig
from modlib.services import (
    ArchiveService,
    CatalogService,
    ConfigService,
    IngestionService,
    LibraryService,
    ModService,
    PresetService,
    SidecarService,
)
from modlib.utils import ImageUtils, SystemUtils
from modlib.utils.logger_utils import configure_logging, logger


def build_library_service(config: AppConfig) -> LibraryService:
    """Composition root: creates and wires all services for one configuration."""
    # Services with no or minimal dependencies first.
    sidecar_service = SidecarService()
    archive_service = ArchiveService()
    system_utils = SystemUtils()
    image_utils = ImageUtils()
    categories = CatalogService(config.categories_path).load_catalog()

    # Services that depend on other services.
    mod_service = ModService(
        sidecar_service=sidecar_service,
        image_utils=image_utils,
        system_utils=system_utils,
        identifier_policy=config.identifier_policy,
        use_recycle_bin=config.use_recycle_bin,
    )
    ingestion_service = IngestionService(
        archive_service=archive_service,
        sidecar_service=sidecar_service,
        system_utils=system_utils,
        max_download_bytes=config.max_download_bytes,
        download_timeout=config.download_timeout,
    )
    preset_service = PresetService(
        mod_service=mod_service,
        sidecar_service=sidecar_service,
        system_utils=system_utils,
    )

    logger.info("Core services and utilities initialized.")
    return LibraryService(
        mod_service=mod_service,
        ingestion_service=ingestion_service,
        preset_service=preset_service,
        categories=categories,
    )


class _ConsoleProgress:
    """Prints download progress on one line; has the same emit() as a Qt signal."""

    def emit(self, downloaded: int, total: int):
        if total:
            print(f"\r{downloaded}/{total} bytes ({downloaded * 100 // total}%)", end="", flush=True)
        else:
            print(f"\r{downloaded} bytes", end="", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="modlib", description=APP_NAME)
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("--config", type=Path, default=Path(CONFIG_FILE_NAME), help="path to config.json")
    parser.add_argument("--root", type=Path, help="mod library folder (overrides the config)")

    sub = parser.add_subparsers(dest="command", required=True)

    list_cmd = sub.add_parser("list", help="list mods")
    for field in ("author", "category", "version", "enabled"):
        list_cmd.add_argument(f"--{field}", default="", help=f"only mods whose {field} equals this")

    for name in ("enable", "disable"):
        cmd = sub.add_parser(name, help=f"{name} a mod folder")
        cmd.add_argument("mod_path", type=Path)

    download_cmd = sub.add_parser("download", help="download and install a mod archive")
    download_cmd.add_argument("url")

    import_cmd = sub.add_parser("import", help="install a local mod folder or archive")
    import_cmd.add_argument("source", type=Path)

    delete_cmd = sub.add_parser("delete", help="delete a mod folder")
    delete_cmd.add_argument("mod_path", type=Path)

    thumb_cmd = sub.add_parser("thumbnail", help="set a mod thumbnail from an image file")
    thumb_cmd.add_argument("mod_path", type=Path)
    thumb_cmd.add_argument("image")

    preset_cmd = sub.add_parser("preset", help="manage presets")
    preset_sub = preset_cmd.add_subparsers(dest="preset_command", required=True)
    save_cmd = preset_sub.add_parser("save", help="save the currently enabled mods as a preset")
    save_cmd.add_argument("name")
    preset_sub.add_parser("list", help="list presets")
    for name in ("delete", "apply"):
        cmd = preset_sub.add_parser(name, help=f"{name} a preset")
        cmd.add_argument("preset_id")
    rename_cmd = preset_sub.add_parser("rename", help="rename a preset")
    rename_cmd.add_argument("preset_id")
    rename_cmd.add_argument("name")
    preset_sub.add_parser("migrate", help="convert folder-name ids in presets to sidecar ids")

    return parser


def run_command(args: argparse.Namespace, service: LibraryService, root: Path) -> dict:
    if args.command == "list":
        result = service.list_mods(root)
        if not result["success"]:
            return result
        criteria = {f: getattr(args, f) for f in ("author", "category", "version", "enabled")}
        return service.filter_mods(result["data"], **criteria)
    if args.command in ("enable", "disable"):
        return service.set_mod_enabled(args.mod_path, args.command == "enable")
    if args.command == "download":
        result = service.download_and_ingest(args.url, root, progress_callback=_ConsoleProgress())
        print()
        return result
    if args.command == "import":
        return service.ingest_local(args.source, root)
    if args.command == "delete":
        return service.delete_mod(args.mod_path)
    if args.command == "thumbnail":
        return service.set_thumbnail(args.mod_path, args.image)

    # --- preset subcommands ---
    if args.preset_command == "save":
        result = service.list_mods(root)
        if not result["success"]:
            return result
        enabled_ids = [m["id"] for m in result["data"] if m["enabled"]]
        return service.save_preset(root, args.name, enabled_ids)
    if args.preset_command == "list":
        return service.list_presets(root)
    if args.preset_command == "delete":
        return service.delete_preset(root, args.preset_id)
    if args.preset_command == "apply":
        return service.apply_preset(root, args.preset_id)
    if args.preset_command == "rename":
        return service.rename_preset(root, args.preset_id, args.name)
    return service.migrate_preset_ids(root)


def main(argv=None) -> int:
    """The main entry point for the command line."""
    args = build_parser().parse_args(argv)

    config_service = ConfigService(args.config)
    config = config_service.load_config()
    configure_logging(config.log_dir or Path(LOG_DIR_NAME))
    logger.info("Application starting...")

    root = args.root or config.library_root
    if root is None:
        print("No mod library configured. Pass --root or set library_root in config.json.", file=sys.stderr)
        return 2

    # Leftovers from an interrupted extraction are never reused
    SystemUtils.cleanup_lingering_temp_folders()

    service = build_library_service(config)
    result = run_command(args, service, root)

    if not result["success"]:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1
    if result.get("data") is not None:
        print(json.dumps(result["data"], indent=4, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
