import argparse
import dataclasses
import sys

from startmenu import __version__
from startmenu.core.context import SURFACES, MenuSettings
from startmenu.core.log_setup import level_from_name, setup_logging
from startmenu.shared.config_handler import ConfigHandler
from startmenu.shared.path_handler import PathHandler


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="startmenu",
        description="Panel start menu with user-defined categories.",
    )
    parser.add_argument(
        "surface",
        choices=SURFACES,
        help="'popup' runs the menu, 'editor' opens the category editor",
    )
    parser.add_argument(
        "--data-dir",
        help="directory holding categories.jsonl and icons (overrides config.toml)",
    )
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = setup_logging(level=level_from_name(args.log_level or "INFO"))
    path_handler = PathHandler(logger)
    config = ConfigHandler(logger, str(path_handler.get_config_dir()))
    settings = MenuSettings.from_config(
        config, application_dirs=path_handler.get_application_dirs()
    )
    if not args.log_level:
        setup_logging(level=level_from_name(settings.log_level))
    if args.data_dir:
        settings = dataclasses.replace(settings, data_dir=args.data_dir)

    from startmenu.ui.app import StartMenuApplication, build_context

    app = StartMenuApplication(
        args.surface,
        lambda: build_context(args.surface, settings, path_handler, logger),
    )
    return app.run([sys.argv[0]])


if __name__ == "__main__":
    sys.exit(main())
