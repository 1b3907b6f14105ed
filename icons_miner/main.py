"""Точка входа: окно просмотра или пакетное извлечение без UI.

Usage:
    icons-miner                                    # открыть окно
    icons-miner --source Icons --output catalog    # пакетный режим
    icons-miner --source Icons --output catalog --color-space gamma --workers 4
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from icons_miner.config import DEFAULT_SETTINGS_FILE, SettingsStore
from icons_miner.models.raster_model import ColorSpace
from icons_miner.services.asset_service import DirectoryAssetSource
from icons_miner.services.catalog_service import CatalogService
from icons_miner.services.miner_service import MinerService

logger = logging.getLogger("icons_miner")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="icons-miner",
        description="Extract icons into color-correct PNGs and a markdown catalog.",
    )
    parser.add_argument("--source", help="directory with the icon assets (headless mode)")
    parser.add_argument("--output", help="catalog output directory (headless mode)")
    parser.add_argument("--color-space", choices=[c.value for c in ColorSpace], help="active rendering color space")
    parser.add_argument("--prefix", help="only assets whose path starts with this prefix")
    parser.add_argument("--workers", type=int, help="process icon families on N threads")
    parser.add_argument("--all-variants", action="store_true", help="export every variant, not just the catalog pair")
    parser.add_argument("--settings", default=str(DEFAULT_SETTINGS_FILE), help="settings JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def run_headless(args: argparse.Namespace, store: SettingsStore) -> int:
    """Извлекает иконки без окна. Возвращает код выхода."""
    # batch runs leave the settings file untouched
    settings = store.read()
    changes = {"source_dir": args.source, "output_dir": args.output}
    if args.color_space:
        changes["color_space"] = ColorSpace(args.color_space)
    if args.prefix is not None:
        changes["prefix"] = args.prefix
    if args.workers is not None:
        changes["max_workers"] = args.workers
    if args.all_variants:
        changes["export_all_variants"] = True
    try:
        settings = replace(settings, **changes)
    except ValueError as exc:
        logger.error("Invalid settings: %s", exc)
        return 2

    source = DirectoryAssetSource(settings.source_dir, prefix=settings.prefix, extensions=settings.extensions)
    catalog = CatalogService(settings.output_dir, settings)
    try:
        report = MinerService(source, catalog, settings).run()
    except FileNotFoundError as exc:
        logger.error("%s", exc)
        return 1

    print(f"Exported {report.exported} icon(s) into {settings.output_dir} ({len(report.entries)} catalog rows)")
    if report.missing:
        print(f"Skipped {len(report.missing)} missing asset(s)", file=sys.stderr)
    if report.failed:
        print(f"Failed to process {len(report.failed)} icon(s)", file=sys.stderr)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Создаёт и запускает главное окно или пакетный прогон."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = SettingsStore(args.settings)

    if args.source or args.output:
        if not (args.source and args.output):
            logger.error("--source and --output must be given together")
            return 2
        return run_headless(args, store)

    from icons_miner.app import IconsMinerApp

    store.init()
    app = IconsMinerApp(store)
    app.mainloop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
