#!/usr/bin/env python3
"""
gogtiles command line interface.

Reads games from the GOG Galaxy 2.0 database, creates Start Menu shortcuts
with tile icons and applies a partial Start Layout that places them in tile
groups.

Usage:
    gogtiles --tagName StartMenuTiles --width 3 --height 7 --tileSize 2
    gogtiles --tagName INSTALLED --groupName Games -y
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from gogtiles import __version__
from gogtiles.config import TilesConfig, load_settings
from gogtiles.errors import ConfigurationError, TilesError
from gogtiles.services.artwork_service import ArtworkService
from gogtiles.services.tiles_service import RunSummary, TilesService
from gogtiles.stores.galaxy import GalaxyDatabase
from gogtiles.utils.powershell import PowerShellRunner
from gogtiles.utils.registry import RegistryConfigStore

logger = logging.getLogger("gogtiles")

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gogtiles",
        description="Create Windows Start Menu tiles for your GOG Galaxy 2.0 games.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--level", default="INFO", type=str.upper, choices=LOG_LEVELS,
                        help="Defines log level.")
    parser.add_argument("--settings", help="JSON file with default settings; flags override it.")
    parser.add_argument("--gogDir", help="GOG Galaxy 2.0 data directory; the database is read from storage/galaxy-2.0.db inside it.")
    parser.add_argument("--database", help="Path to GOG Galaxy 2.0 database.")
    parser.add_argument("--galaxyClient", help="Path to GalaxyClient.exe used by the launcher scripts.")
    parser.add_argument("--startFolder", help="Path for game shortcuts and image data.")
    parser.add_argument("--width", type=int,
                        help="Defines the tile count per row in the Start Menu Layout (3 or 4).")
    parser.add_argument("--height", type=int, help="Defines the rows per group Start Menu Layout.")
    parser.add_argument("--tileSize", type=int, help="Size of the individual game tiles (1 or 2).")
    parser.add_argument("--groupName", help="Name of the Start Menu group.")
    parser.add_argument("--tagName",
                        help="Define a custom tag that defines games to be added to the Start Menu. "
                             "You can also set it to INSTALLED or ALL to add installed or all games.")
    parser.add_argument("-y", "--yes", action="store_true", default=None,
                        help="Always confirm creation of Start Layout.")
    parser.add_argument("--hideName", action="store_true", default=None,
                        help="Hide name of game on Start Menu Tile.")
    parser.add_argument("--force", action="store_true", default=None, help="Force re-download of images.")
    parser.add_argument("--layoutFile", help="Where to write the partial Start Layout.")
    parser.add_argument("--backupFile", help="Where to export the current Start Layout.")
    parser.add_argument("--noApply", action="store_true", default=None,
                        help="Only create shortcuts and the layout file, do not touch the registry.")
    parser.add_argument("--powershellDownloads", action="store_true", default=None,
                        help="Download icons with Invoke-WebRequest instead of the built-in client.")
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S',
    )


def build_config(args: argparse.Namespace) -> TilesConfig:
    """Layer command line flags over the settings file and validate the result."""
    config = load_settings(args.settings).with_overrides(
        galaxy_dir=args.gogDir,
        database_path=args.database,
        galaxy_client=args.galaxyClient,
        start_menu_dir=args.startFolder,
        width=args.width,
        height=args.height,
        tile_size=args.tileSize,
        group_name=args.groupName,
        tag_name=args.tagName,
        assume_yes=args.yes,
        hide_name=args.hideName,
        force=args.force,
        layout_file=args.layoutFile,
        backup_file=args.backupFile,
        apply=False if args.noApply else None,
        powershell_downloads=args.powershellDownloads,
    )
    return config.validate()


async def run(config: TilesConfig) -> RunSummary:
    config_store = None
    if config.apply:
        try:
            config_store = RegistryConfigStore()
        except ImportError as e:
            raise ConfigurationError(
                "Applying the layout needs the Windows registry. Use --noApply on other systems."
            ) from e

    source = GalaxyDatabase(config.database_path)
    artwork_service = ArtworkService()
    service = TilesService(config, source, PowerShellRunner(), artwork_service, config_store)
    try:
        return await service.run()
    finally:
        source.close()
        await artwork_service.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.level)

    try:
        config = build_config(args)
        logger.debug(f"Configuration: {config.to_dict()}")
        summary = asyncio.run(run(config))
    except TilesError as e:
        logger.error(str(e))
        return 1
    except OSError as e:
        logger.error(f"Error while creating Start Menu files. {e}")
        return 1

    if summary.cancelled:
        return 0
    logger.info(f"Program finished! {summary.game_count} tiles in {summary.group_count} group(s).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
