"""
GameCatalog - turns raw library rows into the ordered set of games to place.

Responsibilities:
- Normalize titles, file keys and icon names
- Drop duplicate (case-insensitive) and empty titles (first seen wins)
- Enforce the Start Menu tile limits
- Sort by title so repeated runs produce identical layouts
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

from gogtiles.errors import CapacityExceeded, EmptyResult
from gogtiles.stores.base import GameRecord, GameSource, Selector

logger = logging.getLogger(__name__)

# Explorer misbehaves with large partial layouts; these limits are empirical.
MAX_TILES = 150
WARN_TILES = 80


@dataclass(frozen=True)
class CatalogWarning:
    """Non-fatal condition found while loading"""
    kind: str  # 'duplicate', 'empty_title' or 'capacity'
    message: str


class GameCatalog:
    """Loads and validates the games that get a tile."""

    def __init__(self, source: GameSource, max_tiles: int = MAX_TILES, warn_tiles: int = WARN_TILES):
        self.source = source
        self.max_tiles = max_tiles
        self.warn_tiles = warn_tiles
        self.warnings: List[CatalogWarning] = []

    @property
    def capacity_warning(self) -> bool:
        """True when the last load exceeded the soft tile limit."""
        return any(w.kind == 'capacity' for w in self.warnings)

    def _warn(self, kind: str, message: str) -> None:
        logger.warning(message)
        self.warnings.append(CatalogWarning(kind, message))

    def load(self, selector: Selector) -> List[GameRecord]:
        """Load, deduplicate, validate and sort games for a selector.

        Args:
            selector: Tag, installed or all-owned filter

        Returns:
            Games sorted by sanitized title

        Raises:
            SourceUnavailable: The library backend failed
            EmptyResult: Nothing matched
            CapacityExceeded: More than max_tiles games matched
        """
        self.warnings = []
        logger.info(f"[Catalog] Reading {self.source.source_name} library ({selector.describe()})...")
        rows = self.source.fetch_rows(selector)

        logger.info("[Catalog] Parsing games...")
        games: List[GameRecord] = []
        by_title: Dict[str, GameRecord] = {}
        for release_key, icon_file, raw_title in rows:
            game = GameRecord.from_row(release_key, icon_file, raw_title)
            if not game.title:
                self._warn(
                    'empty_title',
                    f"'{release_key}' has no usable title ('{game.raw_title}') and is skipped.",
                )
                continue
            # NTFS file names are case-insensitive, so "Alpha" and "alpha" share one .lnk
            title_key = game.title.casefold()
            existing = by_title.get(title_key)
            if existing is not None:
                self._warn(
                    'duplicate',
                    f"'{game.title}' ({game.release_key}) already exists with ReleaseKey "
                    f"'{existing.release_key}'. Hide one of them in your games library.",
                )
                continue
            by_title[title_key] = game
            games.append(game)

        # str ordering compares code points, which is ordinal for these ASCII-only titles
        games.sort(key=lambda g: g.title)

        count = len(games)
        if count == 0:
            raise EmptyResult(f"No games found for {selector.describe()}.")
        if count > self.max_tiles:
            raise CapacityExceeded(count, self.max_tiles)
        if count > self.warn_tiles:
            self._warn(
                'capacity',
                f"Adding too many tiles causes unexpected behaviour. {count} tiles will be added.",
            )

        logger.info(f"[Catalog] {count} games selected")
        return games
