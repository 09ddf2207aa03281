"""Business logic services for gogtiles."""

from .catalog_service import GameCatalog, CatalogWarning
from .layout_service import TileLayoutPlanner, LayoutDocument, TileGroup, Tile
from .shortcut_service import ShortcutPlan, ShortcutArtifacts
from .artwork_service import ArtworkService
from .tiles_service import TilesService, RunSummary

__all__ = [
    'GameCatalog', 'CatalogWarning',
    'TileLayoutPlanner', 'LayoutDocument', 'TileGroup', 'Tile',
    'ShortcutPlan', 'ShortcutArtifacts',
    'ArtworkService',
    'TilesService', 'RunSummary',
]
