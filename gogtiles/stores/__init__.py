"""Game library backends."""

from .base import GameRecord, GameSource, RawGameRow, Selector, SelectorMode
from .galaxy import GalaxyDatabase

__all__ = ['GameRecord', 'GameSource', 'RawGameRow', 'Selector', 'SelectorMode', 'GalaxyDatabase']
