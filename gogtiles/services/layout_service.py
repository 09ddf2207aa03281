"""
TileLayoutPlanner - packs games into Start Menu tile groups.

Tiles are placed in input order, left to right and top to bottom, into
fixed-size groups. A full group is followed by a new group with the same
name; Explorer renders repeated names as one continuous block.

The resulting LayoutDocument serializes to a partial Start Layout
(LayoutModificationTemplate) that only replaces the groups it defines:
https://docs.microsoft.com/en-us/windows/configuration/customize-and-export-start-layout
"""

import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List, Sequence

from gogtiles.stores.base import GameRecord

logger = logging.getLogger(__name__)

NS_LAYOUT = "http://schemas.microsoft.com/Start/2014/LayoutModification"
NS_DEFAULT_LAYOUT = "http://schemas.microsoft.com/Start/2014/FullDefaultLayout"
NS_START = "http://schemas.microsoft.com/Start/2014/StartLayout"

ET.register_namespace("", NS_LAYOUT)
ET.register_namespace("defaultlayout", NS_DEFAULT_LAYOUT)
ET.register_namespace("start", NS_START)

GROUP_CELL_WIDTH = "8"


def effective_width(width: int, tile_size: int) -> int:
    """Tiles per row: a medium (2) tile takes two small (1) cells."""
    return width * (3 - tile_size)


def group_capacity(width: int, height: int, tile_size: int) -> int:
    """Maximum number of tiles in one group."""
    return effective_width(width, tile_size) * height * (3 - tile_size)


@dataclass(frozen=True)
class Tile:
    game: GameRecord
    size: int
    column: int
    row: int


@dataclass
class TileGroup:
    """A named, capacity-bounded block of tiles"""
    name: str
    capacity: int
    tiles: List[Tile] = field(default_factory=list)

    @property
    def is_full(self) -> bool:
        return len(self.tiles) >= self.capacity

    def add(self, tile: Tile) -> None:
        if self.is_full:
            raise ValueError(f"Group '{self.name}' already holds {self.capacity} tiles")
        self.tiles.append(tile)


@dataclass
class LayoutDocument:
    """All groups of one run, in creation order"""
    tile_size: int
    groups: List[TileGroup] = field(default_factory=list)

    @property
    def tile_count(self) -> int:
        return sum(len(g.tiles) for g in self.groups)

    def to_xml(self, link_dir: str) -> str:
        """Serialize as a partial Start Layout.

        Args:
            link_dir: Directory holding the .lnk files the tiles point to

        Returns:
            Indented XML text
        """
        root = ET.Element(f"{{{NS_LAYOUT}}}LayoutModificationTemplate", Version="1")
        ET.SubElement(root, f"{{{NS_LAYOUT}}}LayoutOptions", StartTileGroupCellWidth=GROUP_CELL_WIDTH)
        override = ET.SubElement(
            root,
            f"{{{NS_LAYOUT}}}DefaultLayoutOverride",
            LayoutCustomizationRestrictionType="OnlySpecifiedGroups",
        )
        collection = ET.SubElement(override, f"{{{NS_LAYOUT}}}StartLayoutCollection")
        start_layout = ET.SubElement(
            collection, f"{{{NS_DEFAULT_LAYOUT}}}StartLayout", GroupCellWidth=GROUP_CELL_WIDTH
        )

        size = f"{self.tile_size}x{self.tile_size}"
        for group in self.groups:
            group_el = ET.SubElement(start_layout, f"{{{NS_START}}}Group", Name=group.name)
            for tile in group.tiles:
                ET.SubElement(
                    group_el,
                    f"{{{NS_START}}}DesktopApplicationTile",
                    Size=size,
                    Column=str(tile.column),
                    Row=str(tile.row),
                    DesktopApplicationLinkPath=os.path.join(link_dir, f"{tile.game.title}.lnk"),
                )

        ET.indent(root, space="  ")
        return ET.tostring(root, encoding="unicode")

    def write(self, path: str, link_dir: str) -> str:
        """Write the layout file and return its absolute path."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_xml(link_dir))
        full_path = os.path.abspath(path)
        logger.info(f"[Layout] Wrote {self.tile_count} tiles in {len(self.groups)} group(s) to {full_path}")
        return full_path


class TileLayoutPlanner:
    """Deterministic packing of games into tile groups."""

    def plan(
        self,
        games: Sequence[GameRecord],
        group_name: str,
        tile_size: int,
        width: int,
        height: int,
    ) -> LayoutDocument:
        """Assign every game a cell, opening new groups as they fill up.

        Args:
            games: Games in placement order (already sorted by title)
            group_name: Name used for every group
            tile_size: 1 (small) or 2 (medium)
            width: Medium tiles per row, 3 or 4
            height: Rows of medium tiles per group

        Returns:
            LayoutDocument with exactly one tile per game
        """
        row_width = effective_width(width, tile_size)
        capacity = group_capacity(width, height, tile_size)
        logger.info(
            f"[Layout] Creating Start Menu layout: {row_width} tiles per row, {capacity} tiles per group"
        )

        document = LayoutDocument(tile_size=tile_size)
        group = TileGroup(name=group_name, capacity=capacity)
        document.groups.append(group)
        index = 0
        for game in games:
            if index >= capacity:
                index = 0
                group = TileGroup(name=group_name, capacity=capacity)
                document.groups.append(group)
            group.add(Tile(
                game=game,
                size=tile_size,
                column=(index % row_width) * tile_size,
                row=(index // row_width) * tile_size,
            ))
            index += 1

        return document
