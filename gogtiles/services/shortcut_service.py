"""
ShortcutPlan - everything the Start Menu needs per game.

For each game the plan holds a launcher script that asks Galaxy to start the
game, a visual elements manifest that gives the shortcut its tile icon, the
shortcut itself and, when the icon is not cached yet, an icon download.
Downloads and shortcut creations are collected into one batch each so the
command boundary runs at most twice per run, whatever the library size.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Sequence

from gogtiles.stores.base import GameRecord
from gogtiles.utils.artwork import (
    GOG_IMAGES_BASE_URL,
    check_icon_exists,
    get_artifact_paths,
    get_icon_url,
    get_manifest_icon_path,
    get_visual_elements_dir,
)
from gogtiles.utils.paths import DEFAULT_GALAXY_CLIENT
from gogtiles.utils.powershell import CommandBatch, CreateShortcut, DownloadIcon, shortcut_batch

logger = logging.getLogger(__name__)

LAUNCHER_TEMPLATE = '"{client}" /command=runGame /gameId={release_key}'

VISUAL_ELEMENTS_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<Application xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">
  <VisualElements ShowNameOnSquare150x150Logo="{show_name}" Square150x150Logo="{icon}" Square70x70Logo="{icon}" ForegroundText="light" BackgroundColor="#5A391B" />
</Application>
"""


@dataclass(frozen=True)
class ShortcutArtifacts:
    """Files that make up one game's Start Menu entry"""
    game: GameRecord
    launcher_path: str
    manifest_path: str
    shortcut_path: str
    icon_path: str
    show_name: bool
    needs_download: bool

    def launcher_content(self, galaxy_client: str) -> str:
        return LAUNCHER_TEMPLATE.format(client=galaxy_client, release_key=self.game.release_key)

    def manifest_content(self) -> str:
        return VISUAL_ELEMENTS_TEMPLATE.format(
            show_name="on" if self.show_name else "off",
            icon=get_manifest_icon_path(self.game.file_key),
        )


@dataclass
class ShortcutPlan:
    start_menu_dir: str
    tile_size: int
    galaxy_client: str = DEFAULT_GALAXY_CLIENT
    artifacts: List[ShortcutArtifacts] = field(default_factory=list)
    downloads: "CommandBatch[DownloadIcon]" = field(default_factory=CommandBatch)
    shortcuts: "CommandBatch[CreateShortcut]" = field(default_factory=shortcut_batch)

    @classmethod
    def build(
        cls,
        games: Sequence[GameRecord],
        start_menu_dir: str,
        tile_size: int,
        hide_name: bool,
        force: bool,
        galaxy_client: str = DEFAULT_GALAXY_CLIENT,
        icon_base_url: str = GOG_IMAGES_BASE_URL,
    ) -> "ShortcutPlan":
        """Derive artifacts and command batches for every game.

        Args:
            games: Games to create shortcuts for
            start_menu_dir: Folder for scripts, manifests, shortcuts and icons
            tile_size: Size of the tiles the shortcuts end up on
            hide_name: Do not overlay the title on the tile icon
            force: Download icons even if they are cached already
            galaxy_client: GalaxyClient.exe the launcher scripts call
            icon_base_url: Image CDN root

        Returns:
            ShortcutPlan; nothing is written until write_artifacts()
        """
        plan = cls(start_menu_dir=start_menu_dir, tile_size=tile_size, galaxy_client=galaxy_client)
        for game in games:
            paths = get_artifact_paths(start_menu_dir, game.file_key, game.title)
            needs_download = force or not check_icon_exists(start_menu_dir, game.file_key)
            plan.artifacts.append(ShortcutArtifacts(
                game=game,
                launcher_path=paths['launcher'],
                manifest_path=paths['manifest'],
                shortcut_path=paths['shortcut'],
                icon_path=paths['icon'],
                show_name=not hide_name,
                needs_download=needs_download,
            ))
            if needs_download:
                plan.downloads.add(DownloadIcon(
                    release_key=game.release_key,
                    url=get_icon_url(game.icon_file, icon_base_url),
                    target=paths['icon'],
                ))
            plan.shortcuts.add(CreateShortcut(link_path=paths['shortcut'], target_path=paths['launcher']))

        logger.info(
            f"[Shortcuts] Planned {len(plan.artifacts)} shortcuts for {plan.tile_size}x{plan.tile_size} tiles, "
            f"{len(plan.downloads)} icon download(s)"
        )
        return plan

    def write_artifacts(self) -> int:
        """Create the folders and write launcher scripts and manifests.

        Returns:
            Number of games written

        Raises:
            OSError: A folder or file could not be created
        """
        os.makedirs(get_visual_elements_dir(self.start_menu_dir), exist_ok=True)
        for item in self.artifacts:
            with open(item.launcher_path, "w", encoding="utf-8") as f:
                f.write(item.launcher_content(self.galaxy_client))
            with open(item.manifest_path, "w", encoding="utf-8") as f:
                f.write(item.manifest_content())
        logger.debug(f"[Shortcuts] Wrote {len(self.artifacts)} launcher scripts and manifests")
        return len(self.artifacts)
