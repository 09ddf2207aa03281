"""
TilesService - Runs one complete Start Menu update.

Responsibilities:
- Load the game catalog from the library backend
- Plan and write the partial Start Layout
- Write shortcut artifacts and run the download and shortcut batches
- Hand the layout to the shell applier
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from gogtiles.config import TilesConfig
from gogtiles.controllers.shell_applier import ApplyState, ShellConfigurationApplier
from gogtiles.services.artwork_service import ArtworkService
from gogtiles.services.catalog_service import GameCatalog
from gogtiles.services.layout_service import LayoutDocument, TileLayoutPlanner
from gogtiles.services.shortcut_service import ShortcutPlan
from gogtiles.stores.base import GameSource
from gogtiles.utils.powershell import PowerShellRunner
from gogtiles.utils.registry import HostConfigStore

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    game_count: int = 0
    group_count: int = 0
    downloads_issued: int = 0
    downloads_failed: int = 0
    layout_path: Optional[str] = None
    apply_state: Optional[ApplyState] = None
    cancelled: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'game_count': self.game_count,
            'group_count': self.group_count,
            'downloads_issued': self.downloads_issued,
            'downloads_failed': self.downloads_failed,
            'layout_path': self.layout_path,
            'apply_state': self.apply_state.name if self.apply_state is not None else None,
            'cancelled': self.cancelled,
            'warnings': list(self.warnings),
        }


class TilesService:
    """Service for orchestrating a Start Menu update."""

    def __init__(
        self,
        config: TilesConfig,
        source: GameSource,
        runner: PowerShellRunner,
        artwork_service: ArtworkService,
        config_store: Optional[HostConfigStore] = None,
        applier: Optional[ShellConfigurationApplier] = None,
    ):
        """Initialize TilesService with its collaborators.

        Args:
            config: Validated run configuration
            source: Library backend
            runner: PowerShell command boundary
            artwork_service: Icon downloader used unless PowerShell downloads are configured
            config_store: Registry access; required when config.apply is set
            applier: Prebuilt applier, mostly for tests
        """
        self.config = config
        self.catalog = GameCatalog(source)
        self.planner = TileLayoutPlanner()
        self.runner = runner
        self.artwork_service = artwork_service
        self.config_store = config_store
        self.applier = applier

    async def run(self) -> RunSummary:
        """Build the layout and, if configured, apply it.

        Raises:
            TilesError: Any fatal condition of the catalog or the applier
            OSError: Shortcut files could not be written
        """
        config = self.config
        summary = RunSummary()

        games = self.catalog.load(config.selector)
        summary.game_count = len(games)
        summary.warnings.extend(w.message for w in self.catalog.warnings)

        document = self.planner.plan(games, config.group_name, config.tile_size, config.width, config.height)
        summary.group_count = len(document.groups)

        plan = ShortcutPlan.build(
            games,
            config.start_menu_dir,
            config.tile_size,
            config.hide_name,
            config.force,
            galaxy_client=config.galaxy_client,
            icon_base_url=config.icon_base_url,
        )
        summary.downloads_issued = len(plan.downloads)
        summary.downloads_failed = await self.create_shortcuts(plan)

        summary.layout_path = self.write_layout(document)

        if not config.apply:
            logger.info(f"Layout written to {summary.layout_path}; registry left untouched")
            return summary

        # Explorer needs a moment to index the new shortcuts before the layout can reference them
        await asyncio.sleep(config.shortcut_settle_seconds)

        applier = self.applier or self._build_applier(summary.layout_path)
        summary.apply_state = await applier.apply()
        summary.cancelled = applier.cancelled
        summary.warnings.extend(applier.warnings)
        return summary

    async def create_shortcuts(self, plan: ShortcutPlan) -> int:
        """Write artifacts and run both command batches.

        Returns:
            Number of icon downloads that failed (PowerShell downloads count as
            all failed when the batch reports errors)
        """
        logger.info("Creating shortcuts...")
        plan.write_artifacts()

        failed = 0
        if len(plan.downloads):
            if self.config.powershell_downloads:
                result = await self.runner.run_batch(plan.downloads)
                failed = 0 if result.ok else len(plan.downloads)
            else:
                results = await self.artwork_service.download_batch(plan.downloads)
                failed = sum(1 for ok in results.values() if not ok)

        await self.runner.run_batch(plan.shortcuts)
        return failed

    def write_layout(self, document: LayoutDocument) -> str:
        return document.write(self.config.layout_file, self.config.start_menu_dir)

    def _build_applier(self, layout_path: str) -> ShellConfigurationApplier:
        if self.config_store is None:
            raise RuntimeError("A HostConfigStore is required to apply the layout")
        return ShellConfigurationApplier(
            config_store=self.config_store,
            runner=self.runner,
            layout_path=layout_path,
            backup_path=os.path.abspath(self.config.backup_file),
            assume_yes=self.config.assume_yes,
            lock_settle_seconds=self.config.lock_settle_seconds,
            restart_settle_seconds=self.config.restart_settle_seconds,
        )
