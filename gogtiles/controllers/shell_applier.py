"""Shell configuration applier.

Commits a partial Start Layout to Explorer. Explorer only reads the layout
policy when it starts, so the layout is applied by pointing the policy at the
file, locking it and restarting Explorer, then unlocking and restarting again
so the user can rearrange the tiles afterwards. Finally the policy values are
removed.

The sequence is a strict forward-only state machine:

    IDLE -> BACKED_UP -> INSPECTED -> CONFIRMED -> LOCKED -> SETTLED -> UNLOCKED -> CLEANED_UP

Declining the confirmation leaves the machine in INSPECTED without touching
the registry. Any other failure raises an ApplyError naming the values that
may be left behind; there is no automatic rollback, the exported backup is the
recovery path. Only one applier may run at a time since all instances share
the same registry values and the same Explorer process; nothing enforces it.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Awaitable, Callable, List, Optional

from gogtiles.errors import (
    BackupFailed,
    CleanupFailed,
    ConfigUnavailable,
    LockWriteFailed,
    UnlockWriteFailed,
)
from gogtiles.utils.powershell import PowerShellRunner, quote
from gogtiles.utils.registry import (
    HostConfigStore,
    LAYOUT_VALUES,
    LOCKED_START_LAYOUT,
    START_LAYOUT_FILE,
)

logger = logging.getLogger(__name__)

SHELL_PROCESS = "explorer"

CONFIRMATION_MESSAGE = (
    "The script will now create registry values to modify the Start Menu. "
    "The groups in your Start Menu will probably be reordered. "
    "If there was a custom Start Layout .xml file applied before, all tiles will be removed! "
    "Use at own risk!\nDo you want to proceed? [yN]"
)

COLLISION_MESSAGE = (
    f"Registry Value '{START_LAYOUT_FILE}' or '{LOCKED_START_LAYOUT}' exists. "
    "There might have been a Start Layout previously applied! This would be removed entirely!"
)

AFFIRMATIVE_ANSWERS = ("y", "yes")

ConfirmCallback = Callable[[str], Awaitable[bool]]


class ApplyState(IntEnum):
    IDLE = 0
    BACKED_UP = 1
    INSPECTED = 2
    CONFIRMED = 3
    LOCKED = 4
    SETTLED = 5
    UNLOCKED = 6
    CLEANED_UP = 7


@dataclass(frozen=True)
class ShellConfigurationSnapshot:
    """Layout policy values found before anything was changed"""
    layout_file: Optional[str]
    locked: Optional[int]

    @property
    def has_prior_layout(self) -> bool:
        return self.layout_file is not None or self.locked is not None


async def prompt_confirmation(message: str) -> bool:
    """Ask on the console; only an explicit yes proceeds."""
    logger.warning(message)
    loop = asyncio.get_running_loop()
    try:
        answer = await loop.run_in_executor(None, input)
    except EOFError:
        return False
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


class ShellConfigurationApplier:
    """Applies a layout file to Explorer through the Start Layout policy."""

    def __init__(
        self,
        config_store: HostConfigStore,
        runner: PowerShellRunner,
        layout_path: str,
        backup_path: str,
        assume_yes: bool = False,
        confirm: Optional[ConfirmCallback] = None,
        lock_settle_seconds: float = 5.0,
        restart_settle_seconds: float = 3.0,
    ):
        self.config_store = config_store
        self.runner = runner
        self.layout_path = layout_path
        self.backup_path = backup_path
        self.assume_yes = assume_yes
        self.confirm = confirm or prompt_confirmation
        self.lock_settle_seconds = lock_settle_seconds
        self.restart_settle_seconds = restart_settle_seconds

        self.state = ApplyState.IDLE
        self.snapshot: Optional[ShellConfigurationSnapshot] = None
        self.warnings: List[str] = []
        self.cancelled = False

    def _require(self, target: ApplyState) -> None:
        if target != self.state + 1:
            raise RuntimeError(f"Cannot move from {self.state.name} to {target.name}")

    def _advance(self, target: ApplyState) -> None:
        self._require(target)
        logger.debug(f"[Applier] {self.state.name} -> {target.name}")
        self.state = target

    async def apply(self) -> ApplyState:
        """Run the whole sequence.

        Returns:
            CLEANED_UP on success, INSPECTED when the user declined

        Raises:
            ApplyError: On the first failing step
        """
        if self.state != ApplyState.IDLE:
            raise RuntimeError(f"Applier already ran (state {self.state.name})")

        logger.info("[Applier] Updating Start Menu...")
        await self.backup()
        self.inspect()
        if not await self.confirm_apply():
            return self.state
        await self.lock()
        await self.settle()
        await self.unlock()
        await self.cleanup()
        logger.info("[Applier] Start Menu layout applied")
        return self.state

    async def backup(self) -> None:
        """IDLE -> BACKED_UP: export the current Start Layout."""
        self._require(ApplyState.BACKED_UP)
        result = await self.runner.run(f"Export-StartLayout -Path {quote(self.backup_path)}")
        if not result.ok:
            details = "; ".join(result.error_lines()) or f"exit status {result.returncode}"
            raise BackupFailed(f"Could not export the current Start Layout to '{self.backup_path}'. {details}")
        logger.info(f"[Applier] Current Start Layout exported to {self.backup_path}")
        self._advance(ApplyState.BACKED_UP)

    def inspect(self) -> ShellConfigurationSnapshot:
        """BACKED_UP -> INSPECTED: look for a previously applied layout."""
        self._require(ApplyState.INSPECTED)
        try:
            names = self.config_store.list_values()
            snapshot = ShellConfigurationSnapshot(
                layout_file=self.config_store.read_value(START_LAYOUT_FILE) if START_LAYOUT_FILE in names else None,
                locked=self.config_store.read_value(LOCKED_START_LAYOUT) if LOCKED_START_LAYOUT in names else None,
            )
        except OSError as e:
            raise ConfigUnavailable(
                f"Could not list Registry values. {e}",
                backup_path=self.backup_path,
                needs_elevation=True,
            ) from e

        if snapshot.has_prior_layout:
            logger.warning(COLLISION_MESSAGE)
            self.warnings.append(COLLISION_MESSAGE)
        self.snapshot = snapshot
        self._advance(ApplyState.INSPECTED)
        return snapshot

    async def confirm_apply(self) -> bool:
        """INSPECTED -> CONFIRMED, unless the user declines."""
        self._require(ApplyState.CONFIRMED)
        if not self.assume_yes and not await self.confirm(CONFIRMATION_MESSAGE):
            logger.info("Script cancelled by user.")
            self.cancelled = True
            return False
        self._advance(ApplyState.CONFIRMED)
        return True

    async def lock(self) -> None:
        """CONFIRMED -> LOCKED: point the policy at our layout, lock it, restart Explorer."""
        self._require(ApplyState.LOCKED)
        try:
            self.config_store.set_string(START_LAYOUT_FILE, self.layout_path)
            self.config_store.set_flag(LOCKED_START_LAYOUT, 1)
        except OSError as e:
            raise LockWriteFailed(
                f"Could not set registry value. {e}",
                values_at_risk=LAYOUT_VALUES,
                backup_path=self.backup_path,
                needs_elevation=True,
            ) from e
        await self._restart_shell()
        self._advance(ApplyState.LOCKED)

    async def settle(self) -> None:
        """LOCKED -> SETTLED: give Explorer time to render the locked layout."""
        self._require(ApplyState.SETTLED)
        logger.debug(f"[Applier] Waiting {self.lock_settle_seconds}s for Explorer to restart")
        await asyncio.sleep(self.lock_settle_seconds)
        self._advance(ApplyState.SETTLED)

    async def unlock(self) -> None:
        """SETTLED -> UNLOCKED: release the lock and restart Explorer again."""
        self._require(ApplyState.UNLOCKED)
        try:
            self.config_store.set_flag(LOCKED_START_LAYOUT, 0)
        except OSError as e:
            raise UnlockWriteFailed(
                f"Could not set registry value. {e}",
                values_at_risk=LAYOUT_VALUES,
                backup_path=self.backup_path,
                needs_elevation=True,
            ) from e
        await self._restart_shell()
        self._advance(ApplyState.UNLOCKED)

    async def cleanup(self) -> None:
        """UNLOCKED -> CLEANED_UP: remove both policy values."""
        self._require(ApplyState.CLEANED_UP)
        await asyncio.sleep(self.restart_settle_seconds)
        failed = []
        errors = []
        for name in LAYOUT_VALUES:
            try:
                self.config_store.delete(name)
            except OSError as e:
                failed.append(name)
                errors.append(f"{name}: {e}")
        if failed:
            raise CleanupFailed(
                f"Could not delete registry value. {'; '.join(errors)}",
                values_at_risk=failed,
                backup_path=self.backup_path,
                needs_elevation=True,
            )
        self._advance(ApplyState.CLEANED_UP)

    async def _restart_shell(self) -> None:
        result = await self.runner.run(f"Stop-Process -ProcessName {SHELL_PROCESS}")
        if not result.ok:
            logger.warning(f"[Applier] Stopping {SHELL_PROCESS} reported errors; continuing")
