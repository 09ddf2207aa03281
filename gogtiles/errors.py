"""Exception hierarchy for gogtiles.

Every fatal condition raised by the catalog, planner, shortcut builder and the
shell applier derives from TilesError so the CLI can report it in one place.
Recoverable conditions (duplicate titles, failed icon downloads) are logged
instead of raised.
"""

from typing import Optional, Sequence


class TilesError(Exception):
    """Base class for all gogtiles errors"""


class ConfigurationError(TilesError):
    """Invalid flag or settings combination, detected before any side effect"""


class SourceUnavailable(TilesError):
    """The GOG Galaxy database could not be opened or queried"""


class EmptyResult(TilesError):
    """The selector matched no games"""


class CapacityExceeded(TilesError):
    """More games matched than the Start Menu can hold safely"""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"Adding too many tiles causes unexpected behaviour. "
            f"{count} tiles can not be created safely (limit is {limit})."
        )


class ApplyError(TilesError):
    """Fatal failure while committing the layout to the shell configuration.

    Attributes:
        values_at_risk: Registry value names that may be left inconsistent
        backup_path: Path of the layout backup written before any change
        needs_elevation: True when the failure is a registry write/delete,
            which usually means the program lacks privileges
    """

    def __init__(
        self,
        message: str,
        values_at_risk: Sequence[str] = (),
        backup_path: Optional[str] = None,
        needs_elevation: bool = False,
    ):
        self.values_at_risk = tuple(values_at_risk)
        self.backup_path = backup_path
        self.needs_elevation = needs_elevation
        super().__init__(message)

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.needs_elevation:
            parts.append("You might have to run the program with admin rights.")
        if self.values_at_risk:
            names = ", ".join(f"'{name}'" for name in self.values_at_risk)
            parts.append(f"Registry values {names} may be left in an inconsistent state.")
        if self.backup_path:
            parts.append(f"Your previous Start Layout was exported to '{self.backup_path}'.")
        return " ".join(parts)


class BackupFailed(ApplyError):
    """Exporting the current Start Layout failed"""


class ConfigUnavailable(ApplyError):
    """The registry key holding the layout policy could not be read"""


class LockWriteFailed(ApplyError):
    """Writing the layout path or setting the lock flag failed"""


class UnlockWriteFailed(ApplyError):
    """Clearing the lock flag failed"""


class CleanupFailed(ApplyError):
    """Deleting the layout policy values failed"""
