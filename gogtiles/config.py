"""
Run configuration for gogtiles.

All settings live in one frozen TilesConfig that is built once at startup
(CLI flags layered over an optional JSON settings file) and handed to every
component explicitly.
"""
import json
import logging
import sys
from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Dict, Optional

from gogtiles.errors import ConfigurationError
from gogtiles.stores.base import Selector
from gogtiles.utils.artwork import GOG_IMAGES_BASE_URL
from gogtiles.utils.paths import (
    DEFAULT_BACKUP_FILE,
    DEFAULT_GALAXY_DIR,
    DEFAULT_GALAXY_CLIENT,
    DEFAULT_LAYOUT_FILE,
    get_database_path,
    get_default_start_menu_dir,
)

logger = logging.getLogger(__name__)

SUPPORTED_WIDTHS = (3, 4)
SUPPORTED_TILE_SIZES = (1, 2)
DEFAULT_TAG = "StartMenuTiles"


@dataclass(frozen=True)
class TilesConfig:
    """Immutable settings for one run"""
    galaxy_dir: str = DEFAULT_GALAXY_DIR
    database_path: str = ""  # derived from galaxy_dir when empty
    galaxy_client: str = DEFAULT_GALAXY_CLIENT
    start_menu_dir: str = ""  # resolved to the user's Start Menu when empty
    tag_name: str = DEFAULT_TAG  # tag, INSTALLED or ALL
    group_name: str = ""
    width: int = 3
    height: int = 7
    tile_size: int = 2
    hide_name: bool = False
    force: bool = False
    assume_yes: bool = False
    apply: bool = True
    layout_file: str = DEFAULT_LAYOUT_FILE
    backup_file: str = DEFAULT_BACKUP_FILE
    icon_base_url: str = GOG_IMAGES_BASE_URL
    powershell_downloads: bool = False  # Invoke-WebRequest instead of aiohttp
    # Explorer reloads asynchronously; these are fixed waits, not readiness checks
    shortcut_settle_seconds: float = 8.0
    lock_settle_seconds: float = 5.0
    restart_settle_seconds: float = 3.0
    require_windows: bool = True

    def __post_init__(self):
        self._check_types()
        if not self.database_path:
            object.__setattr__(self, 'database_path', get_database_path(self.galaxy_dir))
        if not self.start_menu_dir:
            object.__setattr__(self, 'start_menu_dir', get_default_start_menu_dir())

    def _check_types(self) -> None:
        """Settings files are untyped JSON; reject values of the wrong kind."""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type is bool:
                if not isinstance(value, bool):
                    raise ConfigurationError(f"{f.name} must be true or false.")
            elif f.type in (int, float):
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigurationError(f"{f.name} must be a number.")
                if f.type is int and not isinstance(value, int):
                    raise ConfigurationError(f"{f.name} must be a whole number.")
            elif f.type is str and not isinstance(value, str):
                raise ConfigurationError(f"{f.name} must be a string.")

    @property
    def selector(self) -> Selector:
        return Selector.parse(self.tag_name)

    def validate(self) -> "TilesConfig":
        """Reject unsupported values before anything touches disk or registry.

        Returns:
            self, so construction and validation can be chained

        Raises:
            ConfigurationError: On the first invalid setting found
        """
        if self.require_windows and sys.platform != "win32":
            raise ConfigurationError("This App does only support Windows 10!")
        if self.width not in SUPPORTED_WIDTHS:
            raise ConfigurationError("width has to be 3 or 4.")
        if self.tile_size not in SUPPORTED_TILE_SIZES:
            raise ConfigurationError("tileSize has to be 1 or 2.")
        if self.height < 1:
            raise ConfigurationError("height has to be at least 1.")
        if not self.tag_name:
            raise ConfigurationError("tagName must not be empty.")
        for name in ('shortcut_settle_seconds', 'lock_settle_seconds', 'restart_settle_seconds'):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} must not be negative.")
        return self

    def with_overrides(self, **overrides: Any) -> "TilesConfig":
        """Copy with the given fields replaced; None values are ignored."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if 'galaxy_dir' in changes and 'database_path' not in changes:
            changes['database_path'] = ""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TilesConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown settings: {', '.join(unknown)}")
        return cls(**data)


def load_settings(path: Optional[str]) -> TilesConfig:
    """Load a JSON settings file into a config, or return the defaults.

    Args:
        path: Settings file, or None for defaults only

    Raises:
        ConfigurationError: Unreadable file, invalid JSON or unknown keys
    """
    if not path:
        return TilesConfig()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not read settings file '{path}'. {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file '{path}' must contain a JSON object.")
    logger.debug(f"Loaded {len(data)} settings from {path}")
    return TilesConfig.from_dict(data)
