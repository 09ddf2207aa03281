"""
Base game source definitions.

GameRecord is the normalized shape every later stage works on, and GameSource
is the interface a library backend implements to hand out raw rows for a
selector.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from gogtiles.utils.sanitize import normalize_icon_file, sanitize, sanitize_title

# (releaseKey, icon resource filename, raw title value)
RawGameRow = Tuple[str, Optional[str], Optional[str]]


class SelectorMode(Enum):
    TAG = "tag"
    INSTALLED = "INSTALLED"
    ALL = "ALL"


@dataclass(frozen=True)
class Selector:
    """Which games of the library end up in the Start Menu"""
    mode: SelectorMode
    tag: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "Selector":
        """Interpret the --tagName flag: INSTALLED and ALL are reserved, anything else is a tag."""
        if value == SelectorMode.INSTALLED.value:
            return cls(SelectorMode.INSTALLED)
        if value == SelectorMode.ALL.value:
            return cls(SelectorMode.ALL)
        return cls(SelectorMode.TAG, value)

    def describe(self) -> str:
        if self.mode is SelectorMode.TAG:
            return f"tag '{self.tag}'"
        return f"{self.mode.value.lower()} games"


@dataclass(frozen=True)
class GameRecord:
    """Represents one game that gets a Start Menu tile"""
    release_key: str
    raw_title: str
    title: str  # sanitized, unique across a catalog
    file_key: str  # release_key made filesystem safe
    icon_file: str  # CDN filename with the local image suffix

    @classmethod
    def from_row(cls, release_key: str, icon_file: Optional[str], raw_title: Optional[str]) -> "GameRecord":
        raw_title = raw_title or ""
        return cls(
            release_key=release_key,
            raw_title=raw_title,
            title=sanitize_title(raw_title),
            file_key=sanitize(release_key),
            icon_file=normalize_icon_file(icon_file or ""),
        )


class GameSource(ABC):
    """
    Abstract base class for game library backends.

    Implementations return raw rows; normalization and validation happen in
    the catalog so every backend yields records of the same shape.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return a human readable name of the backend"""
        pass

    @abstractmethod
    def fetch_rows(self, selector: Selector) -> List[RawGameRow]:
        """
        Query the library for games matching the selector.

        Args:
            selector: Tag, installed or all-owned filter.

        Returns:
            Rows of (release_key, icon_file, raw_title).

        Raises:
            SourceUnavailable: The backend cannot be opened or queried.
        """
        pass
