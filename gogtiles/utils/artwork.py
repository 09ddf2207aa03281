"""Artwork utilities for locating and checking cached tile icons."""

import os
from typing import Dict

VISUAL_ELEMENTS_DIR = "VisualElements"
ICON_PREFIX = "MediumIcon"

GOG_IMAGES_BASE_URL = "https://images.gog.com"


def get_visual_elements_dir(start_menu_dir: str) -> str:
    """Directory holding the downloaded tile icons."""
    return os.path.join(start_menu_dir, VISUAL_ELEMENTS_DIR)


def get_icon_path(start_menu_dir: str, file_key: str) -> str:
    """Absolute path of the cached icon for a game.

    Args:
        start_menu_dir: Shortcut directory
        file_key: Filesystem-safe release key

    Returns:
        Path of the png used for both the medium and the small tile
    """
    return os.path.join(get_visual_elements_dir(start_menu_dir), f"{ICON_PREFIX}{file_key}.png")


def get_manifest_icon_path(file_key: str) -> str:
    """Icon path as referenced from the visual elements manifest (relative, backslashes)."""
    return f"{VISUAL_ELEMENTS_DIR}\\{ICON_PREFIX}{file_key}.png"


def get_icon_url(icon_file: str, base_url: str = GOG_IMAGES_BASE_URL) -> str:
    """URL of a square icon on the GOG image CDN."""
    return f"{base_url.rstrip('/')}/{icon_file}?namespace=gamesdb"


def check_icon_exists(start_menu_dir: str, file_key: str) -> bool:
    """Check whether the icon for this game was already downloaded.

    Directories with the icon's name do not count.
    """
    return os.path.isfile(get_icon_path(start_menu_dir, file_key))


def get_artifact_paths(start_menu_dir: str, file_key: str, title: str) -> Dict[str, str]:
    """Get paths for every file created for a single game.

    Returns:
        Dict mapping artifact type to file path
    """
    base = os.path.join(start_menu_dir, file_key)
    return {
        'launcher': f"{base}.bat",
        'manifest': f"{base}.VisualElementsManifest.xml",
        'shortcut': os.path.join(start_menu_dir, f"{title}.lnk"),
        'icon': get_icon_path(start_menu_dir, file_key),
    }
