"""Title and identifier clean-up for Start Menu artifacts.

File names, shortcut names and layout link paths are all derived from these
helpers, so they only ever contain characters that are safe on NTFS and inside
the layout XML.
"""

import re

DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9 +_#!()=-]+")

# GOG Galaxy caches square icons as webp; the image CDN serves png for the same name.
CACHED_ICON_SUFFIX = ".webp"
LOCAL_ICON_SUFFIX = ".png"


def sanitize(text: str) -> str:
    """Remove every character outside the allow-list."""
    if not text:
        return ""
    return DISALLOWED_CHARS.sub("", text)


def strip_title_prefix(raw_title: str) -> str:
    """Drop everything up to and including the first colon.

    Galaxy stores titles as JSON fragments like '{"title":"Name"}'. Titles
    without a colon are returned unchanged.
    """
    if not raw_title:
        return ""
    _, sep, rest = raw_title.partition(":")
    return rest if sep else raw_title


def sanitize_title(raw_title: str) -> str:
    """Build the display title used for shortcut names and tile links."""
    return sanitize(strip_title_prefix(raw_title))


def normalize_icon_file(icon_file: str) -> str:
    """Map a cached resource filename to the image format downloaded locally."""
    if not icon_file:
        return ""
    return icon_file.replace(CACHED_ICON_SUFFIX, LOCAL_ICON_SUFFIX)
