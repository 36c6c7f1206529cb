"""Text helpers for output file naming."""

from datetime import datetime
from typing import Optional

FALLBACK_SLUG = "event"


def slugify(text: str) -> str:
    """Make a lowercase, hyphen-separated, filename-safe slug.

    Anything outside ASCII letters and digits becomes a single hyphen;
    leading and trailing hyphens are dropped. Returns ``"event"`` when
    nothing usable remains.

    Example:
        >>> slugify("Meeting @ 3pm")
        'meeting-3pm'
    """
    chars = []
    prev_hyphen = True
    for char in (text or "").strip().lower():
        if ("a" <= char <= "z") or ("0" <= char <= "9"):
            chars.append(char)
            prev_hyphen = False
        elif not prev_hyphen:
            chars.append("-")
            prev_hyphen = True

    slug = "".join(chars).strip("-")
    return slug or FALLBACK_SLUG


def safe_filename(summary: str, start: Optional[datetime] = None, extension: str = ".ics") -> str:
    """Build ``<slug>[-YYYYMMDD].ics`` for an event."""
    name = slugify(summary)
    if start is not None:
        name = f"{name}-{start.strftime('%Y%m%d')}"
    return f"{name}{extension}"
