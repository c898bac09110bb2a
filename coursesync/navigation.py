"""
Initial view selection from the URL fragment.

A link like https://example.org/#%E5%B7%B2%E9%81%B8%E5%8C%AF%E5%87%BA opens the
app on the "已選匯出" view. This is read once at startup; it is not a router.
"""

from __future__ import annotations

from typing import Optional
from urllib.parse import unquote, urlsplit

VIEWS = ("所有課程", "學期必修", "課程偵探", "已選匯出", "公告")
DEFAULT_VIEW = "公告"


def fragment_from_url(url: str) -> str:
    """Return the '#...' part of ``url`` (still encoded), or ''."""
    fragment = urlsplit(url).fragment
    return f"#{fragment}" if fragment else ""


def restore_view(fragment: Optional[str], current: str = DEFAULT_VIEW) -> str:
    if not fragment:
        return current

    decoded = unquote(fragment)
    if decoded.startswith("#") and decoded[1:] in VIEWS:
        return decoded[1:]
    return current
