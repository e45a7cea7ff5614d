"""Path anonymisation and device helpers.

Clients send ``base64(pathname)`` instead of the raw path; only the server
turns it back into a readable path for dashboards.
"""

from __future__ import annotations

import base64
import binascii
import re
from typing import Optional
from urllib.parse import unquote

_TABLET_RE = re.compile(r"(tablet|ipad|playbook|silk)|(android(?!.*mobi))", re.I)
_MOBILE_RE = re.compile(r"mobile|iphone|ipod|blackberry|iemobile|opera mini", re.I)


def hash_path(pathname: str) -> str:
    return base64.b64encode(pathname.encode("utf-8")).decode("ascii")


def unhash_path(page_hash: str) -> Optional[str]:
    """Reverse ``hash_path``; None when the token is not valid base64.

    Tokens made by browser ``btoa`` carry Latin-1 bytes rather than UTF-8.
    Paths ``btoa`` could not take are sent URI-encoded, which is the only
    case where the decoded text starts with an escaped slash.
    """
    try:
        raw = base64.b64decode(page_hash, validate=True)
    except (binascii.Error, ValueError):
        return None
    try:
        decoded = raw.decode("utf-8")
    except UnicodeDecodeError:
        decoded = raw.decode("latin-1")
    if decoded[:3].upper() == "%2F":
        return unquote(decoded)
    return decoded


def categorize_device(user_agent: str) -> str:
    """Map a User-Agent string onto mobile / tablet / desktop."""
    ua = user_agent or ""
    if _TABLET_RE.search(ua):
        return "tablet"
    if _MOBILE_RE.search(ua):
        return "mobile"
    return "desktop"
