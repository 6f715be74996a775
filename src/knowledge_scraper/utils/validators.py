"""Validation helpers."""

from __future__ import annotations

import re
from urllib.parse import urlparse


def is_valid_http_url(url: str) -> bool:
    try:
        parsed = urlparse(url)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)
    except Exception:
        return False


def url_slug(url: str) -> str:
    """Lowercase slug of a URL for download file names."""
    return re.sub(r"[^a-z0-9]", "-", url, flags=re.IGNORECASE).lower()
