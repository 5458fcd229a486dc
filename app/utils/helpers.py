"""Helper utilities."""

import math
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def escape_regex(text: str) -> str:
    """Escape a user-supplied string for literal use inside a MongoDB $regex."""
    return re.escape(text)


def total_pages(total_items: int, page_size: int) -> int:
    if page_size <= 0:
        return 0
    return math.ceil(total_items / page_size)


def paginate(page: int = 1, page_size: int = 10) -> Dict[str, int]:
    """Offset pagination values for a 1-based page."""
    page = max(page, 1)
    return {
        "skip": (page - 1) * page_size,
        "limit": page_size,
        "page": page,
    }


_BROWSER_PATTERNS = [
    ("Edge", r"Edg(?:e|A|iOS)?/([\d.]+)"),
    ("Opera", r"(?:OPR|Opera)/([\d.]+)"),
    ("Samsung Internet", r"SamsungBrowser/([\d.]+)"),
    ("Chrome", r"(?:Chrome|CriOS)/([\d.]+)"),
    ("Firefox", r"(?:Firefox|FxiOS)/([\d.]+)"),
    ("Safari", r"Version/([\d.]+).*Safari/"),
]

_OS_PATTERNS = [
    ("Windows", r"Windows NT ([\d.]+)"),
    ("iOS", r"(?:iPhone|iPad|iPod).*OS ([\d_]+)"),
    ("Android", r"Android ([\d.]+)"),
    ("Mac OS", r"Mac OS X ([\d_.]+)"),
    ("Chrome OS", r"CrOS \S+ ([\d.]+)"),
    ("Linux", r"Linux()"),
]


def _match_first(patterns, user_agent: str) -> str:
    for name, pattern in patterns:
        match = re.search(pattern, user_agent)
        if match:
            version = (match.group(1) or "").replace("_", ".")
            return f"{name} {version}".strip()
    return "Unknown"


def parse_user_agent(user_agent: Optional[str]) -> Dict[str, str]:
    """Best-effort browser, OS and device class from a User-Agent header."""
    if not user_agent:
        return {"browser": "Unknown", "os": "Unknown", "device": "Unknown"}

    if re.search(r"iPad|Tablet", user_agent):
        device = "tablet"
    elif re.search(r"Mobi|iPhone|Android", user_agent):
        device = "mobile"
    else:
        device = "desktop"

    return {
        "browser": _match_first(_BROWSER_PATTERNS, user_agent),
        "os": _match_first(_OS_PATTERNS, user_agent),
        "device": device,
    }


def client_ip(request: Request) -> str:
    """Client address, honouring the first X-Forwarded-For hop behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def request_metadata(request: Request, role: str, now: datetime) -> Dict[str, Any]:
    """Audit metadata stored with every newly created item."""
    user_agent = request.headers.get("user-agent", "")
    return {
        "ip": client_ip(request),
        **parse_user_agent(user_agent),
        "ua": user_agent,
        "timestamp": now,
        "userRole": role,
        "referer": request.headers.get("referer", ""),
    }
