"""
Links - Deep links into a bowl and the share message that carries them.

A bowl link is any URL whose path contains ``/bowl/{id}``, e.g.
``https://yourapp.com/bowl/3f2a...`` or ``chittiudi://bowl/3f2a...``.
"""

from __future__ import annotations
from dataclasses import dataclass
from urllib.parse import unquote, urlsplit
import re

_BOWL_PATH = re.compile(r"(?:^|/)bowl/([^/?#]+)")


@dataclass(frozen=True)
class ShareMessage:
    """What the share sheet receives."""
    url: str
    message: str
    title: str = "Share Bowl"


def bowl_url(bowl_id: str, base_url: str) -> str:
    return f"{base_url.rstrip('/')}/bowl/{bowl_id}"


def share_bowl(bowl_id: str, base_url: str) -> ShareMessage:
    url = bowl_url(bowl_id, base_url)
    return ShareMessage(url=url, message=f"Check out this bowl! {url}")


def parse_bowl_link(url: str) -> str | None:
    """Return the bowl id in ``url``, or None if it is not a bowl link."""
    if not url:
        return None
    parts = urlsplit(url.strip())
    # Custom schemes put "bowl" in the host: chittiudi://bowl/{id}
    path = f"{parts.netloc}/{parts.path.lstrip('/')}" if parts.scheme else parts.path
    match = _BOWL_PATH.search(path)
    if not match:
        return None
    bowl_id = unquote(match.group(1)).strip()
    return bowl_id or None
