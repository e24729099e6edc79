"""
Session Module - The device side of Chitti Udi.

A device session:
- Knows who the user is (device id + chosen name)
- Keeps the local list of bowls created or joined
- Follows shared bowl links, deferring until a name exists
- Forwards entry and juggle actions to the BowlService
"""

from .manager import DeviceSession, JoinResult, JoinStatus
from .links import ShareMessage, bowl_url, parse_bowl_link, share_bowl

__all__ = [
    "DeviceSession",
    "JoinResult",
    "JoinStatus",
    "ShareMessage",
    "bowl_url",
    "parse_bowl_link",
    "share_bowl",
]
