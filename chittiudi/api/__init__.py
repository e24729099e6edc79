"""
API Module - Service and HTTP interface.

Exposes bowls via REST for mobile consumption. The mobile app:
1. Creates bowls
2. Adds entries
3. Juggles bowls and reads the output
4. Shares bowl links
5. Subscribes to live snapshots over a WebSocket

The requester is identified per request by device id and display name.
"""

from .schemas import (
    # Requests
    CreateBowlRequest,
    SubmitEntryRequest,
    # Responses
    BowlInfo,
    BowlListResponse,
    ResolveResponse,
    ShareResponse,
    DeleteBowlResponse,
    ErrorResponse,
    HealthResponse,
    # Shared
    MemberInfo,
    EntryInfo,
    ErrorCode,
)
from .service import BowlService
from .app import create_app

__all__ = [
    # Requests
    "CreateBowlRequest",
    "SubmitEntryRequest",
    # Responses
    "BowlInfo",
    "BowlListResponse",
    "ResolveResponse",
    "ShareResponse",
    "DeleteBowlResponse",
    "ErrorResponse",
    "HealthResponse",
    # Shared
    "MemberInfo",
    "EntryInfo",
    "ErrorCode",
    # Service
    "BowlService",
    "create_app",
]
