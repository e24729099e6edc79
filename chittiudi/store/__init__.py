"""
Store Module - Where bowls and device bookkeeping live.

- Shared store: every bowl as a whole, versioned document
- Transactions: optimistic read-modify-write with bounded retry
- Device store: identity, name and the local list of joined bowls
"""

from .shared import BowlStore, InMemoryBowlStore, JsonFileBowlStore, Subscription
from .transaction import transact, DEFAULT_MAX_RETRIES
from .device import DeviceStore

__all__ = [
    "BowlStore",
    "InMemoryBowlStore",
    "JsonFileBowlStore",
    "Subscription",
    "transact",
    "DEFAULT_MAX_RETRIES",
    "DeviceStore",
]
