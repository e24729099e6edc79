"""
Engine Errors - Typed failures raised by bowl operations.

Every error carries a machine-readable ``code`` so that the API layer and
the CLI can map failures without parsing messages.

Taxonomy:
- ValidationError: bad input or unmet precondition (recoverable)
- AuthorizationError: requester lacks the right (recoverable)
- BowlNotFound: the bowl is gone from the store
- StoreError: transient failure of the storage collaborator
"""

from __future__ import annotations


class ChittiUdiError(Exception):
    """Base class for all engine and store failures."""
    code = "error"

    def __init__(self, message: str, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(message)


# ============ Validation ============

class ValidationError(ChittiUdiError):
    """Input rejected; no mutation occurred."""
    code = "validation-error"


class PreconditionError(ValidationError):
    """Bowl does not hold enough data for the requested resolution."""
    code = "empty-source"


# ============ Authorization ============

class AuthorizationError(ChittiUdiError):
    """Requester is neither owner nor (where allowed) member."""
    code = "not-owner"


# ============ Store ============

class BowlNotFound(ChittiUdiError):
    """Bowl does not exist in the shared store."""
    code = "bowl-not-found"

    def __init__(self, bowl_id: str):
        self.bowl_id = bowl_id
        super().__init__(f"Bowl {bowl_id} not found")


class StoreError(ChittiUdiError):
    """Storage collaborator failed (I/O, network)."""
    code = "store-failure"


class ConflictError(StoreError):
    """Stored revision moved on since the snapshot was read."""
    code = "conflict"

    def __init__(self, bowl_id: str, expected: int | None, actual: int | None):
        self.bowl_id = bowl_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Bowl {bowl_id} changed concurrently "
            f"(expected revision {expected}, found {actual})"
        )
