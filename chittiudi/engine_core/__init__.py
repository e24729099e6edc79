"""
Engine Core - Bowl state and its transitions.

The engine:
1. Holds the Bowl data model
2. Validates entry submissions (name, limit, uniqueness)
3. Enforces ownership and membership rules
4. Resolves bowls per type with uniform randomness
5. Applies actions via the reducer

It never touches storage: callers pass a snapshot in and persist what
comes back.
"""

from .bowl import Bowl, BowlType, Entry, Member, User
from .errors import (
    ChittiUdiError,
    ValidationError,
    PreconditionError,
    AuthorizationError,
    BowlNotFound,
    StoreError,
    ConflictError,
)
from .operations import (
    create_bowl,
    add_member_if_absent,
    append_entry,
    submit_entry,
    delete_entry,
    clear_entries,
    authorize_delete_bowl,
)
from .resolution import resolve, shuffled, make_pairs, secret_santa, Pair
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action

__all__ = [
    "Bowl",
    "BowlType",
    "Entry",
    "Member",
    "User",
    "ChittiUdiError",
    "ValidationError",
    "PreconditionError",
    "AuthorizationError",
    "BowlNotFound",
    "StoreError",
    "ConflictError",
    "create_bowl",
    "add_member_if_absent",
    "append_entry",
    "submit_entry",
    "delete_entry",
    "clear_entries",
    "authorize_delete_bowl",
    "resolve",
    "shuffled",
    "make_pairs",
    "secret_santa",
    "Pair",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
]
