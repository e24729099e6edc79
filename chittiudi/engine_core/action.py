"""
Action System - Actions, payloads, and results.

Every bowl mutation a user can trigger is expressed as an Action and
applied by the Reducer. Bowl creation and deletion are not actions: they
create or remove the document rather than transition it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .bowl import User
from .errors import ChittiUdiError, ValidationError


class ActionType(Enum):
    """Types of bowl mutations."""
    SUBMIT_ENTRY = "submit_entry"
    RESOLVE = "resolve"
    DELETE_ENTRY = "delete_entry"
    CLEAR_ENTRIES = "clear_entries"


@dataclass
class ActionPayload:
    """
    Parameters of an action.

    Which fields are used depends on the action type; the reducer checks
    that the ones it needs are present.
    """
    requester: User
    text: str | None = None
    entry_id: str | None = None


@dataclass
class Action:
    """A complete action to be applied to a bowl."""
    action_type: ActionType
    payload: ActionPayload

    @classmethod
    def submit_entry(cls, requester: User, text: str) -> Action:
        """Factory for entry submission."""
        return cls(
            action_type=ActionType.SUBMIT_ENTRY,
            payload=ActionPayload(requester=requester, text=text),
        )

    @classmethod
    def resolve(cls, requester: User) -> Action:
        """Factory for resolution."""
        return cls(
            action_type=ActionType.RESOLVE,
            payload=ActionPayload(requester=requester),
        )

    @classmethod
    def delete_entry(cls, requester: User, entry_id: str) -> Action:
        """Factory for entry deletion."""
        return cls(
            action_type=ActionType.DELETE_ENTRY,
            payload=ActionPayload(requester=requester, entry_id=entry_id),
        )

    @classmethod
    def clear_entries(cls, requester: User) -> Action:
        """Factory for clearing all entries."""
        return cls(
            action_type=ActionType.CLEAR_ENTRIES,
            payload=ActionPayload(requester=requester),
        )


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New bowl (if succeeded)
    - The typed error and its code (if failed)
    - Human-readable changes (for UI/logging)
    """
    success: bool
    new_state: Any | None = None  # Bowl
    error: str | None = None
    error_code: str | None = None
    exception: ChittiUdiError | None = None

    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def failure_from(cls, exc: ChittiUdiError) -> ActionResult:
        """Create a failure result that keeps the typed error."""
        return cls(success=False, error=exc.message, error_code=exc.code, exception=exc)

    @classmethod
    def success_with_state(cls, state: Any, changes: list[str] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, state_changes=changes or [])

    def unwrap(self) -> Any:
        """Return the new bowl, or raise the error that stopped the action."""
        if self.success:
            return self.new_state
        if self.exception is not None:
            raise self.exception
        raise ValidationError(self.error or "Action failed", code=self.error_code)
