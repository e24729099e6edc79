"""
Reducer - Applies actions to a bowl.

The reducer is the single point of bowl mutation.
All entry and resolution changes go through apply_action().

Design principles:
- Pure function: (bowl, action) -> new bowl
- Validates before applying
- Returns ActionResult with success/failure
- Delegates the rules to operations and resolution
"""

from __future__ import annotations
from dataclasses import dataclass, field
import random

from .bowl import Bowl
from .action import Action, ActionType, ActionResult
from .errors import ChittiUdiError, ValidationError
from . import operations
from .resolution import resolve


@dataclass
class Reducer:
    """
    Reducer applies actions to bowls.

    Stateless apart from the random source used by resolution.
    """
    rng: random.Random = field(default_factory=random.Random)

    def apply(self, bowl: Bowl, action: Action) -> ActionResult:
        """
        Apply an action to the bowl.

        Returns ActionResult with new bowl or error. Only engine errors are
        turned into failures; anything else propagates.
        """
        validation_error = self._validate_action(action)
        if validation_error:
            return ActionResult.failure_from(
                ValidationError(validation_error, code="INVALID_ACTION")
            )

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        try:
            return handler(bowl, action)
        except ChittiUdiError as e:
            return ActionResult.failure_from(e)

    def _validate_action(self, action: Action) -> str | None:
        """
        Validate that the action carries what its handler needs.

        Returns error message if invalid, None if valid.
        """
        payload = action.payload
        if payload.requester is None or not payload.requester.id:
            return "Action has no requester"
        if action.action_type == ActionType.SUBMIT_ENTRY and payload.text is None:
            return "Entry text is required"
        if action.action_type == ActionType.DELETE_ENTRY and not payload.entry_id:
            return "Entry id is required"
        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.SUBMIT_ENTRY: self._handle_submit_entry,
            ActionType.RESOLVE: self._handle_resolve,
            ActionType.DELETE_ENTRY: self._handle_delete_entry,
            ActionType.CLEAR_ENTRIES: self._handle_clear_entries,
        }
        return handlers.get(action_type)

    def _handle_submit_entry(self, bowl: Bowl, action: Action) -> ActionResult:
        requester = action.payload.requester
        new_bowl = operations.submit_entry(bowl, requester, action.payload.text)
        entry = new_bowl.list_entries[-1]
        return ActionResult.success_with_state(
            new_bowl,
            changes=[f"{requester.name} added '{entry.text}'"],
        )

    def _handle_resolve(self, bowl: Bowl, action: Action) -> ActionResult:
        new_bowl = resolve(bowl, action.payload.requester, self.rng)
        changes = [f"{action.payload.requester.name} juggled '{bowl.name}'"]
        removed = len(bowl.list_entries) - len(new_bowl.list_entries)
        if removed:
            changes.append(f"Drew and removed '{new_bowl.output}'")
        return ActionResult.success_with_state(new_bowl, changes=changes)

    def _handle_delete_entry(self, bowl: Bowl, action: Action) -> ActionResult:
        entry_id = action.payload.entry_id
        entry = bowl.get_entry(entry_id)
        new_bowl = operations.delete_entry(bowl, action.payload.requester, entry_id)
        if entry is None:
            return ActionResult.success_with_state(new_bowl, changes=[])
        return ActionResult.success_with_state(
            new_bowl,
            changes=[f"Deleted '{entry.text}'"],
        )

    def _handle_clear_entries(self, bowl: Bowl, action: Action) -> ActionResult:
        new_bowl = operations.clear_entries(bowl, action.payload.requester)
        return ActionResult.success_with_state(
            new_bowl,
            changes=[f"Cleared {len(bowl.list_entries)} entries"],
        )


def apply_action(bowl: Bowl, action: Action, rng: random.Random | None = None) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rng=rng) if rng is not None else Reducer()
    return reducer.apply(bowl, action)
