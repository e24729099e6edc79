"""
Bowl Operations - Creation, entry submission, deletion and clearing.

All functions are pure: they take a Bowl snapshot and return a new Bowl
or raise a typed error. Persisting the result is the caller's job.
"""

from __future__ import annotations
from typing import Any
import uuid

from .bowl import Bowl, BowlType, Entry, Member, User
from .authorization import require_owner
from .errors import ValidationError


def _coerce_count(value: Any) -> int:
    """Non-numeric input becomes 0, negatives become 0, floats truncate."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = int(float(value)) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return max(number, 0)


def _require_name(user: User) -> None:
    if not user.name or not user.name.strip():
        raise ValidationError("Please set your name first", code="missing-name")


def create_bowl(
    owner: User,
    name: str,
    description: str = "",
    member_limit: Any = 0,
    input_count: Any = 0,
    type: BowlType | str = BowlType.PICK_ONE_DISCARD,
    bowl_id: str | None = None,
) -> Bowl:
    """
    Create a new bowl owned by ``owner``.

    Members and entries start empty and ``output`` is absent.
    """
    _require_name(owner)
    try:
        bowl_type = BowlType.parse(type)
    except ValueError as e:
        raise ValidationError(str(e), code="invalid-type") from e

    return Bowl(
        id=bowl_id or str(uuid.uuid4()),
        name=(name or "").strip(),
        description=(description or "").strip(),
        owner_id=owner.id,
        owner_name=owner.name,
        type=bowl_type,
        member_limit=_coerce_count(member_limit),
        input_count=_coerce_count(input_count),
    )


def add_member_if_absent(bowl: Bowl, requester: User) -> Bowl:
    """Membership is append-only; existing members keep their first name."""
    return bowl.with_member_if_absent(Member.from_user(requester))


def append_entry(bowl: Bowl, requester: User, text: str) -> Bowl:
    entry = Entry(
        id=str(uuid.uuid4()),
        text=text,
        user_id=requester.id,
        user_name=requester.name,
    )
    return bowl.with_entry(entry)


def submit_entry(bowl: Bowl, requester: User, text: str) -> Bowl:
    """
    Add one entry on behalf of ``requester``.

    Checks, in order: requester has a name, non-owners stay within
    ``input_count``, the trimmed text is non-empty and not already in the
    bowl. The requester becomes a member in the same transition.
    """
    _require_name(requester)

    if not bowl.is_owner(requester.id) and bowl.input_count > 0:
        if len(bowl.entries_by(requester.id)) >= bowl.input_count:
            raise ValidationError(
                f"You can only add {bowl.input_count} "
                f"entr{'y' if bowl.input_count == 1 else 'ies'} to this bowl",
                code="limit-reached",
            )

    trimmed = (text or "").strip()
    if not trimmed:
        raise ValidationError("Entry cannot be empty", code="empty-entry")
    if bowl.has_entry_text(trimmed):
        raise ValidationError(
            f"'{trimmed}' is already in the bowl",
            code="duplicate-entry",
        )

    return append_entry(add_member_if_absent(bowl, requester), requester, trimmed)


def delete_entry(bowl: Bowl, requester: User, entry_id: str) -> Bowl:
    """Owner-only. Unknown ids succeed without change."""
    require_owner(bowl, requester, action="delete entries")
    return bowl.without_entry(entry_id)


def clear_entries(bowl: Bowl, requester: User) -> Bowl:
    """Owner-only. Empties entries and resets output to an empty string."""
    require_owner(bowl, requester, action="clear entries")
    return bowl.cleared()


def authorize_delete_bowl(bowl: Bowl, requester: User) -> None:
    """Owner-only. Removing the document is left to the store."""
    require_owner(bowl, requester, action="delete this bowl")
