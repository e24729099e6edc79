"""
Authorization - Who may do what to a bowl.

The owner holds every right. Members may only draw from the two
pick-one bowl types.
"""

from __future__ import annotations

from .bowl import Bowl, BowlType, User
from .errors import AuthorizationError


# Bowl types any member may resolve; all others are owner-only
OPEN_RESOLUTION_TYPES = frozenset({
    BowlType.PICK_ONE_DISCARD,
    BowlType.PICK_ONE_KEEP,
})


def is_owner(bowl: Bowl, user: User) -> bool:
    return bowl.is_owner(user.id)


def is_member(bowl: Bowl, user: User) -> bool:
    return bowl.is_member(user.id)


def require_owner(bowl: Bowl, user: User, action: str = "do that") -> None:
    if not is_owner(bowl, user):
        raise AuthorizationError(
            f"Only the owner of '{bowl.name}' can {action}",
            code="not-owner",
        )


def require_member_or_owner(bowl: Bowl, user: User, action: str = "do that") -> None:
    if not (is_owner(bowl, user) or is_member(bowl, user)):
        raise AuthorizationError(
            f"Only members of '{bowl.name}' can {action}",
            code="not-member",
        )


def require_can_resolve(bowl: Bowl, user: User) -> None:
    """Raise AuthorizationError unless user may resolve this bowl's type."""
    if bowl.type in OPEN_RESOLUTION_TYPES:
        require_member_or_owner(bowl, user, action="draw from it")
    else:
        require_owner(bowl, user, action="juggle it")
