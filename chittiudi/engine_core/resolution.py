"""
Resolution - Turns a bowl's entries or members into an output.

Each call draws fresh randomness. Pass a seeded ``random.Random`` to make
a run reproducible; output should otherwise be treated as
non-deterministic and checked structurally.

Order of checks for every type:
1. Authorization (owner, or member for the pick-one types)
2. Data sufficiency (non-empty source, two members for pairs/santa)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar
import random

from .bowl import Bowl, BowlType, User
from .authorization import require_can_resolve
from .errors import PreconditionError

T = TypeVar("T")

SECRET_SANTA_HEADER = "Secret Santa assignments:"


def shuffled(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Fisher-Yates shuffle into a new list; ``items`` is left untouched."""
    rng = rng or random.Random()
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


@dataclass(frozen=True)
class Pair:
    """One group from MAKE_PAIRS. ``second`` is None for the solo leftover."""
    first: str
    second: str | None = None

    @property
    def is_solo(self) -> bool:
        return self.second is None


def make_pairs(names: Sequence[str], rng: random.Random | None = None) -> list[Pair]:
    """Shuffle, then group consecutively; an odd count leaves one solo."""
    order = shuffled(names, rng)
    pairs = []
    for i in range(0, len(order), 2):
        second = order[i + 1] if i + 1 < len(order) else None
        pairs.append(Pair(first=order[i], second=second))
    return pairs


def secret_santa(
    names: Sequence[str], rng: random.Random | None = None
) -> list[tuple[str, str]]:
    """
    Assign each giver (in original order) the name one step ahead of their
    own index in a separately shuffled copy.

    This is a cyclic offset, not a derangement: for small groups a giver
    can draw themselves.
    """
    order = shuffled(names, rng)
    count = len(order)
    return [(giver, order[(index + 1) % count]) for index, giver in enumerate(names)]


def _numbered(lines: Sequence[str]) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))


def format_pairs(pairs: Sequence[Pair]) -> str:
    lines = []
    for i, pair in enumerate(pairs, start=1):
        if pair.is_solo:
            lines.append(f"{pair.first} (Solo)")
        else:
            lines.append(f"Pair {i}: {pair.first} & {pair.second}")
    return "\n".join(lines)


def format_secret_santa(assignments: Sequence[tuple[str, str]]) -> str:
    lines = [SECRET_SANTA_HEADER]
    lines.extend(f"{giver} → {receiver}" for giver, receiver in assignments)
    return "\n".join(lines)


# =============================================================================
# Per-type resolvers
# =============================================================================

def _check_sufficient(bowl: Bowl) -> None:
    if bowl.type.uses_entries:
        if not bowl.list_entries:
            raise PreconditionError(
                f"'{bowl.name}' has no entries yet", code="empty-source"
            )
        return

    if not bowl.list_members:
        raise PreconditionError(
            f"'{bowl.name}' has no members yet", code="empty-source"
        )
    if bowl.type in {BowlType.MAKE_PAIRS, BowlType.SECRET_SANTA}:
        if len(bowl.list_members) < 2:
            raise PreconditionError(
                f"'{bowl.name}' needs at least 2 members",
                code="insufficient-members",
            )


def _pick_one_discard(bowl: Bowl, rng: random.Random) -> Bowl:
    entry = bowl.list_entries[rng.randrange(len(bowl.list_entries))]
    return bowl.without_entry(entry.id).with_output(entry.text)


def _pick_one_keep(bowl: Bowl, rng: random.Random) -> Bowl:
    entry = bowl.list_entries[rng.randrange(len(bowl.list_entries))]
    return bowl.with_output(entry.text)


def _shuffle_members(bowl: Bowl, rng: random.Random) -> Bowl:
    names = [m.name for m in shuffled(bowl.list_members, rng)]
    return bowl.with_output(_numbered(names))


def _make_pairs(bowl: Bowl, rng: random.Random) -> Bowl:
    pairs = make_pairs([m.name for m in bowl.list_members], rng)
    return bowl.with_output(format_pairs(pairs))


def _secret_santa(bowl: Bowl, rng: random.Random) -> Bowl:
    assignments = secret_santa([m.name for m in bowl.list_members], rng)
    return bowl.with_output(format_secret_santa(assignments))


def _shuffle_entries(bowl: Bowl, rng: random.Random) -> Bowl:
    texts = [e.text for e in shuffled(bowl.list_entries, rng)]
    return bowl.with_output(_numbered(texts))


RESOLVERS: dict[BowlType, Callable[[Bowl, random.Random], Bowl]] = {
    BowlType.PICK_ONE_DISCARD: _pick_one_discard,
    BowlType.PICK_ONE_KEEP: _pick_one_keep,
    BowlType.SHUFFLE_MEMBERS: _shuffle_members,
    BowlType.MAKE_PAIRS: _make_pairs,
    BowlType.SECRET_SANTA: _secret_santa,
    BowlType.SHUFFLE_ENTRIES: _shuffle_entries,
}


def resolve(bowl: Bowl, requester: User, rng: random.Random | None = None) -> Bowl:
    """
    Resolve ("juggle") the bowl according to its type.

    Returns the new bowl with ``output`` set. Only PICK_ONE_DISCARD changes
    the source collection.
    """
    require_can_resolve(bowl, requester)
    _check_sufficient(bowl)
    return RESOLVERS[bowl.type](bowl, rng or random.Random())
