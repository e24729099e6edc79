"""
Tests for bowl resolution.

Output is random, so tests check structure rather than exact values:
- Authorization per type
- Data sufficiency
- Per-type effects and output format
"""

import math
import random
from collections import Counter

import pytest

from ..engine_core import (
    AuthorizationError,
    BowlType,
    PreconditionError,
    User,
    create_bowl,
    make_pairs,
    resolve,
    secret_santa,
    shuffled,
    submit_entry,
)
from ..engine_core.resolution import SECRET_SANTA_HEADER
from .conftest import bowl_with_members

OWNER_ONLY_TYPES = [
    BowlType.SHUFFLE_MEMBERS,
    BowlType.MAKE_PAIRS,
    BowlType.SECRET_SANTA,
    BowlType.SHUFFLE_ENTRIES,
]


class TestShuffle:
    """Tests for the Fisher-Yates shuffle."""

    def test_shuffle_is_permutation(self, rng):
        items = list(range(20))
        result = shuffled(items, rng)
        assert sorted(result) == items

    def test_shuffle_leaves_input_alone(self, rng):
        items = ["a", "b", "c"]
        shuffled(items, rng)
        assert items == ["a", "b", "c"]

    def test_shuffle_roughly_uniform(self):
        """Every ordering of three items shows up with similar frequency."""
        rng = random.Random(7)
        counts = Counter(tuple(shuffled("abc", rng)) for _ in range(6000))
        assert len(counts) == 6
        assert all(800 < c < 1200 for c in counts.values())


class TestAuthorization:
    """Who may resolve which type."""

    @pytest.mark.parametrize("bowl_type", OWNER_ONLY_TYPES)
    def test_non_owner_rejected_for_owner_only_types(self, owner, rng, bowl_type):
        """A member cannot resolve owner-only types; nothing changes."""
        bowl = bowl_with_members(owner, bowl_type, ["Asha", "Ravi", "Meena"])
        ravi = User(id="device-1", name="Ravi")

        with pytest.raises(AuthorizationError) as exc_info:
            resolve(bowl, ravi, rng)
        assert exc_info.value.code == "not-owner"
        assert bowl.output is None
        assert len(bowl.list_entries) == 3

    @pytest.mark.parametrize("bowl_type", [BowlType.PICK_ONE_DISCARD, BowlType.PICK_ONE_KEEP])
    def test_member_may_pick(self, food_bowl, member, rng, bowl_type):
        """Members can resolve the pick-one types."""
        bowl = food_bowl._copy_with(type=bowl_type)
        result = resolve(bowl, member, rng)
        assert result.output in {"Pizza", "Tacos", "Sushi"}

    def test_stranger_cannot_pick(self, food_bowl, stranger, rng):
        """Non-members cannot resolve even the open types."""
        with pytest.raises(AuthorizationError) as exc_info:
            resolve(food_bowl, stranger, rng)
        assert exc_info.value.code == "not-member"

    def test_owner_may_pick_without_being_member(self, owner, member, rng):
        """Owner needs no entries of their own to draw."""
        bowl = submit_entry(create_bowl(owner, "Dinner"), member, "Pizza")

        assert resolve(bowl, owner, rng).output == "Pizza"

    def test_authorization_checked_before_data(self, owner, member, rng):
        """Empty owner-only bowl still reports the authorization failure."""
        bowl = create_bowl(owner, "Empty", type=BowlType.SHUFFLE_ENTRIES)
        with pytest.raises(AuthorizationError):
            resolve(bowl, member, rng)


class TestPreconditions:
    """Resolution needs data."""

    @pytest.mark.parametrize("bowl_type", list(BowlType))
    def test_empty_bowl_rejected(self, owner, rng, bowl_type):
        bowl = create_bowl(owner, "Empty", type=bowl_type)
        with pytest.raises(PreconditionError) as exc_info:
            resolve(bowl, owner, rng)
        assert exc_info.value.code == "empty-source"
        assert bowl.output is None

    @pytest.mark.parametrize("bowl_type", [BowlType.MAKE_PAIRS, BowlType.SECRET_SANTA])
    def test_single_member_rejected(self, owner, rng, bowl_type):
        bowl = bowl_with_members(owner, bowl_type, ["Asha"])
        with pytest.raises(PreconditionError) as exc_info:
            resolve(bowl, owner, rng)
        assert exc_info.value.code == "insufficient-members"

    def test_shuffle_members_single_member_ok(self, owner, rng):
        bowl = bowl_with_members(owner, BowlType.SHUFFLE_MEMBERS, ["Asha"])
        assert resolve(bowl, owner, rng).output == "1. Asha"


class TestPickOne:
    """Tests for PICK_ONE_DISCARD and PICK_ONE_KEEP."""

    def test_discard_example(self, food_bowl, owner, rng):
        """Pizza/Tacos/Sushi: one draw leaves two, without the drawn text."""
        bowl = resolve(food_bowl, owner, rng)

        texts = [e.text for e in bowl.list_entries]
        assert len(texts) == 2
        assert bowl.output not in texts
        assert bowl.output in {"Pizza", "Tacos", "Sushi"}

    def test_discard_until_empty(self, food_bowl, owner, rng):
        """Drawing repeatedly yields each entry once."""
        bowl = food_bowl
        drawn = []
        for _ in range(3):
            bowl = resolve(bowl, owner, rng)
            drawn.append(bowl.output)

        assert sorted(drawn) == ["Pizza", "Sushi", "Tacos"]
        with pytest.raises(PreconditionError):
            resolve(bowl, owner, rng)

    def test_keep_leaves_entries(self, food_bowl, owner, rng):
        bowl = food_bowl._copy_with(type=BowlType.PICK_ONE_KEEP)
        result = resolve(bowl, owner, rng)

        assert result.list_entries == bowl.list_entries
        assert result.output in [e.text for e in bowl.list_entries]

    def test_keep_draws_every_entry_eventually(self, food_bowl, owner):
        rng = random.Random(3)
        bowl = food_bowl._copy_with(type=BowlType.PICK_ONE_KEEP)
        seen = {resolve(bowl, owner, rng).output for _ in range(200)}
        assert seen == {"Pizza", "Tacos", "Sushi"}

    def test_output_overwritten(self, food_bowl, owner, rng):
        bowl = food_bowl._copy_with(type=BowlType.PICK_ONE_KEEP, output="old")
        assert resolve(bowl, owner, rng).output != "old"


class TestShuffleOutputs:
    """Tests for SHUFFLE_MEMBERS and SHUFFLE_ENTRIES formatting."""

    def test_shuffle_members_numbered(self, owner, rng):
        names = ["Asha", "Ravi", "Meena", "Kiran"]
        bowl = bowl_with_members(owner, BowlType.SHUFFLE_MEMBERS, names)
        lines = resolve(bowl, owner, rng).output.split("\n")

        assert [line.split(". ", 1)[0] for line in lines] == ["1", "2", "3", "4"]
        assert sorted(line.split(". ", 1)[1] for line in lines) == sorted(names)

    def test_shuffle_entries_numbered_and_unchanged(self, food_bowl, owner, rng):
        bowl = food_bowl._copy_with(type=BowlType.SHUFFLE_ENTRIES)
        result = resolve(bowl, owner, rng)
        lines = result.output.split("\n")

        assert result.list_entries == bowl.list_entries
        assert [line.split(". ", 1)[0] for line in lines] == ["1", "2", "3"]
        assert sorted(line.split(". ", 1)[1] for line in lines) == ["Pizza", "Sushi", "Tacos"]


class TestMakePairs:
    """Tests for MAKE_PAIRS."""

    @pytest.mark.parametrize("count", [2, 3, 4, 5, 8, 11])
    def test_pair_parity(self, rng, count):
        """N members give ceil(N/2) groups, N mod 2 of them solo."""
        names = [f"M{i}" for i in range(count)]
        pairs = make_pairs(names, rng)

        assert len(pairs) == math.ceil(count / 2)
        assert sum(1 for p in pairs if p.is_solo) == count % 2
        flattened = [n for p in pairs for n in (p.first, p.second) if n]
        assert sorted(flattened) == sorted(names)

    def test_pairs_output_format(self, owner, rng):
        names = ["Asha", "Ravi", "Meena"]
        bowl = bowl_with_members(owner, BowlType.MAKE_PAIRS, names)
        result = resolve(bowl, owner, rng)
        lines = result.output.split("\n")

        assert len(lines) == 2
        assert lines[0].startswith("Pair 1: ")
        assert " & " in lines[0]
        assert lines[1].endswith(" (Solo)")
        assert result.list_members == bowl.list_members


class TestSecretSanta:
    """Tests for SECRET_SANTA."""

    def test_givers_in_original_order(self, rng):
        names = ["Asha", "Ravi", "Meena", "Kiran"]
        assignments = secret_santa(names, rng)

        assert [giver for giver, _ in assignments] == names
        assert sorted(receiver for _, receiver in assignments) == sorted(names)

    def test_receivers_follow_cyclic_offset(self):
        """Receiver is the next element in an independently shuffled copy."""
        names = ["Asha", "Ravi", "Meena", "Kiran"]
        order = shuffled(names, random.Random(99))
        assignments = secret_santa(names, random.Random(99))

        for index, (_, receiver) in enumerate(assignments):
            assert receiver == order[(index + 1) % len(order)]

    def test_output_has_header_and_arrows(self, owner, rng):
        names = ["Asha", "Ravi", "Meena"]
        bowl = bowl_with_members(owner, BowlType.SECRET_SANTA, names)
        lines = resolve(bowl, owner, rng).output.split("\n")

        assert lines[0] == SECRET_SANTA_HEADER
        assert len(lines) == 4
        assert [line.split(" → ")[0] for line in lines[1:]] == names
