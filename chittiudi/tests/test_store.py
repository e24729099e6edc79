"""
Tests for the shared bowl store and optimistic transactions.

Tests:
- Whole-document writes and revisions
- Compare-and-swap conflicts
- Live subscriptions
- JSON file persistence
- Transaction retry
"""

import json

import pytest

from ..engine_core import (
    BowlNotFound,
    ConflictError,
    StoreError,
    ValidationError,
    create_bowl,
    submit_entry,
)
from ..store import InMemoryBowlStore, JsonFileBowlStore, transact


class TestWriteWhole:
    """Tests for whole-document writes."""

    def test_write_then_read(self, food_bowl):
        store = InMemoryBowlStore()
        stored = store.write_whole(food_bowl)

        assert stored.revision == 1
        read = store.read(food_bowl.id)
        assert read == stored
        assert [e.text for e in read.list_entries] == ["Pizza", "Tacos", "Sushi"]

    def test_read_missing_returns_none(self):
        assert InMemoryBowlStore().read("nope") is None

    def test_revision_increases(self, food_bowl):
        store = InMemoryBowlStore()
        first = store.write_whole(food_bowl)
        second = store.write_whole(first.cleared())

        assert second.revision == first.revision + 1

    def test_callers_do_not_share_instances(self, food_bowl):
        """Bowls handed out are copies of the stored document."""
        store = InMemoryBowlStore()
        store.write_whole(food_bowl)

        read = store.read(food_bowl.id)
        read.list_entries.clear()
        assert len(store.read(food_bowl.id).list_entries) == 3

    def test_delete(self, food_bowl):
        store = InMemoryBowlStore()
        store.write_whole(food_bowl)

        assert store.delete(food_bowl.id) is True
        assert store.read(food_bowl.id) is None
        assert store.delete(food_bowl.id) is False


class TestCompareAndSwap:
    """Tests for revision-checked writes."""

    def test_new_document_expects_zero(self, food_bowl):
        store = InMemoryBowlStore()
        assert store.write_whole(food_bowl, expected_revision=0).revision == 1

    def test_stale_revision_conflicts(self, food_bowl, owner):
        store = InMemoryBowlStore()
        stale = store.write_whole(food_bowl)
        store.write_whole(stale.with_output("someone else"), expected_revision=1)

        with pytest.raises(ConflictError) as exc_info:
            store.write_whole(stale.cleared(), expected_revision=stale.revision)
        assert exc_info.value.code == "conflict"
        assert store.read(food_bowl.id).output == "someone else"

    def test_unchecked_write_always_wins(self, food_bowl):
        store = InMemoryBowlStore()
        store.write_whole(food_bowl)
        store.write_whole(food_bowl)
        assert store.write_whole(food_bowl).revision == 3


class TestSubscribe:
    """Tests for live snapshot delivery."""

    def test_initial_snapshot_delivered(self, food_bowl):
        store = InMemoryBowlStore()
        store.write_whole(food_bowl)
        snapshots = []

        store.subscribe(snapshots.append)

        assert len(snapshots) == 1
        assert set(snapshots[0]) == {food_bowl.id}

    def test_updates_delivered_until_unsubscribed(self, food_bowl, owner):
        store = InMemoryBowlStore()
        snapshots = []
        subscription = store.subscribe(snapshots.append)

        store.write_whole(food_bowl)
        other = store.write_whole(create_bowl(owner, "Lunch"))
        subscription.unsubscribe()
        store.delete(other.id)

        assert [set(s) for s in snapshots] == [
            set(),
            {food_bowl.id},
            {food_bowl.id, other.id},
        ]

    def test_delete_notifies(self, food_bowl):
        store = InMemoryBowlStore()
        store.write_whole(food_bowl)
        snapshots = []
        with store.subscribe(snapshots.append):
            store.delete(food_bowl.id)

        assert snapshots[-1] == {}

    def test_failing_listener_does_not_block_others(self, food_bowl):
        store = InMemoryBowlStore()
        received = []

        def broken(snapshot):
            raise RuntimeError("listener bug")

        store.subscribe(broken)
        store.subscribe(received.append)
        store.write_whole(food_bowl)

        assert len(received) == 2
        assert store.read(food_bowl.id) is not None


class TestJsonFileBowlStore:
    """Tests for the file-backed store."""

    def test_survives_reload(self, tmp_path, food_bowl):
        path = tmp_path / "bowls.json"
        JsonFileBowlStore(path).write_whole(food_bowl)

        reloaded = JsonFileBowlStore(path).read(food_bowl.id)
        assert reloaded.name == "Dinner"
        assert reloaded.revision == 1
        assert [e.text for e in reloaded.list_entries] == ["Pizza", "Tacos", "Sushi"]

    def test_file_uses_document_keys(self, tmp_path, food_bowl):
        path = tmp_path / "bowls.json"
        JsonFileBowlStore(path).write_whole(food_bowl)

        data = json.loads(path.read_text(encoding="utf-8"))
        document = data["bowls"][food_bowl.id]
        assert document["ownerId"] == food_bowl.owner_id
        assert "listEntries" in document

    def test_corrupt_file_raises_store_error(self, tmp_path):
        path = tmp_path / "bowls.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(StoreError):
            JsonFileBowlStore(path)

    def test_failed_save_rolls_back(self, tmp_path, food_bowl):
        """A write that cannot be saved leaves memory unchanged."""
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        store = JsonFileBowlStore(blocker / "bowls.json")

        with pytest.raises(StoreError):
            store.write_whole(food_bowl)
        assert store.read(food_bowl.id) is None


class RacingStore(InMemoryBowlStore):
    """Store where another writer sneaks in before the next N writes."""

    def __init__(self, races: int):
        super().__init__()
        self.races = races

    def write_whole(self, bowl, expected_revision=None):
        if expected_revision is not None and self.races > 0:
            self.races -= 1
            current = self.read(bowl.id)
            super().write_whole(current.with_output(f"race {self.races}"))
        return super().write_whole(bowl, expected_revision)


class TestTransact:
    """Tests for optimistic read-modify-write."""

    def test_applies_mutation(self, food_bowl, member):
        store = InMemoryBowlStore()
        store.write_whole(food_bowl)

        result = transact(store, food_bowl.id, lambda b: submit_entry(b, member, "Curry"))

        assert result.revision == 2
        assert store.read(food_bowl.id).list_entries[-1].text == "Curry"

    def test_missing_bowl(self, member):
        with pytest.raises(BowlNotFound) as exc_info:
            transact(InMemoryBowlStore(), "gone", lambda b: b)
        assert exc_info.value.code == "bowl-not-found"

    def test_retries_after_conflict(self, food_bowl, member):
        """The mutation is recomputed from the winner's state."""
        store = RacingStore(races=1)
        store.write_whole(food_bowl)
        calls = []

        def mutate(bowl):
            calls.append(bowl.revision)
            return submit_entry(bowl, member, "Curry")

        result = transact(store, food_bowl.id, mutate)

        assert calls == [1, 2]
        assert result.revision == 3
        assert [e.text for e in result.list_entries][-1] == "Curry"

    def test_gives_up_after_max_retries(self, food_bowl, member):
        store = RacingStore(races=10)
        store.write_whole(food_bowl)

        with pytest.raises(ConflictError):
            transact(store, food_bowl.id, lambda b: submit_entry(b, member, "Curry"), max_retries=2)
        assert "Curry" not in [e.text for e in store.read(food_bowl.id).list_entries]

    def test_validation_error_not_retried(self, food_bowl, member):
        store = InMemoryBowlStore()
        store.write_whole(food_bowl)
        calls = []

        def mutate(bowl):
            calls.append(1)
            return submit_entry(bowl, member, "Pizza")

        with pytest.raises(ValidationError):
            transact(store, food_bowl.id, mutate)
        assert calls == [1]
        assert store.read(food_bowl.id).revision == 1
