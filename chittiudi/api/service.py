"""
API Service - Business logic layer between callers and the engine.

The service:
1. Looks bowls up in the shared store
2. Runs every mutation as an optimistic transaction
3. Applies actions through the reducer
4. Raises typed errors for the caller to present

This layer is framework-agnostic: the FastAPI app and the device session
both sit on top of it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging
import random

from ..engine_core import (
    Action,
    Bowl,
    BowlNotFound,
    BowlType,
    Reducer,
    User,
    authorize_delete_bowl,
    create_bowl,
)
from ..store import BowlStore, InMemoryBowlStore, Subscription, transact, DEFAULT_MAX_RETRIES
from ..store.shared import Listener

logger = logging.getLogger(__name__)


@dataclass
class BowlService:
    """
    Main bowl service.

    Usage:
        service = BowlService()

        bowl = service.create_bowl(owner, "Dinner", type=BowlType.PICK_ONE_DISCARD)
        service.submit_entry(bowl.id, member, "Pizza")
        bowl = service.resolve(bowl.id, owner)
        print(bowl.output)
    """
    store: BowlStore = field(default_factory=InMemoryBowlStore)
    rng: random.Random = field(default_factory=random.Random)
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        self.reducer = Reducer(rng=self.rng)

    def create_bowl(
        self,
        owner: User,
        name: str,
        description: str = "",
        member_limit: Any = 0,
        input_count: Any = 0,
        type: BowlType | str = BowlType.PICK_ONE_DISCARD,
    ) -> Bowl:
        bowl = create_bowl(
            owner,
            name,
            description=description,
            member_limit=member_limit,
            input_count=input_count,
            type=type,
        )
        stored = self.store.write_whole(bowl)
        logger.info(f"Created bowl {stored.id} ({stored.type.value}) for {owner.id}")
        return stored

    def get_bowl(self, bowl_id: str) -> Bowl:
        bowl = self.store.read(bowl_id)
        if bowl is None:
            raise BowlNotFound(bowl_id)
        return bowl

    def list_bowls(self, ids: list[str] | None = None) -> list[Bowl]:
        """All bowls, or only those in ``ids`` (in that order, missing skipped)."""
        snapshot = self.store.read_all()
        if ids is None:
            return list(snapshot.values())
        return [snapshot[bowl_id] for bowl_id in ids if bowl_id in snapshot]

    def submit_entry(self, bowl_id: str, requester: User, text: str) -> Bowl:
        return self._apply(bowl_id, Action.submit_entry(requester, text))

    def resolve(self, bowl_id: str, requester: User) -> Bowl:
        bowl = self._apply(bowl_id, Action.resolve(requester))
        logger.info(f"Bowl {bowl_id} juggled by {requester.id}")
        return bowl

    def delete_entry(self, bowl_id: str, requester: User, entry_id: str) -> Bowl:
        return self._apply(bowl_id, Action.delete_entry(requester, entry_id))

    def clear_entries(self, bowl_id: str, requester: User) -> Bowl:
        return self._apply(bowl_id, Action.clear_entries(requester))

    def delete_bowl(self, bowl_id: str, requester: User) -> None:
        bowl = self.get_bowl(bowl_id)
        authorize_delete_bowl(bowl, requester)
        if not self.store.delete(bowl_id):
            raise BowlNotFound(bowl_id)
        logger.info(f"Deleted bowl {bowl_id}")

    def subscribe(self, listener: Listener) -> Subscription:
        return self.store.subscribe(listener)

    def _apply(self, bowl_id: str, action: Action) -> Bowl:
        def mutate(bowl: Bowl) -> Bowl:
            result = self.reducer.apply(bowl, action)
            if result.success:
                for change in result.state_changes:
                    logger.debug(f"Bowl {bowl_id}: {change}")
            return result.unwrap()

        return transact(self.store, bowl_id, mutate, max_retries=self.max_retries)
