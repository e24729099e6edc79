"""
Pytest fixtures for Chitti Udi tests.
"""

import random

import pytest

from ..api.service import BowlService
from ..engine_core import Bowl, BowlType, User, create_bowl, submit_entry
from ..session import DeviceSession
from ..store import DeviceStore, InMemoryBowlStore


@pytest.fixture
def owner() -> User:
    return User(id="device-owner", name="Asha")


@pytest.fixture
def member() -> User:
    return User(id="device-member", name="Ravi")


@pytest.fixture
def stranger() -> User:
    return User(id="device-stranger", name="Meena")


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so failures are reproducible."""
    return random.Random(1234)


@pytest.fixture
def food_bowl(owner: User, member: User) -> Bowl:
    """PICK_ONE_DISCARD bowl with three entries from owner and member."""
    bowl = create_bowl(owner, "Dinner", type=BowlType.PICK_ONE_DISCARD)
    bowl = submit_entry(bowl, owner, "Pizza")
    bowl = submit_entry(bowl, member, "Tacos")
    bowl = submit_entry(bowl, owner, "Sushi")
    return bowl


def bowl_with_members(owner: User, bowl_type: BowlType, names: list[str]) -> Bowl:
    """Bowl of the given type where each name has added one entry."""
    bowl = create_bowl(owner, "Group", type=bowl_type)
    for i, name in enumerate(names):
        user = User(id=owner.id if i == 0 else f"device-{i}", name=name)
        bowl = submit_entry(bowl, user, f"entry from {name}")
    return bowl


@pytest.fixture
def service(rng) -> BowlService:
    """A fresh service over an in-memory store."""
    return BowlService(store=InMemoryBowlStore(), rng=rng)


@pytest.fixture
def device() -> DeviceStore:
    return DeviceStore()


@pytest.fixture
def session(service: BowlService, device: DeviceStore) -> DeviceSession:
    return DeviceSession(service, device, share_base_url="https://yourapp.com")
