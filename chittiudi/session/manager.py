"""
Device Session - What one device does with bowls.

FLOWS:
1. First launch -> no name yet -> user must pick a name
2. User creates a bowl -> stored remotely, id remembered locally
3. User opens a shared link (.../bowl/{id}):
   - name known: fetch bowl, remember id, refresh the visible list
   - no name yet: park the id as pending, ask for a name, then resume
4. User adds entries, juggles, deletes, clears -> through the BowlService
5. The visible list is the locally remembered ids that still exist

The device never holds the source of truth for a bowl; it only keeps the
list of bowl ids it has created or joined.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable
import logging

from ..api.service import BowlService
from ..engine_core import Bowl, BowlType, User, ValidationError
from ..store import DeviceStore, Subscription
from .links import ShareMessage, parse_bowl_link, share_bowl

logger = logging.getLogger(__name__)


class JoinStatus(Enum):
    """Outcome of following a bowl link."""
    JOINED = "joined"
    ALREADY_JOINED = "already_joined"
    NEEDS_NAME = "needs_name"  # Parked as pending until a name is set


@dataclass
class JoinResult:
    status: JoinStatus
    bowl_id: str
    bowl: Bowl | None = None


class DeviceSession:
    """
    Device-side entry point.

    Usage:
        session = DeviceSession(service, DeviceStore(path))
        session.set_user_name("Asha")
        bowl = session.create_bowl("Dinner", type=BowlType.PICK_ONE_DISCARD)
        session.submit_entry(bowl.id, "Pizza")
        print(session.resolve(bowl.id).output)
    """

    def __init__(
        self,
        service: BowlService,
        device: DeviceStore,
        share_base_url: str = "https://yourapp.com",
    ):
        self.service = service
        self.device = device
        self.share_base_url = share_base_url

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    def has_name(self) -> bool:
        return self.device.user_name is not None

    @property
    def user(self) -> User:
        """The device user. Raises ValidationError until a name is set."""
        user = self.device.current_user()
        if user is None:
            raise ValidationError("Please set your name first", code="missing-name")
        return user

    def set_user_name(self, name: str) -> JoinResult | None:
        """Save the name, then finish any deep-link join that was waiting on it."""
        self.device.set_user_name(name)
        pending = self.device.pop_pending_bowl_id()
        if pending:
            logger.info(f"Resuming pending join of bowl {pending}")
            return self.join_bowl(pending)
        return None

    # =========================================================================
    # Bowl list
    # =========================================================================

    def create_bowl(
        self,
        name: str,
        description: str = "",
        member_limit: Any = 0,
        input_count: Any = 0,
        type: BowlType | str = BowlType.PICK_ONE_DISCARD,
    ) -> Bowl:
        bowl = self.service.create_bowl(
            self.user,
            name,
            description=description,
            member_limit=member_limit,
            input_count=input_count,
            type=type,
        )
        self.device.remember_bowl(bowl.id)
        return bowl

    def visible_bowls(self) -> list[Bowl]:
        """Remembered bowls that still exist, in the order they were added."""
        return self.service.list_bowls(self.device.my_bowls())

    def watch(self, listener: Callable[[list[Bowl]], None]) -> Subscription:
        """Live updates of visible_bowls()."""
        def on_snapshot(snapshot: dict[str, Bowl]):
            listener([snapshot[i] for i in self.device.my_bowls() if i in snapshot])

        return self.service.subscribe(on_snapshot)

    # =========================================================================
    # Deep links
    # =========================================================================

    def open_link(self, url: str) -> JoinResult:
        bowl_id = parse_bowl_link(url)
        if not bowl_id:
            raise ValidationError(f"Invalid bowl link: {url}", code="invalid-link")

        if not self.has_name:
            self.device.set_pending_bowl_id(bowl_id)
            return JoinResult(status=JoinStatus.NEEDS_NAME, bowl_id=bowl_id)

        return self.join_bowl(bowl_id)

    def join_bowl(self, bowl_id: str) -> JoinResult:
        if bowl_id in self.device.my_bowls():
            return JoinResult(
                status=JoinStatus.ALREADY_JOINED,
                bowl_id=bowl_id,
                bowl=self.service.store.read(bowl_id),
            )

        bowl = self.service.get_bowl(bowl_id)
        self.device.remember_bowl(bowl_id)
        logger.info(f"Joined bowl {bowl_id}")
        return JoinResult(status=JoinStatus.JOINED, bowl_id=bowl_id, bowl=bowl)

    def share(self, bowl_id: str) -> ShareMessage:
        return share_bowl(bowl_id, self.share_base_url)

    # =========================================================================
    # Bowl actions
    # =========================================================================

    def submit_entry(self, bowl_id: str, text: str) -> Bowl:
        return self.service.submit_entry(bowl_id, self.user, text)

    def resolve(self, bowl_id: str) -> Bowl:
        return self.service.resolve(bowl_id, self.user)

    def delete_entry(self, bowl_id: str, entry_id: str) -> Bowl:
        return self.service.delete_entry(bowl_id, self.user, entry_id)

    def clear_entries(self, bowl_id: str) -> Bowl:
        return self.service.clear_entries(bowl_id, self.user)

    def delete_bowl(self, bowl_id: str):
        self.service.delete_bowl(bowl_id, self.user)
        self.device.forget_bowl(bowl_id)
