"""
Device Store - Local key-value storage for one device.

Holds what the device knows about itself:
- deviceId: generated once, never rotated
- userName: display name chosen by the user
- listMyBowls: ids of bowls created or joined here, in join order
- pendingBowlId: a deep-link join waiting for the user to pick a name

Design decisions:
- Simple file-based storage (one JSON object)
- Without a path the store lives in memory only
- Values are strings or lists of strings, like a secure key-value store
"""

from __future__ import annotations
from pathlib import Path
from typing import Any
import json
import logging
import threading
import uuid

from ..engine_core.bowl import User
from ..engine_core.errors import StoreError, ValidationError

logger = logging.getLogger(__name__)

DEVICE_ID = "deviceId"
USER_NAME = "userName"
MY_BOWLS = "listMyBowls"
PENDING_BOWL_ID = "pendingBowlId"


class DeviceStore:
    """
    Key-value store for device identity and local bookkeeping.

    Usage:
        device = DeviceStore("~/.chittiudi/device.json")
        device.set_user_name("Asha")
        device.remember_bowl(bowl.id)
        user = device.current_user()
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path).expanduser() if path else None
        self._lock = threading.RLock()
        self._values: dict[str, Any] = self._load()
        if not self._values.get(DEVICE_ID):
            self._generate_device_id()

    # =========================================================================
    # Raw key-value access
    # =========================================================================

    def get_item(self, key: str) -> Any | None:
        with self._lock:
            return self._values.get(key)

    def set_item(self, key: str, value: Any):
        with self._lock:
            previous = dict(self._values)
            self._values[key] = value
            self._save_or_restore(previous)

    def delete_item(self, key: str):
        with self._lock:
            previous = dict(self._values)
            if self._values.pop(key, None) is not None:
                self._save_or_restore(previous)

    # =========================================================================
    # Identity
    # =========================================================================

    @property
    def device_id(self) -> str:
        """Stable device identity, generated once and persisted."""
        with self._lock:
            return self._values.get(DEVICE_ID) or self._generate_device_id()

    def _generate_device_id(self) -> str:
        value = str(uuid.uuid4())
        self.set_item(DEVICE_ID, value)
        logger.info(f"Generated device id {value}")
        return value

    @property
    def user_name(self) -> str | None:
        return self.get_item(USER_NAME) or None

    def set_user_name(self, name: str) -> str:
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValidationError("Please enter your name.", code="missing-name")
        self.set_item(USER_NAME, trimmed)
        return trimmed

    def current_user(self) -> User | None:
        """The device user, or None until a name has been set."""
        name = self.user_name
        if not name:
            return None
        return User(id=self.device_id, name=name)

    # =========================================================================
    # Local bowl list
    # =========================================================================

    def my_bowls(self) -> list[str]:
        return list(self.get_item(MY_BOWLS) or [])

    def remember_bowl(self, bowl_id: str) -> bool:
        """Append bowl_id if new. Returns True if the list changed."""
        with self._lock:
            bowls = self.my_bowls()
            if bowl_id in bowls:
                return False
            bowls.append(bowl_id)
            self.set_item(MY_BOWLS, bowls)
            return True

    def forget_bowl(self, bowl_id: str) -> bool:
        with self._lock:
            bowls = self.my_bowls()
            if bowl_id not in bowls:
                return False
            bowls.remove(bowl_id)
            self.set_item(MY_BOWLS, bowls)
            return True

    # =========================================================================
    # Pending deep-link join
    # =========================================================================

    @property
    def pending_bowl_id(self) -> str | None:
        return self.get_item(PENDING_BOWL_ID) or None

    def set_pending_bowl_id(self, bowl_id: str):
        self.set_item(PENDING_BOWL_ID, bowl_id)

    def pop_pending_bowl_id(self) -> str | None:
        with self._lock:
            bowl_id = self.pending_bowl_id
            if bowl_id:
                self.delete_item(PENDING_BOWL_ID)
            return bowl_id

    # =========================================================================
    # Persistence
    # =========================================================================

    def _load(self) -> dict[str, Any]:
        if self.path is None or not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to read device store {self.path}: {e}", exc_info=True)
            raise StoreError(f"Failed to read device store {self.path}: {e}") from e

    def _save_or_restore(self, previous: dict[str, Any]):
        try:
            self._save()
        except StoreError:
            self._values = previous
            raise

    def _save(self):
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to write device store {self.path}: {e}", exc_info=True)
            raise StoreError(f"Failed to write device store {self.path}: {e}") from e
