"""
Shared Store - Keyed collection of bowl documents.

The store:
- Holds every bowl as a whole document under its id
- Replaces documents whole (no partial updates)
- Bumps ``revision`` on each write so callers can compare-and-swap
- Pushes the full ``{id: Bowl}`` snapshot to subscribers on every change

Two backends:
- InMemoryBowlStore: process-local, for the API server and tests
- JsonFileBowlStore: same, persisted to a JSON file for the CLI
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable
import json
import logging
import threading
import uuid

from ..engine_core.bowl import Bowl
from ..engine_core.errors import ConflictError, StoreError

logger = logging.getLogger(__name__)

Snapshot = dict[str, Bowl]
Listener = Callable[[Snapshot], None]


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() to stop updates."""

    def __init__(self, store: BowlStore, subscription_id: str):
        self._store = store
        self.subscription_id = subscription_id
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._store._remove_listener(self.subscription_id)
            self.active = False

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info):
        self.unsubscribe()


class BowlStore(ABC):
    """
    Interface every shared store offers.

    Listener bookkeeping lives here; backends only implement document
    access.
    """

    def __init__(self):
        self._listeners: dict[str, Listener] = {}
        self._listeners_lock = threading.Lock()

    @abstractmethod
    def read(self, bowl_id: str) -> Bowl | None:
        """Return the stored bowl, or None if absent."""

    @abstractmethod
    def read_all(self) -> Snapshot:
        """Return every stored bowl keyed by id."""

    @abstractmethod
    def write_whole(self, bowl: Bowl, expected_revision: int | None = None) -> Bowl:
        """
        Overwrite the bowl document and return the stored copy.

        With ``expected_revision`` set, raise ConflictError unless the stored
        revision still matches (a missing document counts as revision 0).
        """

    @abstractmethod
    def delete(self, bowl_id: str) -> bool:
        """Remove the bowl. Returns False if it did not exist."""

    def subscribe(self, listener: Listener) -> Subscription:
        """
        Register a listener for live updates.

        The listener is called right away with the current snapshot, then
        after every write or delete until unsubscribed.
        """
        subscription_id = str(uuid.uuid4())
        with self._listeners_lock:
            self._listeners[subscription_id] = listener
        self._deliver(listener, self.read_all())
        return Subscription(self, subscription_id)

    def _remove_listener(self, subscription_id: str):
        with self._listeners_lock:
            self._listeners.pop(subscription_id, None)

    def _notify(self):
        with self._listeners_lock:
            listeners = list(self._listeners.values())
        if not listeners:
            return
        snapshot = self.read_all()
        for listener in listeners:
            self._deliver(listener, snapshot)

    def _deliver(self, listener: Listener, snapshot: Snapshot):
        try:
            listener(dict(snapshot))
        except Exception:
            logger.exception("Bowl store listener failed; keeping subscription")


class InMemoryBowlStore(BowlStore):
    """
    Process-local store.

    Documents are kept as plain dicts so that callers never share a Bowl
    instance with the store.
    """

    def __init__(self, documents: dict[str, dict[str, Any]] | None = None):
        super().__init__()
        self._documents: dict[str, dict[str, Any]] = dict(documents or {})
        self._lock = threading.RLock()

    def read(self, bowl_id: str) -> Bowl | None:
        with self._lock:
            document = self._documents.get(bowl_id)
            return Bowl.from_document(document) if document else None

    def read_all(self) -> Snapshot:
        with self._lock:
            return {
                key: Bowl.from_document(document)
                for key, document in self._documents.items()
            }

    def write_whole(self, bowl: Bowl, expected_revision: int | None = None) -> Bowl:
        with self._lock:
            current = self._documents.get(bowl.id)
            current_revision = int(current.get("revision") or 0) if current else 0
            if expected_revision is not None and current_revision != expected_revision:
                logger.warning(
                    f"Revision conflict on bowl {bowl.id}: "
                    f"expected {expected_revision}, found {current_revision}"
                )
                raise ConflictError(bowl.id, expected_revision, current_revision)

            stored = bowl.with_revision(current_revision + 1)
            self._documents[bowl.id] = stored.to_document()
            self._persist_or_restore(bowl.id, current)
        self._notify()
        return stored

    def delete(self, bowl_id: str) -> bool:
        with self._lock:
            current = self._documents.pop(bowl_id, None)
            if current is None:
                return False
            self._persist_or_restore(bowl_id, current)
        self._notify()
        return True

    def _persist_or_restore(self, bowl_id: str, previous: dict[str, Any] | None):
        try:
            self._persist()
        except StoreError:
            if previous is None:
                self._documents.pop(bowl_id, None)
            else:
                self._documents[bowl_id] = previous
            raise

    def _persist(self):
        """Hook for durable backends; called with the lock held."""


class JsonFileBowlStore(InMemoryBowlStore):
    """
    Store persisted to a single JSON file.

    Usage:
        store = JsonFileBowlStore("~/.chittiudi/bowls.json")
        store.write_whole(bowl)
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        super().__init__(self._load())

    def _load(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load bowls from {self.path}: {e}", exc_info=True)
            raise StoreError(f"Failed to load bowls from {self.path}: {e}") from e
        return data.get("bowls", {})

    def _persist(self):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump({"bowls": self._documents}, f, indent=2, ensure_ascii=False)
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to save bowls to {self.path}: {e}", exc_info=True)
            raise StoreError(f"Failed to save bowls to {self.path}: {e}") from e
