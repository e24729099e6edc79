"""
Optimistic transactions over the shared store.

A mutation reads the latest bowl, computes the new state from that
snapshot (re-running every validation), and writes it back only if no one
else wrote in between. On conflict the whole read-modify-write is retried.
"""

from __future__ import annotations
from typing import Callable
import logging

from ..engine_core.bowl import Bowl
from ..engine_core.errors import BowlNotFound, ConflictError
from .shared import BowlStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


def transact(
    store: BowlStore,
    bowl_id: str,
    mutate: Callable[[Bowl], Bowl],
    max_retries: int = DEFAULT_MAX_RETRIES,
) -> Bowl:
    """
    Apply ``mutate`` to the latest bowl and compare-and-swap the result.

    Args:
        store: Shared store holding the bowl
        bowl_id: Bowl to mutate
        mutate: Pure function from current bowl to new bowl; may raise
        max_retries: Attempts before giving up on conflicts

    Returns:
        The stored bowl (with its new revision)

    Raises:
        BowlNotFound: bowl is absent when read
        ConflictError: every attempt lost the race
    """
    attempts = max(max_retries, 1)
    last_conflict: ConflictError | None = None

    for attempt in range(1, attempts + 1):
        current = store.read(bowl_id)
        if current is None:
            raise BowlNotFound(bowl_id)

        updated = mutate(current)
        try:
            return store.write_whole(updated, expected_revision=current.revision)
        except ConflictError as e:
            last_conflict = e
            logger.warning(
                f"Conflict writing bowl {bowl_id} (attempt {attempt}/{attempts}), retrying"
            )

    logger.error(f"Giving up on bowl {bowl_id} after {attempts} conflicting attempts")
    raise last_conflict
