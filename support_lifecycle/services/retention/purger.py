# support_lifecycle/services/retention/purger.py
"""
Bounded-batch purge loop.

Each round re-queries candidates from scratch (no offset cursor), so deleted
rows simply stop appearing and an interrupted purge can be re-run safely.
Per-row failures are tallied and logged, never raised.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass

from support_lifecycle.constants import PurgeDefaults
from support_lifecycle.errors import RowOperationFailure

logger = logging.getLogger(__name__)


@dataclass
class PurgeStats:
    """Outcome of one purge invocation for one entity kind."""

    deleted: int = 0
    failed: int = 0
    rounds: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def purge_paginated(
    entity: str,
    fetch_batch: Callable[[], Sequence[str]],
    delete_one: Callable[[str], object],
    batch_size: int = PurgeDefaults.BATCH_SIZE,
) -> PurgeStats:
    """
    Delete every row fetch_batch() keeps returning, one batch at a time.

    Stops when a fetch comes back empty or short, or when a whole round
    deletes nothing (safety stop against permanently undeletable rows).

    Args:
        entity: Name used in logs and stats
        fetch_batch: Returns up to batch_size candidate ids
        delete_one: Deletes one row by id; raising counts as a failure
        batch_size: Expected page size, used for short-page termination

    Returns:
        PurgeStats with actual deleted/failed/rounds counts
    """
    stats = PurgeStats()

    while True:
        ids = list(fetch_batch())
        if not ids:
            break
        stats.rounds += 1

        deleted_this_round = 0
        for row_id in ids:
            try:
                delete_one(row_id)
            except Exception as exc:
                stats.failed += 1
                failure = RowOperationFailure(entity, row_id, exc)
                logger.warning(
                    str(failure),
                    extra={"event": "purge_row_failed", "entity": entity, "row_id": row_id, "error": str(exc)},
                )
                continue
            stats.deleted += 1
            deleted_this_round += 1

        if deleted_this_round == 0:
            logger.warning(
                f"Purge of {entity} made no progress; stopping to avoid an infinite loop",
                extra={"event": "purge_safety_stop", "entity": entity, "attempted": len(ids)},
            )
            break

        if len(ids) < batch_size:
            break

    logger.info(
        f"Purged {entity}: {stats.deleted} deleted, {stats.failed} failed in {stats.rounds} rounds",
        extra={"event": "purge_complete", "entity": entity, **stats.as_dict()},
    )
    return stats
