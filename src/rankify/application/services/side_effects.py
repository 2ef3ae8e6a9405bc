"""Best-effort side effects.

Hey future me - some writes are NOT allowed to fail the user-facing action:
mutual follows after an accept, catalog cache upserts during a save, the
friend-request notification, marking that notification read. They run inside
a SAVEPOINT so a failure rolls back only the side effect; the primary write
in the outer transaction still commits. The failure is logged and swallowed.

This is a deliberate inconsistency window (accepted request without follow
edges, ranking without cached metadata). Retrying the side effect later is
always safe because every one of them is idempotent or append-only.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_best_effort(
    session: AsyncSession,
    description: str,
    operation: Callable[[], Awaitable[T]],
) -> T | None:
    """Run operation in a savepoint; log and return None on failure."""
    try:
        async with session.begin_nested():
            return await operation()
    except Exception as e:
        logger.warning("%s failed, continuing without it: %s", description, e, exc_info=True)
        return None
