from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from insightflow.errors import PersistenceError

logger = logging.getLogger("uvicorn.error")


async def persist_or_rollback(
    persist: Callable[[], Awaitable[None]],
    undo: Callable[[], None],
    *,
    event: str,
    context: dict[str, Any],
) -> None:
    """
    Await the durable write for a change already applied to local state.

    On failure the local change is undone and the caller gets a
    `PersistenceError`, so state and storage never silently diverge.
    """
    try:
        await persist()
    except Exception as exc:
        undo()
        logger.warning(
            "insightflow.persist_rollback | %s",
            {"event": event, **context, "error": str(exc)},
        )
        raise PersistenceError() from exc
