from __future__ import annotations

import asyncio
import logging
import uuid
from collections import OrderedDict
from collections.abc import Coroutine
from typing import Any

from galaxy.models.review import WriteState, WriteStatus

logger = logging.getLogger(__name__)

MAX_FINISHED_WRITES = 1000


class WriteTracker:
    """
    Runs best-effort persistence writes as background tasks and keeps their outcome.

    Writes are never awaited by the caller that starts them; the result
    (ok / failed + error) stays queryable by write id afterwards. Only the most recent
    `max_finished` finished writes are kept; pending writes are never evicted.
    """

    def __init__(self, max_finished: int = MAX_FINISHED_WRITES) -> None:
        self._max_finished = max_finished
        self._running: dict[str, asyncio.Task[None]] = {}
        self._status: dict[str, WriteStatus] = {}
        self._finished: OrderedDict[str, None] = OrderedDict()

    def start(self, node_id: str, coro: Coroutine[Any, Any, Any]) -> str:
        """Create an asyncio task for `coro` and register it under a new write id."""
        write_id = str(uuid.uuid4())
        self._status[write_id] = WriteStatus(
            write_id=write_id, node_id=node_id, state=WriteState.PENDING
        )
        task = asyncio.create_task(self._run(write_id, node_id, coro), name=f"persist-{node_id}")
        self._running[write_id] = task
        task.add_done_callback(lambda _: self._running.pop(write_id, None))
        return write_id

    async def _run(self, write_id: str, node_id: str, coro: Coroutine[Any, Any, Any]) -> None:
        try:
            await coro
        except Exception as e:
            logger.warning("Interval write failed for node %s: %s", node_id, e)
            self._finish(WriteStatus(
                write_id=write_id, node_id=node_id, state=WriteState.FAILED, error=str(e)
            ))
            return
        self._finish(WriteStatus(write_id=write_id, node_id=node_id, state=WriteState.OK))

    def _finish(self, status: WriteStatus) -> None:
        self._status[status.write_id] = status
        self._finished[status.write_id] = None
        while len(self._finished) > self._max_finished:
            oldest, _ = self._finished.popitem(last=False)
            self._status.pop(oldest, None)

    def get(self, write_id: str) -> WriteStatus | None:
        return self._status.get(write_id)

    def is_pending(self, write_id: str) -> bool:
        task = self._running.get(write_id)
        return task is not None and not task.done()

    async def drain(self) -> None:
        """Wait for every in-flight write. Used on shutdown."""
        tasks = list(self._running.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
