"""
Cancellable in-flight operations keyed by kind.

Starting an operation cancels any unfinished operation of the same kind, and a
caller whose operation was replaced gets OperationSuperseded instead of a
result, so only the most recent request of a kind ever reaches the caller.
"""

import asyncio
import logging
from typing import Any, Awaitable, Dict

from backend.errors import OperationSuperseded

logger = logging.getLogger(__name__)


class OperationRegistry:

    def __init__(self):
        self._tasks: Dict[str, asyncio.Task] = {}
        self._generations: Dict[str, int] = {}

    def in_flight(self, kind: str) -> bool:
        task = self._tasks.get(kind)
        return task is not None and not task.done()

    def cancel(self, kind: str) -> bool:
        task = self._tasks.get(kind)
        if task is None:
            return False
        # The task may already be done while its caller has not resumed yet;
        # bumping the generation still makes that caller report superseded
        self._generations[kind] = self._generations.get(kind, 0) + 1
        if not task.done():
            task.cancel()
        return True

    def cancel_all(self) -> None:
        for kind in list(self._tasks):
            self.cancel(kind)

    async def run(self, kind: str, awaitable: Awaitable[Any]) -> Any:
        previous = self._tasks.get(kind)
        if previous is not None and not previous.done():
            logger.info(f"Superseding in-flight '{kind}' operation")
            previous.cancel()

        generation = self._generations.get(kind, 0) + 1
        self._generations[kind] = generation
        task = asyncio.ensure_future(awaitable)
        self._tasks[kind] = task

        try:
            result = await task
        except asyncio.CancelledError:
            if self._generations.get(kind) != generation:
                raise OperationSuperseded(kind)
            # The caller itself was cancelled
            raise
        finally:
            if self._tasks.get(kind) is task:
                del self._tasks[kind]

        if self._generations.get(kind) != generation:
            raise OperationSuperseded(kind)
        return result
