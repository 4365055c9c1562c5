from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import anyio

from .constants import DEFAULT_POLL_INTERVAL_S
from .logging import get_logger

if TYPE_CHECKING:
    from anyio.abc import TaskGroup

logger = get_logger(__name__)


class Poller:
    """Sequential poll loop.

    The next cycle is scheduled only after the previous one has finished, so
    two receive calls never overlap however slow the API is. `stop()` keeps
    future cycles from running but does not abort a request in flight.
    """

    def __init__(
        self,
        receive: Callable[[], Awaitable[Any]],
        on_batch: Callable[[Any], None],
        interval_s: float = DEFAULT_POLL_INTERVAL_S,
        *,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        self._receive = receive
        self._on_batch = on_batch
        self.interval_s = interval_s
        self._sleep = sleep
        self._running = False
        self._generation = 0
        self._wait_scope: anyio.CancelScope | None = None

    @property
    def running(self) -> bool:
        return self._running

    def start(self, task_group: TaskGroup) -> None:
        if self._running:
            return
        self._running = True
        self._generation += 1
        task_group.start_soon(self._run, self._generation)

    def stop(self) -> None:
        self._running = False
        if self._wait_scope is not None:
            self._wait_scope.cancel()
            self._wait_scope = None

    async def tick(self) -> None:
        if not self._running:
            return
        try:
            data = await self._receive()
        except Exception as exc:
            logger.error(
                "poll.failed",
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return
        try:
            self._on_batch(data)
        except Exception as exc:
            logger.error(
                "poll.dispatch_failed",
                error=str(exc),
                error_type=exc.__class__.__name__,
            )

    def _current(self, generation: int) -> bool:
        return self._running and generation == self._generation

    async def _run(self, generation: int) -> None:
        # only the newest start() keeps cycling
        while self._current(generation):
            await self.tick()
            if not self._current(generation):
                return
            with anyio.CancelScope() as scope:
                self._wait_scope = scope
                await self._sleep(self.interval_s)
            self._wait_scope = None
