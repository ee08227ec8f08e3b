import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set


logger = logging.getLogger(__name__)


class Poller:
    """Fires ``tick`` every ``interval`` seconds until cancelled.

    Each tick runs as its own task, so a slow request never shifts the
    schedule; ``tick`` is responsible for its own single-flight guard.
    Cancelling stops future ticks only; ticks already running are left to
    finish.
    """

    def __init__(self, interval: float, tick: Callable[[], Awaitable[None]], name: str = "poller") -> None:
        self._interval = interval
        self._tick = tick
        self._name = name
        self._task: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            await asyncio.sleep(self._interval)
            task = loop.create_task(self._tick(), name=f"{self._name}-tick")
            self._inflight.add(task)
            task.add_done_callback(self._reap)

    def _reap(self, task: asyncio.Task) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("%s tick failed", self._name, exc_info=exc)
