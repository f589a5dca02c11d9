"""Cooperative scheduling primitives: cancellable tasks, mailbox, debouncer.

Everything runs on one thread. ``AsyncioScheduler`` rides an event loop's
timers; ``ManualScheduler`` keeps a virtual clock that only moves when
``advance`` is called, which makes timing deterministic in tests and headless
tools.
"""

from __future__ import annotations

import asyncio
import heapq
import logging
from itertools import count
from typing import Callable, Generic, List, Optional, Protocol, Tuple, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScheduledTask:
    """Cancellable handle for one scheduled callback."""

    __slots__ = ("_callback", "_cancelled", "_done", "_on_cancel", "name")

    def __init__(self, callback: Callable[[], None], name: str = "") -> None:
        self._callback = callback
        self._cancelled = False
        self._done = False
        self._on_cancel: Optional[Callable[[], None]] = None
        self.name = name

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not (self._done or self._cancelled)

    def cancel(self) -> bool:
        """Cancel the task; returns False when it already ran or was cancelled."""
        if not self.pending:
            return False
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
        return True

    def run(self) -> None:
        if not self.pending:
            return
        self._done = True
        self._callback()


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask: ...

    def call_soon(self, callback: Callable[[], None], name: str = "") -> ScheduledTask: ...


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        task = ScheduledTask(callback, name)
        handle = self.loop.call_later(max(0.0, delay), task.run)
        task._on_cancel = handle.cancel
        return task

    def call_soon(self, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        task = ScheduledTask(callback, name)
        handle = self.loop.call_soon(task.run)
        task._on_cancel = handle.cancel
        return task


class ManualScheduler:
    """Virtual-clock scheduler; nothing runs until ``advance``/``run_until_idle``."""

    def __init__(self) -> None:
        self._now = 0.0
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._seq = count()

    @property
    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        task = ScheduledTask(callback, name)
        heapq.heappush(self._queue, (self._now + max(0.0, delay), next(self._seq), task))
        return task

    def call_soon(self, callback: Callable[[], None], name: str = "") -> ScheduledTask:
        return self.call_later(0.0, callback, name)

    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if task.pending)

    def _run_due(self, deadline: float) -> int:
        ran = 0
        while self._queue and self._queue[0][0] <= deadline:
            due, _, task = heapq.heappop(self._queue)
            if not task.pending:
                continue
            self._now = max(self._now, due)
            task.run()
            ran += 1
        return ran

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every task that falls due."""
        deadline = self._now + max(0.0, seconds)
        ran = self._run_due(deadline)
        self._now = deadline
        return ran

    def run_until_idle(self, max_tasks: int = 10_000) -> int:
        """Run tasks in due order until none remain."""
        ran = 0
        while self._queue:
            if ran >= max_tasks:
                raise RuntimeError(f"Scheduler did not go idle after {max_tasks} tasks")
            due, _, task = heapq.heappop(self._queue)
            if not task.pending:
                continue
            self._now = max(self._now, due)
            task.run()
            ran += 1
        return ran


class SingleSlotMailbox(Generic[T]):
    """Holds at most one message; a new message overwrites the previous one."""

    def __init__(self) -> None:
        self._item: Optional[T] = None

    def put(self, item: T) -> Optional[T]:
        """Store ``item``; returns the displaced message, if any."""
        displaced, self._item = self._item, item
        return displaced

    def take(self) -> Optional[T]:
        item, self._item = self._item, None
        return item

    def peek(self) -> Optional[T]:
        return self._item

    def __len__(self) -> int:
        return 0 if self._item is None else 1


class Debouncer(Generic[T]):
    """Commits only the last value submitted within a quiescence window.

    Each debouncer is one channel: a submit cancels only its own pending task.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        delay: float,
        commit: Callable[[T], None],
        name: str = "debounce",
    ) -> None:
        self._scheduler = scheduler
        self._delay = delay
        self._commit = commit
        self._name = name
        self._task: Optional[ScheduledTask] = None
        self._value: Optional[T] = None
        self._has_value = False

    @property
    def pending(self) -> bool:
        return self._has_value

    def submit(self, value: T) -> None:
        if self._task is not None:
            self._task.cancel()
        self._value = value
        self._has_value = True
        self._task = self._scheduler.call_later(self._delay, self.flush, self._name)

    def flush(self) -> bool:
        """Commit the buffered value now; returns False when nothing was pending."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        if not self._has_value:
            return False
        value = self._value
        self._value = None
        self._has_value = False
        logger.debug("Committing debounced %s edit", self._name)
        self._commit(value)  # type: ignore[arg-type]
        return True

    def cancel(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._value = None
        self._has_value = False
