"""
Timer / event scheduler for the session.

Everything runs on one thread. Two backends:
    AsyncioScheduler: real time, wraps loop.call_later
    ManualScheduler:  virtual clock, advanced explicitly (simulation + tests)

TimerGroup scopes a set of timers to one owner (a session state) so the
owner can tear all of them down in one call on exit.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger("polygraph-scheduler")


class TimerHandle:
    """Cancellable handle for a one-shot or repeating timer."""

    def __init__(self, label=""):
        self.label = label
        self.cancelled = False
        self._inner = None

    def cancel(self):
        self.cancelled = True
        if self._inner is not None:
            self._inner.cancel()
            self._inner = None

    def _bind(self, inner):
        self._inner = inner


class Scheduler(ABC):

    @abstractmethod
    def time(self) -> float:
        """Current clock, seconds."""

    @abstractmethod
    def _schedule(self, delay: float, fn):
        """Run fn after delay. Returns an object with .cancel()."""

    @abstractmethod
    def spawn(self, coro) -> asyncio.Task:
        """Run a coroutine on the scheduler's loop."""

    def call_later(self, delay, callback, *args, label="") -> TimerHandle:
        handle = TimerHandle(label)

        def fire():
            if handle.cancelled:
                return
            handle._inner = None
            handle.cancelled = True  # one-shot: spent
            callback(*args)

        handle._bind(self._schedule(delay, fire))
        return handle

    def call_every(self, interval, callback, *args, label="") -> TimerHandle:
        """Repeat callback every interval until the handle is cancelled."""
        handle = TimerHandle(label)

        def fire():
            if handle.cancelled:
                return
            callback(*args)
            # callback may have cancelled us (e.g. triggered a transition)
            if not handle.cancelled:
                handle._bind(self._schedule(interval, fire))

        handle._bind(self._schedule(interval, fire))
        return handle


class AsyncioScheduler(Scheduler):

    def __init__(self, loop=None):
        self._loop = loop

    @property
    def loop(self):
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def time(self) -> float:
        return self.loop.time()

    def _schedule(self, delay, fn):
        return self.loop.call_later(delay, fn)

    def spawn(self, coro):
        return self.loop.create_task(coro)


class _ManualTimer:
    def __init__(self, when, seq, fn):
        self.when = when
        self.seq = seq
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def __lt__(self, other):
        return (self.when, self.seq) < (other.when, other.seq)


class ManualScheduler(Scheduler):
    """
    Virtual clock. Nothing fires until advance() is awaited; timers then fire
    in (time, insertion) order and spawned tasks are given the chance to run
    after each callback, so async continuations interleave like they would
    on a real loop.
    """

    def __init__(self, start=0.0):
        self._now = float(start)
        self._queue = []
        self._seq = itertools.count()
        self._tasks = set()

    def time(self) -> float:
        return self._now

    def _schedule(self, delay, fn):
        timer = _ManualTimer(self._now + max(0.0, delay), next(self._seq), fn)
        heapq.heappush(self._queue, timer)
        return timer

    def spawn(self, coro):
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for t in self._queue if not t.cancelled)

    async def settle(self, max_spins=100):
        """Let spawned tasks run until they all finish or block."""
        for _ in range(max_spins):
            if not self._tasks:
                return
            await asyncio.sleep(0)

    async def advance(self, seconds):
        target = self._now + seconds
        await self.settle()
        while self._queue and self._queue[0].when <= target + 1e-9:
            timer = heapq.heappop(self._queue)
            if timer.cancelled:
                continue
            self._now = max(self._now, timer.when)
            timer.fn()
            await self.settle()
        self._now = target


class TimerGroup:
    """All timers owned by one session state. cancel_all() is the teardown."""

    def __init__(self, scheduler: Scheduler, owner=""):
        self.scheduler = scheduler
        self.owner = owner
        self._handles = []
        self.closed = False

    def call_later(self, delay, callback, *args, label=""):
        return self._track(self.scheduler.call_later(delay, callback, *args, label=label))

    def call_every(self, interval, callback, *args, label=""):
        return self._track(self.scheduler.call_every(interval, callback, *args, label=label))

    def _track(self, handle):
        if self.closed:
            # owner already exited; never let a late registration run
            logger.warning(f"⚠️ Timer '{handle.label}' registered on closed group '{self.owner}'")
            handle.cancel()
            return handle
        self._handles = [h for h in self._handles if not h.cancelled]
        self._handles.append(handle)
        return handle

    @property
    def active(self):
        return [h for h in self._handles if not h.cancelled]

    def cancel_all(self):
        for handle in self._handles:
            handle.cancel()
        self._handles = []
        self.closed = True
