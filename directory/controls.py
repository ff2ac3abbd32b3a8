"""
Interfaces between the directory controller and whatever draws the widgets,
plus the cancellable timer used to debounce free-text input.

    SelectControl   closed-choice control (category, specialty, area)
    TextControl     free-text search box
    Scheduler       call_later() source; AsyncioScheduler for real event
                    loops, VirtualScheduler for deterministic tests
    Debouncer       trailing-edge debounce over a Scheduler
"""

import asyncio
import heapq
import itertools
from collections.abc import Callable
from typing import Any, NamedTuple, Protocol

ALL_LABEL   = "الكل"
PLACEHOLDER = "اختر..."


class Option(NamedTuple):
    value: str
    label: str


class SelectControl(Protocol):
    def set_options(self, options: list[Option]) -> None: ...
    def get_value(self) -> str | None: ...
    def on_change(self, callback: Callable[[str | None], None]) -> None: ...


class TextControl(Protocol):
    def get_value(self) -> str: ...
    def on_change(self, callback: Callable[[str], None]) -> None: ...


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


def options_from(values: list[str]) -> list[Option]:
    """Plain strings → options whose label is the value itself."""
    return [Option(v, v) for v in values]


# ---------------------------------------------------------------------------
# Schedulers
# ---------------------------------------------------------------------------

class AsyncioScheduler:
    """Schedules on an asyncio loop; the running loop is used when none is given."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> asyncio.TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class _VirtualTimer:
    def __init__(self, when: float, callback: Callable[[], Any]):
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class VirtualScheduler:
    """
    Scheduler driven by advance() instead of a wall clock.

    Timers due at the same instant fire in the order they were scheduled.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, _VirtualTimer]] = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> _VirtualTimer:
        timer = _VirtualTimer(self.now + max(delay, 0.0), callback)
        heapq.heappush(self._queue, (timer.when, next(self._seq), timer))
        return timer

    def advance(self, seconds: float) -> int:
        """Move time forward, firing every due timer. Returns how many fired."""
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            when, _, timer = heapq.heappop(self._queue)
            self.now = when
            if not timer.cancelled:
                timer.callback()
                fired += 1
        self.now = target
        return fired

    @property
    def pending(self) -> int:
        return sum(1 for _, _, t in self._queue if not t.cancelled)


# ---------------------------------------------------------------------------
# Debounce
# ---------------------------------------------------------------------------

class Debouncer:
    """
    Trailing-edge debounce: each call cancels the pending one and schedules
    fn(*args) `wait` seconds later. Only the last call in a burst runs.
    With wait <= 0 the function is called immediately.
    """

    def __init__(self, scheduler: Scheduler | None, wait: float, fn: Callable[..., Any]):
        self._scheduler = scheduler
        self._wait = wait
        self._fn = fn
        self._pending: TimerHandle | None = None
        self._args: tuple = ()

    def __call__(self, *args: Any) -> None:
        self.cancel()
        if self._wait <= 0 or self._scheduler is None:
            self._fn(*args)
            return
        self._args = args
        self._pending = self._scheduler.call_later(self._wait, self._fire)

    def _fire(self) -> None:
        self._pending = None
        self._fn(*self._args)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    @property
    def pending(self) -> bool:
        return self._pending is not None
