"""Cooperative timer queue.

All callbacks run one at a time on the caller's thread. Time is an explicit
millisecond counter: tests move it with ``advance``; the real-time driver
``run`` sleeps until the next timer is due and then advances by that much.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from .errors import SchedulerLeak

logger = logging.getLogger(__name__)

Callback = Callable[[], None]


@dataclass(eq=False)
class CancelToken:
    """Handle for one scheduled callback."""

    id: int
    owner: str = ""
    interval_ms: int | None = None
    cancelled: bool = False
    fired: int = 0

    @property
    def active(self) -> bool:
        if self.cancelled:
            return False
        return self.interval_ms is not None or self.fired == 0


@dataclass(order=True)
class _Entry:
    due_ms: int
    seq: int
    token: CancelToken = field(compare=False)
    callback: Callback = field(compare=False)


class Scheduler:
    """Single queue of one-shot and repeating timers."""

    def __init__(self, start_ms: int = 0):
        self._now = start_ms
        self._queue: list[_Entry] = []
        self._seq = itertools.count()
        self._ids = itertools.count(1)

    @property
    def now_ms(self) -> int:
        return self._now

    def after(self, delay_ms: int, callback: Callback, owner: str = "") -> CancelToken:
        token = CancelToken(id=next(self._ids), owner=owner)
        self._push(self._now + max(0, int(delay_ms)), token, callback)
        return token

    def every(self, interval_ms: int, callback: Callback, owner: str = "") -> CancelToken:
        interval = int(interval_ms)
        if interval <= 0:
            raise ValueError("interval_ms must be positive")
        token = CancelToken(id=next(self._ids), owner=owner, interval_ms=interval)
        self._push(self._now + interval, token, callback)
        return token

    def cancel(self, token: CancelToken) -> None:
        token.cancelled = True

    def scope(self, owner: str) -> TimerScope:
        return TimerScope(self, owner)

    def pending(self, owner: str | None = None) -> int:
        return sum(
            1
            for entry in self._queue
            if not entry.token.cancelled and (owner is None or entry.token.owner == owner)
        )

    def next_due(self) -> int | None:
        self._drop_cancelled()
        return self._queue[0].due_ms if self._queue else None

    def _push(self, due_ms: int, token: CancelToken, callback: Callback) -> None:
        heapq.heappush(self._queue, _Entry(due_ms, next(self._seq), token, callback))

    def _drop_cancelled(self) -> None:
        while self._queue and self._queue[0].token.cancelled:
            heapq.heappop(self._queue)

    # ── Driving ─────────────────────────────────────────────────

    def advance(self, ms: int) -> int:
        """Move the clock forward, firing everything that comes due. Returns the fire count."""
        target = self._now + max(0, int(ms))
        fired = 0
        while True:
            self._drop_cancelled()
            if not self._queue or self._queue[0].due_ms > target:
                break
            entry = heapq.heappop(self._queue)
            self._now = entry.due_ms
            self._fire(entry)
            fired += 1
        self._now = target
        return fired

    def run_until_idle(self, limit_ms: int = 3_600_000) -> int:
        """Fire one-shot work until nothing is left (repeating timers excluded)."""
        fired = 0
        start = self._now
        while True:
            self._drop_cancelled()
            one_shots = [e.due_ms for e in self._queue if e.token.interval_ms is None and not e.token.cancelled]
            if not one_shots:
                return fired
            due = min(one_shots)
            if due - start > limit_ms:
                logger.warning("run_until_idle stopped at the %d ms limit", limit_ms)
                return fired
            fired += self.advance(due - self._now)

    async def run(
        self,
        stop: Callable[[], bool] | None = None,
        idle_sleep: float = 0.05,
        clock: Callable[[], float] | None = None,
    ) -> None:
        """Real-time driver: sleep until the next timer and fire it.

        ``clock`` returns seconds and defaults to the running loop's clock.
        """
        clock = clock or asyncio.get_running_loop().time
        started = clock()
        advanced_ms = 0
        while not (stop and stop()):
            due = self.next_due()
            wait = idle_sleep if due is None else max(0.0, (due - self._now) / 1000)
            # Wake at least every idle_sleep so ``stop`` and new timers are noticed.
            await asyncio.sleep(min(wait, idle_sleep))
            elapsed_ms = int((clock() - started) * 1000)
            self.advance(elapsed_ms - advanced_ms)
            advanced_ms = elapsed_ms

    def _fire(self, entry: _Entry) -> None:
        token = entry.token
        token.fired += 1
        if token.interval_ms is not None:
            self._push(entry.due_ms + token.interval_ms, token, entry.callback)
        try:
            entry.callback()
        except Exception:
            logger.exception("Scheduled callback failed (owner=%s, token=%d)", token.owner or "-", token.id)


class TimerScope:
    """Timers owned by one mounted screen; ``close`` cancels all of them."""

    def __init__(self, scheduler: Scheduler, owner: str):
        self._scheduler = scheduler
        self._owner = owner
        self._tokens: list[CancelToken] = []
        self._closed = False

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def closed(self) -> bool:
        return self._closed

    def after(self, delay_ms: int, callback: Callback) -> CancelToken:
        self._ensure_open()
        token = self._scheduler.after(delay_ms, callback, owner=self._owner)
        self._track(token)
        return token

    def every(self, interval_ms: int, callback: Callback) -> CancelToken:
        self._ensure_open()
        token = self._scheduler.every(interval_ms, callback, owner=self._owner)
        self._track(token)
        return token

    def cancel(self, token: CancelToken) -> None:
        self._scheduler.cancel(token)

    def outstanding(self) -> list[CancelToken]:
        return [t for t in self._tokens if t.active]

    def close(self) -> int:
        """Cancel everything still pending. Returns how many tokens were live."""
        live = self.outstanding()
        for token in live:
            self._scheduler.cancel(token)
        self._tokens.clear()
        self._closed = True
        if live:
            logger.debug("Scope %s closed, cancelled %d timer(s)", self._owner, len(live))
        return len(live)

    def _track(self, token: CancelToken) -> None:
        self._tokens = [t for t in self._tokens if t.active]
        self._tokens.append(token)

    def _ensure_open(self) -> None:
        if self._closed:
            raise SchedulerLeak(self._owner)
