"""Screens with no puzzle: the timed transit screen and pass-through screens."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .scheduler import TimerScope

if TYPE_CHECKING:
    from .core import Session

logger = logging.getLogger(__name__)

LOADING_LINES = (
    "Establishing secure uplink.",
    "Decrypting channel. Aligning phase.",
    "Remember the keys?",
)


class LoadingScreen:
    """Counts down, then moves on to the route's next screen."""

    def __init__(self, screen_id: str):
        self.screen_id = screen_id
        self._session: Session | None = None
        self._scope: TimerScope | None = None
        self._remaining_s = 0

    @property
    def scope(self) -> TimerScope | None:
        return self._scope

    @property
    def remaining_s(self) -> int:
        return self._remaining_s

    def mount(self, session: Session, state: dict | None = None) -> None:
        self.unmount()
        self._session = session
        self._scope = session.scheduler.scope(self.screen_id)
        route = session.router.route(self.screen_id)
        self._remaining_s = -(-route.settle_ms // 1000)
        self._scope.every(1000, self._tick)
        if route.next:
            self._scope.after(route.settle_ms, lambda: session.navigate(route.next))

    def unmount(self) -> None:
        if self._scope is not None:
            self._scope.close()

    def _tick(self) -> None:
        self._remaining_s = max(0, self._remaining_s - 1)

    def handle(self, line: str) -> list[str]:
        return ["Please wait… (or type skip)"]

    def render(self) -> list[str]:
        return [*LOADING_LINES, f"ETA: {self._remaining_s}s"]


class PassthroughScreen:
    """A screen this engine does not implement; it forwards straight away."""

    def __init__(self, screen_id: str):
        self.screen_id = screen_id
        self._scope: TimerScope | None = None

    @property
    def scope(self) -> TimerScope | None:
        return self._scope

    def mount(self, session: Session, state: dict | None = None) -> None:
        self.unmount()
        self._scope = session.scheduler.scope(self.screen_id)
        target = session.router.next_screen(self.screen_id)
        if target is None:
            logger.warning("Pass-through screen %s has nowhere to go", self.screen_id)
            return
        self._scope.after(0, lambda: session.navigate(target))

    def unmount(self) -> None:
        if self._scope is not None:
            self._scope.close()

    def handle(self, line: str) -> list[str]:
        return []

    def render(self) -> list[str]:
        return [f"{self.screen_id}…"]
