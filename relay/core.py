"""Session orchestrator: one player's run through the screen sequence.

The session owns the only ProgressionRecord and hands it (with the store,
scheduler, router, gate and journal) to whichever screen is mounted.
Navigation always unmounts the current screen first, which closes its
timer scope.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any, Protocol

from narrative.hub import HubScreen
from narrative.script import build_hub_script
from puzzles import PUZZLES
from puzzles.screen import PuzzleScreen

from .config import load_config
from .errors import UnknownScreen
from .gate import ProgressionGate
from .journal import EventJournal
from .router import HUB, PASSTHROUGH, TIMED, Router
from .scheduler import Scheduler
from .screens import LoadingScreen, PassthroughScreen
from .state import ProgressionRecord
from .store import SessionStorage, StateStore

logger = logging.getLogger(__name__)


class Screen(Protocol):
    screen_id: str

    def mount(self, session: Session, state: dict | None = None) -> None: ...

    def unmount(self) -> None: ...

    def handle(self, line: str) -> list[str]: ...

    def render(self) -> list[str]: ...


class Session:
    """Wires storage, timers, routing and screens for one session id."""

    def __init__(
        self,
        config: dict | None = None,
        session_id: str = "default",
        scheduler: Scheduler | None = None,
        rng: random.Random | None = None,
    ):
        self._cfg = config if config is not None else load_config()
        self._id = session_id
        self._rng = rng or random.Random()

        root = Path(__file__).resolve().parent.parent
        storage = self._cfg.get("storage", {})
        session_dir = Path(
            self._cfg.get("_env", {}).get("session_dir") or storage.get("session_dir", "data/sessions")
        )
        if not session_dir.is_absolute():
            session_dir = root / session_dir
        journal_db = Path(storage.get("journal_db") or session_dir / "journal.db")
        if not journal_db.is_absolute():
            journal_db = root / journal_db

        self.store = StateStore(SessionStorage(session_dir / f"{session_id}.json"))
        self.journal = EventJournal(journal_db, session=session_id)
        self.scheduler = scheduler or Scheduler()
        self.router = Router.from_config(self._cfg)
        self.gate = ProgressionGate(self)

        self._record: ProgressionRecord | None = None
        self._current: Screen | None = None
        self._listeners: list[Callable[[str], None]] = []
        self._screens = self._build_screens()

    def _build_screens(self) -> dict[str, Screen]:
        screens: dict[str, Screen] = {HUB: HubScreen(build_hub_script(self._cfg), self._cfg)}
        for puzzle in PUZZLES.values():
            screens[puzzle.screen] = PuzzleScreen(puzzle, rng=self._rng)
        for screen_id in self.router.screens():
            kind = self.router.route(screen_id).kind
            if kind == TIMED:
                screens[screen_id] = LoadingScreen(screen_id)
            elif kind == PASSTHROUGH:
                screens[screen_id] = PassthroughScreen(screen_id)
        return screens

    @property
    def session_id(self) -> str:
        return self._id

    @property
    def config(self) -> dict:
        return self._cfg

    # ── Record ──────────────────────────────────────────────────

    @property
    def record(self) -> ProgressionRecord:
        """The progression record, loaded or created on first use."""
        if self._record is None:
            self._record = self.store.load()
            if self._record is None:
                logger.info("Starting a fresh progression record for session %s", self._id)
                self._record = ProgressionRecord()
                self.store.save(self._record)
        return self._record

    def commit(self, signals: dict[str, str] | None = None, clear_signals: Iterable[str] = ()) -> None:
        self.store.save(self.record, signals=signals, clear_signals=clear_signals)

    def signal(self, key: str) -> str | None:
        return self.store.storage.get_item(key) or None

    # ── Screens & navigation ────────────────────────────────────

    def screen(self, screen_id: str) -> Screen:
        try:
            return self._screens[screen_id]
        except KeyError:
            raise UnknownScreen(screen_id) from None

    @property
    def current(self) -> Screen | None:
        return self._current

    @property
    def current_id(self) -> str | None:
        return self._current.screen_id if self._current is not None else None

    def start(self, screen_id: str = HUB) -> Screen:
        return self.navigate(screen_id)

    def navigate(self, screen_id: str, state: dict | None = None) -> Screen:
        screen = self.screen(screen_id)
        previous = self.current_id
        if self._current is not None:
            self._current.unmount()
        self._current = screen
        logger.info("Navigate %s -> %s", previous or "-", screen_id)
        self.journal.note("navigation", screen_id, previous=previous)
        screen.mount(self, state)
        self.announce(f"→ {screen_id}")
        return screen

    def skip(self) -> str | None:
        """Leave the current screen for its route's destination, solved or not."""
        if self._current is None:
            return None
        target = self.router.skip(self._current.screen_id)
        if target is None:
            return None
        self.journal.note("skip", self._current.screen_id, target=target)
        self.navigate(target)
        return target

    def handle(self, line: str) -> list[str]:
        if self._current is None:
            return ["No screen is mounted."]
        if line.strip().lower() == "skip":
            target = self.skip()
            return [] if target else ["Nothing to skip to."]
        return self._current.handle(line)

    def render(self) -> list[str]:
        return self._current.render() if self._current is not None else []

    def reset(self) -> None:
        """Forget all progress for this session."""
        if self._current is not None:
            self._current.unmount()
            self._current = None
        self.store.storage.clear()
        self._record = None
        self.journal.note("reset", self._id)
        logger.info("Session %s reset", self._id)

    # ── Announcements ───────────────────────────────────────────

    def subscribe(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def announce(self, text: str) -> None:
        for listener in self._listeners:
            listener(text)

    def status(self) -> dict[str, Any]:
        """Summary of saved progress. Never writes to storage."""
        saved = self._record if self._record is not None else self.store.load()
        record = saved if saved is not None else ProgressionRecord()
        return {
            "session": self._id,
            "started": saved is not None,
            "screen": self.current_id,
            "narrative_stage": record.narrative_stage,
            "completed": [p for p in PUZZLES if record.is_completed(p)],
            "next_message_id": record.next_message_id,
            "signals": [
                key for key in self.store.storage.keys() if key.endswith("Solved") and self.signal(key)
            ],
        }

    # ── Async driver ────────────────────────────────────────────

    async def __aenter__(self) -> Session:
        await self.journal.open()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.journal.close()

    async def run(self, stop: Callable[[], bool], flush_every_s: float = 1.0) -> None:
        """Drive timers in real time and flush the journal until ``stop()``."""
        await asyncio.gather(self.scheduler.run(stop), self._flush_loop(stop, flush_every_s))

    async def _flush_loop(self, stop: Callable[[], bool], every_s: float) -> None:
        while not stop():
            await asyncio.sleep(every_s)
            written = await self.journal.flush()
            if written:
                logger.debug("Journal: wrote %d event(s)", written)
        await self.journal.flush()
