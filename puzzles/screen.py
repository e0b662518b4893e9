"""Generic screen for any Puzzle: owns the board, a console and a timer scope."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING, Any

from relay.gate import GateOutcome
from relay.router import HUB
from relay.scheduler import TimerScope

from .base import SEPARATOR, Puzzle
from .events import Event, Reset, parse_event

if TYPE_CHECKING:
    from relay.core import Session

logger = logging.getLogger(__name__)

CONSOLE_LINES = 12
SAVE_FAILED = "Progress could not be saved. Submit again to retry."
EXIT_DELAY_MS = 300
CONSOLE_HELP = ("help: list commands", "clear: empty the console", "exit: back to the hub", "skip: move on")


class PuzzleScreen:
    def __init__(self, puzzle: Puzzle, rng: random.Random | None = None, auto_route: bool | None = None):
        self._puzzle = puzzle
        self._rng = rng or random.Random()
        self._auto_route = auto_route
        self._session: Session | None = None
        self._scope: TimerScope | None = None
        self._initial: Any = None
        self._board: Any = None
        self._console: list[str] = []
        self._last_outcome: GateOutcome | None = None

    @property
    def screen_id(self) -> str:
        return self._puzzle.screen

    @property
    def puzzle(self) -> Puzzle:
        return self._puzzle

    @property
    def board(self) -> Any:
        return self._board

    @property
    def scope(self) -> TimerScope | None:
        return self._scope

    @property
    def console(self) -> list[str]:
        return list(self._console)

    @property
    def last_outcome(self) -> GateOutcome | None:
        return self._last_outcome

    # ── Lifecycle ───────────────────────────────────────────────

    def mount(self, session: Session, state: dict | None = None) -> None:
        self.unmount()
        self._session = session
        self._scope = session.scheduler.scope(self.screen_id)
        self._initial = self._board = self._puzzle.initial_board(self._rng)
        self._console = list(self._puzzle.intro_lines)
        self._last_outcome = None
        if session.record.is_completed(self._puzzle.puzzle_id):
            self._console.append("(already solved; type skip to move on)")

    def unmount(self) -> None:
        if self._scope is not None:
            self._scope.close()

    # ── Events ──────────────────────────────────────────────────

    def dispatch(self, event: Event) -> list[str]:
        """Apply one event, re-run the validator and pass the verdict to the gate."""
        if self._session is None or self._scope is None:
            raise RuntimeError(f"{self.screen_id} screen used before mount")

        if isinstance(event, Reset):
            self._board = self._initial
            lines = ["Board reset."]
        else:
            before = self._board
            self._board = self._puzzle.mutate(before, event)
            lines = self._puzzle.describe(before, self._board, event)
            lines += self._puzzle.new_hint_lines(before, self._board)

        solved = self._puzzle.is_solved(self._board)
        try:
            outcome = self._session.gate.observe(self._puzzle, solved, self._scope, self._auto_route)
        except OSError:
            logger.exception("Could not save completion of %s", self._puzzle.puzzle_id)
            lines.append(SAVE_FAILED)
            self._console.extend(lines)
            return lines
        self._last_outcome = outcome
        if outcome is GateOutcome.COMPLETED:
            lines += list(self._puzzle.success_lines)
            target = self._session.router.next_screen(self.screen_id, self._auto_route)
            if target:
                lines.append(f"Routing to {target}…")

        self._console.extend(lines)
        return lines

    def handle(self, line: str) -> list[str]:
        command = line.strip().lower()
        if command == "help":
            usage = [line for line in self._puzzle.intro_lines if line.startswith("Commands:")]
            return [*usage, *CONSOLE_HELP]
        if command == "clear":
            self._console.clear()
            return []
        if command == "exit":
            return self._exit()
        event = parse_event(line)
        if event is None:
            return [f"Unknown command: {line.strip()}"]
        return self.dispatch(event)

    def _exit(self) -> list[str]:
        if self._session is None or self._scope is None:
            raise RuntimeError(f"{self.screen_id} screen used before mount")
        session = self._session
        self._scope.after(EXIT_DELAY_MS, lambda: session.navigate(HUB))
        lines = ["Goodbye! Come back soon."]
        self._console.extend(lines)
        return lines

    def render(self) -> list[str]:
        lines = [self._puzzle.title, SEPARATOR]
        lines += self._puzzle.render(self._board)
        if self._session is not None and self._session.record.is_completed(self._puzzle.puzzle_id):
            lines.append("Status: SOLVED")
        lines += ["", *self._console[-CONSOLE_LINES:]]
        return lines
