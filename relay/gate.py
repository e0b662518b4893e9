"""Progression gate: the single place a solved board becomes a recorded completion."""

from __future__ import annotations

import enum
import logging
from typing import TYPE_CHECKING

from .scheduler import TimerScope

if TYPE_CHECKING:
    from puzzles.base import Puzzle

    from .core import Session

logger = logging.getLogger(__name__)


class GateOutcome(enum.Enum):
    PENDING = "pending"
    DUPLICATE = "duplicate"
    COMPLETED = "completed"


class ProgressionGate:
    """Turns validator output into completion records, signal flags and navigation."""

    def __init__(self, session: Session):
        self._session = session

    def observe(
        self,
        puzzle: Puzzle,
        solved: bool,
        scope: TimerScope,
        auto_route: bool | None = None,
    ) -> GateOutcome:
        """Record ``puzzle`` as completed the first time it is seen solved.

        Repeat observations are suppressed: the completion set is the guard,
        so at most one navigation is ever scheduled per puzzle.
        """
        if not solved:
            return GateOutcome.PENDING

        session = self._session
        record = session.record
        if not record.mark_completed(puzzle.puzzle_id):
            logger.debug("Duplicate completion of %s suppressed", puzzle.puzzle_id)
            return GateOutcome.DUPLICATE

        signals = {puzzle.signal_key: "1"}
        if puzzle.signal_message:
            signals[f"{puzzle.signal_key}Msg"] = puzzle.signal_message
        try:
            session.commit(signals=signals)
        except OSError:
            record.completed_puzzles.discard(puzzle.puzzle_id)
            raise
        session.journal.note("puzzle_completed", puzzle.puzzle_id, signal=puzzle.signal_key)
        logger.info("Puzzle %s completed (signal %s)", puzzle.puzzle_id, puzzle.signal_key)

        target = session.router.next_screen(puzzle.screen, auto_route)
        if target is not None:
            delay = session.router.route(puzzle.screen).settle_ms
            nav_state = {puzzle.signal_key: True}
            scope.after(delay, lambda: session.navigate(target, nav_state))
            logger.debug("Scheduled navigation %s -> %s in %d ms", puzzle.screen, target, delay)
        return GateOutcome.COMPLETED
