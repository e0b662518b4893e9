"""Generic puzzle interface.

A puzzle is a pure object: it builds an initial board, folds events into new
boards and decides whether a board is solved. Screens own the board; the
progression gate consumes ``is_solved``.
"""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any

from .events import Event, Hint

MAX_HINT_TIER = 3

SEPARATOR = "== == == == == == == == == == == == == == == == == =="


class Puzzle(ABC):
    """One mini-puzzle: board factory, reducer and validator."""

    puzzle_id: str = ""
    screen: str = ""
    title: str = ""
    signal_key: str = ""
    signal_message: str = ""
    intro_lines: tuple[str, ...] = ()
    success_lines: tuple[str, ...] = ()
    hint_lines: tuple[str, ...] = ()

    @abstractmethod
    def initial_board(self, rng: random.Random) -> Any:
        """Fresh board for a newly mounted screen."""

    @abstractmethod
    def is_solved(self, board: Any) -> bool:
        """Total, side-effect-free predicate over a board."""

    @abstractmethod
    def render(self, board: Any) -> list[str]:
        """Plain-text rendition of the board."""

    def _apply(self, board: Any, event: Event) -> Any:
        return board

    def mutate(self, board: Any, event: Event) -> Any:
        """Return the board after ``event``; unknown events leave it unchanged."""
        if isinstance(event, Hint):
            return escalate(board)
        return self._apply(board, event)

    def describe(self, before: Any, after: Any, event: Event) -> list[str]:
        """Log lines for the screen's console after an event."""
        return []

    def new_hint_lines(self, before: Any, after: Any) -> list[str]:
        """Hint text for every tier reached by this mutation."""
        old, new = hint_tier(before), hint_tier(after)
        return [self.hint_lines[tier - 1] for tier in range(old + 1, new + 1) if tier <= len(self.hint_lines)]


def hint_tier(board: Any) -> int:
    return int(getattr(board, "hint_tier", 0))


def escalate(board: Any) -> Any:
    """Raise a board's hint tier by one, capped. Boards without hints are returned as-is."""
    if not hasattr(board, "hint_tier"):
        return board
    return replace(board, hint_tier=min(board.hint_tier + 1, MAX_HINT_TIER))
