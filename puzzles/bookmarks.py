"""BOOKMARKS: spot the derivative note among three observations."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace

from relay.router import BOOKMARKS

from .base import MAX_HINT_TIER, Puzzle
from .events import Event, Pick

CORRECT = "B"

NOTES: dict[str, str] = {
    "A": "Crisp fries on pale oak, overhead. Spiral cut differs from refs; plate rim unique.",
    "B": (
        "Fries on pale oak, overhead. Same spiral pattern as ref #2, same plate rim scuff, "
        "identical crumb cluster at 2 o’clock."
    ),
    "C": "Straight-cut fries; plate style differs, same surface. Lighting softer than refs but within range.",
}


@dataclass(frozen=True)
class BookmarksBoard:
    picked: str | None = None
    failures: int = 0
    hint_tier: int = 0


class BookmarksPuzzle(Puzzle):
    puzzle_id = "bookmarks"
    screen = BOOKMARKS
    title = "Puzzle 3: Bookmarks Clone Check (BOOKMARKS) — Earn KEY-3"
    signal_key = "bookmarksSolved"
    intro_lines = (
        "BOOKMARKS online.",
        "Three notes. One is derivative. Pick A/B/C.",
        "Distinctiveness principle in effect.",
        "Commands: pick A|B|C, hint, reset",
    )
    success_lines = (
        "CLONE PURGED.",
        "KEY-3: NEW-DAY",
        "“Copies are flattery. I am bored of flattery.”",
    )
    hint_lines = (
        "HINT: Distinctiveness fails when specific scars repeat.",
        "HINT: Look for identical micro-artifacts and arrangement: texture clusters, edge damage, repeating geometry.",
        "HINT: The clone mirrors a ref’s spiral pattern, a plate-rim scuff, and a crumb cluster near 2 o’clock.",
    )

    def initial_board(self, rng: random.Random) -> BookmarksBoard:
        return BookmarksBoard()

    def is_solved(self, board: BookmarksBoard) -> bool:
        return board.picked == CORRECT

    def _apply(self, board: BookmarksBoard, event: Event) -> BookmarksBoard:
        if not isinstance(event, Pick) or event.choice not in NOTES:
            return board
        if event.choice == CORRECT:
            return replace(board, picked=event.choice)
        return replace(
            board,
            picked=event.choice,
            failures=board.failures + 1,
            hint_tier=min(board.hint_tier + 1, MAX_HINT_TIER),
        )

    def describe(self, before: BookmarksBoard, after: BookmarksBoard, event: Event) -> list[str]:
        if not isinstance(event, Pick) or event.choice not in NOTES:
            return []
        lines = [f"> evaluating choice {event.choice}…"]
        if not self.is_solved(after):
            lines += ["Not quite.", "Try again. Pick A/B/C."]
        return lines

    def render(self, board: BookmarksBoard) -> list[str]:
        lines = []
        for note_id, body in NOTES.items():
            marker = "*" if board.picked == note_id else " "
            lines.append(f"{marker} {note_id} — Observation: {body}")
        return lines
