"""SNIPPET: decode a Caesar-shifted config line and run it verbatim."""

from __future__ import annotations

import random
import string
from dataclasses import dataclass, replace

from relay.router import SNIPPET

from .base import MAX_HINT_TIER, Puzzle
from .events import Event, Submit

EXPECTED = "center=true; padding=08; props<=1; text=forbidden;"
SHIFT = 3


def caesar(text: str, shift: int) -> str:
    """Rotate ASCII letters by ``shift``; everything else is kept."""
    out = []
    for ch in text:
        if ch in string.ascii_lowercase:
            out.append(chr((ord(ch) - ord("a") + shift) % 26 + ord("a")))
        elif ch in string.ascii_uppercase:
            out.append(chr((ord(ch) - ord("A") + shift) % 26 + ord("A")))
        else:
            out.append(ch)
    return "".join(out)


ENCODED = caesar(EXPECTED, SHIFT)


@dataclass(frozen=True)
class SnippetBoard:
    last_run: str = ""
    failures: int = 0
    hint_tier: int = 0


class SnippetPuzzle(Puzzle):
    puzzle_id = "snippet"
    screen = SNIPPET
    title = "Puzzle 2: Snippet Cipher (SNIPPET) — Earn KEY-2"
    signal_key = "snippetSolved"
    intro_lines = (
        "Mechanic: Decode the line (Caesar-shifted). Then enter the exact config string.",
        ENCODED,
        "Tip: Symbols and numbers are fine; the alphabet is off.",
        "Commands: run <config>, hint, reset",
    )
    success_lines = (
        "CONFIG ACCEPTED.",
        "KEY-2: OAK",
        "“The table approves. It’s very judgmental.”",
        "Next: “Check for clones.” → BOOKMARKS",
    )
    hint_lines = (
        "HINT: The syntax is sound. Only the alphabet seems... rotated.",
        "HINT: The words look familiar, but they’ve slid a few steps sideways. Realign the frame.",
        "HINT: Shift each letter backward by three to restore the config. Spaces and punctuation must match.",
    )

    def initial_board(self, rng: random.Random) -> SnippetBoard:
        return SnippetBoard()

    def is_solved(self, board: SnippetBoard) -> bool:
        return board.last_run == EXPECTED

    def _apply(self, board: SnippetBoard, event: Event) -> SnippetBoard:
        if not isinstance(event, Submit):
            return board
        candidate = event.text.strip()
        if candidate == EXPECTED:
            return replace(board, last_run=candidate)
        return replace(
            board,
            last_run=candidate,
            failures=board.failures + 1,
            hint_tier=min(board.hint_tier + 1, MAX_HINT_TIER),
        )

    def describe(self, before: SnippetBoard, after: SnippetBoard, event: Event) -> list[str]:
        if not isinstance(event, Submit):
            return []
        lines = ["RUN config…"]
        if not self.is_solved(after):
            lines.append("CONFIG REJECTED. Exact match required.")
        return lines

    def render(self, board: SnippetBoard) -> list[str]:
        return [f"Encoded: {ENCODED}", f"Rejected runs: {board.failures}"]
