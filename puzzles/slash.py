"""SLASH: audit menu rows — does the name promise a side, and an exact count?"""

from __future__ import annotations

import random
from dataclasses import dataclass

from relay.router import SLASH

from .base import Puzzle
from .events import Event, Toggle

YES = "YES"
NO = "NO"
FIELDS = ("side", "exact")


@dataclass(frozen=True)
class MenuRow:
    id: str
    name: str
    desc: str = ""


ROWS: tuple[MenuRow, ...] = (
    MenuRow("A", '"2pc Tenders with Fries"'),
    MenuRow("B", '"BBQ Ribs"', 'Desc: "Comes with two sides (optional)."'),
    MenuRow("C", '"Chicken Wings"', "(no number in name; refs show 7–9)"),
)

ANSWER: dict[str, tuple[str, str]] = {
    "A": (YES, YES),
    "B": (NO, NO),
    "C": (NO, NO),
}


@dataclass(frozen=True)
class SlashBoard:
    # row id -> (side, exact)
    chips: tuple[tuple[str, tuple[str, str]], ...]

    def chip(self, row_id: str) -> tuple[str, str]:
        return dict(self.chips).get(row_id, (NO, NO))


class SlashPuzzle(Puzzle):
    puzzle_id = "slash"
    screen = SLASH
    title = "Puzzle 5: Slash Search Audit (SLASH) — Earn KEY-5"
    signal_key = "slashSolved"
    intro_lines = (
        "Set the chips. When correct, the audit will complete.",
        "Commands: toggle <row> side|exact YES|NO, reset",
    )
    success_lines = (
        "AUDIT CLEAN.",
        "KEY-5: NAME-WINS",
        "“Names are law. Descriptions are gossip.”",
    )

    def initial_board(self, rng: random.Random) -> SlashBoard:
        return SlashBoard(tuple((row.id, (NO, NO)) for row in ROWS))

    def is_solved(self, board: SlashBoard) -> bool:
        return all(board.chip(row_id) == expected for row_id, expected in ANSWER.items())

    def _apply(self, board: SlashBoard, event: Event) -> SlashBoard:
        if not isinstance(event, Toggle):
            return board
        if event.row not in ANSWER or event.field not in FIELDS or event.value not in (YES, NO):
            return board
        chips = []
        for row_id, (side, exact) in board.chips:
            if row_id == event.row:
                side, exact = (event.value, exact) if event.field == "side" else (side, event.value)
            chips.append((row_id, (side, exact)))
        return SlashBoard(tuple(chips))

    def describe(self, before: SlashBoard, after: SlashBoard, event: Event) -> list[str]:
        if before == after or not isinstance(event, Toggle):
            return []
        return [f"{event.row} {event.field} → {event.value}"]

    def render(self, board: SlashBoard) -> list[str]:
        lines = []
        for row in ROWS:
            side, exact = board.chip(row.id)
            desc = f" {row.desc}" if row.desc else ""
            lines.append(f"{row.id}) {row.name}{desc}  side={side} exact={exact}")
        return lines
