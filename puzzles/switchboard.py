"""SURFACE: pick the surface and serveware that match the style reference."""

from __future__ import annotations

import random
from dataclasses import dataclass, replace

from relay.router import SWITCHBOARD

from .base import Puzzle
from .events import Event, Select

OPTIONS: dict[str, dict[str, str]] = {
    "surface": {
        "oak": "matches ‘pale oak’",
        "stone": "mismatch (not in ref)",
        "laminate": "mismatch (not in ref)",
    },
    "serveware": {
        "plate": "matches ref",
        "container": "ref says not container",
    },
}


@dataclass(frozen=True)
class SwitchboardBoard:
    surface: str | None = None
    serveware: str | None = None


class SwitchboardPuzzle(Puzzle):
    puzzle_id = "switchboard"
    screen = SWITCHBOARD
    title = "Puzzle 6: Style Surface Switchboard (SURFACE) — Earn KEY-6"
    signal_key = "surfaceSolved"
    intro_lines = (
        "Principle: Style Consistency — match background material; plate/container rules.",
        "Ref: pale oak, overhead, plate (not container)",
        "Commands: select surface|serveware <option>, reset",
    )
    success_lines = (
        "SURFACE LOCKED.",
        "KEY-6: OAK-OVERHEAD",
        "“The tree spirits nod.”",
    )

    def initial_board(self, rng: random.Random) -> SwitchboardBoard:
        return SwitchboardBoard()

    def is_solved(self, board: SwitchboardBoard) -> bool:
        return board.surface == "oak" and board.serveware == "plate"

    def _apply(self, board: SwitchboardBoard, event: Event) -> SwitchboardBoard:
        if not isinstance(event, Select):
            return board
        if event.value not in OPTIONS.get(event.group, {}):
            return board
        return replace(board, **{event.group: event.value})

    def describe(self, before: SwitchboardBoard, after: SwitchboardBoard, event: Event) -> list[str]:
        if before == after or not isinstance(event, Select):
            return []
        return [f"{event.group.upper()} → {event.value}"]

    def render(self, board: SwitchboardBoard) -> list[str]:
        lines = []
        for group, options in OPTIONS.items():
            current = getattr(board, group)
            chips = " ".join(f"[{name}]" if name == current else name for name in options)
            lines.append(f"{group.upper()}: {chips}")
        status = "→ MATCH" if self.is_solved(board) else "→ adjust to match ref"
        lines.append(f"Status: {board.surface or '—'} + {board.serveware or '—'} {status}")
        return lines
