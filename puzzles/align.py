"""ALIGN: centre the dish so every side keeps ~8% padding."""

from __future__ import annotations

import random
from dataclasses import dataclass

from relay.router import ALIGN

from .base import Puzzle
from .events import Center, Event, Nudge

SIZE = 600.0
TARGET_PAD = 0.08
TOLERANCE = 0.01
MIN_PAD = 0.05
RADIUS = SIZE * (0.5 - TARGET_PAD)


@dataclass(frozen=True)
class AlignBoard:
    x: float
    y: float
    locked: bool = False

    def paddings(self) -> dict[str, float]:
        return {
            "left": (self.x - RADIUS) / SIZE,
            "right": (SIZE - (self.x + RADIUS)) / SIZE,
            "top": (self.y - RADIUS) / SIZE,
            "bottom": (SIZE - (self.y + RADIUS)) / SIZE,
        }


def _clamp(value: float) -> float:
    return min(max(value, RADIUS), SIZE - RADIUS)


def _in_range(pad: float) -> bool:
    # Rounded so float noise at the band edge does not flip the verdict.
    return round(abs(pad - TARGET_PAD), 9) <= TOLERANCE


class AlignPuzzle(Puzzle):
    puzzle_id = "align"
    screen = ALIGN
    title = "Puzzle 7: Alignment Grid (ALIGN) — Earn KEY-7"
    signal_key = "alignSolved"
    intro_lines = (
        "Principle: Framing — centered; ≥5%, ideal 8–10% padding; no crop.",
        "Mechanic: Nudge until all sides read 0.08 ± 0.01. Snap will lock on target.",
        "Commands: nudge <dx> <dy> (pixels), center, reset",
    )
    success_lines = (
        "CENTER CONFIRMED.",
        "KEY-7: PCT-08",
        "“Precision is tasty.”",
    )

    def initial_board(self, rng: random.Random) -> AlignBoard:
        centre = SIZE / 2
        dx = rng.choice((-1, 1)) * rng.uniform(20, 40)
        dy = rng.choice((-1, 1)) * rng.uniform(20, 40)
        return AlignBoard(_clamp(centre + dx), _clamp(centre + dy))

    def is_solved(self, board: AlignBoard) -> bool:
        return all(_in_range(pad) for pad in board.paddings().values())

    def _apply(self, board: AlignBoard, event: Event) -> AlignBoard:
        if board.locked:
            return board
        if isinstance(event, Nudge):
            moved = AlignBoard(_clamp(board.x + event.dx), _clamp(board.y + event.dy))
        elif isinstance(event, Center):
            moved = AlignBoard(SIZE / 2, SIZE / 2)
        else:
            return board
        if self.is_solved(moved):
            return AlignBoard(SIZE / 2, SIZE / 2, locked=True)
        return moved

    def render(self, board: AlignBoard) -> list[str]:
        pads = board.paddings()
        meters = []
        for side, pad in pads.items():
            flag = "ok" if _in_range(pad) else ("warn" if pad < MIN_PAD else "")
            meters.append(f"{side.upper()} {pad:.3f} {flag}".rstrip())
        status = "→ IN RANGE" if self.is_solved(board) else "→ adjust"
        return meters + [f"Dish at ({board.x:.0f}, {board.y:.0f}) {status}"]
