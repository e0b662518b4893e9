"""FINAL: assemble the seven principle tiles in order S N R F D F N."""

from __future__ import annotations

import random
from dataclasses import dataclass

from relay.router import FINALE

from .base import Puzzle
from .events import Event, Key, Place, Unplace

TARGET: tuple[str, ...] = ("S", "N", "R", "F", "D", "F", "N")
SLOT_COUNT = len(TARGET)

TILE_LIBRARY: tuple[tuple[str, str], ...] = (
    ("S", "match style ref: pale oak overhead; no takeout unless shown; plate/containerize"),
    ("N", "reject perspective/geometry glitches; tableware coherent"),
    ("R", "natural textures; no plastic/AI sheen"),
    ("F", "centered subject; ~8% safe padding; no crop"),
    ("D", "new instance; not a derivative; when in doubt, fail"),
    ("F", "sides only if in the name; ±1 count unless named (name > desc > refs)"),
    ("N", "≤1 subtle background prop; no text/logos"),
)

# Tile ids are "<letter>-<library index>", e.g. "F-5".
_TILES = {f"{letter}-{i}": body for i, (letter, body) in enumerate(TILE_LIBRARY)}


def letter_of(tile_id: str) -> str:
    return tile_id.split("-", 1)[0]


@dataclass(frozen=True)
class FinaleBoard:
    tray: tuple[str, ...]
    slots: tuple[str | None, ...] = (None,) * SLOT_COUNT


class FinalePuzzle(Puzzle):
    puzzle_id = "finale"
    screen = FINALE
    title = "Puzzle 8: Prompt Assembler (FINAL)"
    signal_key = "finalSolved"
    intro_lines = (
        "Goal: assemble the seven principles in order S N R F D F N.",
        "Commands: place <tile> <slot>, unplace <tile>, key <text>, reset",
        "Keys don't affect scoring; entering them is just for style points.",
    )
    success_lines = (
        "ACCESS GRANTED.",
        "Final ordering accepted: S N R F D F N",
    )

    def initial_board(self, rng: random.Random) -> FinaleBoard:
        tray = list(_TILES)
        rng.shuffle(tray)
        return FinaleBoard(tuple(tray))

    def is_solved(self, board: FinaleBoard) -> bool:
        if any(slot is None for slot in board.slots):
            return False
        return tuple(letter_of(slot) for slot in board.slots) == TARGET

    def _apply(self, board: FinaleBoard, event: Event) -> FinaleBoard:
        if isinstance(event, Place):
            return self._place(board, event.tile, event.slot)
        if isinstance(event, Unplace):
            return self._unplace(board, event.tile)
        return board

    def _place(self, board: FinaleBoard, tile: str, slot: int) -> FinaleBoard:
        if tile not in _TILES or not 0 <= slot < SLOT_COUNT:
            return board
        if board.slots[slot] == tile:
            return board
        tray = [t for t in board.tray if t != tile]
        slots = [None if s == tile else s for s in board.slots]
        displaced = slots[slot]
        if displaced is not None:
            tray.append(displaced)
        slots[slot] = tile
        return FinaleBoard(tuple(tray), tuple(slots))

    def _unplace(self, board: FinaleBoard, tile: str) -> FinaleBoard:
        if tile not in board.slots:
            return board
        slots = tuple(None if s == tile else s for s in board.slots)
        return FinaleBoard(board.tray + (tile,), slots)

    def describe(self, before: FinaleBoard, after: FinaleBoard, event: Event) -> list[str]:
        if isinstance(event, Key):
            return [f"KEY ACCEPTED: {event.text}"]
        if before == after:
            return []
        if isinstance(event, Place):
            return [f"placed {letter_of(event.tile)} into slot {event.slot + 1}"]
        if isinstance(event, Unplace):
            return [f"returned {letter_of(event.tile)} to the tray"]
        return []

    def render(self, board: FinaleBoard) -> list[str]:
        slots = " ".join(f"[{letter_of(s) if s else ' '}]" for s in board.slots)
        lines = [f"Slots: {slots}", "Tray:"]
        lines += [f"  {tile}  {_TILES[tile]}" for tile in board.tray]
        return lines
