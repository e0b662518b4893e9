"""PINS: reorder the pinned rule cards until their initials spell the code."""

from __future__ import annotations

import random
from dataclasses import dataclass

from relay.router import PINS

from .base import Puzzle
from .events import Event, Swap

TARGET = "SNRFDFN"


@dataclass(frozen=True)
class PinTile:
    id: str
    title: str
    body: str

    @property
    def letter(self) -> str:
        return self.id[0]


TILES: tuple[PinTile, ...] = (
    PinTile(
        "S-Style-Surface",
        "Style Surface",
        "same background material; plating shouldn't stand out; color profile consistent with brand palette.",
    ),
    PinTile("N-No-Distractions", "No Distractions", "clean background; ≤1 blurred, non-distracting element; no text/logos."),
    PinTile("R-RuleOfThirds", "Rule of Thirds", "primary subject near intersection; respect breathing room; keep diagonals calm."),
    PinTile("F-FrameTight", "Frame Tight", "crop in to details; avoid dead space; hint at texture; don't cut major lines."),
    PinTile(
        "D-DepthCue",
        "Depth Cue",
        "foreground suggestive; subtle parallax; shallow depth of field allowed if SNR remains intact.",
    ),
    PinTile(
        "F-FlatLighting",
        "Flat Lighting",
        "no harsh shadows; softbox or north light; product reads true-to-color; tone map gently.",
    ),
    PinTile("N-NeutralWhite", "Neutral White", "white balance to neutral; remove casts; use gray card reference; prefer ∆E < 3."),
)

_BY_ID = {tile.id: tile for tile in TILES}


@dataclass(frozen=True)
class PinsBoard:
    order: tuple[str, ...]

    def letters(self) -> str:
        return "".join(_BY_ID[tile_id].letter for tile_id in self.order)


class PinsPuzzle(Puzzle):
    puzzle_id = "pins"
    screen = PINS
    title = "Puzzle 1: Pinned Rule Fragments (PINS) — Earn KEY-1"
    signal_key = "pinsSolved"
    signal_message = "The table wants its say"
    intro_lines = (
        "Seven pinned cards. Their order is the message. Swap cards to reorder them.",
        "Commands: swap <a> <b>, reset",
    )
    success_lines = ("PINS ALIGNED.", "KEY-1: SNRFDFN")

    def initial_board(self, rng: random.Random) -> PinsBoard:
        order = [tile.id for tile in TILES]
        rng.shuffle(order)
        board = PinsBoard(tuple(order))
        if board.letters() == TARGET:
            # Never mount already solved.
            order[0], order[1] = order[1], order[0]
            board = PinsBoard(tuple(order))
        return board

    def is_solved(self, board: PinsBoard) -> bool:
        return board.letters() == TARGET

    def _apply(self, board: PinsBoard, event: Event) -> PinsBoard:
        if not isinstance(event, Swap):
            return board
        size = len(board.order)
        if not (0 <= event.a < size and 0 <= event.b < size) or event.a == event.b:
            return board
        order = list(board.order)
        order[event.a], order[event.b] = order[event.b], order[event.a]
        return PinsBoard(tuple(order))

    def describe(self, before: PinsBoard, after: PinsBoard, event: Event) -> list[str]:
        if before == after:
            return []
        return [f"swapped → {after.letters()}"]

    def render(self, board: PinsBoard) -> list[str]:
        lines = []
        for pos, tile_id in enumerate(board.order, start=1):
            tile = _BY_ID[tile_id]
            lines.append(f"{pos}. [{tile.letter}] {tile.title} — {tile.body}")
        lines.append(f"Code: {board.letters()}")
        return lines
