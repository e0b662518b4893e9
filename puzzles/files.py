"""FILES: quarantine the images that carry generation artifacts."""

from __future__ import annotations

import random
from dataclasses import dataclass

from relay.router import FILES

from .base import Puzzle
from .events import Event, Move

DESK = "desk"
QUARANTINE = "quarantine"
BINS = (DESK, QUARANTINE)


@dataclass(frozen=True)
class FileCard:
    id: str
    name: str
    note: str
    is_artifact: bool


CARDS: tuple[FileCard, ...] = (
    FileCard("f1", 'File 1 — "plate_01"', "fork with duplicated prongs intersecting rim.", True),
    FileCard("f2", 'File 2 — "plate_02"', "plate ellipse matches table angle; crust natural; utensil normal.", False),
    FileCard("f3", 'File 3 — "plate_03"', "background slants left; dish slants right; food vertical.", True),
)

_BY_ID = {card.id: card for card in CARDS}


@dataclass(frozen=True)
class FilesBoard:
    where: tuple[tuple[str, str], ...]

    def bin_of(self, file_id: str) -> str:
        return dict(self.where).get(file_id, DESK)


class FilesPuzzle(Puzzle):
    puzzle_id = "files"
    screen = FILES
    title = "Puzzle 4: Files — Artifact Triage (FILES) — Earn KEY-4"
    signal_key = "filesSolved"
    intro_lines = (
        "Principles: No AI Artifacts; perspective coherence.",
        "Commands: move <file> desk|quarantine, reset",
    )
    success_lines = (
        "ARTIFACTS ISOLATED.",
        "KEY-4: TRUE-PLANE",
        "(“True plane” echoes the perspective-coherence requirement.)",
    )

    def initial_board(self, rng: random.Random) -> FilesBoard:
        return FilesBoard(tuple((card.id, DESK) for card in CARDS))

    def is_solved(self, board: FilesBoard) -> bool:
        return all((board.bin_of(card.id) == QUARANTINE) == card.is_artifact for card in CARDS)

    def _apply(self, board: FilesBoard, event: Event) -> FilesBoard:
        if not isinstance(event, Move) or event.item not in _BY_ID or event.bin not in BINS:
            return board
        return FilesBoard(
            tuple((file_id, event.bin if file_id == event.item else bin_) for file_id, bin_ in board.where)
        )

    def describe(self, before: FilesBoard, after: FilesBoard, event: Event) -> list[str]:
        if before == after or not isinstance(event, Move):
            return []
        return [f"moved {_BY_ID[event.item].name} → {event.bin.upper()}"]

    def render(self, board: FilesBoard) -> list[str]:
        return [
            f"{card.id}  {card.name}: {card.note}  [{board.bin_of(card.id).upper()}]"
            for card in CARDS
        ]
