"""Board events: the inputs a puzzle screen turns into board mutations."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from typing import ClassVar, Union


@dataclass(frozen=True)
class Swap:
    kind: ClassVar[str] = "swap"
    a: int
    b: int


@dataclass(frozen=True)
class Move:
    kind: ClassVar[str] = "move"
    item: str
    bin: str


@dataclass(frozen=True)
class Toggle:
    kind: ClassVar[str] = "toggle"
    row: str
    field: str
    value: str


@dataclass(frozen=True)
class Select:
    kind: ClassVar[str] = "select"
    group: str
    value: str


@dataclass(frozen=True)
class Nudge:
    kind: ClassVar[str] = "nudge"
    dx: float
    dy: float


@dataclass(frozen=True)
class Center:
    kind: ClassVar[str] = "center"


@dataclass(frozen=True)
class Place:
    kind: ClassVar[str] = "place"
    tile: str
    slot: int


@dataclass(frozen=True)
class Unplace:
    kind: ClassVar[str] = "unplace"
    tile: str


@dataclass(frozen=True)
class Submit:
    kind: ClassVar[str] = "submit"
    text: str


@dataclass(frozen=True)
class Pick:
    kind: ClassVar[str] = "pick"
    choice: str


@dataclass(frozen=True)
class Key:
    kind: ClassVar[str] = "key"
    text: str


@dataclass(frozen=True)
class Hint:
    kind: ClassVar[str] = "hint"


@dataclass(frozen=True)
class Reset:
    kind: ClassVar[str] = "reset"


Event = Union[Swap, Move, Toggle, Select, Nudge, Center, Place, Unplace, Submit, Pick, Key, Hint, Reset]


def parse_event(line: str) -> Event | None:
    """Parse a terminal command such as ``swap 1 3`` or ``run center=true;``.

    Positions typed by the player are 1-based. Returns None for anything
    that is not a board event.
    """
    raw = line.strip()
    if not raw:
        return None
    if raw.startswith("run "):
        return Submit(raw[4:])
    if raw.startswith("key "):
        text = raw[4:].strip()
        return Key(text) if text else None

    try:
        parts = shlex.split(raw)
    except ValueError:
        return None
    verb, args = parts[0].lower(), parts[1:]

    try:
        if verb == "swap" and len(args) == 2:
            return Swap(int(args[0]) - 1, int(args[1]) - 1)
        if verb == "move" and len(args) == 2:
            return Move(args[0], args[1].lower())
        if verb == "toggle" and len(args) == 3:
            return Toggle(args[0].upper(), args[1].lower(), args[2].upper())
        if verb == "select" and len(args) == 2:
            return Select(args[0].lower(), args[1].lower())
        if verb == "nudge" and len(args) == 2:
            return Nudge(float(args[0]), float(args[1]))
        if verb == "place" and len(args) == 2:
            return Place(_tile_id(args[0]), int(args[1]) - 1)
        if verb == "unplace" and len(args) == 1:
            return Unplace(_tile_id(args[0]))
        if verb == "pick" and len(args) == 1:
            return Pick(args[0].upper())
    except ValueError:
        return None

    if verb == "center" and not args:
        return Center()
    if verb == "hint" and not args:
        return Hint()
    if verb == "reset" and not args:
        return Reset()
    return None


def _tile_id(raw: str) -> str:
    letter, sep, rest = raw.partition("-")
    return f"{letter.upper()}{sep}{rest}"
