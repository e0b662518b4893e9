"""Puzzle validators and the generic puzzle screen."""

from relay.errors import UnknownPuzzle

from .align import AlignPuzzle
from .base import Puzzle
from .bookmarks import BookmarksPuzzle
from .files import FilesPuzzle
from .finale import FinalePuzzle
from .pins import PinsPuzzle
from .slash import SlashPuzzle
from .snippet import SnippetPuzzle
from .switchboard import SwitchboardPuzzle

# Play order.
PUZZLES: dict[str, Puzzle] = {
    puzzle.puzzle_id: puzzle
    for puzzle in (
        PinsPuzzle(),
        SnippetPuzzle(),
        BookmarksPuzzle(),
        FilesPuzzle(),
        SlashPuzzle(),
        SwitchboardPuzzle(),
        AlignPuzzle(),
        FinalePuzzle(),
    )
}


def get_puzzle(puzzle_id: str) -> Puzzle:
    try:
        return PUZZLES[puzzle_id]
    except KeyError:
        raise UnknownPuzzle(puzzle_id) from None


__all__ = ["PUZZLES", "Puzzle", "get_puzzle"]
