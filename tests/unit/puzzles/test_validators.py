"""Tests for the individual puzzle validators."""

from __future__ import annotations

import random

import pytest

from puzzles import PUZZLES, get_puzzle
from puzzles.align import RADIUS, SIZE, AlignBoard
from puzzles.base import MAX_HINT_TIER
from puzzles.bookmarks import BookmarksBoard
from puzzles.events import Center, Hint, Move, Nudge, Pick, Place, Select, Submit, Swap, Toggle, Unplace
from puzzles.finale import TARGET as FINALE_TARGET
from puzzles.finale import FinaleBoard, letter_of
from puzzles.pins import TARGET as PINS_TARGET
from puzzles.snippet import ENCODED, EXPECTED, caesar
from relay.errors import UnknownPuzzle


@pytest.mark.parametrize("seed", range(20))
def test_no_puzzle_mounts_solved(seed: int):
    rng = random.Random(seed)
    for puzzle in PUZZLES.values():
        assert puzzle.is_solved(puzzle.initial_board(rng)) is False


def test_registry_lookup():
    assert list(PUZZLES) == ["pins", "snippet", "bookmarks", "files", "slash", "switchboard", "align", "finale"]
    with pytest.raises(UnknownPuzzle):
        get_puzzle("sudoku")


def test_unknown_events_leave_boards_unchanged():
    rng = random.Random(0)
    for puzzle in PUZZLES.values():
        board = puzzle.initial_board(rng)
        assert puzzle.mutate(board, Swap(0, 0) if puzzle.puzzle_id != "pins" else Pick("A")) == board


class TestPins:
    def test_swaps_reach_target(self):
        puzzle = get_puzzle("pins")
        board = puzzle.initial_board(random.Random(4))
        for i, letter in enumerate(PINS_TARGET):
            j = next(k for k in range(i, 7) if board.order[k][0] == letter)
            board = puzzle.mutate(board, Swap(i, j))
        assert board.letters() == PINS_TARGET
        assert puzzle.is_solved(board)

    def test_out_of_range_swap_is_ignored(self):
        puzzle = get_puzzle("pins")
        board = puzzle.initial_board(random.Random(1))
        assert puzzle.mutate(board, Swap(0, 9)) == board
        assert puzzle.mutate(board, Swap(-1, 2)) == board


class TestSnippet:
    def test_encoded_line_decodes_back(self):
        assert caesar(ENCODED, -3) == EXPECTED
        assert ENCODED != EXPECTED

    def test_exact_config_solves(self):
        puzzle = get_puzzle("snippet")
        board = puzzle.mutate(puzzle.initial_board(random.Random()), Submit(f"  {EXPECTED} "))
        assert puzzle.is_solved(board)
        assert board.hint_tier == 0

    def test_failures_escalate_hints_to_a_cap(self):
        puzzle = get_puzzle("snippet")
        board = puzzle.initial_board(random.Random())
        for _ in range(5):
            board = puzzle.mutate(board, Submit(ENCODED))
        assert board.failures == 5
        assert board.hint_tier == MAX_HINT_TIER
        assert not puzzle.is_solved(board)

    def test_hints_never_change_the_verdict(self):
        puzzle = get_puzzle("snippet")
        board = puzzle.initial_board(random.Random())
        for _ in range(4):
            board = puzzle.mutate(board, Hint())
        assert board.hint_tier == MAX_HINT_TIER
        assert not puzzle.is_solved(board)
        assert puzzle.is_solved(puzzle.mutate(board, Submit(EXPECTED)))


class TestBookmarks:
    def test_only_b_solves(self):
        puzzle = get_puzzle("bookmarks")
        board = BookmarksBoard()
        assert not puzzle.is_solved(puzzle.mutate(board, Pick("A")))
        assert not puzzle.is_solved(puzzle.mutate(board, Pick("Z")))
        assert puzzle.is_solved(puzzle.mutate(board, Pick("B")))

    def test_wrong_pick_reveals_next_hint(self):
        puzzle = get_puzzle("bookmarks")
        before = BookmarksBoard()
        after = puzzle.mutate(before, Pick("C"))
        assert puzzle.new_hint_lines(before, after) == [puzzle.hint_lines[0]]


class TestFiles:
    def test_artifacts_only_in_quarantine(self):
        puzzle = get_puzzle("files")
        board = puzzle.initial_board(random.Random())
        board = puzzle.mutate(board, Move("f1", "quarantine"))
        assert not puzzle.is_solved(board)
        board = puzzle.mutate(board, Move("f3", "quarantine"))
        assert puzzle.is_solved(board)
        board = puzzle.mutate(board, Move("f2", "quarantine"))
        assert not puzzle.is_solved(board)

    def test_unknown_file_or_bin_is_ignored(self):
        puzzle = get_puzzle("files")
        board = puzzle.initial_board(random.Random())
        assert puzzle.mutate(board, Move("f9", "quarantine")) == board
        assert puzzle.mutate(board, Move("f1", "trash")) == board


class TestSlash:
    def test_answer_key(self):
        puzzle = get_puzzle("slash")
        board = puzzle.initial_board(random.Random())
        assert not puzzle.is_solved(board)
        board = puzzle.mutate(board, Toggle("A", "side", "YES"))
        assert not puzzle.is_solved(board)
        board = puzzle.mutate(board, Toggle("A", "exact", "YES"))
        assert puzzle.is_solved(board)
        board = puzzle.mutate(board, Toggle("C", "side", "YES"))
        assert not puzzle.is_solved(board)


class TestSwitchboard:
    def test_oak_and_plate(self):
        puzzle = get_puzzle("switchboard")
        board = puzzle.initial_board(random.Random())
        board = puzzle.mutate(board, Select("surface", "oak"))
        board = puzzle.mutate(board, Select("serveware", "container"))
        assert not puzzle.is_solved(board)
        board = puzzle.mutate(board, Select("serveware", "plate"))
        assert puzzle.is_solved(board)
        assert puzzle.mutate(board, Select("surface", "marble")) == board


class TestAlign:
    def test_centred_board_is_in_range(self):
        puzzle = get_puzzle("align")
        assert puzzle.is_solved(AlignBoard(SIZE / 2, SIZE / 2))
        assert puzzle.is_solved(AlignBoard(SIZE / 2 + 6, SIZE / 2 - 6))
        assert not puzzle.is_solved(AlignBoard(SIZE / 2 + 7, SIZE / 2))

    def test_nudge_into_range_snaps_and_locks(self):
        puzzle = get_puzzle("align")
        board = AlignBoard(SIZE / 2 + 30, SIZE / 2)
        board = puzzle.mutate(board, Nudge(-28, 0))
        assert board == AlignBoard(SIZE / 2, SIZE / 2, locked=True)
        assert puzzle.mutate(board, Nudge(50, 50)) == board

    def test_position_is_clamped(self):
        puzzle = get_puzzle("align")
        board = puzzle.mutate(AlignBoard(SIZE / 2 + 30, SIZE / 2), Nudge(500, -500))
        assert board.x == SIZE - RADIUS
        assert board.y == RADIUS

    def test_center_solves(self):
        puzzle = get_puzzle("align")
        board = puzzle.initial_board(random.Random(2))
        assert puzzle.is_solved(puzzle.mutate(board, Center()))


class TestFinale:
    def _solved_slots(self) -> tuple[str, ...]:
        slots, used = [], set()
        tiles = sorted(get_puzzle("finale").initial_board(random.Random(0)).tray)
        for letter in FINALE_TARGET:
            tile = next(t for t in tiles if letter_of(t) == letter and t not in used)
            used.add(tile)
            slots.append(tile)
        return tuple(slots)

    def test_placing_in_order_solves(self):
        puzzle = get_puzzle("finale")
        board = puzzle.initial_board(random.Random(0))
        for slot, tile in enumerate(self._solved_slots()):
            assert not puzzle.is_solved(board)
            board = puzzle.mutate(board, Place(tile, slot))
        assert puzzle.is_solved(board)
        assert board.tray == ()

    def test_duplicate_letters_are_interchangeable(self):
        puzzle = get_puzzle("finale")
        slots = list(self._solved_slots())
        slots[3], slots[5] = slots[5], slots[3]  # the two F tiles
        assert puzzle.is_solved(FinaleBoard((), tuple(slots)))

    def test_displaced_tile_returns_to_tray(self):
        puzzle = get_puzzle("finale")
        board = puzzle.initial_board(random.Random(0))
        first, second = board.tray[0], board.tray[1]
        board = puzzle.mutate(board, Place(first, 0))
        board = puzzle.mutate(board, Place(second, 0))
        assert board.slots[0] == second
        assert first in board.tray
        board = puzzle.mutate(board, Unplace(second))
        assert board.slots[0] is None
        assert sorted(board.tray) == sorted(puzzle.initial_board(random.Random(0)).tray)

    def test_moving_between_slots_keeps_one_copy(self):
        puzzle = get_puzzle("finale")
        board = puzzle.initial_board(random.Random(0))
        tile = board.tray[0]
        board = puzzle.mutate(board, Place(tile, 0))
        board = puzzle.mutate(board, Place(tile, 4))
        assert board.slots.count(tile) == 1
        assert board.slots[4] == tile
        assert tile not in board.tray
