"""Tests for the NeuroXO move advisor."""

import random

import pytest

from neuroxo.advisor import DIFFICULTY_TIERS, MoveAdvisor, find_completing_cell
from neuroxo.game import EMPTY


def _board(rows):
    return tuple(tuple(EMPTY if c == "." else c for c in row) for row in rows)


class AlwaysRng:
    """Every probability check passes and random picks take the first cell."""

    def random(self):
        return 0.0

    def choice(self, seq):
        return seq[0]


class NeverRng:
    """Every probability check fails and random picks take the last cell."""

    def random(self):
        return 0.999999

    def choice(self, seq):
        return seq[-1]


FLAT = [[0.0] * 3 for _ in range(3)]


def test_difficulty_table():
    assert DIFFICULTY_TIERS["easy"].win_check == 0.70
    assert DIFFICULTY_TIERS["easy"].block_check == 0.0
    assert DIFFICULTY_TIERS["medium"].block_check == 0.85
    assert [t.best_move for t in DIFFICULTY_TIERS.values()] == [0.70, 0.85, 1.0]


@pytest.mark.parametrize("difficulty", ["easy", "medium", "hard"])
def test_takes_immediate_win(difficulty):
    board = _board(["OO.", "XX.", "X.."])
    ai = MoveAdvisor(player="O", rng=AlwaysRng())
    assert ai.select_move(board, difficulty, FLAT) == (0, 2)


def test_hard_wins_without_rng_luck():
    board = _board(["OO.", "XX.", "X.."])
    for seed in range(50):
        ai = MoveAdvisor(player="O", rng=random.Random(seed))
        assert ai.select_move(board, "hard", FLAT) == (0, 2)


def test_win_takes_priority_over_block():
    board = _board(["XX.", "OO.", "..."])
    ai = MoveAdvisor(player="O", rng=random.Random(3))
    assert ai.select_move(board, "hard", FLAT) == (1, 2)


def test_hard_always_blocks():
    board = _board(["XX.", ".O.", "..."])
    scores = [[0.0, 0.0, -5.0], [9.0, 0.0, 0.0], [0.0, 0.0, 0.0]]
    for seed in range(50):
        ai = MoveAdvisor(player="O", rng=random.Random(seed))
        assert ai.select_move(board, "hard", scores) == (0, 2)


def test_easy_never_blocks():
    board = _board(["XX.", ".O.", "..."])
    # The blocking cell scores lowest, so only a block check could pick it.
    scores = [[0.0, 0.0, -5.0], [9.0, 0.0, 0.0], [0.0, 0.0, 0.0]]
    ai = MoveAdvisor(player="O", rng=AlwaysRng())
    for _ in range(100):
        assert ai.select_move(board, "easy", scores) == (1, 0)


def test_medium_skips_block_when_check_fails():
    board = _board(["XX.", ".O.", "..."])
    ai = MoveAdvisor(player="O", rng=NeverRng())
    # Block skipped, best move skipped, uniform pick lands on the last empty cell.
    assert ai.select_move(board, "medium", FLAT) == (2, 2)


def test_scored_pick_uses_max_with_row_major_ties():
    board = _board(["X..", "...", "..."])
    scores = [[99.0, 1.0, 3.0], [0.0, 3.0, 2.0], [3.0, 0.0, 0.0]]
    ai = MoveAdvisor(player="O", rng=random.Random(0))
    assert ai.select_move(board, "hard", scores) == (0, 2)


def test_missing_scores_fall_back_to_random():
    board = _board(["X..", "...", "..."])
    ai = MoveAdvisor(player="O", rng=NeverRng())
    assert ai.select_move(board, "hard", None) == (2, 2)
    ai = MoveAdvisor(player="O", rng=AlwaysRng())
    assert ai.select_move(board, "hard", None) == (0, 1)


def test_full_board_is_rejected():
    board = _board(["XOX", "XOO", "OXX"])
    with pytest.raises(ValueError):
        MoveAdvisor().select_move(board, "hard", FLAT)


def test_unknown_difficulty_is_rejected():
    with pytest.raises(ValueError):
        MoveAdvisor().select_move(_board(["...", "...", "..."]), "expert", FLAT)


def test_line_scan_prefers_rows_then_columns():
    board = _board(["OO.", "O..", "..."])
    assert find_completing_cell(board, "O") == (0, 2)
    board = _board(["O..", "O..", ".OO"])
    assert find_completing_cell(board, "O") == (2, 0)
    assert find_completing_cell(board, "X") is None


def test_easy_can_miss_a_win():
    board = _board(["OO.", "XX.", "X.."])
    ai = MoveAdvisor(player="O", rng=NeverRng())
    # Win check fails, block is never tried, uniform pick takes the last cell.
    move = ai.select_move(board, "easy", FLAT)
    assert move != (0, 2)
    assert move == (2, 2)
