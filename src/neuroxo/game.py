"""Core rules for NeuroXO: a 3x3 board, turn alternation and win/draw detection."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

Player = str  # "X" or "O"
Board = Tuple[Tuple[str, str, str], ...]
Cell = Tuple[int, int]

EMPTY = " "
PLAYER_X: Player = "X"
PLAYER_O: Player = "O"

# Scan order matters for tie-breaks: rows, columns, then both diagonals.
WINNING_LINES: Tuple[Tuple[Cell, Cell, Cell], ...] = (
    ((0, 0), (0, 1), (0, 2)),
    ((1, 0), (1, 1), (1, 2)),
    ((2, 0), (2, 1), (2, 2)),
    ((0, 0), (1, 0), (2, 0)),
    ((0, 1), (1, 1), (2, 1)),
    ((0, 2), (1, 2), (2, 2)),
    ((0, 0), (1, 1), (2, 2)),
    ((0, 2), (1, 1), (2, 0)),
)

EMPTY_BOARD: Board = ((EMPTY,) * 3,) * 3


def other_player(player: Player) -> Player:
    return PLAYER_O if player == PLAYER_X else PLAYER_X


def empty_cells(board: Board) -> List[Cell]:
    """Empty cells in row-major order."""
    return [
        (row, col)
        for row in range(3)
        for col in range(3)
        if board[row][col] == EMPTY
    ]


def is_full(board: Board) -> bool:
    return all(c != EMPTY for row in board for c in row)


def find_winner(board: Board) -> Optional[Player]:
    for a, b, c in WINNING_LINES:
        v = board[a[0]][a[1]]
        if v != EMPTY and v == board[b[0]][b[1]] == board[c[0]][c[1]]:
            return v
    return None


def place_mark(board: Board, row: int, col: int, player: Player) -> Board:
    """Return a copy of ``board`` with ``player`` placed at (row, col)."""
    rows = [list(r) for r in board]
    rows[row][col] = player
    return tuple(tuple(r) for r in rows)  # type: ignore[return-value]


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of one game."""

    board: Board = EMPTY_BOARD
    current_player: Player = PLAYER_X
    winner: Optional[Player] = None
    is_over: bool = False
    difficulty: str = "medium"

    @property
    def drawn(self) -> bool:
        return self.is_over and self.winner is None


def new_game(difficulty: str = "medium") -> GameState:
    return GameState(difficulty=difficulty)


def apply_move(state: GameState, row: int, col: int) -> GameState:
    """Place the current player's mark and advance the game.

    Illegal moves (game over, coordinates off the board, occupied cell)
    return ``state`` untouched.
    """
    if state.is_over:
        return state
    if not (0 <= row < 3 and 0 <= col < 3):
        return state
    if state.board[row][col] != EMPTY:
        return state

    board = place_mark(state.board, row, col, state.current_player)
    winner = find_winner(board)
    is_over = winner is not None or is_full(board)
    next_player = state.current_player if is_over else other_player(state.current_player)
    return replace(
        state,
        board=board,
        current_player=next_player,
        winner=winner,
        is_over=is_over,
    )
