"""Move selection for the computer player: win, then block, then a scored pick."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import random

from .game import EMPTY, WINNING_LINES, Board, Cell, Player, empty_cells, other_player

ScoreMatrix = Sequence[Sequence[float]]


@dataclass(frozen=True)
class DifficultyTier:
    """Probabilities that each tier of the decision policy is attempted."""

    name: str
    win_check: float
    block_check: float
    best_move: float


DIFFICULTY_TIERS: Dict[str, DifficultyTier] = {
    "easy": DifficultyTier("easy", win_check=0.70, block_check=0.0, best_move=0.70),
    "medium": DifficultyTier("medium", win_check=1.0, block_check=0.85, best_move=0.85),
    "hard": DifficultyTier("hard", win_check=1.0, block_check=1.0, best_move=1.0),
}


def get_tier(difficulty: str) -> DifficultyTier:
    try:
        return DIFFICULTY_TIERS[difficulty]
    except KeyError as exc:
        raise ValueError(f"Unknown difficulty {difficulty!r}") from exc


def find_completing_cell(board: Board, player: Player) -> Optional[Cell]:
    """First line (in scan order) with two of ``player``'s marks and a gap."""
    for line in WINNING_LINES:
        values = [board[r][c] for r, c in line]
        if values.count(player) == 2 and values.count(EMPTY) == 1:
            return line[values.index(EMPTY)]
    return None


@dataclass
class MoveAdvisor:
    """Computer opponent driven by a difficulty table and model scores.

    - MoveAdvisor(player="O")
    - select_move(board, difficulty, scores) -> (row, col)
    """

    player: Player = "O"
    rng: random.Random = field(default_factory=random.Random, repr=False)

    # ---- public API ----

    def select_move(
        self,
        board: Board,
        difficulty: str,
        scores: Optional[ScoreMatrix] = None,
    ) -> Cell:
        tier = get_tier(difficulty)
        moves = empty_cells(board)
        if not moves:
            raise ValueError("No empty cells left to play")

        if self._attempt(tier.win_check):
            cell = find_completing_cell(board, self.player)
            if cell is not None:
                return cell

        if self._attempt(tier.block_check):
            cell = find_completing_cell(board, other_player(self.player))
            if cell is not None:
                return cell

        return self._scored_pick(moves, tier.best_move, scores)

    # ---- helpers ----

    def _attempt(self, probability: float) -> bool:
        return self.rng.random() < probability

    def _scored_pick(
        self, moves: List[Cell], best_move: float, scores: Optional[ScoreMatrix]
    ) -> Cell:
        # Without model scores every pick is uniform.
        if scores is None or not self._attempt(best_move):
            return self.rng.choice(moves)

        best = moves[0]
        best_score = scores[best[0]][best[1]]
        for row, col in moves[1:]:
            if scores[row][col] > best_score:
                best, best_score = (row, col), scores[row][col]
        return best
