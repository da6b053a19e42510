"""NeuroXO package exposing game logic, the move advisor, and the web application."""

from .advisor import MoveAdvisor
from .game import GameState, apply_move, new_game
from .model import ScoreModel
from .ui import app

__all__ = ["GameState", "MoveAdvisor", "ScoreModel", "app", "apply_move", "new_game"]
