"""xobot package exposing game rules, computer strategies, and the web application."""

from .ai import Difficulty, select_computer_move
from .game import GameState, GameStatus, IllegalMove, apply_human_move, evaluate, new_game
from .ui import app

__all__ = [
    "Difficulty",
    "GameState",
    "GameStatus",
    "IllegalMove",
    "app",
    "apply_human_move",
    "evaluate",
    "new_game",
    "select_computer_move",
]
