"""ClassicXO package exposing game rules, the minimax AI, and the web application."""

from .ai import MinimaxAI, Strategy, choose_move
from .game import TicTacToeGame, terminal_check
from .ui import app

__all__ = [
    "MinimaxAI",
    "Strategy",
    "TicTacToeGame",
    "app",
    "choose_move",
    "terminal_check",
]
