"""Tic-Tac-Toe package exposing game rules, computer opponents, and the web application."""

from .ai import HeuristicAI, MinimaxAI, make_ai
from .game import TicTacToeGame, evaluate_board
from .ui import app

__all__ = ["HeuristicAI", "MinimaxAI", "TicTacToeGame", "app", "evaluate_board", "make_ai"]
