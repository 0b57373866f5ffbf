"""Computer opponents for Tic-Tac-Toe: a rule-based picker and alpha-beta minimax."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Type

from .game import (
    BOT_MARK,
    CENTER,
    CORNERS,
    EMPTY,
    WINNING_LINES,
    Player,
    empty_cells,
    other,
    validate_board,
    winning_line,
)

NO_MOVE = -1
WIN_SCORE = 10


class MoveStrategy(Protocol):
    """Anything that can pick the next cell for ``player``."""

    player: Player

    def select_move(self, cells: Sequence[str]) -> int:
        ...


def _completing_cell(cells: Sequence[str], player: Player) -> Optional[int]:
    """First empty cell that finishes a line holding two of ``player``'s marks."""
    for line in WINNING_LINES:
        trio = [cells[i] for i in line]
        if trio.count(player) == 2 and trio.count(EMPTY) == 1:
            return line[trio.index(EMPTY)]
    return None


@dataclass
class HeuristicAI:
    """Rule-ordered opponent: win, take the centre, block, else first free cell.

    Purely local pattern matching over the win lines, so it can be beaten.
    """

    player: Player = BOT_MARK

    def select_move(self, cells: Sequence[str]) -> int:
        validate_board(cells)

        move = _completing_cell(cells, self.player)
        if move is not None:
            return move

        if cells[CENTER] == EMPTY:
            return CENTER

        move = _completing_cell(cells, other(self.player))
        if move is not None:
            return move

        free = empty_cells(cells)
        return free[0] if free else NO_MOVE


def minimax(
    cells: List[str],
    depth: int,
    maximizing: bool,
    alpha: float,
    beta: float,
    player: Player,
) -> int:
    """Score ``cells`` from ``player``'s point of view.

    ``depth`` counts plies since the move under evaluation, so faster wins
    score higher and slower losses score less negative. ``cells`` is used as
    scratch space and restored before returning.
    """
    opponent = other(player)
    if winning_line(cells, player) is not None:
        return WIN_SCORE - depth
    if winning_line(cells, opponent) is not None:
        return depth - WIN_SCORE
    free = empty_cells(cells)
    if not free:
        return 0

    if maximizing:
        value = -math.inf
        for index in free:
            cells[index] = player
            value = max(value, minimax(cells, depth + 1, False, alpha, beta, player))
            cells[index] = EMPTY
            alpha = max(alpha, value)
            if beta <= alpha:
                break
    else:
        value = math.inf
        for index in free:
            cells[index] = opponent
            value = min(value, minimax(cells, depth + 1, True, alpha, beta, player))
            cells[index] = EMPTY
            beta = min(beta, value)
            if beta <= alpha:
                break
    return int(value)


@dataclass
class MinimaxAI:
    """Unbeatable opponent using full-depth minimax with alpha-beta pruning.

    The opening move on an empty board is a random corner; ``rng`` can be
    seeded to make it reproducible.
    """

    player: Player = BOT_MARK
    rng: random.Random = field(default_factory=random.Random, repr=False)

    # ---- public API ----

    def select_move(self, cells: Sequence[str]) -> int:
        validate_board(cells)
        free = empty_cells(cells)
        if not free:
            return NO_MOVE
        if len(free) == len(cells):
            return self.rng.choice(CORNERS)
        if len(free) == 1:
            return free[0]

        best_move, best_score = NO_MOVE, -math.inf
        for move, score in self.score_moves(cells).items():
            # strict comparison keeps the lowest index on ties
            if score > best_score:
                best_move, best_score = move, score
        return best_move

    def score_moves(self, cells: Sequence[str]) -> Dict[int, int]:
        """Exact minimax value of every empty cell, in ascending index order."""
        scratch = list(cells)
        scores: Dict[int, int] = {}
        for index in empty_cells(scratch):
            scratch[index] = self.player
            scores[index] = minimax(scratch, 0, False, -math.inf, math.inf, self.player)
            scratch[index] = EMPTY
        return scores


STRATEGIES: Dict[str, Type[MoveStrategy]] = {
    "heuristic": HeuristicAI,
    "minimax": MinimaxAI,
}


def make_ai(name: str, player: Player = BOT_MARK) -> MoveStrategy:
    try:
        factory = STRATEGIES[name]
    except KeyError as exc:
        raise ValueError(
            f"Unknown strategy {name!r}. Choose one of {', '.join(STRATEGIES)}."
        ) from exc
    return factory(player=player)
