"""Tests for the heuristic and minimax Tic-Tac-Toe opponents."""

import math
import random

import pytest

from tictactoe.ai import NO_MOVE, HeuristicAI, MinimaxAI, make_ai, minimax
from tictactoe.game import (
    CORNERS,
    EMPTY,
    GameStatus,
    TicTacToeGame,
    empty_cells,
    evaluate_board,
    other,
    winning_line,
)

_ = EMPTY
DRAWN_BOARD = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]


def _reachable_positions():
    """Every non-terminal position reachable with X moving first, with the side to move."""
    seen = set()
    stack = [((_,) * 9, "X")]
    while stack:
        cells, to_move = stack.pop()
        if (cells, to_move) in seen:
            continue
        if evaluate_board(cells).status is not GameStatus.PLAYING:
            continue
        seen.add((cells, to_move))
        for index in empty_cells(cells):
            child = list(cells)
            child[index] = to_move
            stack.append((tuple(child), other(to_move)))
    return seen


def _plain_minimax(cells, depth, maximizing, player):
    opponent = other(player)
    if winning_line(cells, player):
        return 10 - depth
    if winning_line(cells, opponent):
        return depth - 10
    free = empty_cells(cells)
    if not free:
        return 0
    scores = []
    for index in free:
        cells[index] = player if maximizing else opponent
        scores.append(_plain_minimax(cells, depth + 1, not maximizing, player))
        cells[index] = EMPTY
    return max(scores) if maximizing else min(scores)


def _assert_bot_never_loses(game, ai, seen):
    key = (tuple(game.cells), game.current_player)
    if key in seen:
        return
    seen.add(key)
    if game.finished:
        assert game.winner != other(ai.player), game.pretty()
        return
    if game.current_player == ai.player:
        child = game.clone()
        child.play_move(ai.select_move(child.cells))
        _assert_bot_never_loses(child, ai, seen)
        return
    for move in game.available_moves():
        child = game.clone()
        child.play_move(move)
        _assert_bot_never_loses(child, ai, seen)


# ---- heuristic ----


def test_heuristic_takes_immediate_win_over_block():
    cells = ["O", "O", _, "X", "X", _, _, "X", _]
    assert HeuristicAI().select_move(cells) == 2


def test_heuristic_takes_center():
    assert HeuristicAI().select_move(["X", _, _, _, _, _, _, _, _]) == 4


def test_heuristic_blocks_player_line():
    assert HeuristicAI().select_move(["X", "X", _, _, "O", _, _, _, _]) == 2


def test_heuristic_falls_back_to_first_empty():
    assert HeuristicAI().select_move(["X", _, _, _, "X", _, _, _, "O"]) == 1


def test_heuristic_plays_for_either_mark():
    cells = ["X", "X", _, "O", "O", _, _, _, _]
    assert HeuristicAI(player="X").select_move(cells) == 2


def test_heuristic_returns_sentinel_on_full_board():
    assert HeuristicAI().select_move(DRAWN_BOARD) == NO_MOVE


def test_heuristic_always_picks_empty_cell():
    ai = HeuristicAI()
    for cells, _to_move in _reachable_positions():
        move = ai.select_move(cells)
        assert cells[move] == EMPTY


def _completes_line(cells, index, player):
    scratch = list(cells)
    scratch[index] = player
    return winning_line(scratch, player) is not None


def _winning_cells(cells, player):
    return [i for i in empty_cells(cells) if _completes_line(cells, i, player)]


def test_both_selectors_take_every_immediate_win():
    heuristic, search = HeuristicAI(), MinimaxAI()
    checked = 0
    for cells, to_move in _reachable_positions():
        if to_move != "O" or not _winning_cells(cells, "O"):
            continue
        assert _completes_line(cells, heuristic.select_move(cells), "O")
        assert _completes_line(cells, search.select_move(cells), "O")
        checked += 1
    assert checked


def test_heuristic_blocks_whenever_centre_taken_and_no_win():
    ai = HeuristicAI()
    checked = 0
    for cells, to_move in _reachable_positions():
        if to_move != "O" or cells[4] == EMPTY or _winning_cells(cells, "O"):
            continue
        if not _winning_cells(cells, "X"):
            continue
        assert _completes_line(cells, ai.select_move(cells), "X")
        checked += 1
    assert checked


def test_selectors_validate_board():
    with pytest.raises(ValueError):
        HeuristicAI().select_move([_] * 4)
    with pytest.raises(ValueError):
        MinimaxAI().select_move([_] * 10)


# ---- minimax ----


def test_minimax_opening_is_a_corner():
    for seed in range(25):
        ai = MinimaxAI(rng=random.Random(seed))
        assert ai.select_move([_] * 9) in CORNERS


def test_minimax_returns_last_cell_directly():
    cells = ["X", "O", "X", "X", "O", "O", "O", "X", _]
    assert MinimaxAI().select_move(cells) == 8


def test_minimax_returns_sentinel_on_full_board():
    assert MinimaxAI().select_move(DRAWN_BOARD) == NO_MOVE


def test_minimax_takes_immediate_win():
    cells = ["O", "O", _, "X", "X", _, _, "X", _]
    assert MinimaxAI().select_move(cells) == 2


def test_minimax_blocks_forced_loss():
    assert MinimaxAI().select_move(["X", "X", _, _, "O", _, _, _, _]) == 2


def test_minimax_terminal_scores_depend_on_depth():
    won = ["O", "O", "O", "X", "X", _, "X", _, _]
    lost = ["X", "X", "X", "O", "O", _, "O", _, _]
    assert minimax(list(won), 3, False, -math.inf, math.inf, "O") == 7
    assert minimax(list(lost), 3, True, -math.inf, math.inf, "O") == -7
    assert minimax(list(DRAWN_BOARD), 5, True, -math.inf, math.inf, "O") == 0


def test_minimax_leaves_board_untouched():
    cells = ["X", _, _, _, "O", _, _, _, "X"]
    before = list(cells)
    MinimaxAI().score_moves(cells)
    assert cells == before


def test_pruning_matches_plain_minimax():
    ai = MinimaxAI()
    for cells, to_move in _reachable_positions():
        if to_move != "O" or len(empty_cells(cells)) > 6:
            continue
        expected = {}
        for index in empty_cells(cells):
            scratch = list(cells)
            scratch[index] = "O"
            expected[index] = _plain_minimax(scratch, 0, False, "O")
        assert ai.score_moves(cells) == expected


def test_minimax_self_play_always_draws():
    for seed in range(4):
        for first in ("X", "O"):
            players = {
                "X": MinimaxAI(player="X", rng=random.Random(seed)),
                "O": MinimaxAI(player="O", rng=random.Random(seed + 100)),
            }
            game = TicTacToeGame(current_player=first)
            while not game.finished:
                game.play_move(players[game.current_player].select_move(game.cells))
            assert game.drawn, game.pretty()


def test_minimax_never_loses_when_moving_second():
    _assert_bot_never_loses(TicTacToeGame(), MinimaxAI(), set())


def test_minimax_never_loses_when_moving_first():
    ai = MinimaxAI()
    seen = set()
    for corner in CORNERS:
        game = TicTacToeGame(current_player="O")
        game.play_move(corner)
        _assert_bot_never_loses(game, ai, seen)


# ---- registry ----


def test_make_ai_builds_named_strategy():
    assert isinstance(make_ai("heuristic"), HeuristicAI)
    ai = make_ai("minimax", player="X")
    assert isinstance(ai, MinimaxAI)
    assert ai.player == "X"


def test_make_ai_rejects_unknown_name():
    with pytest.raises(ValueError):
        make_ai("random")
