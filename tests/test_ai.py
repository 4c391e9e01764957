"""Tests for the ClassicXO minimax AI."""

import random

import pytest

from classicxo.ai import (
    MinimaxAI,
    Strategy,
    choose_move,
    normalize_strategy,
    score_moves,
)
from classicxo.game import (
    DRAW,
    EMPTY,
    O,
    X,
    TicTacToeGame,
    available_moves,
    other_mark,
    terminal_check,
)


def _board(spec: str):
    return [EMPTY if ch == "." else ch for ch in spec]


def test_ai_blocks_opponent_win():
    board = _board("XX.O.....")
    assert choose_move(board, O, Strategy.OPTIMAL) == 2


def test_ai_as_x_blocks_opponent_win():
    board = _board("OO.X.....")
    assert choose_move(board, X, Strategy.OPTIMAL) == 2


def test_ai_prefers_own_win_over_block():
    # X threatens 2, but O can finish the middle row first
    board = _board("XX.OO....")
    assert choose_move(board, O, Strategy.OPTIMAL) == 5


def test_ai_completes_own_win():
    board = _board("OO.XX....")
    assert choose_move(board, O, Strategy.OPTIMAL) == 2


def test_faster_win_scores_higher():
    board = _board("XX....OO.")
    scores = score_moves(board, X)
    assert scores[2] == 9
    assert scores[2] == max(scores.values())


def test_full_board_returns_none():
    board = _board("XOXXOOOXX")
    assert choose_move(board, X, Strategy.OPTIMAL) is None
    assert choose_move(board, O, Strategy.RANDOM) is None


def test_board_is_not_mutated():
    board = _board("X...O....")
    before = list(board)
    choose_move(board, X, Strategy.OPTIMAL)
    assert board == before


def test_center_opening_ends_in_draw():
    game = TicTacToeGame.start(X)
    rng = random.Random(11)
    assert game.apply_move(4)
    while not game.finished:
        move = choose_move(game.board(), game.current_player, Strategy.OPTIMAL, rng)
        assert game.apply_move(move)
    assert game.winner == DRAW


def test_random_strategy_only_picks_empty_cells():
    board = _board("X.O.X..O.")
    empty = set(available_moves(board))
    rng = random.Random(3)
    picks = {choose_move(board, X, Strategy.RANDOM, rng) for _ in range(100)}
    assert picks <= empty
    assert len(picks) >= 3


@pytest.mark.parametrize("spec", ["....X....", "X........", "X...O....", ".X..O..X."])
def test_pruning_does_not_change_scores(spec):
    board = _board(spec)
    symbol = X if board.count(X) == board.count(O) else O
    assert score_moves(board, symbol, prune=True) == score_moves(
        board, symbol, prune=False
    )


def _never_loses(cells, to_move, engine, rng):
    """Play ``engine`` optimally against every opponent line; count finished games."""
    result = terminal_check(cells)
    if result.finished:
        assert result.winner != other_mark(engine), cells
        return 1
    if to_move == engine:
        move = choose_move(cells, engine, Strategy.OPTIMAL, rng)
        assert cells[move] == EMPTY
        nxt = list(cells)
        nxt[move] = engine
        return _never_loses(nxt, other_mark(to_move), engine, rng)
    games = 0
    for move in available_moves(cells):
        nxt = list(cells)
        nxt[move] = to_move
        games += _never_loses(nxt, other_mark(to_move), engine, rng)
    return games


def test_optimal_ai_never_loses_either_side():
    rng = random.Random(2024)
    as_x = _never_loses([EMPTY] * 9, X, X, rng)
    as_o = _never_loses([EMPTY] * 9, X, O, rng)
    assert as_x + as_o >= 100


@pytest.mark.parametrize(
    "name, expected",
    [
        ("optimal", Strategy.OPTIMAL),
        ("HARD", Strategy.OPTIMAL),
        ("random", Strategy.RANDOM),
        (" easy ", Strategy.RANDOM),
        ("nightmare", Strategy.OPTIMAL),
        (None, Strategy.OPTIMAL),
        (Strategy.RANDOM, Strategy.RANDOM),
    ],
)
def test_normalize_strategy(name, expected):
    assert normalize_strategy(name) is expected


def test_unknown_strategy_plays_optimally():
    board = _board("OO.XX....")
    assert choose_move(board, O, "nightmare") == 2


def test_ai_refuses_to_move_out_of_turn():
    game = TicTacToeGame.start(X)
    ai = MinimaxAI(player=O)
    with pytest.raises(ValueError):
        ai.choose(game)


def test_ai_refuses_to_move_on_finished_game():
    game = TicTacToeGame.start(O)
    for index in (0, 3, 1, 4, 2):
        assert game.apply_move(index)
    assert game.finished
    assert game.current_player == X

    ai = MinimaxAI(player=X)
    with pytest.raises(ValueError):
        ai.choose(game)


def test_ai_player_picks_legal_move():
    game = TicTacToeGame.start(O)
    ai = MinimaxAI(player=X, rng=random.Random(5))
    move = ai.choose(game, Strategy.OPTIMAL)
    assert game.is_legal(move)
