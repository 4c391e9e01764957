"""Full-depth alpha-beta minimax and random move selection for ClassicXO."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union
import logging
import math
import random

from .game import (
    EMPTY,
    Cell,
    Player,
    TicTacToeGame,
    available_moves,
    other_mark,
    terminal_check,
)

logger = logging.getLogger(__name__)

# Leaf scores, adjusted by ply so faster wins and slower losses rank higher
SCORE_WIN = 10
SCORE_LOSE = -10
SCORE_DRAW = 0


class Strategy(str, Enum):
    OPTIMAL = "optimal"
    RANDOM = "random"


_STRATEGY_ALIASES: Dict[str, Strategy] = {
    "optimal": Strategy.OPTIMAL,
    "hard": Strategy.OPTIMAL,
    "random": Strategy.RANDOM,
    "easy": Strategy.RANDOM,
}


def normalize_strategy(strategy: object) -> Strategy:
    """Resolve a strategy name; anything unrecognized plays optimally."""
    if isinstance(strategy, Strategy):
        return strategy
    if isinstance(strategy, str):
        return _STRATEGY_ALIASES.get(strategy.strip().lower(), Strategy.OPTIMAL)
    return Strategy.OPTIMAL


# ---- core search ----


def _minimax(
    cells: List[Cell],
    me: Player,
    ply: int,
    maximizing: bool,
    alpha: float,
    beta: float,
    prune: bool,
) -> int:
    # ``cells`` is the caller's scratch buffer: every placement is undone
    # before returning.
    result = terminal_check(cells)
    if result.finished:
        if result.winner == me:
            return SCORE_WIN - ply
        if result.winner == other_mark(me):
            return SCORE_LOSE + ply
        return SCORE_DRAW

    mover = me if maximizing else other_mark(me)
    value = -math.inf if maximizing else math.inf
    for move in available_moves(cells):
        cells[move] = mover
        score = _minimax(cells, me, ply + 1, not maximizing, alpha, beta, prune)
        cells[move] = EMPTY

        if maximizing:
            value = max(value, score)
            alpha = max(alpha, value)
        else:
            value = min(value, score)
            beta = min(beta, value)
        if prune and beta <= alpha:
            break
    return int(value)


def score_moves(
    board: Sequence[Cell], symbol: Player, prune: bool = True
) -> Dict[int, int]:
    """Exact minimax score of every empty cell for ``symbol`` to play.

    Each candidate gets its own full alpha-beta window, so pruning never
    changes a root score; ``prune=False`` runs the plain exhaustive search.
    """
    cells = list(board)
    scores: Dict[int, int] = {}
    for move in available_moves(cells):
        cells[move] = symbol
        scores[move] = _minimax(cells, symbol, 1, False, -math.inf, math.inf, prune)
        cells[move] = EMPTY
    return scores


def choose_move(
    board: Sequence[Cell],
    symbol: Player,
    strategy: Union[Strategy, str] = Strategy.OPTIMAL,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick a cell for ``symbol`` on ``board``; None when the board is full.

    The board is never mutated. Optimal play breaks ties between equally
    scored cells uniformly at random.
    """
    rng = rng or random.Random()
    strategy = normalize_strategy(strategy)
    moves = available_moves(board)
    if not moves:
        return None

    if strategy is Strategy.RANDOM:
        move = rng.choice(moves)
        logger.debug("random move for %s: %d", symbol, move)
        return move

    scores = score_moves(board, symbol)
    best = max(scores.values())
    best_moves = [m for m, s in scores.items() if s == best]
    move = rng.choice(best_moves)
    logger.debug("optimal move for %s: %d (scores=%s)", symbol, move, scores)
    return move


# ---- player object used by the driver ----


@dataclass
class MinimaxAI:
    """Computer player bound to one mark.

    Difficulty is passed on every call:
      - MinimaxAI(player="O")
      - choose(game, strategy) -> cell index or None
    """

    player: Player
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def choose(
        self,
        game: TicTacToeGame,
        strategy: Union[Strategy, str] = Strategy.OPTIMAL,
    ) -> Optional[int]:
        if game.finished or game.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        return choose_move(game.board(), self.player, strategy, self.rng)
