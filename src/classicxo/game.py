"""Core rules and session state for ClassicXO (3x3 tic-tac-toe)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple
import logging

Player = str  # "X" or "O"
Cell = str  # "X", "O", or EMPTY

X: Player = "X"
O: Player = "O"
EMPTY: Cell = " "
DRAW = "draw"

logger = logging.getLogger(__name__)

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


# ---------- Pure board helpers ----------


@dataclass(frozen=True)
class GameResult:
    finished: bool
    winner: Optional[str] = None  # "X", "O", DRAW, or None while in progress
    winning_line: Optional[Tuple[int, int, int]] = None


def terminal_check(cells: Sequence[Cell]) -> GameResult:
    """Classify a board as won, drawn, or still in progress.

    Lines are scanned in ``WINNING_LINES`` order, so a board with two completed
    lines reports the first one.
    """
    for line in WINNING_LINES:
        a, b, c = line
        v = cells[a]
        if v != EMPTY and v == cells[b] == cells[c]:
            return GameResult(finished=True, winner=v, winning_line=line)
    if all(c != EMPTY for c in cells):
        return GameResult(finished=True, winner=DRAW)
    return GameResult(finished=False)


def available_moves(cells: Sequence[Cell]) -> List[int]:
    return [i for i, c in enumerate(cells) if c == EMPTY]


def other_mark(mark: Player) -> Player:
    return O if mark == X else X


def normalize_symbol(symbol: object) -> Player:
    """Map user-supplied symbol input to a mark; anything unrecognized is X."""
    if isinstance(symbol, str) and symbol.strip().upper() in (X, O):
        return symbol.strip().upper()
    return X


# ---------- Session ----------


@dataclass(frozen=True)
class GameSnapshot:
    """Read-only copy of a session handed to listeners and the HTTP layer."""

    board: Tuple[Cell, ...]
    current_player: Player
    finished: bool
    winner: Optional[str]
    winning_line: Optional[Tuple[int, int, int]]
    human_symbol: Player
    ai_symbol: Player


Listener = Callable[[GameSnapshot], None]


def _notify(listeners: List[Listener], snapshot: GameSnapshot) -> None:
    # Move is already applied; listener errors are logged, not raised
    for listener in list(listeners):
        try:
            listener(snapshot)
        except Exception:
            logger.exception("listener %r failed", listener)


@dataclass
class TicTacToeGame:
    # Server-internal: 'X', 'O', or ' ' (space) for empty
    cells: List[Cell] = field(default_factory=lambda: [EMPTY] * 9)
    current_player: Player = X
    finished: bool = False
    # "X", "O", "draw", or None
    winner: Optional[str] = None
    winning_line: Optional[Tuple[int, int, int]] = None
    human_symbol: Player = X
    ai_symbol: Player = O

    _state_listeners: List[Listener] = field(
        default_factory=list, init=False, repr=False
    )
    _end_listeners: List[Listener] = field(default_factory=list, init=False, repr=False)

    @classmethod
    def start(cls, human_symbol: object = X) -> "TicTacToeGame":
        """Fresh round. X always moves first, whichever mark the human holds."""
        human = normalize_symbol(human_symbol)
        return cls(human_symbol=human, ai_symbol=other_mark(human))

    # ---- API used by the driver & AI ----

    def is_legal(self, index: object) -> bool:
        return (
            not self.finished
            and isinstance(index, int)
            and not isinstance(index, bool)
            and 0 <= index < 9
            and self.cells[index] == EMPTY
        )

    def apply_move(self, index: int) -> bool:
        """Place the side-to-move's mark at ``index``.

        Returns False without touching the session when the move is illegal.
        """
        if not self.is_legal(index):
            return False

        self.cells[index] = self.current_player
        result = terminal_check(self.cells)
        if result.finished:
            self.finished = True
            self.winner = result.winner
            self.winning_line = result.winning_line
        else:
            self.current_player = other_mark(self.current_player)

        snapshot = self.snapshot()
        _notify(self._state_listeners, snapshot)
        if self.finished:
            _notify(self._end_listeners, snapshot)
        return True

    def is_human_turn(self) -> bool:
        return not self.finished and self.current_player == self.human_symbol

    def is_computer_turn(self) -> bool:
        return not self.finished and self.current_player == self.ai_symbol

    def available_moves(self) -> List[int]:
        return available_moves(self.cells)

    @property
    def move_count(self) -> int:
        return sum(1 for c in self.cells if c != EMPTY)

    def board(self) -> List[Cell]:
        return list(self.cells)

    def snapshot(self) -> GameSnapshot:
        return GameSnapshot(
            board=tuple(self.cells),
            current_player=self.current_player,
            finished=self.finished,
            winner=self.winner,
            winning_line=self.winning_line,
            human_symbol=self.human_symbol,
            ai_symbol=self.ai_symbol,
        )

    # ---- notifications ----

    def on_state_change(self, listener: Listener) -> None:
        """Call ``listener`` with a snapshot after every legal move."""
        self._state_listeners.append(listener)

    def on_game_end(self, listener: Listener) -> None:
        """Call ``listener`` once, with the final snapshot, when the game ends."""
        self._end_listeners.append(listener)
