"""In-memory win/loss/draw tally, kept from the human player's point of view."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict

from .game import DRAW, GameSnapshot


@dataclass
class Scoreboard:
    wins: int = 0
    losses: int = 0
    draws: int = 0

    def record(self, snapshot: GameSnapshot) -> None:
        """Count a finished game. Registered as a session's game-end listener."""
        if not snapshot.finished:
            return
        if snapshot.winner == DRAW:
            self.draws += 1
        elif snapshot.winner == snapshot.human_symbol:
            self.wins += 1
        elif snapshot.winner == snapshot.ai_symbol:
            self.losses += 1

    def reset(self) -> None:
        self.wins = self.losses = self.draws = 0

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)
