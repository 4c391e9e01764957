"""FastAPI service that drives ClassicXO games between a human and the computer."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from .ai import MinimaxAI, Strategy, normalize_strategy
from .game import GameSnapshot, TicTacToeGame, X, O, normalize_symbol
from .scores import Scoreboard

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for an active ClassicXO game and its computer opponent."""

    game: TicTacToeGame
    ai: MinimaxAI
    difficulty: Strategy = Strategy.OPTIMAL
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    last_active: float = field(default_factory=lambda: time.time())
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}
SESSIONS_LOCK = threading.Lock()
SCOREBOARD = Scoreboard()
SCORES_LOCK = threading.Lock()
app = FastAPI(title="ClassicXO", description="Tic-tac-toe against the computer")


# Seconds the computer "thinks" before its move is applied
AI_THINK_DELAY: Tuple[float, float] = (0.3, 0.6)
SESSION_TTL_SECONDS = 60 * 30  # 30 minutes since the last move
FINISHED_SESSION_TTL_SECONDS = 60 * 5


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    symbol: str = Field(
        default=X,
        description="Mark for the human: 'X', 'O', or 'random'",
    )
    difficulty: str = Field(
        default=Strategy.OPTIMAL.value,
        description="'optimal' (unbeatable) or 'random'",
    )

    @field_validator("symbol", mode="before")
    @classmethod
    def normalize_symbol_choice(cls, value: object) -> str:
        if isinstance(value, str) and value.strip().lower() == "random":
            return "random"
        return normalize_symbol(value)

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, value: object) -> str:
        return normalize_strategy(value).value


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    index: int = Field(ge=0, le=8)


def _record_result(snapshot: GameSnapshot) -> None:
    with SCORES_LOCK:
        SCOREBOARD.record(snapshot)
    logger.info(
        "game finished: winner=%s line=%s", snapshot.winner, snapshot.winning_line
    )


def _log_state(snapshot: GameSnapshot) -> None:
    logger.debug(
        "board %r, %s to move", "".join(snapshot.board), snapshot.current_player
    )


def _cleanup_sessions() -> None:
    """Drop finished or abandoned sessions. Caller must hold SESSIONS_LOCK."""

    now = time.time()
    expired = []
    for session_id, session in list(SESSIONS.items()):
        if session.ai_pending:
            continue
        ttl = (
            FINISHED_SESSION_TTL_SECONDS
            if session.game.finished
            else SESSION_TTL_SECONDS
        )
        if now - session.last_active >= ttl:
            expired.append(session_id)
    for session_id in expired:
        SESSIONS.pop(session_id, None)
    if expired:
        logger.info("evicted %d stale game(s)", len(expired))


def _create_session(symbol: str, difficulty: str) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    if symbol == "random":
        symbol = random.choice((X, O))
    game = TicTacToeGame.start(symbol)
    game.on_state_change(_log_state)
    game.on_game_end(_record_result)
    session = GameSession(
        game=game,
        ai=MinimaxAI(player=game.ai_symbol),
        difficulty=normalize_strategy(difficulty),
    )
    session_id = uuid.uuid4().hex
    with SESSIONS_LOCK:
        _cleanup_sessions()
        SESSIONS[session_id] = session
    logger.info(
        "new game %s: human=%s difficulty=%s",
        session_id,
        game.human_symbol,
        session.difficulty.value,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            game = session.game
            if not game.is_computer_turn():
                return
            index = session.ai.choose(game, session.difficulty)
            if index is None or not game.apply_move(index):
                return
            session.move_log.append({"player": session.ai.player, "index": index})
            session.last_active = time.time()
        finally:
            session.ai_pending = False


def _schedule_ai_turn(
    game_id: str, session: GameSession, background_tasks: BackgroundTasks
) -> None:
    # Caller must hold session.lock
    if session.game.is_computer_turn():
        session.ai_pending = True
        background_tasks.add_task(_run_ai_turn, game_id)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        snap = session.game.snapshot()
        state: Dict[str, object] = {
            "id": game_id,
            "board": [c if c in (X, O) else "" for c in snap.board],
            "currentPlayer": snap.current_player,
            "finished": snap.finished,
            "winner": snap.winner,
            "winningLine": list(snap.winning_line) if snap.winning_line else None,
            "humanSymbol": snap.human_symbol,
            "aiSymbol": snap.ai_symbol,
            "difficulty": session.difficulty.value,
            "availableMoves": session.game.available_moves(),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    index: int,
    background_tasks: BackgroundTasks,
) -> None:
    with session.lock:
        game = session.game
        if game.finished:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if not game.is_human_turn():
            raise HTTPException(status_code=400, detail="It is not your turn")

        player = game.current_player
        if not game.apply_move(index):
            logger.info("rejected move %d on game %s", index, game_id)
            raise HTTPException(
                status_code=400, detail="Move is not allowed on this turn"
            )

        session.move_log.append({"player": player, "index": index})
        session.last_active = time.time()
        _schedule_ai_turn(game_id, session, background_tasks)


@app.post("/api/game")
def create_game(
    request: NewGameRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(request.symbol, request.difficulty)
    with session.lock:
        _schedule_ai_turn(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.index, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/scores")
def get_scores() -> Dict[str, int]:
    with SCORES_LOCK:
        return SCOREBOARD.as_dict()


@app.delete("/api/scores")
def reset_scores() -> Dict[str, int]:
    with SCORES_LOCK:
        SCOREBOARD.reset()
        return SCOREBOARD.as_dict()
