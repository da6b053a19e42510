"""FastAPI-powered web UI for playing NeuroXO in the browser."""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field, field_validator

from .advisor import DIFFICULTY_TIERS, MoveAdvisor
from .game import EMPTY, PLAYER_O, PLAYER_X, GameState, apply_move, new_game
from .model import ScoreModel, shade_scores

logger = logging.getLogger(__name__)

HUMAN_PLAYER = PLAYER_X
AI_PLAYER = PLAYER_O
DEFAULT_DIFFICULTY = "medium"
DEFAULT_MODEL_PATH = "models/tictactoe.tflite"

AI_MOVE_DELAY: float = float(os.environ.get("NEUROXO_AI_DELAY", "0.6"))
SCORE_MODEL: Optional[ScoreModel] = None
_MODEL_LOCK = threading.Lock()


@dataclass
class GameSession:
    """Container for an active NeuroXO game and its computer opponent."""

    state: GameState
    advisor: MoveAdvisor
    scores: Optional[List[List[float]]] = None
    # Bumped on every reset; a deferred AI turn only applies to its own generation.
    generation: int = 0
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


SESSIONS: Dict[str, GameSession] = {}


def get_score_model() -> ScoreModel:
    """Load the score model on first use."""

    global SCORE_MODEL
    with _MODEL_LOCK:
        if SCORE_MODEL is None:
            path = os.environ.get("NEUROXO_MODEL_PATH", DEFAULT_MODEL_PATH)
            SCORE_MODEL = ScoreModel(path)
        return SCORE_MODEL


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    if SCORE_MODEL is not None:
        SCORE_MODEL.close()


app = FastAPI(
    title="NeuroXO",
    description="Tic-tac-toe against a neural-network guided opponent",
    lifespan=lifespan,
)


def _normalize_difficulty(value: str) -> str:
    value = value.strip().lower()
    if value not in DIFFICULTY_TIERS:
        raise ValueError(
            f"Unsupported difficulty {value!r}. "
            f"Choose one of {', '.join(DIFFICULTY_TIERS)}."
        )
    return value


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    difficulty: str = Field(
        default=DEFAULT_DIFFICULTY,
        description="Difficulty tier controlling how often the AI plays its best move",
    )

    @field_validator("difficulty")
    @classmethod
    def ensure_supported_difficulty(cls, value: str) -> str:
        return _normalize_difficulty(value)


class ResetRequest(BaseModel):
    """Request payload for resetting a game; omit difficulty to keep it."""

    difficulty: Optional[str] = None

    @field_validator("difficulty")
    @classmethod
    def ensure_supported_difficulty(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _normalize_difficulty(value)


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    row: int = Field(ge=0, le=2)
    col: int = Field(ge=0, le=2)


def _refresh_scores(session: GameSession) -> None:
    state = session.state
    if state.is_over:
        session.scores = None
        return
    session.scores = get_score_model().predict(state.board, state.current_player)


def _create_session(difficulty: str) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(
        state=new_game(difficulty), advisor=MoveAdvisor(player=AI_PLAYER)
    )
    _refresh_scores(session)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s (difficulty=%s)", session_id, difficulty)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _log_outcome(game_id: str, state: GameState) -> None:
    if not state.is_over:
        return
    if state.winner:
        logger.info("Game %s won by %s", game_id, state.winner)
    else:
        logger.info("Game %s ended in a draw", game_id)


def _run_ai_turn(game_id: str, generation: int) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, AI_MOVE_DELAY))

    with session.lock:
        if session.generation != generation:
            logger.debug("Discarding stale AI move for game %s", game_id)
            return
        try:
            state = session.state
            if state.is_over or state.current_player != AI_PLAYER:
                return
            row, col = session.advisor.select_move(
                state.board, state.difficulty, session.scores
            )
            session.state = apply_move(state, row, col)
            session.move_log.append({"player": AI_PLAYER, "row": row, "col": col})
            _refresh_scores(session)
            _log_outcome(game_id, session.state)
        finally:
            session.ai_pending = False


def _serialize_session(
    game_id: str, session: GameSession, accepted: bool = True
) -> Dict[str, object]:
    with session.lock:
        state = session.state
        board = [[c if c != EMPTY else "" for c in row] for row in state.board]
        payload: Dict[str, object] = {
            "id": game_id,
            "board": board,
            "currentPlayer": state.current_player,
            "winner": state.winner,
            "isOver": state.is_over,
            "drawn": state.drawn,
            "difficulty": state.difficulty,
            "predictions": session.scores,
            "shading": shade_scores(state.board, session.scores),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
            "modelAvailable": get_score_model().available,
            "accepted": accepted,
        }
        if session.move_log:
            payload["lastMove"] = session.move_log[-1]
        return payload


def _apply_player_move(
    game_id: str,
    session: GameSession,
    row: int,
    col: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> bool:
    """Play the human's move; returns False when the move was ignored."""

    with session.lock:
        state = session.state
        if session.ai_pending or state.current_player != HUMAN_PLAYER:
            return False

        updated = apply_move(state, row, col)
        if updated is state:
            return False

        session.state = updated
        session.move_log.append({"player": HUMAN_PLAYER, "row": row, "col": col})
        _refresh_scores(session)
        _log_outcome(game_id, updated)

        should_schedule_ai = not updated.is_over
        if should_schedule_ai:
            session.ai_pending = True
        generation = session.generation

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, game_id, generation)
    return True


def _reset_session(
    game_id: str, session: GameSession, difficulty: Optional[str] = None
) -> None:
    with session.lock:
        session.state = new_game(difficulty or session.state.difficulty)
        session.move_log.clear()
        session.generation += 1
        session.ai_pending = False
        _refresh_scores(session)
    logger.info(
        "Reset game %s (difficulty=%s, generation=%d)",
        game_id,
        session.state.difficulty,
        session.generation,
    )


@app.post("/api/game")
def create_game(request: NewGameRequest) -> Dict[str, object]:
    game_id, session = _create_session(request.difficulty)
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
    accepted = _apply_player_move(
        game_id, session, request.row, request.col, background_tasks
    )
    return _serialize_session(game_id, session, accepted=accepted)


@app.post("/api/game/{game_id}/reset")
def reset_game(
    game_id: str, request: Optional[ResetRequest] = None
) -> Dict[str, object]:
    session = _get_session(game_id)
    _reset_session(game_id, session, request.difficulty if request else None)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>NeuroXO</title>
    <style>
      :root {
        color-scheme: light;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        background: radial-gradient(circle at top, #f2f5ff, #dbe0ff 40%, #cfd8ff 70%);
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem 3rem;
        color: #13203a;
      }
      main {
        background: rgba(255, 255, 255, 0.92);
        border-radius: 18px;
        box-shadow: 0 20px 40px rgba(34, 47, 79, 0.16);
        padding: clamp(1.5rem, 4vw, 2.5rem);
        width: min(460px, 100%);
        text-align: center;
      }
      h1 {
        margin: 0 0 1rem;
        letter-spacing: 0.06em;
      }
      .status {
        font-size: 1.2rem;
        font-weight: 600;
        min-height: 1.6rem;
      }
      .status.x {
        color: #2196f3;
      }
      .status.o {
        color: #f44336;
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0;
        margin: 1.5rem auto;
        width: min(300px, 80vw);
        aspect-ratio: 1;
      }
      .board.thinking {
        opacity: 0.8;
        pointer-events: none;
      }
      .cell {
        border: 2px solid #000;
        background: #fff;
        font-size: 2.6rem;
        font-weight: 700;
        cursor: pointer;
      }
      .cell.x {
        color: #2196f3;
      }
      .cell.o {
        color: #f44336;
      }
      .controls {
        display: flex;
        gap: 0.75rem;
        justify-content: center;
      }
      button.reset,
      select {
        font: inherit;
        padding: 0.5rem 1rem;
        border-radius: 10px;
        border: 1px solid #9aa6c7;
      }
      .hint {
        color: gray;
        font-size: 0.85rem;
        margin-top: 1rem;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>NeuroXO</h1>
      <div class=\"status\" id=\"status\">Setting up your game…</div>
      <div class=\"board\" id=\"board\" role=\"grid\" aria-label=\"Tic-tac-toe board\"></div>
      <div class=\"controls\">
        <select id=\"difficulty\" aria-label=\"Difficulty\">
          <option value=\"easy\">Easy</option>
          <option value=\"medium\" selected>Medium</option>
          <option value=\"hard\">Hard</option>
        </select>
        <button class=\"reset\" id=\"reset\" type=\"button\">Reset Game</button>
      </div>
      <p class=\"hint\" id=\"hint\">Brighter cells are the moves the model likes.</p>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const hintEl = document.getElementById('hint');
      const difficultyEl = document.getElementById('difficulty');
      const resetButton = document.getElementById('reset');
      let gameId = null;
      let gameState = null;
      let pollHandle = null;
      let isRequestPending = false;

      function stopPolling() {
        if (pollHandle !== null) {
          clearTimeout(pollHandle);
          pollHandle = null;
        }
      }

      function ensurePolling() {
        if (pollHandle !== null) return;
        pollHandle = window.setTimeout(pollState, 300);
      }

      function updateStatus() {
        statusEl.classList.remove('x', 'o');
        if (!gameState) return;
        if (gameState.winner) {
          statusEl.textContent = `Winner: ${gameState.winner}`;
        } else if (gameState.isOver) {
          statusEl.textContent = 'Game Over - Draw!';
        } else if (gameState.aiPending) {
          statusEl.textContent = 'AI is thinking…';
        } else {
          statusEl.textContent = `Current Player: ${gameState.currentPlayer}`;
        }
        statusEl.classList.add(gameState.currentPlayer === 'X' ? 'x' : 'o');
        hintEl.hidden = gameState.isOver;
      }

      function renderBoard() {
        boardEl.innerHTML = '';
        boardEl.classList.toggle('thinking', Boolean(gameState?.aiPending));
        if (!gameState) return;
        gameState.board.forEach((row, r) => {
          row.forEach((mark, c) => {
            const cell = document.createElement('button');
            cell.type = 'button';
            cell.classList.add('cell');
            cell.setAttribute('aria-label', `Row ${r + 1}, column ${c + 1}`);
            if (mark) {
              cell.textContent = mark;
              cell.classList.add(mark === 'X' ? 'x' : 'o');
            } else if (!gameState.isOver) {
              const intensity = Math.round((0.3 + gameState.shading[r][c] * 0.7) * 255);
              cell.style.background = `rgb(${intensity}, ${intensity}, ${intensity})`;
            }
            cell.addEventListener('click', () => sendMove(r, c));
            boardEl.appendChild(cell);
          });
        });
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        difficultyEl.value = data.difficulty;
        renderBoard();
        updateStatus();
        if (gameState.aiPending && !gameState.isOver) {
          ensurePolling();
        } else {
          stopPolling();
        }
      }

      async function post(url, body) {
        const response = await fetch(url, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify(body),
        });
        if (!response.ok) {
          throw new Error('Request failed');
        }
        return response.json();
      }

      async function startGame() {
        stopPolling();
        try {
          setState(await post('/api/game', { difficulty: difficultyEl.value }));
        } catch (error) {
          statusEl.textContent = 'Network error. Please try again.';
        }
      }

      async function resetGame() {
        if (!gameId) return startGame();
        stopPolling();
        try {
          setState(await post(`/api/game/${gameId}/reset`, { difficulty: difficultyEl.value }));
        } catch (error) {
          statusEl.textContent = 'Network error. Please try again.';
        }
      }

      async function pollState() {
        pollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (response.ok) {
            setState(await response.json());
          }
        } catch (error) {
          console.error('Polling failed', error);
        } finally {
          if (gameState?.aiPending && !gameState.isOver) {
            ensurePolling();
          }
        }
      }

      async function sendMove(row, col) {
        if (!gameId || isRequestPending || !gameState || gameState.isOver) return;
        isRequestPending = true;
        try {
          setState(await post(`/api/game/${gameId}/move`, { row, col }));
        } catch (error) {
          statusEl.textContent = 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      resetButton.addEventListener('click', resetGame);
      difficultyEl.addEventListener('change', resetGame);
      startGame();
    </script>
  </body>
</html>
"""
