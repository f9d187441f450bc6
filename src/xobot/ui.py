"""FastAPI-powered web UI for playing xobot in the browser."""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from .ai import Difficulty, select_computer_move
from .game import (
    COMPUTER,
    HUMAN,
    GameState,
    IllegalMove,
    apply_human_move,
    apply_move,
    empty_cells,
    new_game,
)

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """Container for one game against the computer.

    ``pending`` is the cancellation token of the scheduled computer move. A
    computer move only lands if its token is still the session's pending one
    and has not been set.
    """

    state: GameState = field(default_factory=new_game)
    difficulty: Difficulty = Difficulty.MEDIUM
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    pending: Optional[threading.Event] = field(default=None, repr=False)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)
    last_active: float = field(default_factory=lambda: time.time())

    @property
    def computer_pending(self) -> bool:
        return self.pending is not None

    def cancel_pending(self) -> None:
        if self.pending is not None:
            self.pending.set()
            self.pending = None


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="xobot", description="Tic-tac-toe against the computer")


COMPUTER_THINK_DELAY: float = 0.35
SESSION_TTL_SECONDS = 60 * 60  # 1 hour


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    difficulty: Difficulty = Field(
        default=Difficulty.MEDIUM, description="Strength of the computer player"
    )


class DifficultyRequest(BaseModel):
    difficulty: Difficulty


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    index: int = Field(ge=0, le=8)
    # The page sends its current selection with every move.
    difficulty: Optional[Difficulty] = None


def _cleanup_sessions() -> None:
    """Drop sessions that have been idle for longer than the TTL."""

    now = time.time()
    expired = [
        game_id
        for game_id, session in list(SESSIONS.items())
        if not session.computer_pending
        and now - session.last_active >= SESSION_TTL_SECONDS
    ]
    for game_id in expired:
        SESSIONS.pop(game_id, None)
    if expired:
        logger.info("Expired %d idle game(s)", len(expired))


def _create_session(difficulty: Difficulty) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    _cleanup_sessions()
    session = GameSession(difficulty=difficulty)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info("Created game %s (difficulty=%s)", session_id, difficulty.value)
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        session = SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc
    session.last_active = time.time()
    return session


def _run_computer_turn(game_id: str, token: threading.Event) -> None:
    if token.wait(max(0.0, COMPUTER_THINK_DELAY)):
        logger.debug("Computer move for game %s cancelled", game_id)
        return

    session = SESSIONS.get(game_id)
    if not session:
        return

    with session.lock:
        if session.pending is not token:
            return
        try:
            state = session.state
            if state.status.finished or state.turn != COMPUTER:
                return
            # Difficulty is read now, not when the move was scheduled.
            index = select_computer_move(state.board, session.difficulty)
            if index is None:
                return
            session.state = apply_move(state, index, COMPUTER)
            session.move_log.append({"player": COMPUTER, "index": index})
            logger.debug(
                "Game %s: computer (%s) played %d",
                game_id,
                session.difficulty.value,
                index,
            )
        finally:
            session.pending = None


def _status_message(session: GameSession) -> str:
    status = session.state.status
    if status.winner:
        return f"{status.winner} wins!"
    if status.drawn:
        return "Draw!"
    if session.computer_pending:
        return "Computer is thinking..."
    return f"{session.state.turn} to move"


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        state = session.state
        status = state.status
        data: Dict[str, object] = {
            "id": game_id,
            "board": list(state.board),
            "currentPlayer": state.turn,
            "difficulty": session.difficulty.value,
            "winner": status.winner,
            "winningLine": list(status.line) if status.line else None,
            "drawn": status.drawn,
            "status": _status_message(session),
            "availableMoves": [] if status.finished else empty_cells(state.board),
            "moveLog": list(session.move_log),
            "computerPending": session.computer_pending,
        }
        if session.move_log:
            data["lastMove"] = session.move_log[-1]
        return data


def _apply_player_move(
    game_id: str,
    session: GameSession,
    index: int,
    background_tasks: Optional[BackgroundTasks] = None,
    difficulty: Optional[Difficulty] = None,
) -> Optional[threading.Event]:
    """Apply the human move and schedule the reply; returns the reply's token."""
    token: Optional[threading.Event] = None
    with session.lock:
        if session.computer_pending:
            raise HTTPException(
                status_code=400, detail="Computer is completing its move"
            )

        try:
            session.state = apply_human_move(session.state, index)
        except IllegalMove as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": HUMAN, "index": index})
        if difficulty is not None:
            session.difficulty = difficulty

        if not session.state.status.finished and session.state.turn == COMPUTER:
            token = threading.Event()
            session.pending = token

    if token is not None and background_tasks is not None:
        background_tasks.add_task(_run_computer_turn, game_id, token)
    return token


def _reset_session(game_id: str, session: GameSession) -> None:
    with session.lock:
        session.cancel_pending()
        session.state = new_game()
        session.move_log.clear()
    logger.info("Reset game %s", game_id)


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
    _apply_player_move(
        game_id, session, request.index, background_tasks, request.difficulty
    )
    return _serialize_session(game_id, session)


@app.put("/api/game/{game_id}/difficulty")
def set_difficulty(game_id: str, request: DifficultyRequest) -> Dict[str, object]:
    session = _get_session(game_id)
    with session.lock:
        session.difficulty = request.difficulty
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    _reset_session(game_id, session)
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>xobot</title>
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
        width: min(440px, 100%);
      }
      h1 {
        margin: 0 0 1.25rem;
        text-align: center;
        letter-spacing: 0.06em;
      }
      .controls {
        display: flex;
        flex-wrap: wrap;
        gap: 0.75rem;
        justify-content: center;
        align-items: center;
        margin-bottom: 1.25rem;
      }
      button,
      select {
        font-size: 1rem;
        padding: 0.55rem 0.95rem;
        border-radius: 999px;
        border: 1px solid rgba(60, 70, 120, 0.25);
        background: white;
        cursor: pointer;
        font-family: inherit;
      }
      label {
        font-weight: 600;
      }
      #status {
        text-align: center;
        font-size: 1.1rem;
        font-weight: 600;
        min-height: 1.5rem;
        margin-bottom: 1rem;
      }
      #board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 0.45rem;
      }
      .cell {
        aspect-ratio: 1 / 1;
        font-size: 2.4rem;
        font-weight: 700;
        border-radius: 12px;
        border: 2px solid rgba(80, 100, 160, 0.25);
        background: rgba(255, 255, 255, 0.95);
      }
      .cell.x {
        color: #f04a6a;
      }
      .cell.o {
        color: #3a66ff;
      }
      .cell.winner {
        background: #ffe7a3;
        border-color: #e0b000;
      }
    </style>
  </head>
  <body>
    <main>
      <h1>xobot</h1>
      <div class=\"controls\">
        <label for=\"difficulty\">Difficulty</label>
        <select id=\"difficulty\">
          <option value=\"easy\">Easy</option>
          <option value=\"medium\" selected>Medium</option>
          <option value=\"hard\">Hard</option>
        </select>
        <button id=\"reset\" type=\"button\">New game</button>
      </div>
      <div id=\"status\" aria-live=\"polite\"></div>
      <div id=\"board\"></div>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const resetButton = document.getElementById('reset');
      const difficultySelect = document.getElementById('difficulty');
      const cells = [];
      let gameId = null;
      let gameState = null;
      let pollHandle = null;

      for (let i = 0; i < 9; i += 1) {
        const cell = document.createElement('button');
        cell.type = 'button';
        cell.className = 'cell';
        cell.dataset.index = String(i);
        boardEl.appendChild(cell);
        cells.push(cell);
      }

      function render(state) {
        gameState = state;
        const winning = new Set(state.winningLine || []);
        state.board.forEach((mark, index) => {
          const cell = cells[index];
          cell.textContent = mark;
          cell.className = 'cell' + (mark ? ' ' + mark.toLowerCase() : '');
          if (winning.has(index)) {
            cell.classList.add('winner');
          }
        });
        statusEl.textContent = state.status;
        schedulePoll();
      }

      function schedulePoll() {
        if (pollHandle) {
          window.clearTimeout(pollHandle);
          pollHandle = null;
        }
        if (gameState?.computerPending) {
          pollHandle = window.setTimeout(refresh, 200);
        }
      }

      async function startGame() {
        const response = await fetch('/api/game', {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ difficulty: difficultySelect.value }),
        });
        const state = await response.json();
        gameId = state.id;
        render(state);
      }

      async function refresh() {
        if (!gameId) return;
        const response = await fetch(`/api/game/${gameId}`);
        if (response.ok) {
          render(await response.json());
        }
      }

      async function play(index) {
        if (!gameId || !gameState) return;
        if (gameState.computerPending || !gameState.availableMoves.includes(index)) {
          return;
        }
        const response = await fetch(`/api/game/${gameId}/move`, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ index, difficulty: difficultySelect.value }),
        });
        if (response.ok) {
          render(await response.json());
        }
      }

      async function reset() {
        if (!gameId) {
          await startGame();
          return;
        }
        const response = await fetch(`/api/game/${gameId}/reset`, { method: 'POST' });
        if (response.ok) {
          render(await response.json());
        } else {
          await startGame();
        }
      }

      boardEl.addEventListener('click', (event) => {
        const cell = event.target.closest('.cell');
        if (cell) {
          play(Number(cell.dataset.index));
        }
      });
      resetButton.addEventListener('click', reset);
      difficultySelect.addEventListener('change', async () => {
        if (!gameId) return;
        await fetch(`/api/game/${gameId}/difficulty`, {
          method: 'PUT',
          headers: { 'Content-Type': 'application/json' },
          body: JSON.stringify({ difficulty: difficultySelect.value }),
        });
      });

      startGame();
    </script>
  </body>
</html>
"""
