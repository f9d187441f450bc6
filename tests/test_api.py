"""Tests for the FastAPI xobot interface."""

from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from xobot import ui
from xobot.ai import Difficulty
from xobot.game import GameState
from xobot.ui import app


client = TestClient(app)
ui.COMPUTER_THINK_DELAY = 0.0


def _new_game(difficulty: str = "medium") -> dict:
    response = client.post("/api/game", json={"difficulty": difficulty})
    assert response.status_code == 200
    return response.json()


def test_create_game_and_first_move():
    payload = _new_game("hard")
    assert payload["currentPlayer"] == "X"
    assert payload["board"] == [""] * 9
    assert payload["moveLog"] == []
    assert payload["status"] == "X to move"
    assert payload["difficulty"] == "hard"

    game_id = payload["id"]
    move_response = client.post(f"/api/game/{game_id}/move", json={"index": 0})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["board"][0] == "X"
    assert state["moveLog"][0] == {"player": "X", "index": 0}
    assert state["currentPlayer"] == "O"
    assert state["computerPending"] is True
    assert state["status"] == "Computer is thinking..."

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["currentPlayer"] == "X"
    assert final_state["computerPending"] is False
    assert final_state["moveLog"][-1]["player"] == "O"
    # Optimal reply to a corner opening is the centre.
    assert final_state["lastMove"] == {"player": "O", "index": 4}


def test_invalid_move_rejected():
    game_id = _new_game()["id"]

    first_move = client.post(f"/api/game/{game_id}/move", json={"index": 4})
    assert first_move.status_code == 200

    duplicate_move = client.post(f"/api/game/{game_id}/move", json={"index": 4})
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_rejects_unsupported_difficulty():
    response = client.post("/api/game", json={"difficulty": "impossible"})
    assert response.status_code == 422


def test_rejects_out_of_range_index():
    game_id = _new_game()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"index": 9})
    assert response.status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert client.post("/api/game/missing/reset").status_code == 404


def test_reset_starts_fresh_game():
    game_id = _new_game()["id"]
    client.post(f"/api/game/{game_id}/move", json={"index": 0})

    response = client.post(f"/api/game/{game_id}/reset")
    assert response.status_code == 200
    state = response.json()
    assert state["board"] == [""] * 9
    assert state["currentPlayer"] == "X"
    assert state["winner"] is None
    assert state["drawn"] is False
    assert state["moveLog"] == []


def test_difficulty_can_change_mid_game():
    game_id = _new_game("easy")["id"]
    response = client.put(
        f"/api/game/{game_id}/difficulty", json={"difficulty": "hard"}
    )
    assert response.status_code == 200
    assert response.json()["difficulty"] == "hard"

    state = client.post(f"/api/game/{game_id}/move", json={"index": 8}).json()
    assert state["difficulty"] == "hard"
    final_state = client.get(f"/api/game/{game_id}").json()
    assert final_state["lastMove"] == {"player": "O", "index": 4}


def test_human_move_rejected_while_computer_pending():
    game_id, session = ui._create_session(Difficulty.MEDIUM)
    token = ui._apply_player_move(game_id, session, 0)
    assert token is not None
    assert session.computer_pending

    with pytest.raises(HTTPException) as excinfo:
        ui._apply_player_move(game_id, session, 1)
    assert excinfo.value.status_code == 400

    ui._run_computer_turn(game_id, token)
    assert not session.computer_pending
    assert session.state.turn == "X"
    assert session.state.board.count("O") == 1


def test_reset_cancels_pending_computer_move():
    game_id, session = ui._create_session(Difficulty.HARD)
    token = ui._apply_player_move(game_id, session, 0)
    assert token is not None

    ui._reset_session(game_id, session)
    assert token.is_set()
    assert not session.computer_pending

    ui._run_computer_turn(game_id, token)
    assert session.state == GameState()
    assert session.move_log == []


def test_computer_reads_difficulty_when_it_moves():
    game_id, session = ui._create_session(Difficulty.EASY)
    token = ui._apply_player_move(game_id, session, 0)
    session.difficulty = Difficulty.MEDIUM

    ui._run_computer_turn(game_id, token)
    # The medium strategy takes the free centre.
    assert session.state.board[4] == "O"


def test_finished_game_rejects_moves():
    game_id, session = ui._create_session(Difficulty.MEDIUM)
    session.state = GameState(
        board=("X", "X", "X", "O", "O", "", "", "", ""), turn="X"
    )
    state = client.get(f"/api/game/{game_id}").json()
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["status"] == "X wins!"
    assert state["availableMoves"] == []

    response = client.post(f"/api/game/{game_id}/move", json={"index": 5})
    assert response.status_code == 400


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "difficulty" in response.text


def test_rejected_move_leaves_difficulty_unchanged():
    game_id = _new_game("easy")["id"]
    first_move = client.post(f"/api/game/{game_id}/move", json={"index": 4})
    assert first_move.status_code == 200

    response = client.post(
        f"/api/game/{game_id}/move", json={"index": 4, "difficulty": "hard"}
    )
    assert response.status_code == 400
    assert client.get(f"/api/game/{game_id}").json()["difficulty"] == "easy"


def test_accepted_move_applies_sent_difficulty():
    game_id = _new_game("easy")["id"]
    response = client.post(
        f"/api/game/{game_id}/move", json={"index": 0, "difficulty": "hard"}
    )
    assert response.status_code == 200
    assert response.json()["difficulty"] == "hard"


def test_idle_sessions_expire():
    stale_id, stale = ui._create_session(Difficulty.EASY)
    stale.last_active -= ui.SESSION_TTL_SECONDS + 1

    fresh_id, _ = ui._create_session(Difficulty.EASY)
    assert stale_id not in ui.SESSIONS
    assert fresh_id in ui.SESSIONS
    assert client.get(f"/api/game/{stale_id}").status_code == 404


def test_pending_session_does_not_expire():
    game_id, session = ui._create_session(Difficulty.EASY)
    token = ui._apply_player_move(game_id, session, 0)
    session.last_active -= ui.SESSION_TTL_SECONDS + 1

    ui._create_session(Difficulty.EASY)
    assert game_id in ui.SESSIONS
    ui._run_computer_turn(game_id, token)
