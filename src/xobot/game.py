"""Core rules for xobot: a 3x3 board, turn tracking and terminal detection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

Player = str  # "X" or "O"
Board = Tuple[str, ...]
Line = Tuple[int, int, int]

HUMAN: Player = "X"
COMPUTER: Player = "O"
EMPTY = ""

WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class IllegalMove(ValueError):
    """Raised when a move cannot be applied to the current game state."""


# ---------- Board helpers ----------


def empty_board() -> Board:
    return (EMPTY,) * 9


def other(player: Player) -> Player:
    return COMPUTER if player == HUMAN else HUMAN


def empty_cells(board: Board) -> List[int]:
    return [i for i, c in enumerate(board) if c == EMPTY]


def place(board: Board, index: int, player: Player) -> Board:
    """Return a copy of ``board`` with ``player`` written at ``index`` (unchecked)."""
    cells = list(board)
    cells[index] = player
    return tuple(cells)


def turn_for(board: Board) -> Player:
    """Whose move it is, judged by mark counts (X always starts)."""
    return HUMAN if board.count(HUMAN) == board.count(COMPUTER) else COMPUTER


# ---------- Status ----------


@dataclass(frozen=True)
class GameStatus:
    winner: Optional[Player] = None
    line: Optional[Line] = None
    drawn: bool = False

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.drawn


IN_PROGRESS = GameStatus()


def evaluate(board: Board) -> GameStatus:
    """Derive the status of ``board``: first complete line wins, full board draws."""
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return GameStatus(winner=v, line=line)
    if EMPTY not in board:
        return GameStatus(drawn=True)
    return IN_PROGRESS


# ---------- Game ----------


@dataclass(frozen=True)
class GameState:
    board: Board = field(default_factory=empty_board)
    turn: Player = HUMAN

    def __post_init__(self) -> None:
        if len(self.board) != 9:
            raise ValueError("Board must have exactly 9 cells")
        lead = self.board.count(HUMAN) - self.board.count(COMPUTER)
        if lead not in (0, 1):
            raise ValueError("X must have as many marks as O, or one more")
        # A finished game keeps the turn on the player who made the last move.
        expected = turn_for(self.board)
        if evaluate(self.board).finished:
            expected = other(expected)
        if self.turn != expected:
            raise ValueError(f"Turn {self.turn!r} is inconsistent with the board")

    @property
    def status(self) -> GameStatus:
        return evaluate(self.board)


def new_game() -> GameState:
    return GameState()


def apply_move(state: GameState, index: int, player: Player) -> GameState:
    """Apply ``player``'s move at ``index`` and return the resulting state.

    The turn only passes to the other player when the move leaves the game in
    progress. ``state`` itself is never modified.
    """
    if state.status.finished:
        raise IllegalMove("Game already finished")
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= 8:
        raise IllegalMove(f"Cell index must be between 0 and 8, got {index!r}")
    if player != state.turn:
        raise IllegalMove(f"It is not {player}'s turn")
    if state.board[index] != EMPTY:
        raise IllegalMove("Cell already occupied")

    board = place(state.board, index, player)
    turn = player if evaluate(board).finished else other(player)
    return GameState(board=board, turn=turn)


def apply_human_move(state: GameState, index: int) -> GameState:
    return apply_move(state, index, HUMAN)
