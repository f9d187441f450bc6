"""Move selection for the computer player: random, heuristic and minimax."""

from __future__ import annotations

import math
import random
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple, Union

from .game import (
    COMPUTER,
    EMPTY,
    HUMAN,
    WINNING_LINES,
    Board,
    Player,
    empty_cells,
    evaluate,
    other,
    place,
)

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)

WIN_SCORE = 10


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def _pick(cells: List[int], rng: Optional[random.Random]) -> int:
    return (rng or random).choice(cells)


# ---- easy ----


def choose_random_move(
    board: Board, rng: Optional[random.Random] = None
) -> Optional[int]:
    cells = empty_cells(board)
    if not cells:
        return None
    return _pick(cells, rng)


# ---- medium ----


def find_winning_move(board: Board, player: Player) -> Optional[int]:
    """Empty cell of the first line holding two of ``player``'s marks, if any."""
    for line in WINNING_LINES:
        trio = [board[i] for i in line]
        if trio.count(player) == 2 and trio.count(EMPTY) == 1:
            return line[trio.index(EMPTY)]
    return None


def choose_heuristic_move(
    board: Board, rng: Optional[random.Random] = None
) -> Optional[int]:
    """Win, else block, else centre, else a random corner, else any free cell."""
    win = find_winning_move(board, COMPUTER)
    if win is not None:
        return win

    block = find_winning_move(board, HUMAN)
    if block is not None:
        return block

    if board[CENTER] == EMPTY:
        return CENTER

    corners = [i for i in CORNERS if board[i] == EMPTY]
    if corners:
        return _pick(corners, rng)

    return choose_random_move(board, rng)


# ---- hard ----


def minimax(
    board: Board, depth: int, maximizing: bool, player: Player = COMPUTER
) -> int:
    """Exhaustive minimax score of ``board`` from ``player``'s point of view.

    ``maximizing`` is True when ``player`` is to move. Wins are worth
    ``10 - depth`` and losses ``depth - 10`` so faster wins and slower losses
    are preferred; draws score 0.
    """
    status = evaluate(board)
    if status.winner is not None:
        if status.winner == player:
            return WIN_SCORE - depth
        return depth - WIN_SCORE
    if status.drawn:
        return 0

    mover = player if maximizing else other(player)
    scores = (
        minimax(place(board, i, mover), depth + 1, not maximizing, player)
        for i in empty_cells(board)
    )
    return max(scores) if maximizing else min(scores)


def best_minimax_move(
    board: Board, player: Player = COMPUTER
) -> Tuple[Optional[int], Optional[int]]:
    """Return ``(move, score)``; ties go to the lowest cell index."""
    best_score = -math.inf
    best_move: Optional[int] = None

    for index in empty_cells(board):
        score = minimax(place(board, index, player), 0, False, player)
        if score > best_score:
            best_score, best_move = score, index

    if best_move is None:
        return None, None
    return best_move, int(best_score)


def choose_minimax_move(
    board: Board, rng: Optional[random.Random] = None, player: Player = COMPUTER
) -> Optional[int]:
    move, _ = best_minimax_move(board, player)
    return move


# ---- dispatch ----

Strategy = Callable[[Board, Optional[random.Random]], Optional[int]]

STRATEGIES: Dict[Difficulty, Strategy] = {
    Difficulty.EASY: choose_random_move,
    Difficulty.MEDIUM: choose_heuristic_move,
    Difficulty.HARD: choose_minimax_move,
}


def select_computer_move(
    board: Board,
    difficulty: Union[Difficulty, str],
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick the computer's next cell for ``difficulty``; None if no move exists."""
    if evaluate(board).finished:
        return None
    strategy = STRATEGIES[Difficulty(difficulty)]
    return strategy(board, rng)
