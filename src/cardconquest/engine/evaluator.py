"""Static board evaluation used by the Medium and Hard opponents."""

from __future__ import annotations

from collections.abc import Sequence

from .board import Grid, iter_windows
from .types import BOARD_SIZE, WIN_LENGTH, Cell

MATERIAL_WEIGHT = 1.0
POSITIONAL_WEIGHT = 1.0
THREAT_WEIGHT = 7.5

WIN_SCORE = 10000.0
IMMINENT_WIN_BLOCK_SCORE = 9000.0
THREE_IN_A_ROW_SCORE = 500.0
TWO_IN_A_ROW_SCORE = 50.0
OPEN_TWO_MULTIPLIER = 2.5


def _position_weight(x: int, y: int) -> int:
    # rings around the center: 5 in the middle down to 1 on the edge
    center = BOARD_SIZE // 2
    return max(1, center + 1 - max(abs(x - center), abs(y - center)))


POSITION_WEIGHTS: tuple[tuple[int, ...], ...] = tuple(
    tuple(_position_weight(x, y) for x in range(BOARD_SIZE)) for y in range(BOARD_SIZE)
)


def evaluate_window(window: Sequence[Cell], player_id: str) -> float:
    own = [c.value for c in window if c is not None and c.owner_id == player_id]
    theirs = [c.value for c in window if c is not None and c.owner_id != player_id]
    if own and theirs:
        return 0.0

    empty = WIN_LENGTH - len(own) - len(theirs)
    open_ends = window[0] is None and window[-1] is None

    if own:
        avg = sum(own) / len(own)
        if len(own) == 4:
            return WIN_SCORE
        if len(own) == 3 and empty == 1:
            return THREE_IN_A_ROW_SCORE + avg * 10
        if len(own) == 2 and empty == 2:
            bonus = OPEN_TWO_MULTIPLIER if open_ends else 1.0
            return TWO_IN_A_ROW_SCORE * bonus + avg * 5
        return 0.0

    if theirs:
        avg = sum(theirs) / len(theirs)
        if len(theirs) == 4:
            return -WIN_SCORE
        if len(theirs) == 3 and empty == 1:
            return -(IMMINENT_WIN_BLOCK_SCORE + avg * 10)
        if len(theirs) == 2 and empty == 2:
            penalty = OPEN_TWO_MULTIPLIER if open_ends else 1.0
            return -(TWO_IN_A_ROW_SCORE * penalty + avg * 5)
    return 0.0


def evaluate_board(board: Grid, player_id: str) -> float:
    """Score ``board`` from ``player_id``'s point of view. Higher is better."""
    material = 0.0
    positional = 0.0
    for y in range(BOARD_SIZE):
        row = board[y]
        for x in range(BOARD_SIZE):
            cell = row[x]
            if cell is None:
                continue
            sign = 1 if cell.owner_id == player_id else -1
            material += sign * cell.value
            positional += sign * POSITION_WEIGHTS[y][x]

    threat = 0.0
    for window in iter_windows(board):
        threat += evaluate_window(window, player_id)

    return material * MATERIAL_WEIGHT + positional * POSITIONAL_WEIGHT + threat * THREAT_WEIGHT
