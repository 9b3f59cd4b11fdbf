"""Board geometry: placement frontier and 4-cell line windows."""

from __future__ import annotations

from collections.abc import Iterator, Sequence

from .types import BOARD_SIZE, CENTER, WIN_LENGTH, Cell, Player, Position

# Any grid indexable as grid[y][x]: the canonical tuple board or an AI scratch list.
Grid = Sequence[Sequence[Cell]]

ADJACENT_DIRECTIONS: tuple[tuple[int, int], ...] = (
    (0, -1),
    (0, 1),
    (-1, 0),
    (1, 0),
    (-1, -1),
    (1, -1),
    (-1, 1),
    (1, 1),
)


def _build_window_lines() -> tuple[tuple[tuple[int, int], ...], ...]:
    lines: list[tuple[tuple[int, int], ...]] = []
    last = BOARD_SIZE - WIN_LENGTH
    # rows
    for y in range(BOARD_SIZE):
        for x in range(last + 1):
            lines.append(tuple((x + i, y) for i in range(WIN_LENGTH)))
    # columns
    for x in range(BOARD_SIZE):
        for y in range(last + 1):
            lines.append(tuple((x, y + i) for i in range(WIN_LENGTH)))
    # diagonal down-right
    for y in range(last + 1):
        for x in range(last + 1):
            lines.append(tuple((x + i, y + i) for i in range(WIN_LENGTH)))
    # diagonal down-left
    for y in range(last + 1):
        for x in range(WIN_LENGTH - 1, BOARD_SIZE):
            lines.append(tuple((x - i, y + i) for i in range(WIN_LENGTH)))
    return tuple(lines)


WINDOW_LINES = _build_window_lines()


def is_empty(board: Grid) -> bool:
    return all(cell is None for row in board for cell in row)


def compute_valid_moves(board: Grid, turn_number: int, player: Player) -> tuple[Position, ...]:
    """Cells the player may target this turn.

    Turn 1 always opens in the center. Afterwards a move must touch (8-way) an
    occupied cell and may not land on one of the player's own cards.

    An empty board past turn 1 (the opener passed) offers the center again.
    This departs from the strict rule, under which nobody could ever move.
    """
    if turn_number == 1 or is_empty(board):
        return (CENTER,)

    # dict keeps discovery order while dropping duplicates
    found: dict[Position, None] = {}
    for y in range(BOARD_SIZE):
        for x in range(BOARD_SIZE):
            if board[y][x] is None:
                continue
            for dx, dy in ADJACENT_DIRECTIONS:
                nx, ny = x + dx, y + dy
                if not (0 <= nx < BOARD_SIZE and 0 <= ny < BOARD_SIZE):
                    continue
                neighbour = board[ny][nx]
                if neighbour is None or neighbour.owner_id != player.id:
                    found[Position(nx, ny)] = None
    return tuple(found)


def iter_windows(board: Grid) -> Iterator[tuple[Cell, ...]]:
    for line in WINDOW_LINES:
        yield tuple(board[y][x] for x, y in line)


def check_for_win(board: Grid, player_id: str) -> bool:
    for line in WINDOW_LINES:
        for x, y in line:
            cell = board[y][x]
            if cell is None or cell.owner_id != player_id:
                break
        else:
            return True
    return False
