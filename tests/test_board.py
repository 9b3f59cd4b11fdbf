from __future__ import annotations

from _builders import build_board, new_game

from cardconquest.engine.board import ADJACENT_DIRECTIONS, WINDOW_LINES, check_for_win, compute_valid_moves
from cardconquest.engine.types import CENTER, Position, empty_board


def _adjacent_to_occupied(board, pos: Position) -> bool:
    for dx, dy in ADJACENT_DIRECTIONS:
        nx, ny = pos.x + dx, pos.y + dy
        if 0 <= nx < 9 and 0 <= ny < 9 and board[ny][nx] is not None:
            return True
    return False


def test_turn_one_is_always_the_center() -> None:
    state = new_game()
    red = state.players[0]
    assert compute_valid_moves(empty_board(), 1, red) == (CENTER,)

    crowded = build_board(state.players, {(0, 0): (3, 1), (8, 8): (2, 0)})
    assert compute_valid_moves(crowded, 1, red) == (Position(4, 4),)


def test_frontier_touches_cluster_and_skips_own_cards() -> None:
    state = new_game()
    red, blue = state.players
    board = build_board(
        state.players,
        {(4, 4): (5, 0), (5, 4): (3, 1), (5, 5): (6, 0), (3, 3): (2, 1)},
    )
    moves = compute_valid_moves(board, 6, red)

    assert len(moves) == len(set(moves))
    for pos in moves:
        assert _adjacent_to_occupied(board, pos)
        cell = board[pos.y][pos.x]
        assert cell is None or cell.owner_id != red.id

    # opponent cards are targets, own cards never are
    assert Position(5, 4) in moves
    assert Position(3, 3) in moves
    assert Position(4, 4) not in moves
    assert Position(5, 5) not in moves

    blue_moves = compute_valid_moves(board, 6, blue)
    assert Position(4, 4) in blue_moves
    assert Position(5, 4) not in blue_moves


def test_frontier_is_clipped_at_board_edge() -> None:
    state = new_game()
    board = build_board(state.players, {(0, 0): (4, 1)})
    moves = compute_valid_moves(board, 3, state.players[0])
    assert set(moves) == {Position(1, 0), Position(0, 1), Position(1, 1)}


def test_empty_board_after_opening_pass_offers_center() -> None:
    state = new_game()
    assert compute_valid_moves(empty_board(), 2, state.players[1]) == (CENTER,)


def test_window_count_covers_all_lines() -> None:
    # 54 rows + 54 columns + 36 + 36 diagonals
    assert len(WINDOW_LINES) == 180


def test_four_in_a_row_detection() -> None:
    state = new_game()
    red = state.players[0].id

    row = build_board(state.players, {(2, 7): (1, 0), (3, 7): (1, 0), (4, 7): (1, 0), (5, 7): (1, 0)})
    col = build_board(state.players, {(8, 0): (1, 0), (8, 1): (1, 0), (8, 2): (1, 0), (8, 3): (1, 0)})
    diag = build_board(state.players, {(0, 0): (1, 0), (1, 1): (1, 0), (2, 2): (1, 0), (3, 3): (1, 0)})
    anti = build_board(state.players, {(8, 5): (1, 0), (7, 6): (1, 0), (6, 7): (1, 0), (5, 8): (1, 0)})
    for board in (row, col, diag, anti):
        assert check_for_win(board, red)
        assert not check_for_win(board, state.players[1].id)


def test_broken_or_short_lines_do_not_win() -> None:
    state = new_game()
    red = state.players[0].id
    three = build_board(state.players, {(2, 2): (9, 0), (3, 2): (9, 0), (4, 2): (9, 0)})
    mixed = build_board(state.players, {(2, 2): (9, 0), (3, 2): (9, 0), (4, 2): (1, 1), (5, 2): (9, 0)})
    assert not check_for_win(three, red)
    assert not check_for_win(mixed, red)
