from __future__ import annotations

from collections import Counter

import pytest
from _builders import new_game, position

from cardconquest.engine.ai import easy_move
from cardconquest.engine.board import compute_valid_moves
from cardconquest.engine.game import (
    advance_turn,
    apply_placement,
    apply_placement_and_advance,
    board_total,
    handle_pass,
    initialize_game,
    select_card,
)
from cardconquest.engine.types import CapturedInfo, Position


def _play(state, hand_index: int, x: int, y: int):
    selected = select_card(state, hand_index)
    assert selected is not None
    return apply_placement(selected, x, y)


def test_initialize_game_deals_low_opening_hands() -> None:
    state = initialize_game(["Ann", "Bob"], 2, "Hard", seed=1)

    assert [p.name for p in state.players] == ["Ann", "Bob", "Comp 1 (Hard)", "Comp 2 (Hard)"]
    assert [p.color for p in state.players] == ["red", "blue", "green", "yellow"]
    assert [p.is_computer for p in state.players] == [False, False, True, True]
    assert [p.id for p in state.players] == ["player1", "player2", "player3", "player4"]

    for p in state.players:
        hand = state.hand_of(p)
        deck = state.deck_of(p)
        assert len(hand) == 3
        assert all(c.value <= 3 for c in hand)
        assert len(deck) == 15
        all_cards = hand + deck
        assert len({c.id for c in all_cards}) == 18
        assert Counter(c.value for c in all_cards) == {v: 2 for v in range(1, 10)}

    assert state.turn_number == 1
    assert state.current_player_index == 0
    assert state.valid_moves == (Position(4, 4),)
    assert state.message == "Ann, it's your turn!"
    assert not state.is_game_over and state.winner is None


def test_setup_is_seeded() -> None:
    assert initialize_game(["A"], 1, "Easy", seed=99) == initialize_game(["A"], 1, "Easy", seed=99)


@pytest.mark.parametrize(
    "names,computers,difficulty",
    [(["A"], 0, "Easy"), (["A"], 6, "Easy"), (["A", "B"], 0, "Impossible"), (["A"], -1, "Easy")],
)
def test_setup_rejects_bad_arguments(names, computers, difficulty) -> None:
    with pytest.raises(ValueError):
        initialize_game(names, computers, difficulty)


def test_opening_move_in_center_then_next_player_surrounds_it() -> None:
    state = new_game()
    red = state.current_player
    card = state.hand_of(red)[0]
    next_draw = state.deck_of(red)[0]

    placed = _play(state, 0, 4, 4)
    assert placed is not None
    cell = placed.board[4][4]
    assert cell is not None
    assert (cell.value, cell.owner_id, cell.color, cell.id) == (card.value, red.id, "red", card.id)
    assert len(placed.hand_of(red)) == 3
    assert placed.hand_of(red)[-1] == next_draw
    assert len(placed.deck_of(red)) == 14
    assert placed.players[0].score == card.value
    assert placed.message == "Move accepted."
    assert placed.selected_card is None

    nxt = advance_turn(placed)
    assert nxt.current_player_index == 1
    assert nxt.turn_number == 2
    neighbours = {Position(4 + dx, 4 + dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)}
    assert set(nxt.valid_moves) == neighbours
    assert nxt.message == "P2, it's your turn!"

    assert apply_placement_and_advance(select_card(state, 0), 4, 4) == nxt


def test_illegal_placements_are_rejected_without_side_effects() -> None:
    base = new_game()
    assert apply_placement(base, 4, 4) is None  # nothing selected
    assert apply_placement(select_card(base, 0), 0, 0) is None  # not the center on turn 1
    assert apply_placement(select_card(base, 0), 9, 9) is None  # off the board

    state = position(base, {(4, 4): (5, 0), (5, 4): (5, 1)}, hands={0: [5, 4, 6]})
    snapshot = state
    assert _play(state, 0, 5, 4) is None  # equal value cannot capture
    assert _play(state, 1, 5, 4) is None  # lower value cannot capture
    assert _play(state, 0, 4, 4) is None  # own card
    assert state == snapshot
    assert _play(state, 2, 5, 4) is not None


def test_select_card_bounds() -> None:
    state = new_game()
    assert select_card(state, 3) is None
    assert select_card(state, -1) is None
    chosen = select_card(state, 2)
    assert chosen is not None
    assert chosen.selected_card is not None
    assert chosen.selected_card.value == state.hand_of(state.current_player)[2].value
    assert select_card(chosen, None).selected_card is None


def test_capture_reowns_cell_and_rescores_everyone() -> None:
    base = new_game()
    state = position(base, {(4, 4): (3, 0), (5, 4): (4, 1)}, hands={0: [7, 1, 2]}, decks={0: [8]})
    red = state.players[0]

    after = _play(state, 0, 5, 4)
    assert after is not None
    cell = after.board[4][5]
    assert cell is not None
    assert (cell.value, cell.owner_id, cell.id) == (7, red.id, state.hand_of(red)[0].id)
    assert after.history[-1].captured == CapturedInfo(name="P2", value=4, color="blue")
    assert after.history[-1].position == Position(5, 4)
    assert [p.score for p in after.players] == [10, 0]
    assert sum(p.score for p in after.players) == board_total(after.board)
    assert [c.value for c in after.hand_of(red)] == [1, 2, 8]
    assert after.deck_of(red) == ()
    assert after.valid_moves == compute_valid_moves(after.board, after.turn_number, after.current_player)


def test_hand_shrinks_once_deck_is_empty() -> None:
    state = position(new_game(), {(4, 4): (3, 1)}, hands={0: [7, 1, 2]}, decks={0: []})
    after = _play(state, 1, 4, 5)
    assert after is not None
    assert len(after.hand_of(after.players[0])) == 2


def test_four_in_a_row_wins() -> None:
    layout = {(1, 4): (1, 0), (2, 4): (1, 0), (3, 4): (1, 0), (6, 6): (9, 1)}
    state = position(new_game(), layout, hands={0: [2, 1, 1]})
    after = _play(state, 0, 4, 4)
    assert after is not None
    assert after.is_game_over
    assert after.winner is not None and after.winner.id == "player1"
    assert after.winner.score == 5
    assert after.valid_moves == ()
    assert after.message == "P1 wins!"


def test_four_in_a_row_with_tied_score_is_a_draw() -> None:
    layout = {(1, 4): (1, 0), (2, 4): (1, 0), (3, 4): (1, 0), (6, 6): (5, 1)}
    state = position(new_game(), layout, hands={0: [2, 1, 1]})
    after = _play(state, 0, 4, 4)
    assert after is not None
    assert after.is_game_over
    assert after.winner is None
    assert after.message == "P1 got 4-in-a-row, but it's a draw!"


_BIG_LEAD = {
    (3, 3): (9, 0),
    (4, 3): (9, 0),
    (5, 3): (9, 0),
    (3, 5): (9, 0),
    (4, 5): (9, 0),
    (5, 5): (9, 0),
    (6, 4): (5, 1),
}


def test_dominant_score_wins_after_threshold() -> None:
    state = position(new_game(), _BIG_LEAD, turn=7, hands={0: [2, 1, 1]})
    after = _play(state, 0, 4, 4)
    assert after is not None
    assert after.is_game_over
    assert after.winner is not None and after.winner.id == "player1"
    assert after.message == "P1 wins with a dominant score!"


def test_dominance_not_checked_before_threshold() -> None:
    state = position(new_game(), _BIG_LEAD, turn=6, hands={0: [2, 1, 1]})
    after = _play(state, 0, 4, 4)
    assert after is not None
    assert not after.is_game_over


def test_dominant_leader_wins_on_opponents_move() -> None:
    flipped = {pos: (value, 1 - owner) for pos, (value, owner) in _BIG_LEAD.items()}
    state = position(new_game(), flipped, turn=9, hands={0: [1, 1, 1]})
    after = _play(state, 0, 6, 5)
    assert after is not None
    assert after.is_game_over
    assert after.winner is not None and after.winner.id == "player2"


def test_turn_cap_ends_game_with_highest_score() -> None:
    state = position(new_game(), {(4, 4): (5, 0), (5, 4): (3, 1)}, turn=60, hands={0: [1, 1, 1]})
    after = _play(state, 0, 3, 4)
    assert after is not None
    assert after.is_game_over
    assert after.winner is not None and after.winner.id == "player1"
    assert after.message == "P1 wins!"


def test_turn_cap_with_tied_scores_is_a_draw() -> None:
    state = position(new_game(), {(4, 4): (2, 0), (5, 4): (5, 1)}, turn=60, hands={0: [3, 1, 1]})
    after = _play(state, 0, 3, 4)
    assert after is not None
    assert after.is_game_over
    assert after.winner is None
    assert after.message == "It's a draw!"


def test_game_ends_when_every_hand_is_empty() -> None:
    state = position(
        new_game(),
        {(4, 4): (5, 0), (5, 4): (3, 1)},
        hands={0: [4], 1: []},
        decks={0: [], 1: []},
    )
    after = _play(state, 0, 3, 4)
    assert after is not None
    assert after.is_game_over
    assert after.winner is not None and after.winner.score == 9


def test_advance_turn_rotates_and_stops_after_game_over() -> None:
    state = position(new_game(players=3), {(4, 4): (5, 0)}, turn=8, current=2)
    nxt = advance_turn(state)
    assert nxt.current_player_index == 0
    assert nxt.turn_number == 9
    assert nxt.valid_moves == compute_valid_moves(state.board, 9, state.players[0])

    layout = {(1, 4): (1, 0), (2, 4): (1, 0), (3, 4): (1, 0), (6, 6): (9, 1)}
    won = _play(position(new_game(), layout, hands={0: [2, 1, 1]}), 0, 4, 4)
    assert won is not None
    assert advance_turn(won) is won
    assert handle_pass(won) is won
    assert apply_placement_and_advance(won, 5, 4) is None


def test_pass_logs_history_and_moves_on() -> None:
    state = select_card(new_game(), 1)
    assert state is not None
    passed = handle_pass(state)
    assert passed.history[-1].action == "passed"
    assert passed.history[-1].turn == 1
    assert passed.history[-1].player_name == "P1"
    assert passed.selected_card is None
    assert passed.current_player_index == 1
    assert passed.turn_number == 2
    # nobody has played yet, so the center stays open
    assert passed.valid_moves == (Position(4, 4),)


def test_scores_and_hands_stay_consistent_over_a_game() -> None:
    state = new_game(players=3, seed=11)
    for _ in range(45):
        if state.is_game_over:
            break
        mover = state.current_player
        move = easy_move(state)
        if move is None:
            state = handle_pass(state)
            continue
        placed = apply_placement(select_card(state, move.hand_index), move.x, move.y)
        assert placed is not None
        assert sum(p.score for p in placed.players) == board_total(placed.board)
        for p in placed.players:
            assert len(placed.hand_of(p)) <= 3
        if state.deck_of(mover):
            assert len(placed.hand_of(mover)) == 3
        state = advance_turn(placed)
