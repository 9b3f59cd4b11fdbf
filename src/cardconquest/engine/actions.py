from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from .game import (
    GameConfig,
    GameState,
    apply_placement_and_advance,
    handle_pass,
    initialize_game,
    select_card,
)
from .types import Difficulty, Position


@dataclass(frozen=True)
class PlaceAction:
    hand_index: int
    x: int
    y: int


@dataclass(frozen=True)
class PassAction:
    pass


Action = PlaceAction | PassAction


@dataclass
class StepResult:
    ok: bool
    state: GameState
    error: str | None = None


def placement_error(state: GameState, hand_index: int, x: int, y: int) -> str | None:
    """Explain why a placement would be rejected, or None if it is legal."""
    if state.is_game_over:
        return "The game is already over."
    hand = state.hand_of(state.current_player)
    if hand_index < 0 or hand_index >= len(hand):
        return "Select a card from your hand."
    pos = Position(x, y)
    target = state.board[y][x] if pos.in_bounds() else None
    if target is not None and target.owner_id == state.current_player.id:
        return "You cannot place a card on your own card."
    if pos not in state.valid_moves:
        return "You must place your card adjacent to another card."
    if target is not None and hand[hand_index].value <= target.value:
        return "Your card's value must be higher to capture an opponent's card."
    return None


def step(state: GameState, action: Action) -> StepResult:
    """Apply one action for the current player and advance the turn.

    The input state is never modified; on rejection the result carries it back
    unchanged together with a user-facing reason.
    """
    if isinstance(action, PassAction):
        if state.is_game_over:
            return StepResult(ok=False, state=state, error="The game is already over.")
        return StepResult(ok=True, state=handle_pass(state))

    if isinstance(action, PlaceAction):
        error = placement_error(state, action.hand_index, action.x, action.y)
        if error is not None:
            return StepResult(ok=False, state=state, error=error)
        selected = select_card(state, action.hand_index)
        nxt = apply_placement_and_advance(selected, action.x, action.y) if selected else None
        if nxt is None:
            return StepResult(ok=False, state=state, error="Invalid move. Try another spot!")
        return StepResult(ok=True, state=nxt)

    return StepResult(ok=False, state=state, error="Unknown action.")


def replay(
    player_names: Sequence[str],
    num_computers: int,
    difficulty: Difficulty,
    seed: int,
    actions: Iterable[Action],
    config: GameConfig | None = None,
) -> GameState:
    state = initialize_game(player_names, num_computers, difficulty, seed=seed, config=config)
    for a in actions:
        state = step(state, a).state
        if state.is_game_over:
            break
    return state
