from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from cardconquest.engine.actions import Action, PassAction, PlaceAction, StepResult, placement_error, step
from cardconquest.engine.ai import AISpec, get_computer_move
from cardconquest.engine.game import GameState, initialize_game, select_card
from cardconquest.engine.types import Difficulty
from cardconquest.services.storage import HallOfFame, SaveGameStore
from cardconquest.services.telemetry import TelemetryService

logger = logging.getLogger(__name__)

COMPUTER_TURN_ERROR = "Wait for the computer to move."


@dataclass
class SessionServices:
    saves: SaveGameStore | None = None
    hall_of_fame: HallOfFame | None = None
    telemetry: TelemetryService | None = None


class GameSession:
    """One running game plus its undo/redo timeline.

    Every change to the timeline bumps :attr:`version`. A computer move is only
    applied if the version is unchanged when the search returns, so an undo made
    while the AI was thinking discards the stale result.
    """

    def __init__(self, services: SessionServices | None = None, ai_spec: AISpec | None = None) -> None:
        self.services = services or SessionServices()
        self.ai_spec = ai_spec or AISpec()
        self._timeline: list[GameState] = []
        self._index = -1
        self.version = 0

    # -------- Timeline --------
    @property
    def has_game(self) -> bool:
        return self._index >= 0

    @property
    def current(self) -> GameState:
        if self._index < 0:
            raise RuntimeError("No game in progress.")
        return self._timeline[self._index]

    @property
    def is_computer_turn(self) -> bool:
        state = self.current
        return not state.is_game_over and state.current_player.is_computer

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._timeline) - 1

    def _reset(self, state: GameState) -> GameState:
        self._timeline = [state]
        self._index = 0
        self.version += 1
        return state

    def _push(self, state: GameState) -> GameState:
        before = self.current
        self._timeline = self._timeline[: self._index + 1] + [state]
        self._index += 1
        self.version += 1
        if self.services.telemetry is not None:
            self.services.telemetry.log_transition(before, state)
        if state.is_game_over and not before.is_game_over and self.services.hall_of_fame is not None:
            self.services.hall_of_fame.record(state)
        return state

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._index -= 1
        self.version += 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._index += 1
        self.version += 1
        return True

    # -------- Lifecycle --------
    def start(
        self,
        player_names: Sequence[str],
        num_computers: int,
        difficulty: Difficulty,
        seed: int | None = None,
    ) -> GameState:
        state = initialize_game(player_names, num_computers, difficulty, seed=seed)
        if self.services.telemetry is not None:
            self.services.telemetry.log(
                "GAME_STARTED",
                {"players": [p.name for p in state.players], "difficulty": difficulty, "seed": seed},
            )
        return self._reset(state)

    def save(self, slot: str) -> Path:
        if self.services.saves is None:
            raise RuntimeError("No save store configured.")
        return self.services.saves.save(slot, self.current)

    def resume(self, slot: str) -> GameState:
        if self.services.saves is None:
            raise RuntimeError("No save store configured.")
        return self._reset(self.services.saves.load(slot))

    # -------- Human input --------
    def select(self, hand_index: int | None) -> bool:
        """Selection is transient UI state: it replaces the current entry in place."""
        if self.is_computer_turn:
            return False
        selected = select_card(self.current, hand_index)
        if selected is None:
            return False
        self._timeline[self._index] = selected
        return True

    def play(self, action: Action) -> StepResult:
        result = step(self.current, action)
        if result.ok:
            self._push(result.state)
        return result

    def place(self, x: int, y: int) -> StepResult:
        state = self.current
        if self.is_computer_turn:
            return StepResult(ok=False, state=state, error=COMPUTER_TURN_ERROR)
        if state.selected_card is None:
            return StepResult(ok=False, state=state, error="Select a card from your hand.")
        return self.play(PlaceAction(hand_index=state.selected_card.hand_index, x=x, y=y))

    def pass_turn(self) -> StepResult:
        if self.is_computer_turn:
            return StepResult(ok=False, state=self.current, error=COMPUTER_TURN_ERROR)
        return self.play(PassAction())

    # -------- Computer turns --------
    async def run_computer_turn(self) -> bool:
        """Let the current computer player move. Returns False if nothing was applied."""
        state = self.current
        if state.is_game_over or not state.current_player.is_computer or self.can_redo:
            return False

        version = self.version
        move = await get_computer_move(state, self.ai_spec)
        if self.version != version:
            logger.info("Discarding stale move for %s: the game changed while thinking", state.current_player.name)
            return False

        if move is None:
            self.play(PassAction())
            return True

        result = self.play(PlaceAction(hand_index=move.hand_index, x=move.x, y=move.y))
        if not result.ok:
            # should not happen: AI moves come from the same legality rules
            logger.warning(
                "Computer move %s rejected (%s); passing instead",
                move,
                placement_error(state, move.hand_index, move.x, move.y),
            )
            self.play(PassAction())
        return True

    async def run_computer_turns(self) -> int:
        """Play computer turns until a human is to move or the game ends."""
        played = 0
        while await self.run_computer_turn():
            played += 1
        return played
