"""Pure rules engine and computer opponents for Tactical Card Conquest.

IMPORTANT: This package must stay free of I/O and presentation code.
"""

from .actions import PassAction, PlaceAction, StepResult, replay, step
from .ai import AIMove, AISpec, get_computer_move
from .board import check_for_win, compute_valid_moves
from .game import (
    GameConfig,
    GameState,
    advance_turn,
    apply_placement,
    apply_placement_and_advance,
    get_valid_moves,
    handle_pass,
    initialize_game,
    select_card,
)
from .types import Card, Difficulty, HistoryEntry, PlacedCard, Player, PlayerColor, Position

__all__ = [
    "AIMove",
    "AISpec",
    "Card",
    "Difficulty",
    "GameConfig",
    "GameState",
    "HistoryEntry",
    "PassAction",
    "PlaceAction",
    "PlacedCard",
    "Player",
    "PlayerColor",
    "Position",
    "StepResult",
    "advance_turn",
    "apply_placement",
    "apply_placement_and_advance",
    "check_for_win",
    "compute_valid_moves",
    "get_computer_move",
    "get_valid_moves",
    "handle_pass",
    "initialize_game",
    "replay",
    "select_card",
    "step",
]
