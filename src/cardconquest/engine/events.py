from __future__ import annotations

from .game import GameState

Event = dict[str, object]


def describe_transition(before: GameState, after: GameState) -> list[Event]:
    """Events a presentation layer reacts to when ``before`` becomes ``after``.

    Derived purely from the two states (history tail, deck sizes, turn and
    game-over flags); the engine itself never emits anything.
    """
    events: list[Event] = []
    actor = before.current_player

    for entry in after.history[len(before.history) :]:
        if entry.action == "passed":
            events.append({"type": "TURN_PASSED", "player": actor.id, "turn": entry.turn})
            continue
        if entry.position is None:
            raise ValueError(f"Placement on turn {entry.turn} has no position.")
        events.append(
            {
                "type": "CARD_PLACED",
                "player": actor.id,
                "turn": entry.turn,
                "value": entry.card_value,
                "x": entry.position.x,
                "y": entry.position.y,
            }
        )
        if entry.captured is not None:
            events.append(
                {
                    "type": "CARD_CAPTURED",
                    "player": actor.id,
                    "victim": entry.captured.name,
                    "victim_color": entry.captured.color,
                    "value": entry.captured.value,
                }
            )
        if len(after.deck_of(actor)) < len(before.deck_of(actor)):
            events.append({"type": "CARD_DRAWN", "player": actor.id})

    if after.is_game_over and not before.is_game_over:
        events.append(
            {
                "type": "GAME_ENDED",
                "winner": after.winner.id if after.winner is not None else None,
                "turn": after.turn_number,
                "scores": {p.id: p.score for p in after.players},
            }
        )
    elif after.turn_number != before.turn_number and not after.is_game_over:
        events.append(
            {"type": "TURN_STARTED", "player": after.current_player.id, "turn": after.turn_number}
        )
    return events
