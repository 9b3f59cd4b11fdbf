from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
from typing import Any

from .board import compute_valid_moves
from .game import GameConfig, GameState, is_valid_board_shape
from .types import (
    Board,
    CapturedInfo,
    Card,
    HistoryEntry,
    PlacedCard,
    Player,
    Position,
    SelectedCard,
)


def _card_to_dict(c: Card) -> dict[str, object]:
    return {"value": c.value, "id": c.id}


def _cell_to_dict(c: PlacedCard | None) -> dict[str, object] | None:
    if c is None:
        return None
    return {"value": c.value, "id": c.id, "color": c.color, "owner_id": c.owner_id}


def _player_to_dict(p: Player) -> dict[str, object]:
    return {
        "id": p.id,
        "name": p.name,
        "color": p.color,
        "is_computer": p.is_computer,
        "score": p.score,
    }


def _history_to_dict(h: HistoryEntry) -> dict[str, object]:
    return {
        "turn": h.turn,
        "player_name": h.player_name,
        "player_color": h.player_color,
        "action": h.action,
        "card_value": h.card_value,
        "position": None if h.position is None else {"x": h.position.x, "y": h.position.y},
        "captured": None if h.captured is None else asdict(h.captured),
    }


def state_to_dict(state: GameState) -> dict[str, object]:
    """Return a JSON-serializable snapshot of the full game state."""
    selected = state.selected_card
    return {
        "seed": state.seed,
        "difficulty": state.difficulty,
        "current_player_index": state.current_player_index,
        "turn_number": state.turn_number,
        "is_game_over": state.is_game_over,
        "winner": None if state.winner is None else _player_to_dict(state.winner),
        "message": state.message,
        "selected_card": None if selected is None else {"hand_index": selected.hand_index, "value": selected.value},
        "board": [[_cell_to_dict(c) for c in row] for row in state.board],
        "players": [_player_to_dict(p) for p in state.players],
        "hands": {pid: [_card_to_dict(c) for c in cards] for pid, cards in state.hands.items()},
        "decks": {pid: [_card_to_dict(c) for c in cards] for pid, cards in state.decks.items()},
        "history": [_history_to_dict(h) for h in state.history],
        "valid_moves": [{"x": p.x, "y": p.y} for p in state.valid_moves],
        "config": asdict(state.config),
    }


def _card_from_dict(d: Mapping[str, Any]) -> Card:
    return Card(value=int(d["value"]), id=str(d["id"]))


def _cell_from_dict(d: Mapping[str, Any] | None) -> PlacedCard | None:
    if d is None:
        return None
    return PlacedCard(value=int(d["value"]), id=str(d["id"]), color=d["color"], owner_id=str(d["owner_id"]))


def _player_from_dict(d: Mapping[str, Any]) -> Player:
    return Player(
        id=str(d["id"]),
        name=str(d["name"]),
        color=d["color"],
        is_computer=bool(d["is_computer"]),
        score=int(d.get("score", 0)),
    )


def _history_from_dict(d: Mapping[str, Any]) -> HistoryEntry:
    pos = d.get("position")
    cap = d.get("captured")
    if d["action"] == "placed" and (pos is None or d.get("card_value") is None):
        raise ValueError(f"Placement on turn {d['turn']} is missing its position or card value.")
    return HistoryEntry(
        turn=int(d["turn"]),
        player_name=str(d["player_name"]),
        player_color=d["player_color"],
        action=d["action"],
        card_value=d.get("card_value"),
        position=None if pos is None else Position(int(pos["x"]), int(pos["y"])),
        captured=None if cap is None else CapturedInfo(name=str(cap["name"]), value=int(cap["value"]), color=cap["color"]),
    )


def state_from_dict(d: Mapping[str, Any]) -> GameState:
    """Rebuild a GameState from :func:`state_to_dict` output.

    Expects data already checked against the game-state schema. The cached
    valid moves are recomputed so they always match the loaded board.
    """
    raw_board = d["board"]
    if not is_valid_board_shape(raw_board):
        raise ValueError("Saved board must be 9x9.")
    board: Board = tuple(tuple(_cell_from_dict(c) for c in row) for row in raw_board)
    players = tuple(_player_from_dict(p) for p in d["players"])
    sel = d.get("selected_card")
    winner = d.get("winner")
    cfg_raw = d.get("config") or {}
    config = GameConfig(**{k: int(v) for k, v in cfg_raw.items() if k in GameConfig.__dataclass_fields__})

    current = int(d["current_player_index"])
    turn = int(d["turn_number"])
    is_over = bool(d["is_game_over"])
    if not 0 <= current < len(players):
        raise ValueError("current_player_index out of range.")
    valid = () if is_over else compute_valid_moves(board, turn, players[current])

    return GameState(
        board=board,
        players=players,
        hands={pid: tuple(_card_from_dict(c) for c in cards) for pid, cards in d["hands"].items()},
        decks={pid: tuple(_card_from_dict(c) for c in cards) for pid, cards in d["decks"].items()},
        difficulty=d["difficulty"],
        current_player_index=current,
        turn_number=turn,
        selected_card=None if sel is None else SelectedCard(hand_index=int(sel["hand_index"]), value=int(sel["value"])),
        is_game_over=is_over,
        winner=None if winner is None else _player_from_dict(winner),
        history=tuple(_history_from_dict(h) for h in d.get("history", [])),
        message=str(d.get("message", "")),
        valid_moves=valid,
        seed=d.get("seed"),
        config=config,
    )
