from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

PlayerColor = Literal["red", "blue", "green", "yellow", "purple", "orange"]
Difficulty = Literal["Easy", "Medium", "Hard"]
HistoryAction = Literal["placed", "passed"]

PLAYER_COLOR_ORDER: tuple[PlayerColor, ...] = ("red", "blue", "green", "yellow", "purple", "orange")
DIFFICULTIES: tuple[Difficulty, ...] = ("Easy", "Medium", "Hard")

BOARD_SIZE = 9
WIN_LENGTH = 4


@dataclass(frozen=True, order=True)
class Position:
    x: int
    y: int

    def in_bounds(self) -> bool:
        return 0 <= self.x < BOARD_SIZE and 0 <= self.y < BOARD_SIZE


CENTER = Position(BOARD_SIZE // 2, BOARD_SIZE // 2)


@dataclass(frozen=True)
class Card:
    value: int
    id: str


@dataclass(frozen=True)
class PlacedCard:
    """A card on the board, tagged with its current owner."""

    value: int
    id: str
    color: PlayerColor
    owner_id: str

    @staticmethod
    def from_card(card: Card, owner: "Player") -> "PlacedCard":
        return PlacedCard(value=card.value, id=card.id, color=owner.color, owner_id=owner.id)


Cell = PlacedCard | None
Board = tuple[tuple[Cell, ...], ...]


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    color: PlayerColor
    is_computer: bool
    score: int = 0


@dataclass(frozen=True)
class SelectedCard:
    hand_index: int
    value: int


@dataclass(frozen=True)
class CapturedInfo:
    name: str
    value: int
    color: PlayerColor


@dataclass(frozen=True)
class HistoryEntry:
    turn: int
    player_name: str
    player_color: PlayerColor
    action: HistoryAction
    card_value: int | None = None
    position: Position | None = None
    captured: CapturedInfo | None = None


def empty_board() -> Board:
    return tuple(tuple(None for _ in range(BOARD_SIZE)) for _ in range(BOARD_SIZE))
