from __future__ import annotations

import logging
import random
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace

from .board import check_for_win, compute_valid_moves
from .types import (
    BOARD_SIZE,
    DIFFICULTIES,
    PLAYER_COLOR_ORDER,
    Board,
    CapturedInfo,
    Card,
    Difficulty,
    HistoryEntry,
    PlacedCard,
    Player,
    Position,
    SelectedCard,
    empty_board,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GameConfig:
    hand_size: int = 3
    copies_per_value: int = 2
    max_card_value: int = 9
    opening_card_max_value: int = 3
    max_turns: int = 60
    dominance_score: int = 50
    dominance_turn_factor: int = 3
    min_players: int = 2
    max_players: int = 6


@dataclass(frozen=True)
class GameState:
    board: Board
    players: tuple[Player, ...]
    hands: Mapping[str, tuple[Card, ...]]
    decks: Mapping[str, tuple[Card, ...]]
    difficulty: Difficulty
    current_player_index: int = 0
    turn_number: int = 1
    selected_card: SelectedCard | None = None
    is_game_over: bool = False
    winner: Player | None = None
    history: tuple[HistoryEntry, ...] = ()
    message: str = ""
    valid_moves: tuple[Position, ...] = ()
    seed: int | None = None
    config: GameConfig = field(default_factory=GameConfig)

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def player_by_id(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def hand_of(self, player: Player) -> tuple[Card, ...]:
        return self.hands.get(player.id, ())

    def deck_of(self, player: Player) -> tuple[Card, ...]:
        return self.decks.get(player.id, ())


def _turn_message(player: Player) -> str:
    return f"{player.name}, it's your turn!"


def _build_cards(player_id: str, cfg: GameConfig) -> list[Card]:
    cards: list[Card] = []
    counter = 0
    for value in range(1, cfg.max_card_value + 1):
        for _ in range(cfg.copies_per_value):
            cards.append(Card(value=value, id=f"{player_id}-card-{counter}"))
            counter += 1
    return cards


def _deal(rng: random.Random, player_id: str, cfg: GameConfig) -> tuple[tuple[Card, ...], tuple[Card, ...]]:
    """Opening hand comes from the low cards; the rest is shuffled into the deck."""
    full = _build_cards(player_id, cfg)
    small = [c for c in full if c.value <= cfg.opening_card_max_value]
    others = [c for c in full if c.value > cfg.opening_card_max_value]
    rng.shuffle(small)
    hand = small[: cfg.hand_size]
    deck = small[cfg.hand_size :] + others
    rng.shuffle(deck)
    return tuple(hand), tuple(deck)


def initialize_game(
    player_names: Sequence[str],
    num_computers: int,
    difficulty: Difficulty,
    *,
    seed: int | None = None,
    config: GameConfig | None = None,
) -> GameState:
    cfg = config or GameConfig()
    if difficulty not in DIFFICULTIES:
        raise ValueError(f"Unknown difficulty: {difficulty!r}")
    if num_computers < 0:
        raise ValueError("num_computers must not be negative.")
    total = len(player_names) + num_computers
    if total < cfg.min_players or total > cfg.max_players:
        raise ValueError(f"A game needs {cfg.min_players}-{cfg.max_players} players, got {total}.")

    num_humans = len(player_names)
    players: list[Player] = []
    for i in range(total):
        is_computer = i >= num_humans
        name = f"Comp {i - num_humans + 1} ({difficulty})" if is_computer else player_names[i]
        players.append(
            Player(id=f"player{i + 1}", name=name, color=PLAYER_COLOR_ORDER[i], is_computer=is_computer)
        )

    rng = random.Random(seed)
    hands: dict[str, tuple[Card, ...]] = {}
    decks: dict[str, tuple[Card, ...]] = {}
    for p in players:
        hands[p.id], decks[p.id] = _deal(rng, p.id, cfg)

    board = empty_board()
    first = players[0]
    logger.debug("New %s game with %d players (seed=%s)", difficulty, total, seed)
    return GameState(
        board=board,
        players=tuple(players),
        hands=hands,
        decks=decks,
        difficulty=difficulty,
        message=_turn_message(first),
        valid_moves=compute_valid_moves(board, 1, first),
        seed=seed,
        config=cfg,
    )


def get_valid_moves(state: GameState) -> tuple[Position, ...]:
    return state.valid_moves


def score_players(board: Board, players: Sequence[Player]) -> tuple[Player, ...]:
    """Rescan the board; a player's score is the sum of the cells they own."""
    totals = {p.id: 0 for p in players}
    for row in board:
        for cell in row:
            if cell is not None and cell.owner_id in totals:
                totals[cell.owner_id] += cell.value
    return tuple(replace(p, score=totals[p.id]) for p in players)


def select_card(state: GameState, hand_index: int | None) -> GameState | None:
    """Select a card from the current player's hand; None clears the selection."""
    if state.is_game_over:
        return None
    if hand_index is None:
        return replace(state, selected_card=None)
    hand = state.hand_of(state.current_player)
    if hand_index < 0 or hand_index >= len(hand):
        return None
    return replace(state, selected_card=SelectedCard(hand_index=hand_index, value=hand[hand_index].value))


def _with_cell(board: Board, pos: Position, cell: PlacedCard) -> Board:
    row = list(board[pos.y])
    row[pos.x] = cell
    rows = list(board)
    rows[pos.y] = tuple(row)
    return tuple(rows)


def _finish(state: GameState, winner: Player | None, message: str) -> GameState:
    logger.info("Game over on turn %d: %s", state.turn_number, message)
    return replace(
        state,
        is_game_over=True,
        winner=winner,
        message=message,
        selected_card=None,
        valid_moves=(),
    )


def _dominant_leader(players: Sequence[Player], cfg: GameConfig) -> Player | None:
    ranked = sorted(players, key=lambda p: p.score, reverse=True)
    if len(ranked) < 2:
        return None
    leader, runner_up = ranked[0], ranked[1]
    if leader.score >= cfg.dominance_score and leader.score > runner_up.score * 2:
        return leader
    return None


def apply_placement(state: GameState, x: int, y: int) -> GameState | None:
    """Place the selected card at (x, y) for the current player.

    Returns None, leaving ``state`` untouched, when the move is illegal: game
    already over, nothing selected, a target outside the current valid moves,
    one of the player's own cards, or an opponent card of equal or higher value.
    """
    if state.is_game_over or state.selected_card is None:
        return None
    pos = Position(x, y)
    if not pos.in_bounds() or pos not in state.valid_moves:
        return None

    player = state.current_player
    hand = list(state.hand_of(player))
    hand_index = state.selected_card.hand_index
    if hand_index < 0 or hand_index >= len(hand):
        return None
    card = hand[hand_index]

    target = state.board[y][x]
    captured: CapturedInfo | None = None
    if target is not None:
        if target.owner_id == player.id:
            return None
        if card.value <= target.value:
            return None
        victim = state.player_by_id(target.owner_id)
        if victim is not None:
            captured = CapturedInfo(name=victim.name, value=target.value, color=victim.color)

    board = _with_cell(state.board, pos, PlacedCard.from_card(card, player))
    entry = HistoryEntry(
        turn=state.turn_number,
        player_name=player.name,
        player_color=player.color,
        action="placed",
        card_value=card.value,
        position=pos,
        captured=captured,
    )

    deck = list(state.deck_of(player))
    hand.pop(hand_index)
    if deck:
        hand.append(deck.pop(0))
    hands = dict(state.hands)
    decks = dict(state.decks)
    hands[player.id] = tuple(hand)
    decks[player.id] = tuple(deck)

    players = score_players(board, state.players)
    placed = replace(
        state,
        board=board,
        players=players,
        hands=hands,
        decks=decks,
        selected_card=None,
        history=state.history + (entry,),
    )
    cfg = state.config

    if check_for_win(board, player.id):
        mover = placed.current_player
        if any(p.id != mover.id and p.score == mover.score for p in players):
            return _finish(placed, None, f"{mover.name} got 4-in-a-row, but it's a draw!")
        return _finish(placed, mover, f"{mover.name} wins!")

    if state.turn_number > len(players) * cfg.dominance_turn_factor:
        leader = _dominant_leader(players, cfg)
        if leader is not None:
            return _finish(placed, leader, f"{leader.name} wins with a dominant score!")

    out_of_cards = all(len(h) == 0 for h in hands.values())
    if out_of_cards or state.turn_number >= cfg.max_turns:
        top = max(p.score for p in players)
        leaders = [p for p in players if p.score == top]
        if len(leaders) == 1:
            return _finish(placed, leaders[0], f"{leaders[0].name} wins!")
        return _finish(placed, None, "It's a draw!")

    return replace(
        placed,
        message="Move accepted.",
        valid_moves=compute_valid_moves(board, state.turn_number, player),
    )


def advance_turn(state: GameState) -> GameState:
    if state.is_game_over:
        return state
    next_index = (state.current_player_index + 1) % len(state.players)
    next_turn = state.turn_number + 1
    nxt = state.players[next_index]
    return replace(
        state,
        current_player_index=next_index,
        turn_number=next_turn,
        message=_turn_message(nxt),
        valid_moves=compute_valid_moves(state.board, next_turn, nxt),
    )


def apply_placement_and_advance(state: GameState, x: int, y: int) -> GameState | None:
    placed = apply_placement(state, x, y)
    if placed is None or placed.is_game_over:
        return placed
    return advance_turn(placed)


def handle_pass(state: GameState) -> GameState:
    """Pass the current player's turn. Always legal while the game runs."""
    if state.is_game_over:
        return state
    player = state.current_player
    entry = HistoryEntry(
        turn=state.turn_number,
        player_name=player.name,
        player_color=player.color,
        action="passed",
    )
    return advance_turn(replace(state, history=state.history + (entry,), selected_card=None))


def board_total(board: Board) -> int:
    return sum(cell.value for row in board for cell in row if cell is not None)


def is_valid_board_shape(board: Sequence[Sequence[object]]) -> bool:
    return len(board) == BOARD_SIZE and all(len(row) == BOARD_SIZE for row in board)
