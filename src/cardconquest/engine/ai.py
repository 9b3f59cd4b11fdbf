"""Computer opponents.

Easy is a greedy one-ply heuristic. Medium looks for an immediate win, then
for an opponent win to block, then picks the best evaluator score one ply
ahead. Hard performs the same win/block checks and then runs iterative
deepening minimax with alpha-beta pruning under a wall-clock budget.

All searches work on a private scratch copy of the board, hands and decks;
the canonical :class:`GameState` is never touched.
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
import time
from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

from .board import Grid, check_for_win, compute_valid_moves
from .evaluator import WIN_SCORE, evaluate_board
from .game import GameState
from .types import CENTER, Card, PlacedCard, Player, Position

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class AISpec:
    """Tuning for the computer opponents.

    time_budget: wall-clock seconds the Hard search may spend
    max_depth: deepest iterative-deepening layer for Hard
    think_delay: minimum pause (seconds) before Medium answers
    """

    time_budget: float = 1.8
    max_depth: int = 8
    think_delay: float = 0.05

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "AISpec":
        env = os.environ if environ is None else environ
        default = AISpec()
        budget_ms = env.get("CARDCONQUEST_AI_TIME_BUDGET_MS")
        depth = env.get("CARDCONQUEST_AI_MAX_DEPTH")
        delay_ms = env.get("CARDCONQUEST_AI_THINK_DELAY_MS")
        return AISpec(
            time_budget=float(budget_ms) / 1000.0 if budget_ms else default.time_budget,
            max_depth=int(depth) if depth else default.max_depth,
            think_delay=float(delay_ms) / 1000.0 if delay_ms else default.think_delay,
        )


@dataclass(frozen=True)
class AIMove:
    x: int
    y: int
    hand_index: int
    value: int

    @property
    def position(self) -> Position:
        return Position(self.x, self.y)


class _SearchTimeout(Exception):
    pass


def legal_moves(board: Grid, turn_number: int, player: Player, hand: Sequence[Card]) -> list[AIMove]:
    """Every (cell, hand card) pair the player could legally play."""
    if not hand:
        return []
    targets = compute_valid_moves(board, turn_number, player)
    moves: list[AIMove] = []
    for i, card in enumerate(hand):
        for pos in targets:
            cell = board[pos.y][pos.x]
            if cell is None or (cell.owner_id != player.id and card.value > cell.value):
                moves.append(AIMove(x=pos.x, y=pos.y, hand_index=i, value=card.value))
    return moves


class _Scratch:
    """Mutable working copy of the parts of a game the search plays on."""

    def __init__(self, state: GameState) -> None:
        self.board: list[list[PlacedCard | None]] = [list(row) for row in state.board]
        self.hands: dict[str, list[Card]] = {pid: list(h) for pid, h in state.hands.items()}
        self.decks: dict[str, list[Card]] = {pid: list(d) for pid, d in state.decks.items()}

    @contextmanager
    def placed(self, player: Player, move: AIMove, draw: bool = True) -> Iterator[None]:
        """Play ``move`` for the duration of the block; undone on every exit path."""
        original = self.board[move.y][move.x]
        hand = self.hands[player.id]
        deck = self.decks.setdefault(player.id, [])
        card = hand[move.hand_index]
        self.board[move.y][move.x] = PlacedCard.from_card(card, player)
        drawn: Card | None = None
        if draw:
            hand.pop(move.hand_index)
            if deck:
                drawn = deck.pop(0)
                hand.append(drawn)
        try:
            yield
        finally:
            if draw:
                if drawn is not None:
                    hand.pop()
                    deck.insert(0, drawn)
                hand.insert(move.hand_index, card)
            self.board[move.y][move.x] = original

    def wins_with(self, player: Player, move: AIMove) -> bool:
        with self.placed(player, move, draw=False):
            return check_for_win(self.board, player.id)


def easy_move(state: GameState) -> AIMove | None:
    """Greedy pick: captures first (bigger victims better), then the highest card."""
    player = state.current_player
    moves = legal_moves(state.board, state.turn_number, player, state.hand_of(player))
    if not moves:
        return None

    def score(move: AIMove) -> int:
        s = 0
        target = state.board[move.y][move.x]
        if target is not None:
            s += 100 + target.value
        return s + move.value

    # max() keeps the first of equal scores
    return max(moves, key=score)


def _winning_move(scratch: _Scratch, player: Player, moves: Sequence[AIMove]) -> AIMove | None:
    for move in moves:
        if scratch.wins_with(player, move):
            return move
    return None


def _blocking_move(
    state: GameState, scratch: _Scratch, me: Player, my_moves: Sequence[AIMove]
) -> AIMove | None:
    for opponent in state.players:
        if opponent.id == me.id:
            continue
        opp_moves = legal_moves(scratch.board, state.turn_number, opponent, scratch.hands.get(opponent.id, []))
        for opp_move in opp_moves:
            if not scratch.wins_with(opponent, opp_move):
                continue
            for mine in my_moves:
                if mine.x == opp_move.x and mine.y == opp_move.y:
                    return mine
    return None


def _critical_move(state: GameState, scratch: _Scratch, moves: Sequence[AIMove]) -> AIMove | None:
    me = state.current_player
    win = _winning_move(scratch, me, moves)
    if win is not None:
        logger.debug("%s takes an immediate win at (%d, %d)", me.name, win.x, win.y)
        return win
    block = _blocking_move(state, scratch, me, moves)
    if block is not None:
        logger.debug("%s blocks a winning cell at (%d, %d)", me.name, block.x, block.y)
    return block


async def medium_move(state: GameState, spec: AISpec | None = None) -> AIMove | None:
    spec = spec or AISpec()
    if spec.think_delay > 0:
        await asyncio.sleep(spec.think_delay)

    me = state.current_player
    moves = legal_moves(state.board, state.turn_number, me, state.hand_of(me))
    if not moves:
        return None

    scratch = _Scratch(state)
    critical = _critical_move(state, scratch, moves)
    if critical is not None:
        return critical

    def score(move: AIMove) -> float:
        with scratch.placed(me, move, draw=False):
            return evaluate_board(scratch.board, me.id)

    return max(moves, key=score)


def ordering_score(board: Grid, move: AIMove) -> int:
    """Cheap guess at move quality used to order the root for better pruning."""
    s = 0
    target = board[move.y][move.x]
    if target is not None:
        s += 100 + target.value - move.value
    distance = max(abs(CENTER.x - move.x), abs(CENTER.y - move.y))
    s += (4 - distance) * 10
    return s + move.value


class _Search:
    def __init__(
        self, state: GameState, scratch: _Scratch, ai: Player, deadline: float, clock: Clock
    ) -> None:
        self.scratch = scratch
        self.players = state.players
        self.ai_id = ai.id
        self.max_turns = state.config.max_turns
        self.deadline = deadline
        self.clock = clock
        self.nodes = 0

    def minimax(self, player_index: int, turn_number: int, depth: int, alpha: float, beta: float) -> float:
        self.nodes += 1
        if self.clock() > self.deadline:
            raise _SearchTimeout()

        board = self.scratch.board
        n = len(self.players)
        last = self.players[(player_index + n - 1) % n]
        if check_for_win(board, last.id):
            return WIN_SCORE + depth if last.id == self.ai_id else -WIN_SCORE - depth

        if depth == 0 or turn_number >= self.max_turns:
            return evaluate_board(board, self.ai_id)

        player = self.players[player_index]
        moves = legal_moves(board, turn_number, player, self.scratch.hands.get(player.id, []))
        next_index = (player_index + 1) % n
        if not moves:
            return self.minimax(next_index, turn_number + 1, depth - 1, alpha, beta)

        maximizing = player.id == self.ai_id
        best = -math.inf if maximizing else math.inf
        for move in moves:
            with self.scratch.placed(player, move):
                value = self.minimax(next_index, turn_number + 1, depth - 1, alpha, beta)
            if maximizing:
                best = max(best, value)
                alpha = max(alpha, value)
            else:
                best = min(best, value)
                beta = min(beta, value)
            if beta <= alpha:
                break
        return best


async def hard_move(
    state: GameState, spec: AISpec | None = None, clock: Clock = time.monotonic
) -> AIMove | None:
    spec = spec or AISpec()
    me = state.current_player
    moves = legal_moves(state.board, state.turn_number, me, state.hand_of(me))
    if not moves:
        return None

    scratch = _Scratch(state)
    critical = _critical_move(state, scratch, moves)
    if critical is not None:
        return critical

    order = sorted(moves, key=lambda m: ordering_score(state.board, m), reverse=True)
    search = _Search(state, scratch, me, deadline=clock() + spec.time_budget, clock=clock)
    next_index = (state.current_player_index + 1) % len(state.players)
    best_overall: AIMove | None = None

    for depth in range(1, spec.max_depth + 1):
        best_for_depth: AIMove | None = None
        best_score = -math.inf
        try:
            for move in order:
                # let the event loop breathe between root evaluations
                await asyncio.sleep(0)
                if clock() > search.deadline:
                    raise _SearchTimeout()
                with scratch.placed(me, move):
                    score = search.minimax(next_index, state.turn_number + 1, depth, best_score, math.inf)
                if score > best_score:
                    best_score = score
                    best_for_depth = move
        except _SearchTimeout:
            logger.debug("Search budget spent during depth %d after %d nodes", depth, search.nodes)
            break

        if best_for_depth is not None:
            best_overall = best_for_depth
            order = [best_for_depth] + [m for m in order if m != best_for_depth]
        logger.debug("Depth %d done: best=%s score=%.1f nodes=%d", depth, best_overall, best_score, search.nodes)
        if clock() > search.deadline:
            break

    if best_overall is None:
        # No depth finished in time; degrade to the greedy choice rather than pass.
        logger.info("%s search produced no move, using the Easy heuristic", me.name)
        return easy_move(state)
    return best_overall


async def get_computer_move(
    state: GameState, spec: AISpec | None = None, clock: Clock = time.monotonic
) -> AIMove | None:
    """Choose a move for the current (computer) player, or None to pass."""
    if state.is_game_over:
        return None
    if state.difficulty == "Medium":
        return await medium_move(state, spec)
    if state.difficulty == "Hard":
        return await hard_move(state, spec, clock)
    return easy_move(state)
