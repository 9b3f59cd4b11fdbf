from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TextIO

from cardconquest.engine.ai import AISpec
from cardconquest.engine.game import GameState
from cardconquest.engine.types import BOARD_SIZE, DIFFICULTIES, Position
from cardconquest.paths import get_paths
from cardconquest.services.storage import HallOfFame, SaveGameStore, StorageError
from cardconquest.services.telemetry import TelemetryService

from .session import COMPUTER_TURN_ERROR, GameSession, SessionServices

HELP = "Commands: <hand> <x> <y> | pass | undo | redo | save <slot> | help | quit"
REVIEW_HELP = "Computer turn: redo to continue, or undo | save <slot> | quit"


def render(state: GameState) -> str:
    initials = {p.id: p.color[0].upper() for p in state.players}
    valid = set(state.valid_moves)
    lines = ["    " + " ".join(f"{x:>3}" for x in range(BOARD_SIZE))]
    for y, row in enumerate(state.board):
        cells = []
        for x, cell in enumerate(row):
            if cell is not None:
                cells.append(f"{initials[cell.owner_id]}{cell.value:>2}")
            elif Position(x, y) in valid:
                cells.append("  +")
            else:
                cells.append("  .")
        lines.append(f"{y:>3} " + " ".join(cells))
    lines.append("")
    for p in state.players:
        marker = ">" if p.id == state.current_player.id and not state.is_game_over else " "
        kind = "cpu" if p.is_computer else "you"
        lines.append(f"{marker} {p.name} [{p.color}, {kind}] score={p.score} deck={len(state.deck_of(p))}")
    if not state.is_game_over:
        hand = state.hand_of(state.current_player)
        lines.append("Hand: " + "  ".join(f"[{i}]={c.value}" for i, c in enumerate(hand)))
    lines.append(state.message)
    return "\n".join(lines)


def _handle_command(session: GameSession, line: str, out: Callable[[str], None]) -> bool:
    """Run one typed command. Returns False when the player wants to quit."""
    parts = line.split()
    if not parts:
        return True
    cmd = parts[0].lower()
    if cmd in ("quit", "exit", "q"):
        return False
    if cmd == "help":
        out(REVIEW_HELP if session.is_computer_turn else HELP)
    elif cmd == "undo":
        if not session.undo():
            out("Nothing to undo.")
    elif cmd == "redo":
        if not session.redo():
            out("Nothing to redo.")
    elif cmd == "save" and len(parts) == 2:
        try:
            out(f"Saved to {session.save(parts[1])}")
        except (StorageError, RuntimeError) as e:
            out(str(e))
    elif session.is_computer_turn:
        # only history navigation while looking back at a computer's move
        out(COMPUTER_TURN_ERROR)
        out(REVIEW_HELP)
    elif cmd == "pass":
        session.pass_turn()
    elif len(parts) == 3 and all(p.lstrip("-").isdigit() for p in parts):
        hand_index, x, y = (int(p) for p in parts)
        if not session.select(hand_index):
            out("Select a card from your hand.")
            return True
        result = session.place(x, y)
        if not result.ok:
            session.select(None)
            out(result.error or "Invalid move. Try another spot!")
    else:
        out(HELP)
    return True


def play(session: GameSession, stdin: TextIO, out: Callable[[str], None]) -> None:
    while True:
        state = session.current
        if session.is_computer_turn and not session.can_redo:
            out(f"{state.current_player.name} is thinking...")
            asyncio.run(session.run_computer_turn())
            continue

        out(render(state))
        if state.is_game_over:
            return
        if session.is_computer_turn:
            out(REVIEW_HELP)
        out(f"{state.current_player.name}> ")
        line = stdin.readline()
        if not line:
            return
        if not _handle_command(session, line, out):
            return


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cardconquest", description="Tactical Card Conquest (console)")
    parser.add_argument("--players", nargs="*", default=["Player 1"], help="human player names")
    parser.add_argument("--computers", type=int, default=1)
    parser.add_argument("--difficulty", choices=DIFFICULTIES, default="Medium")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--time-budget", type=float, default=None, help="Hard AI budget in seconds")
    parser.add_argument("--userdata", type=Path, default=None, help="directory for saves and logs")
    parser.add_argument("--resume", metavar="SLOT", default=None)
    parser.add_argument("--autoplay", action="store_true", help="computers only, print the result")
    parser.add_argument("--log-level", default="WARNING")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    paths = get_paths(args.userdata)
    services = SessionServices(
        saves=SaveGameStore(paths.saves_dir, paths.schema_dir),
        hall_of_fame=HallOfFame(paths.hall_of_fame_path, paths.schema_dir),
        telemetry=TelemetryService(paths.telemetry_path),
    )
    spec = AISpec.from_env()
    if args.time_budget is not None:
        spec = AISpec(time_budget=args.time_budget, max_depth=spec.max_depth, think_delay=spec.think_delay)
    session = GameSession(services, spec)

    try:
        if args.resume:
            session.resume(args.resume)
        else:
            names = [] if args.autoplay else list(args.players)
            computers = max(args.computers, 2) if args.autoplay else args.computers
            session.start(names, computers, args.difficulty, seed=args.seed)
    except (StorageError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.autoplay:
        asyncio.run(session.run_computer_turns())
        print(render(session.current))
        return 0

    play(session, sys.stdin, print)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
