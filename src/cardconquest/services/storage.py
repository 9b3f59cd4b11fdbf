from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from cardconquest.engine.game import GameState
from cardconquest.engine.serialize import state_from_dict, state_to_dict
from cardconquest.engine.types import Difficulty

logger = logging.getLogger(__name__)

_SLOT_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class StorageError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise StorageError(f"Missing file: {path}") from e
    except json.JSONDecodeError as e:
        raise StorageError(f"Invalid JSON in {path}: {e}") from e


def _write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise StorageError("\n".join(lines))


class SaveGameStore:
    """Named save slots, one JSON document per slot."""

    def __init__(self, saves_dir: Path, schema_dir: Path) -> None:
        self._dir = saves_dir
        self._schema = _load_json(schema_dir / "game_state.schema.json")

    def _slot_path(self, slot: str) -> Path:
        if not _SLOT_RE.match(slot):
            raise StorageError(f"Invalid save slot name: {slot!r}")
        return self._dir / f"{slot}.json"

    def save(self, slot: str, state: GameState) -> Path:
        path = self._slot_path(slot)
        data = state_to_dict(state)
        validate_json(data, self._schema, context=f"save slot {slot}")
        _write_json(path, data)
        logger.info("Saved game to %s", path)
        return path

    def load(self, slot: str) -> GameState:
        path = self._slot_path(slot)
        raw = _load_json(path)
        validate_json(raw, self._schema, context=str(path))
        assert isinstance(raw, dict)
        try:
            return state_from_dict(raw)
        except (KeyError, ValueError, TypeError) as e:
            raise StorageError(f"Corrupt save {path}: {e}") from e

    def slots(self) -> list[str]:
        if not self._dir.exists():
            return []
        return sorted(p.stem for p in self._dir.glob("*.json"))

    def delete(self, slot: str) -> bool:
        path = self._slot_path(slot)
        if not path.exists():
            return False
        path.unlink()
        return True


@dataclass(frozen=True)
class GameRecord:
    id: str
    winner_name: str
    score: int
    difficulty: Difficulty
    num_players: int
    date: str

    @staticmethod
    def from_dict(d: Mapping[str, object]) -> "GameRecord":
        return GameRecord(
            id=str(d["id"]),
            winner_name=str(d["winner_name"]),
            score=int(d["score"]),  # type: ignore[call-overload]
            difficulty=d["difficulty"],  # type: ignore[arg-type]
            num_players=int(d["num_players"]),  # type: ignore[call-overload]
            date=str(d["date"]),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "winner_name": self.winner_name,
            "score": self.score,
            "difficulty": self.difficulty,
            "num_players": self.num_players,
            "date": self.date,
        }


class HallOfFame:
    """Best finished games, highest winning score first."""

    MAX_RECORDS = 10

    def __init__(self, path: Path, schema_dir: Path) -> None:
        self._path = path
        self._schema = _load_json(schema_dir / "hall_of_fame.schema.json")

    def records(self) -> list[GameRecord]:
        if not self._path.exists():
            return []
        raw = _load_json(self._path)
        validate_json(raw, self._schema, context=str(self._path))
        assert isinstance(raw, dict)
        return [GameRecord.from_dict(r) for r in raw["records"]]

    def record(self, state: GameState, now: datetime | None = None) -> GameRecord | None:
        """Store the result of a finished game. Draws and running games are ignored."""
        if not state.is_game_over or state.winner is None:
            return None
        ts = (now or datetime.now(tz=timezone.utc)).isoformat()
        rec = GameRecord(
            id=f"{ts}-{uuid.uuid4().hex[:8]}",
            winner_name=state.winner.name,
            score=state.winner.score,
            difficulty=state.difficulty,
            num_players=len(state.players),
            date=ts,
        )
        kept = sorted(self.records() + [rec], key=lambda r: r.score, reverse=True)[: self.MAX_RECORDS]
        data = {"records": [r.to_dict() for r in kept]}
        validate_json(data, self._schema, context="hall of fame")
        _write_json(self._path, data)
        return rec
