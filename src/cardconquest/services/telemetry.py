from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from cardconquest.engine.events import Event, describe_transition
from cardconquest.engine.game import GameState


@dataclass
class TelemetryService:
    """Append-only JSONL log of game events."""

    path: Path
    game_id: str | None = None

    def log(self, event_type: str, payload: Mapping[str, object]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        rec = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "game": self.game_id,
            "type": event_type,
            "payload": dict(payload),
        }
        with self.path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(rec, ensure_ascii=False) + "\n")

    def log_transition(self, before: GameState, after: GameState) -> list[Event]:
        events = describe_transition(before, after)
        for ev in events:
            payload = {k: v for k, v in ev.items() if k != "type"}
            self.log(str(ev["type"]), payload)
        return events
