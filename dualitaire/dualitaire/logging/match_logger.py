"""Match logger for detailed match replay."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, TextIO

from pydantic import BaseModel

from dualitaire.models.board import Board

from .formatters import format_cards


class MatchLogConfig(BaseModel):
    """Configuration for match logging."""

    enabled: bool = False
    output_path: str = "match_log.jsonl"


class MatchLogger:
    """Logger for one client's match events in JSONL format.

    Each line in the output file is a JSON object representing one event,
    written from the point of view of the local identity.
    """

    def __init__(self, config: MatchLogConfig | None = None):
        """Initialize match logger.

        Args:
            config: Logging configuration. If None, logging is disabled.
        """
        self.config = config or MatchLogConfig()
        self._file: TextIO | None = None

    def __enter__(self) -> "MatchLogger":
        """Context manager entry."""
        self.open()
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()

    def open(self) -> None:
        """Open the log file (if enabled)."""
        if self._file is None and self.config.enabled and self.config.output_path:
            path = Path(self.config.output_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(path, "a", encoding="utf-8")

    def close(self) -> None:
        """Close the log file."""
        if self._file:
            self._file.close()
            self._file = None

    def _write(self, event: dict[str, Any]) -> None:
        """Write an event to the log file.

        Args:
            event: Event dictionary to write as JSON.
        """
        if self._file:
            self._file.write(json.dumps(event, ensure_ascii=False) + "\n")
            self._file.flush()

    def log_session_start(self, room_id: str, identity: str, role: str) -> None:
        """Log joining a room."""
        self._write({
            "type": "session_start",
            "timestamp": datetime.now().isoformat(),
            "room": room_id,
            "identity": identity,
            "role": role,
        })

    def log_round_start(self, round_num: int, start_time: int | None, board: Board) -> None:
        """Log the dealt board at the start of a round.

        Args:
            round_num: Round number.
            start_time: Shared round start (ms).
            board: Freshly dealt board (face-down cards included).
        """
        self._write({
            "type": "round_start",
            "round": round_num,
            "start_time": start_time,
            "stock": format_cards(board.stock, reveal=True),
            "tableau": [format_cards(col, reveal=True) for col in board.tableau],
        })

    def log_move(
        self,
        round_num: int,
        kind: str,
        points: int,
        score: int,
        combo: int,
        charge: int,
    ) -> None:
        """Log a scoring move."""
        self._write({
            "type": "move",
            "round": round_num,
            "kind": kind,
            "points": points,
            "score": score,
            "combo": combo,
            "charge": charge,
        })

    def log_attack_sent(self, round_num: int, attack_id: str, target: str) -> None:
        """Log an attack dispatched to the opponent."""
        self._write({
            "type": "attack_sent",
            "round": round_num,
            "id": attack_id,
            "target": target,
        })

    def log_attack_received(self, round_num: int, attack_id: str, column: int | None) -> None:
        """Log an attack applied to the local board.

        Args:
            round_num: Round number.
            attack_id: Attack event id.
            column: Frozen column, None if the attack was dropped.
        """
        self._write({
            "type": "attack_received",
            "round": round_num,
            "id": attack_id,
            "column": column,
        })

    def log_round_end(
        self,
        round_num: int,
        host_score: int,
        guest_score: int,
        host_total: int,
        guest_total: int,
    ) -> None:
        """Log the end of a round as observed locally."""
        self._write({
            "type": "round_end",
            "round": round_num,
            "scores": {"host": host_score, "guest": guest_score},
            "totals": {"host": host_total, "guest": guest_total},
        })

    def log_match_end(self, winner: str | None, host_total: int, guest_total: int) -> None:
        """Log the final result."""
        self._write({
            "type": "match_end",
            "winner": winner,
            "totals": {"host": host_total, "guest": guest_total},
        })
