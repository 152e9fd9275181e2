"""Freeze attack: dispatch and local application."""

import logging
import random
import uuid
from typing import Callable

from dualitaire.models.board import Board
from dualitaire.models.room import FREEZE, AttackEvent, Room

logger = logging.getLogger(__name__)


def make_attack_event(
    target: str,
    now: int,
    id_factory: Callable[[], str] | None = None,
) -> AttackEvent:
    """Create a new freeze attack addressed to target.

    Args:
        target: Identity of the attacked player
        now: Timestamp (ms)
        id_factory: Unique id generator (uuid4 by default)

    Returns:
        AttackEvent
    """
    event_id = id_factory() if id_factory else str(uuid.uuid4())
    return AttackEvent(id=event_id, target=target, kind=FREEZE, timestamp=now)


class FreezeTracker:
    """Frozen tableau columns of the local board.

    Maps column index to the instant (ms) the freeze expires. A column
    present in the mapping is non-interactive until that instant.
    """

    def __init__(self, duration_ms: int = 5000, rng: random.Random | None = None):
        self.duration_ms = duration_ms
        self.rng = rng or random.Random()
        self.frozen: dict[int, int] = {}
        self._applied: set[str] = set()

    def is_frozen(self, column: int) -> bool:
        """Check if a tableau column is currently frozen."""
        return column in self.frozen

    def apply(self, board: Board, now: int) -> int | None:
        """Freeze one random non-empty column.

        Returns:
            Frozen column index, or None if no column is eligible
            (the attack is then dropped)
        """
        candidates = board.non_empty_columns()
        if not candidates:
            logger.debug("Freeze dropped: no non-empty column")
            return None
        column = self.rng.choice(candidates)
        expiry = now + self.duration_ms
        # A column frozen twice keeps the later expiry
        self.frozen[column] = max(expiry, self.frozen.get(column, 0))
        logger.debug(f"Column {column} frozen until {self.frozen[column]}")
        return column

    def expire(self, now: int) -> list[int]:
        """Unfreeze every column whose expiry has passed.

        Returns:
            Columns unfrozen by this call
        """
        expired = [col for col, expiry in self.frozen.items() if expiry <= now]
        for col in expired:
            del self.frozen[col]
        return expired

    def pending_attacks(
        self,
        room: Room,
        identity: str,
        since: int | None,
        now: int | None = None,
    ) -> list[AttackEvent]:
        """Unseen attack events addressed to identity, marking them seen.

        Events stamped before since (the current round's start) are marked
        seen without being returned, as are events whose freeze would
        already have expired at now (a client attaching mid-round).
        """
        pending = []
        for event in room.attacks:
            if event.id in self._applied or event.target != identity:
                continue
            self._applied.add(event.id)
            # Attack timestamps come from the sender's clock while since is
            # stamped by the store; skew between the two can drop an attack
            # sent in the first instants of a round.
            if since is not None and event.timestamp < since:
                continue
            if now is not None and event.timestamp + self.duration_ms <= now:
                continue
            pending.append(event)
        return pending

    def clear(self) -> None:
        """Unfreeze everything (round over). Seen ids are kept."""
        self.frozen.clear()
