"""Room lifecycle: local phases, transition table and round resolution."""

from dataclasses import dataclass
from enum import Enum

from dualitaire.models.room import DRAW, Room, RoomStatus


class Phase(str, Enum):
    """Local lifecycle phase of one client."""

    LOBBY = "lobby"
    ROOM_WAIT = "room_wait"
    COUNT_DOWN = "count_down"
    PLAYING = "playing"
    INTERMISSION = "intermission"
    FINISHED = "finished"


@dataclass
class RoundOutcome:
    """Result of resolving a round (computed by the host)."""

    round_number: int
    host_total: int
    guest_total: int
    finished: bool
    winner: str | None = None  # Identity, DRAW, or None while rounds remain

    @property
    def status(self) -> RoomStatus:
        return RoomStatus.FINISHED if self.finished else RoomStatus.INTERMISSION


def resolve_round(room: Room, max_rounds: int) -> RoundOutcome:
    """Resolve the current round from the room's scores.

    Cumulative totals are prior totals plus this round's running scores.
    Once the rounds are exhausted the winner is the identity with the
    strictly higher total, or DRAW on a tie.
    """
    host_total = room.host_total_score + room.host_score
    guest_total = room.guest_total_score + room.guest_score

    if room.current_round < max_rounds:
        return RoundOutcome(
            round_number=room.current_round,
            host_total=host_total,
            guest_total=guest_total,
            finished=False,
        )

    winner = DRAW
    if host_total > guest_total:
        winner = room.host
    elif guest_total > host_total and room.guest is not None:
        winner = room.guest

    return RoundOutcome(
        round_number=room.current_round,
        host_total=host_total,
        guest_total=guest_total,
        finished=True,
        winner=winner,
    )


def remaining_seconds(duration_sec: int, start_time: int | None, now: int) -> int:
    """Seconds left in the round, clamped at zero.

    Args:
        duration_sec: Round length
        start_time: Shared round start (ms), None if not started
        now: Local wall clock (ms)
    """
    if start_time is None:
        return duration_sec
    elapsed = (now - start_time) // 1000
    return max(0, duration_sec - elapsed)


def plan_transition(phase: Phase, room: Room, seen_round: int | None) -> Phase | None:
    """Decide the local phase change implied by a room snapshot.

    Applying the same snapshot twice yields no change the second time.

    Args:
        phase: Current local phase
        room: Latest room snapshot
        seen_round: Round number of the last countdown this client ran

    Returns:
        New phase to enter, or None to stay
    """
    status = room.status

    if status == RoomStatus.ROOM_WAIT:
        if phase == Phase.LOBBY:
            return Phase.ROOM_WAIT
        return None

    if status == RoomStatus.COUNT_DOWN:
        new_round = seen_round != room.current_round
        if phase not in (Phase.COUNT_DOWN, Phase.PLAYING) or new_round:
            if phase == Phase.FINISHED:
                return None
            return Phase.COUNT_DOWN
        return None

    if status == RoomStatus.PLAYING:
        if phase in (Phase.LOBBY, Phase.ROOM_WAIT, Phase.INTERMISSION):
            return Phase.PLAYING
        return None

    if status == RoomStatus.INTERMISSION:
        if phase in (Phase.COUNT_DOWN, Phase.PLAYING):
            return Phase.INTERMISSION
        if phase in (Phase.LOBBY, Phase.ROOM_WAIT):
            return Phase.INTERMISSION
        return None

    if status == RoomStatus.FINISHED:
        if phase != Phase.FINISHED:
            return Phase.FINISHED
        return None

    return None
