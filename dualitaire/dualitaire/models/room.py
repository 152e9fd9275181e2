"""Room document model (the shared, synchronized match record)."""

from enum import Enum

from pydantic import BaseModel, Field

DRAW = "draw"
FREEZE = "freeze"


class RoomStatus(str, Enum):
    """Shared match status, written by the host only."""

    ROOM_WAIT = "room_wait"
    COUNT_DOWN = "count_down"
    PLAYING = "playing"
    INTERMISSION = "intermission"
    FINISHED = "finished"


class Role(str, Enum):
    """Role of an identity within a room."""

    HOST = "host"
    GUEST = "guest"
    SPECTATOR = "spectator"
    NONE = "none"


class AttackEvent(BaseModel, frozen=True):
    """Write-once attack event appended to the room's log."""

    id: str
    target: str
    kind: str = FREEZE
    timestamp: int


class Room(BaseModel):
    """The room document.

    Field ownership:
    - host: status, current_round, start_time, winner, *_total_score
    - each player: its own *_score and *_charge
    - anyone playing: append to attacks
    """

    host: str
    guest: str | None = None
    spectators: list[str] = Field(default_factory=list)

    status: RoomStatus = RoomStatus.ROOM_WAIT
    current_round: int = 1

    host_score: int = 0
    guest_score: int = 0
    host_total_score: int = 0
    guest_total_score: int = 0
    host_charge: int = 0
    guest_charge: int = 0

    attacks: list[AttackEvent] = Field(default_factory=list)
    start_time: int | None = None
    winner: str | None = None
    created_at: int | None = None

    def role_of(self, identity: str | None) -> Role:
        """Get the role of an identity in this room."""
        if identity is None:
            return Role.NONE
        if identity == self.host:
            return Role.HOST
        if self.guest is not None and identity == self.guest:
            return Role.GUEST
        if identity in self.spectators:
            return Role.SPECTATOR
        return Role.NONE

    def opponent_of(self, identity: str) -> str | None:
        """Get the other player's identity, or None if unknown."""
        role = self.role_of(identity)
        if role == Role.HOST:
            return self.guest
        if role == Role.GUEST:
            return self.host
        return None

    def score_of(self, role: Role) -> int:
        """Running round score for a player role."""
        return self.host_score if role == Role.HOST else self.guest_score

    def total_of(self, role: Role) -> int:
        """Cumulative total score for a player role."""
        return self.host_total_score if role == Role.HOST else self.guest_total_score

    def charge_of(self, role: Role) -> int:
        """Attack charge for a player role."""
        return self.host_charge if role == Role.HOST else self.guest_charge

    def __str__(self) -> str:
        guest = self.guest or "-"
        return (
            f"Room[{self.status.value}] round {self.current_round} "
            f"host={self.host}({self.host_score}) guest={guest}({self.guest_score})"
        )
