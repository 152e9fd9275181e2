"""Room document access: create/join, host-only and player-only writers."""

import logging
import random
import string

from dualitaire.models.room import AttackEvent, Role, Room, RoomStatus

from .store import (
    SERVER_TIMESTAMP,
    ArrayUnion,
    DocumentStore,
    DocumentNotFoundError,
    Increment,
    Listener,
    Subscription,
)

logger = logging.getLogger(__name__)

ROOM_ID_LENGTH = 5
ROOM_ID_ALPHABET = string.ascii_uppercase + string.digits
ROOM_PREFIX = "room_"


class RoomNotFoundError(DocumentNotFoundError):
    """Joining a room that does not exist."""


class HostAuthorityError(PermissionError):
    """A non-host identity attempted a host-only write."""


class NotAPlayerError(PermissionError):
    """A spectator (or stranger) attempted a player write."""


def room_doc_id(room_id: str) -> str:
    """Document id of a room."""
    return f"{ROOM_PREFIX}{room_id.upper()}"


def generate_room_id(rng: random.Random | None = None) -> str:
    """Generate a short, human-typable room id."""
    pick = rng or random
    return "".join(pick.choice(ROOM_ID_ALPHABET) for _ in range(ROOM_ID_LENGTH))


class HostChannel:
    """Writer for the host-owned lifecycle fields.

    Only RoomGateway.host_channel() creates one, after checking that the
    caller is the room's host.
    """

    def __init__(self, store: DocumentStore, room_id: str):
        self.store = store
        self.room_id = room_id
        self._doc_id = room_doc_id(room_id)

    def start_match(self, room: Room) -> bool:
        """room_wait -> count_down. Requires a guest.

        Returns:
            False if no guest has joined yet (nothing written)
        """
        if room.guest is None:
            logger.info(f"Room {self.room_id}: cannot start without a guest")
            return False
        self.store.update(self._doc_id, {
            "status": RoomStatus.COUNT_DOWN.value,
            "start_time": SERVER_TIMESTAMP,
        })
        logger.info(f"Room {self.room_id}: match started")
        return True

    def mark_playing(self) -> None:
        """count_down -> playing."""
        self.store.update(self._doc_id, {"status": RoomStatus.PLAYING.value})

    def finish_round(
        self,
        status: RoomStatus,
        host_total: int,
        guest_total: int,
        winner: str | None = None,
    ) -> None:
        """playing -> intermission or finished.

        Totals are carried forward and the per-round fields zeroed.
        """
        fields: dict = {
            "status": status.value,
            "host_total_score": host_total,
            "guest_total_score": guest_total,
            "host_score": 0,
            "guest_score": 0,
            "host_charge": 0,
            "guest_charge": 0,
        }
        if status == RoomStatus.FINISHED:
            fields["winner"] = winner
        self.store.update(self._doc_id, fields)
        logger.info(f"Room {self.room_id}: round resolved -> {status.value}")

    def next_round(self) -> None:
        """intermission -> count_down for the next round."""
        self.store.update(self._doc_id, {
            "status": RoomStatus.COUNT_DOWN.value,
            "current_round": Increment(1),
            "host_score": 0,
            "guest_score": 0,
            "host_charge": 0,
            "guest_charge": 0,
            "start_time": SERVER_TIMESTAMP,
        })
        logger.info(f"Room {self.room_id}: next round starting")


class PlayerChannel:
    """Writer for one player's own fields and the attack log."""

    def __init__(self, store: DocumentStore, room_id: str, role: Role):
        self.store = store
        self.room_id = room_id
        self.role = role
        self._doc_id = room_doc_id(room_id)

    def publish_score(self, score: int, charge: int) -> None:
        """Write this player's running score and attack charge."""
        prefix = self.role.value
        self.store.update(self._doc_id, {
            f"{prefix}_score": score,
            f"{prefix}_charge": charge,
        })

    def dispatch_attack(self, event: AttackEvent) -> None:
        """Append an attack event to the shared log."""
        self.store.update(self._doc_id, {"attacks": ArrayUnion(event.model_dump())})
        logger.info(f"Room {self.room_id}: attack {event.id} sent to {event.target}")


class RoomGateway:
    """Room operations for one identity against the shared store."""

    def __init__(self, store: DocumentStore, identity: str, rng: random.Random | None = None):
        self.store = store
        self.identity = identity
        self.rng = rng or random.Random()

    def create_room(self) -> str:
        """Create a new room hosted by this identity.

        Returns:
            Room id
        """
        room_id = generate_room_id(self.rng)
        while self.store.get(room_doc_id(room_id)) is not None:
            room_id = generate_room_id(self.rng)

        room = Room(host=self.identity)
        data = room.model_dump(mode="json")
        data["created_at"] = SERVER_TIMESTAMP
        self.store.create(room_doc_id(room_id), data)
        logger.info(f"Room {room_id} created by {self.identity}")
        return room_id

    def join_room(self, room_id: str) -> Role:
        """Join a room as guest, or as spectator if the guest slot is taken.

        The check-and-set runs as one transaction so two simultaneous
        joiners cannot both claim the guest slot.

        Raises:
            RoomNotFoundError: If the room does not exist
        """
        identity = self.identity
        assigned: list[Role] = []

        def claim(doc: dict | None) -> dict | None:
            assigned.clear()
            if doc is None:
                raise RoomNotFoundError(f"Room {room_id} does not exist")
            room = Room.model_validate(doc)
            role = room.role_of(identity)
            if role != Role.NONE:
                assigned.append(role)
                return None
            if room.guest is None:
                assigned.append(Role.GUEST)
                return {"guest": identity}
            assigned.append(Role.SPECTATOR)
            return {"spectators": ArrayUnion(identity)}

        self.store.transaction(room_doc_id(room_id), claim)
        role = assigned[0]
        logger.info(f"{identity} joined room {room_id} as {role.value}")
        return role

    def get_room(self, room_id: str) -> Room | None:
        """Read the current room document."""
        doc = self.store.get(room_doc_id(room_id))
        return Room.model_validate(doc) if doc is not None else None

    def subscribe(self, room_id: str, listener: Listener) -> Subscription:
        """Subscribe to the room document."""
        return self.store.subscribe(room_doc_id(room_id), listener)

    def host_channel(self, room_id: str, room: Room) -> HostChannel:
        """Get the host-only writer.

        Raises:
            HostAuthorityError: If this identity is not the host
        """
        if room.role_of(self.identity) != Role.HOST:
            raise HostAuthorityError(f"{self.identity} is not the host of room {room_id}")
        return HostChannel(self.store, room_id)

    def player_channel(self, room_id: str, room: Room) -> PlayerChannel:
        """Get this player's writer.

        Raises:
            NotAPlayerError: If this identity is not host or guest
        """
        role = room.role_of(self.identity)
        if role not in (Role.HOST, Role.GUEST):
            raise NotAPlayerError(f"{self.identity} is not a player in room {room_id}")
        return PlayerChannel(self.store, room_id, role)
