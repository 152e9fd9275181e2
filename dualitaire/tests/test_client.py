"""Scenario tests for MatchClient over the in-memory store."""

import random

import pytest

from dualitaire.client import MatchClient
from dualitaire.config import Config, MatchConfig
from dualitaire.game.lifecycle import Phase
from dualitaire.game.session import MoveKind
from dualitaire.models.board import TABLEAU_COLUMNS, Board, PileKind
from dualitaire.models.card import Card, Rank, Suit
from dualitaire.models.room import Role, RoomStatus
from dualitaire.sync.store import InMemoryDocumentStore, StoreError
from dualitaire.utils.clock import ManualClock

START = 1_000_000
STEP_MS = 100


class FlakyStore(InMemoryDocumentStore):
    """Store whose updates fail while failing is set."""

    failing = False

    def update(self, doc_id, fields):
        if self.failing:
            raise StoreError("unavailable")
        super().update(doc_id, fields)


class Match:
    """Host, guest and spectator sharing one store and clock."""

    def __init__(self, config: Config):
        self.config = config
        self.clock = ManualClock(START)
        self.store = FlakyStore(self.clock)
        self.host = self.client("host")
        self.guest = self.client("guest")
        self.spectator = self.client("spectator")
        self.clients = [self.host, self.guest, self.spectator]

        self.room_id = self.host.create_room()
        self.guest.join_room(self.room_id)
        self.spectator.join_room(self.room_id)
        self.pump()

    def client(self, identity: str) -> MatchClient:
        return MatchClient(self.store, identity, self.config, self.clock, random.Random(identity))

    def pump(self) -> None:
        for client in self.clients:
            client.pump()

    def run(self, ms: int) -> None:
        """Advance the shared clock in small steps, firing timers and snapshots."""
        for _ in range(ms // STEP_MS):
            self.clock.advance(STEP_MS)
            for client in self.clients:
                client.advance()
            self.pump()

    def start(self) -> None:
        """Start the match and run through the countdown."""
        assert self.host.start_match()
        self.pump()
        self.run(3_500)

    def room(self):
        return self.host.gateway.get_room(self.room_id)


def card(suit: Suit, rank: Rank) -> Card:
    return Card(suit=suit, rank=rank, face_up=True)


def two_ace_board() -> Board:
    columns = [(card(Suit.SPADE, Rank.ACE),), (card(Suit.HEART, Rank.ACE),)]
    columns += [(card(Suit.CLUB, Rank.KING),)] + [()] * (TABLEAU_COLUMNS - 3)
    return Board(tableau=tuple(columns))


@pytest.fixture
def config() -> Config:
    return Config(match=MatchConfig(duration_sec=10, max_rounds=2))


@pytest.fixture
def match(config) -> Match:
    return Match(config)


class TestLobby:
    """Tests for creating and joining."""

    def test_roles_and_phases(self, match):
        assert match.host.role == Role.HOST
        assert match.guest.role == Role.GUEST
        assert match.spectator.role == Role.SPECTATOR
        assert all(c.phase == Phase.ROOM_WAIT for c in match.clients)

    def test_join_missing_room(self, match):
        """Test joining an unknown room fails with a notice."""
        stranger = match.client("stranger")
        notices = []
        stranger.set_callbacks(on_notice=notices.append)
        assert stranger.join_room("ZZZZZ") is None
        assert notices == ["Room ZZZZZ not found"]
        assert stranger.phase == Phase.LOBBY

    def test_guest_cannot_start(self, match):
        """Test a non-host start request is refused without a write."""
        assert not match.guest.start_match()
        assert match.guest.notices
        assert match.room().status == RoomStatus.ROOM_WAIT

    def test_start_requires_guest(self, config):
        clock = ManualClock(START)
        host = MatchClient(InMemoryDocumentStore(clock), "host", config, clock)
        host.create_room()
        host.pump()
        assert not host.start_match()
        assert host.notices == ["Waiting for an opponent to join"]


class TestCountdown:
    """Tests for the countdown and the deal."""

    def test_countdown_then_playing(self, match):
        """Test 3-2-1-GO then play, with boards dealt to players only."""
        steps = []
        match.guest.set_callbacks(on_countdown=steps.append)
        assert match.host.start_match()
        match.pump()
        assert all(c.phase == Phase.COUNT_DOWN for c in match.clients)
        assert not match.host.session.has_board()

        match.run(3_400)
        assert steps == [3, 2, 1, 0]
        assert match.guest.phase == Phase.COUNT_DOWN

        match.run(100)
        assert all(c.phase == Phase.PLAYING for c in match.clients)
        assert match.host.session.board.card_count() == 52
        assert match.guest.session.board.card_count() == 52
        assert not match.spectator.session.has_board()
        assert match.room().status == RoomStatus.PLAYING

    def test_redelivered_snapshot_ignored(self, match):
        """Test a duplicate count_down snapshot does not restart the countdown."""
        match.start()
        board = match.guest.session.board
        match.guest.mailbox.append(match.store.get(f"room_{match.room_id}") | {"status": "count_down"})
        match.guest.pump()
        assert match.guest.phase == Phase.PLAYING
        assert match.guest.session.board is board

    def test_countdown_stops_at_zero(self, match):
        """Test the countdown emits each step once and then stops."""
        steps = []
        match.host.set_callbacks(on_countdown=steps.append)
        match.start()
        match.run(3_000)
        assert steps == [3, 2, 1, 0]
        assert match.host.scheduler.pending("countdown") == 0

    def test_go_delay_longer_than_interval(self, config):
        """Test a long go delay still ends in play."""
        config.match.go_delay_ms = 1_500
        match = Match(config)
        steps = []
        match.host.set_callbacks(on_countdown=steps.append)
        assert match.host.start_match()
        match.pump()

        match.run(4_400)
        assert match.host.phase == Phase.COUNT_DOWN
        match.run(100)
        assert all(c.phase == Phase.PLAYING for c in match.clients)
        assert steps == [3, 2, 1, 0]


class TestPlaying:
    """Tests for moves, scores and attacks during a round."""

    def test_spectator_clicks_ignored(self, match):
        match.start()
        assert match.spectator.click_stock().kind == MoveKind.NONE
        assert match.spectator.click_card(PileKind.TABLEAU, 0).kind == MoveKind.NONE

    def test_score_published(self, match):
        """Test a scoring move is written to the player's own fields."""
        match.start()
        match.guest.session.board = two_ace_board()
        match.guest.click_card(PileKind.TABLEAU, 0)
        match.pump()
        room = match.room()
        assert (room.guest_score, room.guest_charge) == (100, 1)
        assert room.host_score == 0
        assert match.spectator.room.guest_score == 100

    def test_attack_freezes_one_column(self, match):
        """Test two quick placements freeze exactly one opponent column for 5 s."""
        received = []
        match.guest.set_callbacks(on_attack=received.append)
        match.start()
        match.host.session.board = two_ace_board()

        match.host.click_card(PileKind.TABLEAU, 0)
        outcome = match.host.click_card(PileKind.TABLEAU, 1)
        assert outcome.attack
        match.pump()

        room = match.room()
        assert (room.host_score, room.host_charge) == (220, 0)
        assert len(room.attacks) == 1
        assert room.attacks[0].target == "guest"

        frozen = match.guest.session.freezes.frozen
        assert len(frozen) == 1
        assert list(frozen.values()) == [match.clock.now() + 5_000]
        assert received == list(frozen)
        assert match.host.session.freezes.frozen == {}

        # Re-delivery does not freeze again
        match.guest.mailbox.append(match.store.get(f"room_{match.room_id}"))
        match.guest.pump()
        assert len(received) == 1

        match.run(4_900)
        assert len(match.guest.session.freezes.frozen) == 1
        match.run(100)
        assert match.guest.session.freezes.frozen == {}


class TestRounds:
    """Tests for round resolution and the end of the match."""

    def test_full_match(self, match):
        """Test two rounds resolve into totals and a winner."""
        phases = []
        match.spectator.set_callbacks(on_phase=lambda phase, room: phases.append(phase))
        match.start()
        match.host.session.board = two_ace_board()
        match.host.click_card(PileKind.TABLEAU, 0)
        match.host.click_card(PileKind.TABLEAU, 1)
        match.pump()

        match.run(7_000)
        assert all(c.phase == Phase.INTERMISSION for c in match.clients)
        room = match.room()
        assert (room.host_total_score, room.guest_total_score) == (220, 0)
        assert (room.host_score, room.guest_score) == (0, 0)
        assert match.guest.round_scores == {Role.HOST: 220, Role.GUEST: 0}
        assert match.guest.click_stock().kind == MoveKind.NONE

        assert not match.guest.next_round()
        assert match.host.next_round()
        match.pump()
        assert all(c.phase == Phase.COUNT_DOWN for c in match.clients)
        assert match.room().current_round == 2

        match.run(3_500)
        assert all(c.phase == Phase.PLAYING for c in match.clients)
        assert match.host.session.score == 0

        match.run(7_000)
        assert all(c.phase == Phase.FINISHED for c in match.clients)
        room = match.room()
        assert room.status == RoomStatus.FINISHED
        assert room.winner == "host"
        assert room.host_total_score == 220
        assert phases == [
            Phase.COUNT_DOWN,
            Phase.PLAYING,
            Phase.INTERMISSION,
            Phase.COUNT_DOWN,
            Phase.PLAYING,
            Phase.FINISHED,
        ]

    def test_round_resolves_once(self, match):
        """Test the timer and a concession do not both resolve the round."""
        match.start()
        match.run(7_000)
        assert match.host.phase == Phase.INTERMISSION
        assert not match.host.concede()
        assert match.room().status == RoomStatus.INTERMISSION

    def test_host_concede(self, match):
        """Test the host's concession ends the round immediately."""
        match.start()
        assert match.host.concede()
        match.pump()
        assert all(c.phase == Phase.INTERMISSION for c in match.clients)

    def test_guest_concede(self, match):
        """Test the guest's concession is refused with a notice."""
        match.start()
        assert not match.guest.concede()
        assert match.guest.notices == ["Only the host can end the round"]
        match.pump()
        assert match.room().status == RoomStatus.PLAYING

    def test_spectator_concede(self, match):
        match.start()
        assert not match.spectator.concede()
        assert match.spectator.notices == ["Spectators cannot concede"]


class TestResilience:
    """Tests for mailbox bounds, store failures and rejoining."""

    def test_mailbox_drops_oldest(self, config):
        """Test a full mailbox keeps the newest snapshots."""
        config.match.mailbox_size = 2
        match = Match(config)
        client = match.guest
        for status in ("count_down", "playing", "intermission"):
            client._enqueue({**match.store.get(f"room_{match.room_id}"), "status": status})
        assert client.dropped_snapshots == 1
        assert [doc["status"] for doc in client.mailbox] == ["playing", "intermission"]

    def test_store_failure_is_a_notice(self, match):
        """Test a failed write is reported and local state kept."""
        match.store.failing = True
        assert not match.host.start_match()
        assert match.host.notices == ["Could not start match, please retry"]
        assert match.host.phase == Phase.ROOM_WAIT

        match.store.failing = False
        assert match.host.start_match()

    def test_rejoin_mid_round(self, match):
        """Test a reconnecting player resumes play with its published score."""
        match.start()
        match.guest.session.board = two_ace_board()
        match.guest.click_card(PileKind.TABLEAU, 0)
        match.pump()

        again = match.client("guest")
        assert again.join_room(match.room_id) == Role.GUEST
        again.pump()
        assert again.phase == Phase.PLAYING
        assert again.session.has_board()
        assert again.session.score == 100
        assert match.room().spectators == ["spectator"]

    def test_failed_resolution_not_retried(self, match):
        """Test a failed time-up write is reported once and left to the host."""
        match.start()
        match.store.failing = True
        match.run(7_000)
        match.run(5_000)
        assert match.host.notices == ["Could not resolve round, please retry"]
        assert match.host.phase == Phase.PLAYING
        assert match.host.scheduler.pending("round_timer") == 0

        match.store.failing = False
        assert match.host.concede()
        match.pump()
        assert match.room().status == RoomStatus.INTERMISSION

    def test_rejoin_skips_expired_attacks(self, match):
        """Test a reconnecting player is not frozen by attacks that already ended."""
        match.start()
        match.host.session.board = two_ace_board()
        match.host.click_card(PileKind.TABLEAU, 0)
        match.host.click_card(PileKind.TABLEAU, 1)
        match.pump()
        assert len(match.guest.session.freezes.frozen) == 1

        match.run(6_000)
        assert match.guest.session.freezes.frozen == {}

        again = match.client("guest")
        received = []
        again.set_callbacks(on_attack=received.append)
        assert again.join_room(match.room_id) == Role.GUEST
        again.pump()
        assert again.phase == Phase.PLAYING
        assert again.session.freezes.frozen == {}
        assert received == []
