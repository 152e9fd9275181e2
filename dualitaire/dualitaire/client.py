"""Match client: one identity's view of a room, driven by store snapshots."""

import logging
import random
from collections import deque
from typing import Callable

from dualitaire.config import Config
from dualitaire.game.disruption import make_attack_event
from dualitaire.game.lifecycle import Phase, plan_transition, remaining_seconds, resolve_round
from dualitaire.game.session import MoveOutcome, PlayerSession
from dualitaire.logging.match_logger import MatchLogger
from dualitaire.models.board import PileKind
from dualitaire.models.room import Role, Room, RoomStatus
from dualitaire.sync.gateway import (
    HostAuthorityError,
    HostChannel,
    PlayerChannel,
    RoomGateway,
    RoomNotFoundError,
)
from dualitaire.sync.store import Document, DocumentStore, StoreError, Subscription
from dualitaire.utils.clock import Clock, Scheduler, SystemClock

logger = logging.getLogger(__name__)

# Timer tags
COUNTDOWN = "countdown"
ROUND_TIMER = "round_timer"
COMBO_TICK = "combo_tick"
UNFREEZE = "unfreeze"

PLAYERS = (Role.HOST, Role.GUEST)


class MatchClient:
    """Single-threaded reactive client for one identity.

    Store notifications only enqueue snapshots into a bounded mailbox;
    pump() reduces them one at a time and advance() fires due local
    timers. Neither ever runs a handler while another is in progress.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: str,
        config: Config | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        match_logger: MatchLogger | None = None,
    ):
        """Initialize client.

        Args:
            store: Shared document store
            identity: Stable identity of this client
            config: Configuration (defaults if None)
            clock: Time source (wall clock if None)
            rng: Random source for room ids, deals and freeze targets
            match_logger: JSONL match logger (disabled if None)
        """
        self.store = store
        self.identity = identity
        self.config = config or Config()
        self.clock = clock or SystemClock()
        self.rng = rng or random.Random()
        self.match_logger = match_logger or MatchLogger()

        self.gateway = RoomGateway(store, identity, self.rng)
        self.scheduler = Scheduler(self.clock)
        self.session = PlayerSession(self.config, self.rng)
        self.mailbox: deque[Document] = deque(maxlen=self.config.match.mailbox_size)
        self.dropped_snapshots = 0

        self.room_id: str | None = None
        self.room: Room | None = None
        self.role = Role.NONE
        self.phase = Phase.LOBBY
        self.seen_round: int | None = None
        self.countdown = 0
        self.time_left = self.config.match.duration_sec
        self.round_scores: dict[Role, int] = {Role.HOST: 0, Role.GUEST: 0}
        self.notices: list[str] = []

        self._subscription: Subscription | None = None
        self._totals_before: dict[Role, int] = {Role.HOST: 0, Role.GUEST: 0}
        self._resolved_round: int | None = None

        # Callbacks
        self.on_notice: Callable[[str], None] | None = None
        self.on_phase: Callable[[Phase, Room], None] | None = None
        self.on_countdown: Callable[[int], None] | None = None
        self.on_attack: Callable[[int | None], None] | None = None

    def set_callbacks(
        self,
        on_notice: Callable[[str], None] | None = None,
        on_phase: Callable[[Phase, Room], None] | None = None,
        on_countdown: Callable[[int], None] | None = None,
        on_attack: Callable[[int | None], None] | None = None,
    ) -> None:
        """Set callbacks for client events."""
        self.on_notice = on_notice
        self.on_phase = on_phase
        self.on_countdown = on_countdown
        self.on_attack = on_attack

    @property
    def is_participant(self) -> bool:
        """Check if this identity plays (host or guest)."""
        return self.role in PLAYERS

    @property
    def is_host(self) -> bool:
        return self.role == Role.HOST

    # --- Room management ---

    def create_room(self) -> str | None:
        """Create a room hosted by this identity and subscribe to it.

        Returns:
            Room id, or None if the store write failed
        """
        try:
            room_id = self.gateway.create_room()
        except StoreError as e:
            self._store_failed("create room", e)
            return None
        self._attach(room_id, Role.HOST)
        return room_id

    def join_room(self, room_id: str) -> Role | None:
        """Join a room as guest or spectator.

        Returns:
            Assigned role, or None if the join failed (a notice is issued)
        """
        room_id = room_id.strip().upper()
        try:
            role = self.gateway.join_room(room_id)
        except RoomNotFoundError:
            self._notice(f"Room {room_id} not found")
            return None
        except StoreError as e:
            self._store_failed("join room", e)
            return None
        self._attach(room_id, role)
        return role

    def close(self) -> None:
        """Stop listening and cancel every local timer."""
        if self._subscription:
            self._subscription.unsubscribe()
            self._subscription = None
        for tag in (COUNTDOWN, ROUND_TIMER, COMBO_TICK, UNFREEZE):
            self.scheduler.cancel_tag(tag)

    def _attach(self, room_id: str, role: Role) -> None:
        self.room_id = room_id
        self.role = role
        self.match_logger.log_session_start(room_id, self.identity, role.value)
        self._subscription = self.gateway.subscribe(room_id, self._enqueue)

    def _enqueue(self, doc: Document) -> None:
        """Store listener: keep the snapshot for pump()."""
        if len(self.mailbox) == self.mailbox.maxlen:
            self.dropped_snapshots += 1
            logger.debug(f"{self.identity}: mailbox full, dropping oldest snapshot")
        self.mailbox.append(doc)

    # --- Host-only actions ---

    def start_match(self) -> bool:
        """Start the match (host only, requires a guest).

        Returns:
            True if the count-down was written
        """
        channel = self._host_channel()
        if channel is None:
            return False
        if self.room.status != RoomStatus.ROOM_WAIT:
            self._notice("Match already started")
            return False
        try:
            started = channel.start_match(self.room)
        except StoreError as e:
            self._store_failed("start match", e)
            return False
        if not started:
            self._notice("Waiting for an opponent to join")
        return started

    def next_round(self) -> bool:
        """Start the next round from intermission (host only).

        Returns:
            True if the count-down was written
        """
        channel = self._host_channel()
        if channel is None:
            return False
        if self.room.status != RoomStatus.INTERMISSION:
            self._notice("Next round is only available during intermission")
            return False
        try:
            channel.next_round()
        except StoreError as e:
            self._store_failed("next round", e)
            return False
        return True

    def concede(self) -> bool:
        """Give up the current round.

        The host's request ends the round as if time ran out. The guest
        cannot end the round and only gets a notice.

        Returns:
            True if the round was resolved
        """
        if not self.is_participant:
            self._notice("Spectators cannot concede")
            return False
        if not self.is_host:
            self._notice("Only the host can end the round")
            return False
        if self.phase != Phase.PLAYING:
            return False
        return self._resolve_round()

    def _host_channel(self) -> HostChannel | None:
        if self.room_id is None or self.room is None:
            self._notice("Not in a room")
            return None
        try:
            return self.gateway.host_channel(self.room_id, self.room)
        except HostAuthorityError as e:
            self._notice(str(e))
            return None

    def _resolve_round(self) -> bool:
        """Compute totals from a fresh read and write the round result."""
        channel = self._host_channel()
        if channel is None:
            return False
        try:
            room = self.gateway.get_room(self.room_id) or self.room
            if room.status not in (RoomStatus.COUNT_DOWN, RoomStatus.PLAYING):
                return False
            if self._resolved_round == room.current_round:
                return False
            outcome = resolve_round(room, self.config.match.max_rounds)
            channel.finish_round(outcome.status, outcome.host_total, outcome.guest_total, outcome.winner)
        except StoreError as e:
            self._store_failed("resolve round", e)
            return False
        self._resolved_round = room.current_round
        logger.info(
            f"Round {outcome.round_number} resolved: "
            f"{outcome.host_total}-{outcome.guest_total} -> {outcome.status.value}"
        )
        return True

    # --- Player input ---

    def click_stock(self) -> MoveOutcome:
        """Draw from the stock (or recycle the waste)."""
        if not self._can_play():
            return MoveOutcome()
        outcome = self.session.click_stock(self.clock.now())
        self._after_move(outcome)
        return outcome

    def click_card(
        self,
        kind: PileKind,
        pile_index: int = 0,
        card_index: int | None = None,
    ) -> MoveOutcome:
        """Click a card or pile on the local board."""
        if not self._can_play():
            return MoveOutcome()
        outcome = self.session.click_card(kind, pile_index, card_index, self.clock.now())
        self._after_move(outcome)
        return outcome

    def _can_play(self) -> bool:
        if self.phase != Phase.PLAYING or not self.is_participant:
            return False
        if not self.session.has_board():
            return False
        return self._remaining() > 0

    def _after_move(self, outcome: MoveOutcome) -> None:
        """Publish score/charge and dispatch an attack if one was earned."""
        if not outcome.scored:
            return
        round_num = self.room.current_round if self.room else 0
        for event in outcome.events:
            self.match_logger.log_move(
                round_num, outcome.kind.value, event.points, event.score, event.combo, event.charge
            )

        channel = self._player_channel()
        if channel is None:
            return
        try:
            channel.publish_score(self.session.score, self.session.charge)
        except StoreError as e:
            self._store_failed("publish score", e)

        if outcome.attack:
            self._send_attack(channel, round_num)

    def _send_attack(self, channel: PlayerChannel, round_num: int) -> None:
        target = self.room.opponent_of(self.identity)
        if target is None:
            return
        event = make_attack_event(target, self.clock.now())
        try:
            channel.dispatch_attack(event)
        except StoreError as e:
            self._store_failed("send attack", e)
            return
        self.match_logger.log_attack_sent(round_num, event.id, target)

    def _player_channel(self) -> PlayerChannel | None:
        if self.room_id is None or self.room is None:
            return None
        return self.gateway.player_channel(self.room_id, self.room)

    # --- Event loop ---

    def pump(self) -> int:
        """Reduce every queued snapshot in arrival order.

        Returns:
            Number of snapshots processed
        """
        processed = 0
        while self.mailbox:
            doc = self.mailbox.popleft()
            self._reduce(Room.model_validate(doc))
            processed += 1
        return processed

    def advance(self) -> int:
        """Fire local timers that are due at the clock's current time.

        Returns:
            Number of callbacks fired
        """
        return self.scheduler.run_due()

    def _reduce(self, room: Room) -> None:
        self.room = room
        self.role = room.role_of(self.identity)

        if room.status in (RoomStatus.COUNT_DOWN, RoomStatus.PLAYING):
            self.round_scores = {role: room.score_of(role) for role in PLAYERS}

        next_phase = plan_transition(self.phase, room, self.seen_round)
        if next_phase is not None:
            self._enter(next_phase, room)

        if self.phase == Phase.PLAYING and self.is_participant:
            self._apply_attacks(room)

    def _enter(self, phase: Phase, room: Room) -> None:
        """Leave the current phase and enter phase."""
        previous = self.phase
        self._exit(previous)
        self.phase = phase
        logger.debug(f"{self.identity}: {previous.value} -> {phase.value}")

        if phase == Phase.COUNT_DOWN:
            self._start_countdown(room)
        elif phase == Phase.PLAYING:
            self._start_playing(room)
        elif phase in (Phase.INTERMISSION, Phase.FINISHED):
            self._round_over(room, previous)

        if self.on_phase:
            self.on_phase(phase, room)

    def _exit(self, phase: Phase) -> None:
        """Tear down the timers of phase."""
        if phase == Phase.COUNT_DOWN:
            self.scheduler.cancel_tag(COUNTDOWN)
        elif phase == Phase.PLAYING:
            self.scheduler.cancel_tag(ROUND_TIMER)
            self.scheduler.cancel_tag(COMBO_TICK)
            self.scheduler.cancel_tag(UNFREEZE)
            self.session.freezes.clear()
            self.session.selection = None

    # --- Count-down ---

    def _start_countdown(self, room: Room) -> None:
        cfg = self.config.match
        self.seen_round = room.current_round
        self._totals_before = {role: room.total_of(role) for role in PLAYERS}
        self.session.clear_board()
        self.countdown = cfg.countdown_steps
        self.time_left = cfg.duration_sec
        self._emit_countdown()
        self.scheduler.call_every(cfg.countdown_interval_ms, self._countdown_tick, tag=COUNTDOWN)

    def _countdown_tick(self) -> None:
        self.countdown -= 1
        self._emit_countdown()
        if self.countdown <= 0:
            self.scheduler.cancel_tag(COUNTDOWN)
            self.scheduler.call_later(self.config.match.go_delay_ms, self._countdown_done, tag=COUNTDOWN)

    def _countdown_done(self) -> None:
        if self.phase == Phase.COUNT_DOWN and self.room is not None:
            self._enter(Phase.PLAYING, self.room)

    def _emit_countdown(self) -> None:
        if self.on_countdown:
            self.on_countdown(self.countdown)

    # --- Playing ---

    def _start_playing(self, room: Room) -> None:
        cfg = self.config.match
        if self.seen_round != room.current_round:
            # Rejoined mid-round without seeing its count-down
            self.seen_round = room.current_round
            self._totals_before = {role: room.total_of(role) for role in PLAYERS}
            self.session.clear_board()

        if self.is_participant and not self.session.has_board():
            self.session.new_round()
            # Resume from the published fields after a rejoin
            self.session.scorer.score = room.score_of(self.role)
            self.session.scorer.charge = room.charge_of(self.role)
            self.match_logger.log_round_start(room.current_round, room.start_time, self.session.board)

        if self.is_host and room.status == RoomStatus.COUNT_DOWN:
            channel = self._host_channel()
            if channel is not None:
                try:
                    channel.mark_playing()
                except StoreError as e:
                    self._store_failed("mark playing", e)

        self.time_left = self._remaining()
        self.scheduler.call_every(cfg.timer_interval_ms, self._timer_tick, tag=ROUND_TIMER)
        self.scheduler.call_every(cfg.combo_tick_ms, self._combo_tick, tag=COMBO_TICK)

    def _remaining(self) -> int:
        start_time = self.room.start_time if self.room else None
        return remaining_seconds(self.config.match.duration_sec, start_time, self.clock.now())

    def _timer_tick(self) -> None:
        self.time_left = self._remaining()
        if self.time_left > 0:
            return
        self.scheduler.cancel_tag(ROUND_TIMER)
        if self.is_host:
            self._resolve_round()

    def _combo_tick(self) -> None:
        self.session.scorer.tick(self.clock.now())

    def _apply_attacks(self, room: Room) -> None:
        """Freeze a column for every new attack addressed to this identity."""
        now = self.clock.now()
        for event in self.session.freezes.pending_attacks(room, self.identity, room.start_time, now):
            column = self.session.receive_attack(now)
            self.match_logger.log_attack_received(room.current_round, event.id, column)
            if column is not None:
                logger.info(f"{self.identity}: column {column} frozen by attack {event.id}")
                self.scheduler.call_later(self.session.freezes.duration_ms, self._unfreeze, tag=UNFREEZE)
            if self.on_attack:
                self.on_attack(column)

    def _unfreeze(self) -> None:
        self.session.freezes.expire(self.clock.now())

    # --- Round end ---

    def _round_over(self, room: Room, previous: Phase) -> None:
        if previous in (Phase.COUNT_DOWN, Phase.PLAYING):
            self.round_scores = {
                Role.HOST: room.host_total_score - self._totals_before[Role.HOST],
                Role.GUEST: room.guest_total_score - self._totals_before[Role.GUEST],
            }
        self.time_left = 0
        self.match_logger.log_round_end(
            room.current_round,
            self.round_scores[Role.HOST],
            self.round_scores[Role.GUEST],
            room.host_total_score,
            room.guest_total_score,
        )
        if room.status == RoomStatus.FINISHED:
            self.match_logger.log_match_end(room.winner, room.host_total_score, room.guest_total_score)

    # --- Notices ---

    def _notice(self, message: str) -> None:
        self.notices.append(message)
        logger.info(f"{self.identity}: {message}")
        if self.on_notice:
            self.on_notice(message)

    def _store_failed(self, action: str, error: StoreError) -> None:
        logger.warning(f"{self.identity}: {action} failed: {error}")
        self._notice(f"Could not {action}, please retry")
