"""Main entry point: run a headless simulated match between two bots."""

import argparse
import logging
import random
import sys
from pathlib import Path

from dualitaire.client import MatchClient
from dualitaire.config import Config, load_config
from dualitaire.game.lifecycle import Phase
from dualitaire.logging import MatchLogConfig, MatchLogger
from dualitaire.models.board import PileKind
from dualitaire.models.room import Role, Room
from dualitaire.strategy import Action, ActionKind, GreedyStrategy, Strategy
from dualitaire.sync.store import InMemoryDocumentStore
from dualitaire.utils.clock import ManualClock
from dualitaire.utils.logger import MatchDisplay, setup_logging

logger = logging.getLogger(__name__)

# Simulation cadence
TICK_MS = 100
BOT_THINK_MS = (400, 1200)
INTERMISSION_MS = 3000


def perform_action(client: MatchClient, action: Action) -> None:
    """Translate a bot action into board clicks."""
    if action.kind == ActionKind.DRAW:
        client.click_stock()
        return
    if action.kind != ActionKind.MOVE or action.source is None:
        return

    source = action.source
    if action.dest_kind == PileKind.FOUNDATION:
        # A top card goes to its foundation on a single click
        client.click_card(source.kind, source.pile_index, source.card_index)
        return
    client.click_card(source.kind, source.pile_index, source.card_index)
    client.click_card(PileKind.TABLEAU, action.dest_index)


class Bot:
    """A match client driven by a strategy on its own think cadence."""

    def __init__(self, client: MatchClient, strategy: Strategy, rng: random.Random):
        self.client = client
        self.strategy = strategy
        self.rng = rng
        self.next_action_at = 0

    def step(self, now: int) -> None:
        """Act once if the think delay has elapsed."""
        if self.client.phase != Phase.PLAYING or now < self.next_action_at:
            return
        perform_action(self.client, self.strategy.choose_action(self.client.session))
        self.next_action_at = now + self.rng.randint(*BOT_THINK_MS)


def run_match(
    config: Config,
    seed: int | None = None,
    num_spectators: int = 0,
    display: MatchDisplay | None = None,
    match_logger: MatchLogger | None = None,
) -> Room | None:
    """Run one complete simulated match.

    Args:
        config: Configuration
        seed: Random seed (None for a random match)
        num_spectators: Extra clients joining after the guest
        display: Console display (silent if None)
        match_logger: JSONL match log for the host's view

    Returns:
        Final room document, or None if the match could not be set up
    """
    rng = random.Random(seed)
    clock = ManualClock()
    store = InMemoryDocumentStore(clock)

    host = MatchClient(store, "host", config, clock, random.Random(rng.random()), match_logger)
    guest = MatchClient(store, "guest", config, clock, random.Random(rng.random()))
    spectators = [
        MatchClient(store, f"spectator{i + 1}", config, clock, random.Random(rng.random()))
        for i in range(num_spectators)
    ]
    clients = [host, guest, *spectators]
    bots = [
        Bot(host, GreedyStrategy(), random.Random(rng.random())),
        Bot(guest, GreedyStrategy(), random.Random(rng.random())),
    ]

    def pump_all() -> None:
        for client in clients:
            client.pump()

    room_id = host.create_room()
    if room_id is None:
        return None
    if display:
        display.print_room_created(room_id, host.identity)
    for client in clients[1:]:
        role = client.join_room(room_id)
        if role is None:
            return None
        if display:
            display.print_joined(client.identity, role.value)
    pump_all()

    if display:
        def on_phase(phase: Phase, room: Room) -> None:
            if phase == Phase.COUNT_DOWN:
                display.print_round_start(room.current_round, config.match.max_rounds)
            elif phase in (Phase.INTERMISSION, Phase.FINISHED):
                for client in (host, guest):
                    display.print_board(client.identity, client.session.board)
                display.print_round_end(
                    room, host.round_scores[Role.HOST], host.round_scores[Role.GUEST]
                )

        def on_attack(client: MatchClient):
            return lambda column: display.print_attack(client.identity, column)

        host.set_callbacks(
            on_phase=on_phase,
            on_countdown=lambda step: display.print_countdown(host.identity, step),
            on_attack=on_attack(host),
        )
        guest.set_callbacks(on_attack=on_attack(guest))

    if not host.start_match():
        return None

    intermission_until: int | None = None
    while host.phase != Phase.FINISHED:
        pump_all()
        now = clock.advance(TICK_MS)
        for client in clients:
            client.advance()
        pump_all()
        for bot in bots:
            bot.step(now)

        if host.phase == Phase.INTERMISSION:
            if intermission_until is None:
                intermission_until = now + INTERMISSION_MS
            elif now >= intermission_until:
                intermission_until = None
                host.next_round()
    pump_all()

    for client in clients:
        client.close()

    room = host.room
    if display and room is not None:
        display.print_final_results(room)
    return room


def main() -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success)
    """
    parser = argparse.ArgumentParser(
        description="Dualitaire head-to-head solitaire match simulator"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        help="Path to config file (YAML)",
    )
    parser.add_argument(
        "-s",
        "--seed",
        type=int,
        help="Random seed for a reproducible match",
    )
    parser.add_argument(
        "-r",
        "--rounds",
        type=int,
        help="Number of rounds (overrides config)",
    )
    parser.add_argument(
        "-d",
        "--duration",
        type=int,
        help="Round duration in seconds (overrides config)",
    )
    parser.add_argument(
        "--spectators",
        type=int,
        default=0,
        help="Number of spectator clients",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--show-board",
        action="store_true",
        help="Show both boards at the end of each round",
    )
    parser.add_argument(
        "--match-log",
        type=Path,
        help="Path of the JSONL match log (overrides config)",
    )

    args = parser.parse_args()

    # Load config
    config = load_config(args.config)

    # Apply command-line overrides
    if args.rounds:
        config.match.max_rounds = args.rounds
    if args.duration:
        config.match.duration_sec = args.duration
    if args.verbose:
        config.logging.level = "DEBUG"
    if args.show_board:
        config.logging.show_board = True
    if args.match_log:
        config.match_log = MatchLogConfig(enabled=True, output_path=str(args.match_log))

    # Setup logging
    setup_logging(config.logging.level)

    display = MatchDisplay(show_board=config.logging.show_board)

    print("Dualitaire match starting...")
    print(f"Rounds: {config.match.max_rounds}")
    print(f"Round duration: {config.match.duration_sec}s")
    if config.match_log.enabled:
        print(f"Match log: {config.match_log.output_path}")
    print()

    try:
        with MatchLogger(config.match_log) as match_logger:
            room = run_match(
                config,
                seed=args.seed,
                num_spectators=args.spectators,
                display=display,
                match_logger=match_logger,
            )
        if room is None:
            print("Match could not be set up")
            return 1
        return 0

    except KeyboardInterrupt:
        print("\nMatch interrupted by user")
        return 1
    except Exception as e:
        logger.exception(f"Match error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
