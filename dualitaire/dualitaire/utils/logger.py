"""Logging utilities and match state display."""

import logging
import sys
from typing import TYPE_CHECKING

from dualitaire.logging.formatters import format_board
from dualitaire.models.room import DRAW

if TYPE_CHECKING:
    from dualitaire.models.board import Board
    from dualitaire.models.room import Room


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stdout,
    )


class MatchDisplay:
    """Display match state to stdout."""

    def __init__(self, show_board: bool = False):
        """Initialize display.

        Args:
            show_board: Whether to print each player's board at round end
        """
        self.show_board = show_board

    def print_separator(self) -> None:
        """Print a separator line."""
        print("=" * 60)

    def print_room_created(self, room_id: str, host: str) -> None:
        """Print room creation message."""
        print(f"Room {room_id} created by {host}")

    def print_joined(self, identity: str, role: str) -> None:
        """Print join message."""
        print(f"  {identity} joined as {role}")

    def print_countdown(self, identity: str, step: int) -> None:
        """Print a countdown step (0 means GO)."""
        label = str(step) if step > 0 else "GO!"
        print(f"  [{identity}] {label}")

    def print_round_start(self, round_num: int, max_rounds: int) -> None:
        """Print round start message."""
        self.print_separator()
        print(f"ROUND {round_num}/{max_rounds}")
        self.print_separator()

    def print_attack(self, identity: str, column: int | None) -> None:
        """Print a received freeze."""
        if column is None:
            print(f"  [{identity}] freeze dropped (no column to freeze)")
        else:
            print(f"  [{identity}] column {column} frozen!")

    def print_board(self, identity: str, board: "Board", frozen: set[int] | None = None) -> None:
        """Print a player's board (if show_board is enabled)."""
        if not self.show_board:
            return
        print(f"\n{identity}:")
        print(format_board(board, frozen))

    def print_round_end(self, room: "Room", host_score: int, guest_score: int) -> None:
        """Print round end results.

        Args:
            room: Room snapshot after the round was resolved
            host_score: Host's score for the round
            guest_score: Guest's score for the round
        """
        guest = room.guest or "-"
        print(f"\nRound {room.current_round} finished!")
        print(f"  {room.host}: {host_score} (total {room.host_total_score})")
        print(f"  {guest}: {guest_score} (total {room.guest_total_score})")

    def print_final_results(self, room: "Room") -> None:
        """Print final match results."""
        self.print_separator()
        print("FINAL RESULTS")
        self.print_separator()

        totals = [(room.host, room.host_total_score)]
        if room.guest is not None:
            totals.append((room.guest, room.guest_total_score))
        for rank, (identity, total) in enumerate(sorted(totals, key=lambda x: x[1], reverse=True), 1):
            print(f"  #{rank}: {identity} - {total} points")

        if room.winner is None:
            return
        if room.winner == DRAW:
            print("  Result: DRAW")
        else:
            print(f"  Winner: {room.winner}")
