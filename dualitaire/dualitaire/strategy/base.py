"""Base strategy class for bot players.

Defines the interface that all bot strategies must implement.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from dualitaire.game.session import PlayerSession
from dualitaire.models.board import CardRef, PileKind


class ActionKind(str, Enum):
    """Kind of action a strategy may choose."""

    DRAW = "draw"
    MOVE = "move"
    WAIT = "wait"


@dataclass
class Action:
    """One bot decision.

    A MOVE carries the source card and the destination pile; DRAW clicks
    the stock; WAIT does nothing this turn.
    """

    kind: ActionKind
    source: CardRef | None = None
    dest_kind: PileKind | None = None
    dest_index: int = 0

    @classmethod
    def draw(cls) -> "Action":
        return cls(kind=ActionKind.DRAW)

    @classmethod
    def wait(cls) -> "Action":
        return cls(kind=ActionKind.WAIT)

    @classmethod
    def move(cls, source: CardRef, dest_kind: PileKind, dest_index: int) -> "Action":
        return cls(kind=ActionKind.MOVE, source=source, dest_kind=dest_kind, dest_index=dest_index)


class Strategy(ABC):
    """Abstract base class for bot strategies.

    All bot implementations must inherit from this class
    and implement choose_action.
    """

    name: str = "strategy"

    @abstractmethod
    def choose_action(self, session: PlayerSession) -> Action:
        """Choose the next action for the local board.

        Args:
            session: Player session (board, frozen columns)

        Returns:
            Action to perform
        """
        pass
