"""One player's local game: board, selection, scoring and frozen columns."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum

from dualitaire.config import Config
from dualitaire.models.board import Board, CardRef, PileKind
from dualitaire.models.card import build_deck

from . import rules
from .disruption import FreezeTracker
from .scoring import ScoreEvent, ScoreKeeper

logger = logging.getLogger(__name__)


class MoveKind(str, Enum):
    """Kind of local action that changed the board."""

    NONE = "none"
    SELECT = "select"
    DESELECT = "deselect"
    DRAW = "draw"
    RECYCLE = "recycle"
    FOUNDATION = "foundation"
    TABLEAU = "tableau"


@dataclass
class MoveOutcome:
    """Result of one click on the board."""

    kind: MoveKind = MoveKind.NONE
    moved: bool = False
    events: list[ScoreEvent] = field(default_factory=list)

    @property
    def points(self) -> int:
        """Total points added by this click."""
        return sum(e.points for e in self.events)

    @property
    def attack(self) -> bool:
        """Whether an attack must be dispatched."""
        return any(e.attack for e in self.events)

    @property
    def scored(self) -> bool:
        """Whether the shared score/charge fields need publishing."""
        return bool(self.events)


class PlayerSession:
    """Local solitaire session for one participant.

    The selection and frozen columns are never persisted; only the score
    and charge leave this object (through the client's player channel).
    """

    def __init__(self, config: Config | None = None, rng: random.Random | None = None):
        self.config = config or Config()
        self.rng = rng or random.Random()
        self.board = Board()
        self.selection: CardRef | None = None
        self.scorer = ScoreKeeper(self.config.scoring)
        self.freezes = FreezeTracker(self.config.disruption.freeze_ms, self.rng)

    @property
    def score(self) -> int:
        return self.scorer.score

    @property
    def charge(self) -> int:
        return self.scorer.charge

    @property
    def combo(self) -> int:
        return self.scorer.combo

    def has_board(self) -> bool:
        """Check if a board has been dealt."""
        return not self.board.is_empty()

    def new_round(self) -> None:
        """Deal a fresh board and reset score, combo, charge and freezes."""
        self.board = rules.deal(build_deck(self.rng))
        self.selection = None
        self.scorer.reset()
        self.freezes.clear()
        logger.debug("Fresh board dealt")

    def clear_board(self) -> None:
        """Drop the board (count-down screen)."""
        self.board = Board()
        self.selection = None
        self.freezes.clear()

    def click_stock(self, now: int) -> MoveOutcome:
        """Draw from the stock, or recycle the waste."""
        self.selection = None
        result = rules.draw_from_stock(self.board)
        self.board = result.board
        if result.recycled:
            event = self.scorer.add(self.config.scoring.recycle_points)
            return MoveOutcome(kind=MoveKind.RECYCLE, moved=True, events=[event])
        if result.drawn:
            points = self.config.scoring.draw_points
            events = [self.scorer.add(points)] if points else []
            return MoveOutcome(kind=MoveKind.DRAW, moved=True, events=events)
        return MoveOutcome()

    def click_card(
        self,
        kind: PileKind,
        pile_index: int = 0,
        card_index: int | None = None,
        now: int = 0,
    ) -> MoveOutcome:
        """Handle a click on a pile or card.

        Args:
            kind: Pile clicked
            pile_index: Column / foundation index
            card_index: Card position in the pile (None for an empty pile or
                the pile's top card)
            now: Current time (ms)

        Returns:
            MoveOutcome
        """
        if kind == PileKind.STOCK:
            return self.click_stock(now)

        if not self.board.has_pile(kind, pile_index):
            return MoveOutcome()
        if kind == PileKind.TABLEAU and self.freezes.is_frozen(pile_index):
            return MoveOutcome()

        pile = self.board.pile(kind, pile_index)
        if card_index is None:
            card_index = len(pile) - 1
        ref = CardRef(kind=kind, pile_index=pile_index, card_index=card_index)
        card = self.board.card_at(ref)

        # Smart move: a top card goes straight to a foundation if possible
        if (
            card is not None
            and card.face_up
            and kind in (PileKind.WASTE, PileKind.TABLEAU)
            and rules.is_top_card(self.board, ref)
        ):
            target = rules.find_foundation(self.board, card)
            if target is not None:
                return self._execute(ref, PileKind.FOUNDATION, target, now)

        if self.selection is None:
            if card is None or not card.face_up:
                return MoveOutcome()
            if kind == PileKind.FOUNDATION or not rules.is_movable(self.board, ref):
                return MoveOutcome()
            self.selection = ref
            return MoveOutcome(kind=MoveKind.SELECT)

        source = self.selection
        source_card = self.board.card_at(source)
        if source_card is None or source_card.same_card(card):
            self.selection = None
            return MoveOutcome(kind=MoveKind.DESELECT)

        if kind in (PileKind.FOUNDATION, PileKind.TABLEAU) and rules.can_move(
            self.board, source, kind, pile_index
        ):
            return self._execute(source, kind, pile_index, now)

        self.selection = None
        return MoveOutcome(kind=MoveKind.DESELECT)

    def _execute(self, source: CardRef, dest_kind: PileKind, dest_index: int, now: int) -> MoveOutcome:
        """Execute a move and score it."""
        self.selection = None
        if source.kind == PileKind.TABLEAU and self.freezes.is_frozen(source.pile_index):
            return MoveOutcome(kind=MoveKind.DESELECT)
        if dest_kind == PileKind.TABLEAU and self.freezes.is_frozen(dest_index):
            return MoveOutcome(kind=MoveKind.DESELECT)

        result = rules.move_cards(self.board, source, dest_kind, dest_index)
        self.board = result.board

        events = []
        if result.flipped:
            events.append(self.scorer.add(self.config.scoring.flip_points))
        if dest_kind == PileKind.FOUNDATION:
            events.append(self.scorer.foundation_placement(now))
            kind = MoveKind.FOUNDATION
        else:
            kind = MoveKind.TABLEAU

        logger.debug(f"Moved {result.moved} to {dest_kind.value}[{dest_index}]")
        return MoveOutcome(kind=kind, moved=True, events=events)

    def receive_attack(self, now: int) -> int | None:
        """Apply a freeze to this board. Returns the frozen column."""
        if not self.has_board():
            return None
        return self.freezes.apply(self.board, now)
