"""Greedy strategy implementation.

Strategy:
- Send any playable top card (waste first, then tableau) to a foundation
- Move a tableau run when it turns up a face-down card
- Put the waste card on the tableau (a King only onto an empty column)
- Otherwise draw from the stock, recycling the waste when it runs out
"""

from dualitaire.game import rules
from dualitaire.game.session import PlayerSession
from dualitaire.models.board import Board, CardRef, PileKind
from dualitaire.strategy.base import Action, Strategy


class GreedyStrategy(Strategy):
    """Take the first productive move in a fixed priority order."""

    name = "greedy"

    def choose_action(self, session: PlayerSession) -> Action:
        board = session.board
        if board.is_empty():
            return Action.wait()
        frozen = session.freezes.is_frozen

        action = self._foundation_move(board, frozen)
        if action is None:
            action = self._exposing_move(board, frozen)
        if action is None:
            action = self._waste_to_tableau(board, frozen)
        if action is not None:
            return action

        if board.stock or board.waste:
            return Action.draw()
        return Action.wait()

    def _foundation_move(self, board: Board, frozen) -> Action | None:
        """Any top card that fits a foundation."""
        sources = []
        if board.waste:
            sources.append(CardRef(kind=PileKind.WASTE, pile_index=0, card_index=len(board.waste) - 1))
        for col, cards in enumerate(board.tableau):
            if cards and not frozen(col):
                sources.append(CardRef(kind=PileKind.TABLEAU, pile_index=col, card_index=len(cards) - 1))

        for ref in sources:
            card = board.card_at(ref)
            if card is None or not card.face_up:
                continue
            target = rules.find_foundation(board, card)
            if target is not None:
                return Action.move(ref, PileKind.FOUNDATION, target)
        return None

    def _exposing_move(self, board: Board, frozen) -> Action | None:
        """A face-up run moved off a face-down card."""
        for col, cards in enumerate(board.tableau):
            if not cards or frozen(col):
                continue
            start = next((i for i, c in enumerate(cards) if c.face_up), None)
            if not start:
                # No face-up card, or the run already sits on the table
                continue
            ref = CardRef(kind=PileKind.TABLEAU, pile_index=col, card_index=start)
            dest = self._tableau_target(board, ref, frozen)
            if dest is not None:
                return Action.move(ref, PileKind.TABLEAU, dest)
        return None

    def _waste_to_tableau(self, board: Board, frozen) -> Action | None:
        if not board.waste:
            return None
        ref = CardRef(kind=PileKind.WASTE, pile_index=0, card_index=len(board.waste) - 1)
        dest = self._tableau_target(board, ref, frozen)
        if dest is None:
            return None
        return Action.move(ref, PileKind.TABLEAU, dest)

    def _tableau_target(self, board: Board, ref: CardRef, frozen) -> int | None:
        """First unfrozen column the card at ref can legally move to."""
        for col in range(len(board.tableau)):
            if frozen(col):
                continue
            if rules.can_move(board, ref, PileKind.TABLEAU, col):
                return col
        return None
