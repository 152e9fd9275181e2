"""Board (piles) and selection models."""

from enum import Enum

from pydantic import BaseModel

from .card import Card

TABLEAU_COLUMNS = 7
FOUNDATION_PILES = 4

Pile = tuple[Card, ...]


class PileKind(str, Enum):
    """Kind of pile on a player's board."""

    STOCK = "stock"
    WASTE = "waste"
    TABLEAU = "tableau"
    FOUNDATION = "foundation"


class CardRef(BaseModel, frozen=True):
    """Reference to a card position on the board (an armed selection)."""

    kind: PileKind
    pile_index: int = 0
    card_index: int = 0


class Board(BaseModel, frozen=True):
    """One player's piles.

    The board is immutable: every rule operation returns a new Board.
    stock[0] is the next card drawn; the last element of every other pile is
    its top card.
    """

    stock: Pile = ()
    waste: Pile = ()
    tableau: tuple[Pile, ...] = ((),) * TABLEAU_COLUMNS
    foundation: tuple[Pile, ...] = ((),) * FOUNDATION_PILES

    def has_pile(self, kind: PileKind, index: int = 0) -> bool:
        """Check if index names an existing pile of kind."""
        if kind == PileKind.TABLEAU:
            return 0 <= index < len(self.tableau)
        if kind == PileKind.FOUNDATION:
            return 0 <= index < len(self.foundation)
        return True

    def pile(self, kind: PileKind, index: int = 0) -> Pile:
        """Get a pile by kind and index."""
        if kind == PileKind.STOCK:
            return self.stock
        if kind == PileKind.WASTE:
            return self.waste
        if kind == PileKind.TABLEAU:
            return self.tableau[index]
        return self.foundation[index]

    def top(self, kind: PileKind, index: int = 0) -> Card | None:
        """Get the top card of a pile, or None if empty."""
        cards = self.pile(kind, index)
        if kind == PileKind.STOCK:
            return cards[0] if cards else None
        return cards[-1] if cards else None

    def card_at(self, ref: CardRef) -> Card | None:
        """Get the card a reference points at, or None if out of range."""
        if not self.has_pile(ref.kind, ref.pile_index):
            return None
        cards = self.pile(ref.kind, ref.pile_index)
        if not 0 <= ref.card_index < len(cards):
            return None
        return cards[ref.card_index]

    def replace(self, kind: PileKind, index: int, cards: Pile) -> "Board":
        """Return a new board with one pile replaced."""
        if kind == PileKind.STOCK:
            return self.model_copy(update={"stock": tuple(cards)})
        if kind == PileKind.WASTE:
            return self.model_copy(update={"waste": tuple(cards)})
        field = "tableau" if kind == PileKind.TABLEAU else "foundation"
        piles = list(getattr(self, field))
        piles[index] = tuple(cards)
        return self.model_copy(update={field: tuple(piles)})

    def all_cards(self) -> list[Card]:
        """Every card on the board, in no particular order."""
        cards = list(self.stock) + list(self.waste)
        for column in self.tableau:
            cards.extend(column)
        for pile in self.foundation:
            cards.extend(pile)
        return cards

    def card_count(self) -> int:
        """Number of cards on the board."""
        return len(self.all_cards())

    def is_empty(self) -> bool:
        """Check if no cards have been dealt."""
        return self.card_count() == 0

    def foundation_count(self) -> int:
        """Number of cards already built on the foundations."""
        return sum(len(pile) for pile in self.foundation)

    def non_empty_columns(self) -> list[int]:
        """Indices of tableau columns holding at least one card."""
        return [i for i, column in enumerate(self.tableau) if column]
