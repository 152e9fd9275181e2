"""Card model and deck construction."""

import random
from enum import Enum, IntEnum

from pydantic import BaseModel


class Suit(IntEnum):
    """Card suit (also the canonical deck order)."""

    SPADE = 0
    HEART = 1
    DIAMOND = 2
    CLUB = 3


class Rank(IntEnum):
    """Card rank. Value is the card's ordinal (A=1 ... K=13)."""

    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13


class Color(str, Enum):
    """Card color, fixed per suit pair."""

    BLACK = "black"
    RED = "red"


RANK_NAMES = {
    Rank.ACE: "A",
    Rank.TWO: "2",
    Rank.THREE: "3",
    Rank.FOUR: "4",
    Rank.FIVE: "5",
    Rank.SIX: "6",
    Rank.SEVEN: "7",
    Rank.EIGHT: "8",
    Rank.NINE: "9",
    Rank.TEN: "10",
    Rank.JACK: "J",
    Rank.QUEEN: "Q",
    Rank.KING: "K",
}

SUIT_SYMBOLS = {
    Suit.SPADE: "♠",
    Suit.HEART: "♥",
    Suit.DIAMOND: "♦",
    Suit.CLUB: "♣",
}

SUIT_COLORS = {
    Suit.SPADE: Color.BLACK,
    Suit.HEART: Color.RED,
    Suit.DIAMOND: Color.RED,
    Suit.CLUB: Color.BLACK,
}

DECK_SIZE = 52


class Card(BaseModel, frozen=True):
    """Single playing card.

    Cards are immutable; turning a card over produces a new record.
    """

    suit: Suit
    rank: Rank
    face_up: bool = False

    @property
    def value(self) -> int:
        """Ordinal value (A=1 ... K=13)."""
        return int(self.rank)

    @property
    def color(self) -> Color:
        """Card color."""
        return SUIT_COLORS[self.suit]

    @property
    def card_id(self) -> str:
        """Identity of the card, independent of its face_up flag."""
        return f"{self.suit.name}-{RANK_NAMES[self.rank]}"

    def same_card(self, other: "Card | None") -> bool:
        """Check if other is the same physical card."""
        return other is not None and self.suit == other.suit and self.rank == other.rank

    def flipped(self, face_up: bool = True) -> "Card":
        """Return a copy of this card with the given face_up flag."""
        if self.face_up == face_up:
            return self
        return self.model_copy(update={"face_up": face_up})

    def __str__(self) -> str:
        return f"{SUIT_SYMBOLS[self.suit]}{RANK_NAMES[self.rank]}"

    def __repr__(self) -> str:
        return str(self)


def create_deck() -> list[Card]:
    """Create the 52 cards in canonical (suit, rank) order, face down."""
    return [Card(suit=suit, rank=rank) for suit in Suit for rank in Rank]


def build_deck(rng: random.Random | None = None) -> list[Card]:
    """Create a shuffled 52-card deck, all face down.

    Args:
        rng: Random source. Uses the module-level generator if not provided.

    Returns:
        A uniformly random permutation of the full deck.
    """
    deck = create_deck()
    # Fisher-Yates, in place
    (rng or random).shuffle(deck)
    return deck
