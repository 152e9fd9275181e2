"""Game models."""

from .board import FOUNDATION_PILES, TABLEAU_COLUMNS, Board, CardRef, PileKind
from .card import Card, Color, Rank, Suit, build_deck, create_deck
from .room import DRAW, AttackEvent, Role, Room, RoomStatus

__all__ = [
    "Board",
    "Card",
    "CardRef",
    "Color",
    "PileKind",
    "Rank",
    "Suit",
    "build_deck",
    "create_deck",
    "FOUNDATION_PILES",
    "TABLEAU_COLUMNS",
    "AttackEvent",
    "DRAW",
    "Role",
    "Room",
    "RoomStatus",
]
