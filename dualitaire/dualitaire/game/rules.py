"""Solitaire move legality and move execution.

All functions are pure: they take a Board and return a new one.
"""

from dataclasses import dataclass
from typing import Sequence

from dualitaire.models.board import (
    FOUNDATION_PILES,
    TABLEAU_COLUMNS,
    Board,
    CardRef,
    PileKind,
)
from dualitaire.models.card import DECK_SIZE, Card, Rank

STOCK_SIZE = DECK_SIZE - TABLEAU_COLUMNS * (TABLEAU_COLUMNS + 1) // 2


@dataclass
class DrawResult:
    """Result of clicking the stock."""

    board: Board
    drawn: bool = False
    recycled: bool = False


@dataclass
class MoveResult:
    """Result of executing a card move."""

    board: Board
    moved: list[Card]
    flipped: bool = False  # Source column's new top was turned face up


def deal(deck: Sequence[Card]) -> Board:
    """Deal a fresh board from a 52-card deck.

    Column i receives i+1 cards, only the last one face up.
    The remaining 24 cards become the stock, face down.

    Args:
        deck: Shuffled deck (see build_deck)

    Returns:
        New Board
    """
    if len(deck) != DECK_SIZE:
        raise ValueError(f"Expected {DECK_SIZE} cards, got {len(deck)}")

    idx = 0
    tableau = []
    for column in range(TABLEAU_COLUMNS):
        cards = []
        for row in range(column + 1):
            cards.append(deck[idx].flipped(row == column))
            idx += 1
        tableau.append(tuple(cards))

    stock = tuple(card.flipped(False) for card in deck[idx:])
    return Board(
        stock=stock,
        waste=(),
        tableau=tuple(tableau),
        foundation=((),) * FOUNDATION_PILES,
    )


def draw_from_stock(board: Board) -> DrawResult:
    """Draw the top stock card to the waste, or recycle the waste.

    - Stock non-empty: its top card goes face up onto the waste.
    - Stock empty, waste non-empty: the waste returns to the stock face down
      in the same relative order (the caller applies the recycle penalty).
    - Both empty: no-op.
    """
    if board.stock:
        card = board.stock[0]
        new_board = board.model_copy(update={
            "stock": board.stock[1:],
            "waste": board.waste + (card.flipped(True),),
        })
        return DrawResult(board=new_board, drawn=True)

    if board.waste:
        new_board = board.model_copy(update={
            "stock": tuple(card.flipped(False) for card in board.waste),
            "waste": (),
        })
        return DrawResult(board=new_board, recycled=True)

    return DrawResult(board=board)


def is_foundation_move(board: Board, card: Card, foundation_index: int) -> bool:
    """Check if card may be placed on the given foundation."""
    if not 0 <= foundation_index < FOUNDATION_PILES:
        return False
    top = board.top(PileKind.FOUNDATION, foundation_index)
    if top is None:
        return card.rank == Rank.ACE
    return card.suit == top.suit and card.value == top.value + 1


def is_tableau_move(board: Board, card: Card, column_index: int) -> bool:
    """Check if card may be placed on the given tableau column."""
    if not 0 <= column_index < TABLEAU_COLUMNS:
        return False
    top = board.top(PileKind.TABLEAU, column_index)
    if top is None:
        return card.rank == Rank.KING
    return card.color != top.color and card.value == top.value - 1


def find_foundation(board: Board, card: Card) -> int | None:
    """Find the first foundation (in index order) accepting card."""
    for idx in range(FOUNDATION_PILES):
        if is_foundation_move(board, card, idx):
            return idx
    return None


def is_top_card(board: Board, ref: CardRef) -> bool:
    """Check if ref points at the top card of its pile."""
    cards = board.pile(ref.kind, ref.pile_index)
    return len(cards) > 0 and ref.card_index == len(cards) - 1


def is_movable(board: Board, ref: CardRef) -> bool:
    """Check if ref points at a face-up card that may start a move."""
    card = board.card_at(ref)
    if card is None or not card.face_up:
        return False
    if ref.kind == PileKind.TABLEAU:
        # The whole run above the card must be face up
        column = board.tableau[ref.pile_index]
        return all(c.face_up for c in column[ref.card_index:])
    # Waste and foundation sources only ever offer their top card
    return ref.kind in (PileKind.WASTE, PileKind.FOUNDATION) and is_top_card(board, ref)


def moving_cards(board: Board, source: CardRef) -> list[Card]:
    """Cards carried by a move from source (whole run for a tableau source)."""
    if source.kind == PileKind.TABLEAU:
        return list(board.tableau[source.pile_index][source.card_index:])
    card = board.top(source.kind, source.pile_index)
    return [card] if card is not None else []


def can_move(board: Board, source: CardRef, dest_kind: PileKind, dest_index: int) -> bool:
    """Check if the card at source may move to the destination pile."""
    if not is_movable(board, source):
        return False
    if dest_kind == source.kind and dest_index == source.pile_index:
        return False
    card = board.card_at(source)
    if dest_kind == PileKind.FOUNDATION:
        # Only a single card may go up to a foundation
        return len(moving_cards(board, source)) == 1 and is_foundation_move(board, card, dest_index)
    if dest_kind == PileKind.TABLEAU:
        return is_tableau_move(board, card, dest_index)
    return False


def move_cards(board: Board, source: CardRef, dest_kind: PileKind, dest_index: int) -> MoveResult:
    """Execute a move already checked with can_move.

    A tableau source carries the entire face-up run starting at the selected
    card; waste and foundation sources carry one card. If the source column's
    new top card is face down it is turned face up.

    Raises:
        ValueError: If the move is not legal
    """
    if not can_move(board, source, dest_kind, dest_index):
        raise ValueError(f"Illegal move from {source} to {dest_kind.value}[{dest_index}]")

    cards = moving_cards(board, source)
    flipped = False

    if source.kind == PileKind.TABLEAU:
        remaining = board.tableau[source.pile_index][:source.card_index]
        if remaining and not remaining[-1].face_up:
            remaining = remaining[:-1] + (remaining[-1].flipped(True),)
            flipped = True
    else:
        remaining = board.pile(source.kind, source.pile_index)[:-1]

    new_board = board.replace(source.kind, source.pile_index, remaining)
    dest_cards = new_board.pile(dest_kind, dest_index) + tuple(cards)
    new_board = new_board.replace(dest_kind, dest_index, dest_cards)

    return MoveResult(board=new_board, moved=cards, flipped=flipped)


def check_integrity(board: Board) -> bool:
    """Check that the board holds each of the 52 cards exactly once."""
    ids = [card.card_id for card in board.all_cards()]
    return len(ids) == DECK_SIZE and len(set(ids)) == DECK_SIZE
