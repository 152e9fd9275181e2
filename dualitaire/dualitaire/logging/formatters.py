"""Formatters for log and console output."""

from dualitaire.models.board import Board
from dualitaire.models.card import Card, Rank, Suit

# Suit codes for log output
SUIT_CODES: dict[Suit, str] = {
    Suit.SPADE: "S",
    Suit.HEART: "H",
    Suit.DIAMOND: "D",
    Suit.CLUB: "C",
}

# Rank codes for log output
RANK_CODES: dict[Rank, str] = {
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

HIDDEN = "##"


def format_card(card: Card, reveal: bool = False) -> str:
    """Format a single card to string.

    Args:
        card: Card to format.
        reveal: Show face-down cards instead of masking them.

    Returns:
        Formatted string (e.g., "S3" for Spade 3, "##" when face down).
    """
    if not card.face_up and not reveal:
        return HIDDEN
    return f"{SUIT_CODES[card.suit]}{RANK_CODES[card.rank]}"


def format_cards(cards: tuple[Card, ...] | list[Card], reveal: bool = False) -> str:
    """Format a pile to comma-separated string (bottom first)."""
    return ",".join(format_card(c, reveal) for c in cards)


def format_board(board: Board, frozen: set[int] | None = None) -> str:
    """Render a board as multi-line text.

    Args:
        board: Board to render.
        frozen: Frozen tableau columns (marked with '*').

    Returns:
        Text block: a stock/waste/foundation line, then one row per
        tableau depth.
    """
    frozen = frozen or set()
    waste_top = format_card(board.waste[-1]) if board.waste else "--"
    foundations = " ".join(
        format_card(pile[-1]) if pile else "--" for pile in board.foundation
    )
    lines = [f"stock:{len(board.stock):2d}  waste:{waste_top:>3}   [{foundations}]"]

    header = " ".join(
        f"{i}{'*' if i in frozen else ' '}".ljust(4) for i in range(len(board.tableau))
    )
    lines.append(header)

    depth = max((len(col) for col in board.tableau), default=0)
    for row in range(depth):
        cells = []
        for column in board.tableau:
            cells.append(format_card(column[row]).ljust(4) if row < len(column) else "    ")
        lines.append(" ".join(cells).rstrip())
    return "\n".join(lines)
