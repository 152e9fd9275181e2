"""Match logging module."""

from .formatters import format_board, format_card, format_cards
from .match_logger import MatchLogConfig, MatchLogger

__all__ = [
    "MatchLogConfig",
    "MatchLogger",
    "format_board",
    "format_card",
    "format_cards",
]
