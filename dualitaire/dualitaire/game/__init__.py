"""Game logic."""

from .disruption import FreezeTracker, make_attack_event
from .lifecycle import Phase, RoundOutcome, plan_transition, remaining_seconds, resolve_round
from .scoring import ScoreEvent, ScoreKeeper
from .session import MoveKind, MoveOutcome, PlayerSession

__all__ = [
    "FreezeTracker",
    "make_attack_event",
    "MoveKind",
    "MoveOutcome",
    "Phase",
    "PlayerSession",
    "RoundOutcome",
    "ScoreEvent",
    "ScoreKeeper",
    "plan_transition",
    "remaining_seconds",
    "resolve_round",
]
