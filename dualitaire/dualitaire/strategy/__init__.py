"""Bot strategies for the headless runner."""

from .base import Action, ActionKind, Strategy
from .simple import GreedyStrategy

__all__ = ["Action", "ActionKind", "GreedyStrategy", "Strategy"]
