"""Utility modules."""

from .clock import Clock, ManualClock, Scheduler, SystemClock, TimerHandle
from .logger import MatchDisplay, setup_logging

__all__ = [
    "Clock",
    "ManualClock",
    "MatchDisplay",
    "Scheduler",
    "SystemClock",
    "TimerHandle",
    "setup_logging",
]
