"""Scoring, combo multiplier and attack charge."""

import math
from dataclasses import dataclass

from dualitaire.config import ScoringConfig


@dataclass
class ScoreEvent:
    """Result of one scoring event."""

    points: int  # Points actually added (after multiplier)
    score: int  # Running score after the event
    combo: int = 0
    multiplier: float = 1.0
    charge: int = 0
    attack: bool = False  # Charge reached the threshold; dispatch an attack


class ScoreKeeper:
    """Running round score with a time-windowed combo and attack charge.

    Only foundation placements take part in the combo: a placement within
    the combo window of the previous one extends the chain, otherwise the
    chain restarts at 1. The multiplier grows by combo_step for each
    placement already in the chain (x1.0, x1.2, x1.4, ...).
    """

    def __init__(self, config: ScoringConfig | None = None):
        self.config = config or ScoringConfig()
        self.score = 0
        self.combo = 0
        self.charge = 0
        self.last_move_time: int | None = None

    def reset(self) -> None:
        """Reset for a new round."""
        self.score = 0
        self.combo = 0
        self.charge = 0
        self.last_move_time = None

    def add(self, points: int) -> ScoreEvent:
        """Add points that do not take part in the combo (draw, flip, recycle)."""
        self.score += points
        return ScoreEvent(
            points=points,
            score=self.score,
            combo=self.combo,
            charge=self.charge,
        )

    def foundation_placement(self, now: int) -> ScoreEvent:
        """Score a foundation placement at time now (ms)."""
        cfg = self.config
        prior_combo = self.combo

        if self.in_window(now) and prior_combo > 0:
            self.combo = prior_combo + 1
        else:
            self.combo = 1
        self.last_move_time = now

        multiplier = 1 + cfg.combo_step * (self.combo - 1)
        points = math.floor(cfg.foundation_points * multiplier + 1e-9)
        self.score += points

        self.charge += 2 if prior_combo > cfg.boost_combo else 1
        attack = False
        if self.charge >= cfg.attack_threshold:
            attack = True
            self.charge = 0

        return ScoreEvent(
            points=points,
            score=self.score,
            combo=self.combo,
            multiplier=multiplier,
            charge=self.charge,
            attack=attack,
        )

    def in_window(self, now: int) -> bool:
        """Check if now is within the combo window of the last placement."""
        if self.last_move_time is None:
            return False
        return now - self.last_move_time < self.config.combo_window_ms

    def combo_progress(self, now: int) -> float:
        """Remaining combo window as a percentage (100 -> 0)."""
        if self.combo == 0 or self.last_move_time is None:
            return 0.0
        elapsed = now - self.last_move_time
        return max(0.0, 100 * (1 - elapsed / self.config.combo_window_ms))

    def tick(self, now: int) -> bool:
        """Decay the combo once the window has elapsed.

        Returns:
            True if the combo was reset on this tick
        """
        if self.combo == 0 or self.last_move_time is None:
            return False
        if now - self.last_move_time > self.config.combo_window_ms:
            self.combo = 0
            return True
        return False
