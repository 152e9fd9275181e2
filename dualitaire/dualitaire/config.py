"""Configuration management."""

from pathlib import Path

import yaml
from pydantic import BaseModel

from dualitaire.logging.match_logger import MatchLogConfig


class MatchConfig(BaseModel):
    """Match timing configuration."""

    duration_sec: int = 180
    max_rounds: int = 3

    # Local 3-2-1 countdown before each round
    countdown_steps: int = 3
    countdown_interval_ms: int = 1000
    go_delay_ms: int = 500

    # Local timer cadences
    timer_interval_ms: int = 1000
    combo_tick_ms: int = 100

    # Bounded snapshot mailbox
    mailbox_size: int = 64


class ScoringConfig(BaseModel):
    """Scoring, combo and attack charge configuration."""

    draw_points: int = 0
    recycle_points: int = -50
    flip_points: int = 5
    foundation_points: int = 100

    combo_window_ms: int = 3000
    combo_step: float = 0.2
    boost_combo: int = 2  # Combo above this charges +2

    attack_threshold: int = 2


class DisruptionConfig(BaseModel):
    """Freeze attack configuration."""

    freeze_ms: int = 5000


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    show_board: bool = False


class Config(BaseModel):
    """Root configuration."""

    match: MatchConfig = MatchConfig()
    scoring: ScoringConfig = ScoringConfig()
    disruption: DisruptionConfig = DisruptionConfig()
    logging: LoggingConfig = LoggingConfig()
    match_log: MatchLogConfig = MatchLogConfig()


def load_config(path: Path | str | None = None) -> Config:
    """Load configuration from YAML file.

    Args:
        path: Path to config file. If None, uses default config.

    Returns:
        Config object.
    """
    if path is None:
        return Config()

    config_path = Path(path)
    if not config_path.exists():
        return Config()

    with open(config_path) as f:
        data = yaml.safe_load(f)

    return Config(**data) if data else Config()
