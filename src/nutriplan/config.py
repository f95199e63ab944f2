"""
Runtime configuration for the planning engine.

Values come from environment variables (a .env file is honoured by the
entry points via python-dotenv) and fall back to the defaults in canon.py.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict

from .canon import MAX_SNACKS_PER_DAY, SLOT_CALORIE_SPLIT

logger = logging.getLogger(__name__)


@dataclass
class PlanningConfig:
    """Tunable planning defaults."""

    calorie_tolerance: float = 0.10  # +/- share of daily calories
    repetition_window_days: int = 7  # upper bound; effective window is min(this, duration)
    snacks_per_day: int = 1
    slot_split: Dict[str, float] = field(default_factory=lambda: dict(SLOT_CALORIE_SPLIT))

    def __post_init__(self):
        if not 0 < self.calorie_tolerance < 1:
            raise ValueError(f"calorie_tolerance must be between 0 and 1, got {self.calorie_tolerance}")
        if self.repetition_window_days < 0:
            raise ValueError("repetition_window_days cannot be negative")
        if not 0 <= self.snacks_per_day <= MAX_SNACKS_PER_DAY:
            raise ValueError(f"snacks_per_day must be between 0 and {MAX_SNACKS_PER_DAY}")

    @classmethod
    def from_env(cls) -> "PlanningConfig":
        """Build a config from NUTRIPLAN_* environment variables."""
        config = cls(
            calorie_tolerance=float(os.getenv("NUTRIPLAN_CALORIE_TOLERANCE", "0.10")),
            repetition_window_days=int(os.getenv("NUTRIPLAN_REPETITION_WINDOW", "7")),
            snacks_per_day=int(os.getenv("NUTRIPLAN_SNACKS_PER_DAY", "1")),
        )
        logger.debug(f"Loaded planning config: {config}")
        return config


def get_db_dir(default: str = "data") -> str:
    """Data directory for recipes.db and user_data.db."""
    return os.getenv("NUTRIPLAN_DB_DIR", default)
