"""User preferences read by the engine (sleep goal, goal wake time).

Preferences live in a flat key-value store.  ``0`` (or a missing key) is
the "not set" sentinel; goal-relative computations refuse to run until
both values are configured.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Any, Mapping

from biopulse.errors import GoalNotConfiguredError

SLEEP_GOAL_KEY = "sleepGoal"
GOAL_WAKE_TIME_KEY = "goalWakeTime"


@dataclass(frozen=True)
class Config:
    """Snapshot of the user's sleep preferences."""

    sleep_goal_min: int = 0
    goal_wake_time: time | None = None

    @property
    def goal_set(self) -> bool:
        return self.sleep_goal_min > 0 and self.goal_wake_time is not None


def parse_time_of_day(value: Any) -> time | None:
    """Parse ``"HH:MM"``, minutes-after-midnight, or a ``time``.

    Returns None for the unset sentinels (``0``, ``""``, ``None``).
    """
    if value is None or value == "" or value == 0:
        return None
    if isinstance(value, time):
        return value
    if isinstance(value, (int, float)):
        minutes = int(value)
        return time(minutes // 60 % 24, minutes % 60)
    hour, _, minute = str(value).partition(":")
    return time(int(hour), int(minute or 0))


class ConfigStore:
    """Read-only view over a key-value preference mapping."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values = dict(values or {})

    def read_config(self) -> Config:
        goal = self._values.get(SLEEP_GOAL_KEY) or 0
        return Config(
            sleep_goal_min=int(goal),
            goal_wake_time=parse_time_of_day(self._values.get(GOAL_WAKE_TIME_KEY)),
        )


def require_goal(config: Config, need_wake_time: bool = False) -> int:
    """Return the sleep goal in minutes, or raise if it is not configured.

    Args:
        config: Preferences snapshot.
        need_wake_time: Also require the goal wake time to be set.
    """
    if config.sleep_goal_min <= 0:
        raise GoalNotConfiguredError("sleep goal is not set")
    if need_wake_time and config.goal_wake_time is None:
        raise GoalNotConfiguredError("goal wake time is not set")
    return config.sleep_goal_min
