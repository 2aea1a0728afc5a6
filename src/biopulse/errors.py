"""Exceptions raised by the engine and its data sources.

Missing data is never an exception: a window with no samples comes back
as ``None`` or an empty collection.
"""


class SourceError(Exception):
    """A health-store query failed (permission denied, query error, ...)."""


class GoalNotConfiguredError(ValueError):
    """The sleep goal or goal wake time has not been set."""
