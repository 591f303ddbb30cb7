"""
errors.py — Exceptions surfaced by the profile engine.

Partial data (empty classes, missing marks, no fees) is never an error; it
degrades to zero-valued summaries instead.
"""


class ProfileEngineError(Exception):
    """Base class for errors the engine reports to its caller."""


class NotFoundError(ProfileEngineError):
    """The requested unit (or either unit of a comparison) does not exist."""

    def __init__(self, message: str, unit_id=None):
        super().__init__(message)
        self.unit_id = unit_id


class InvalidScopeError(ProfileEngineError):
    """Unsupported ranking criterion or malformed date range."""
