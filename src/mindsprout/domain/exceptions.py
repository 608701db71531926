"""
Exception hierarchy for MindSprout.

Domain violations are loud: they subclass ValueError so callers that only
know the standard library still see a sensible type.
"""


class MindSproutError(Exception):
    """Base exception for all MindSprout errors."""


class DomainError(MindSproutError, ValueError):
    """Raised when a value falls outside the documented domain."""


class InvalidDifficultyError(DomainError):
    """Raised for a grade that is not one of the four Difficulty values."""


class InvalidStrategyError(DomainError):
    """Raised for a scheduling preset that is not Standard or Exam."""


class BundleError(DomainError):
    """Raised when an export bundle is malformed or has an unknown version."""


class NotFoundError(MindSproutError, LookupError):
    """Raised when a deck or card id cannot be resolved."""


class StoreError(MindSproutError):
    """Raised when the record store fails to read or write."""
