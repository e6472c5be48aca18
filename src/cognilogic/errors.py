"""
Exception types raised by the reasoning engine.

Every failure is local: the operation that raised leaves the store and engine
exactly as they were before the call.
"""


class CognilogicError(Exception):
    """Base class for all engine errors."""


class CapacityError(CognilogicError, RuntimeError):
    """Atom or rule creation beyond the configured maximum."""


class InvalidInputError(CognilogicError, ValueError):
    """Empty names, malformed premise lists or absent referenced atoms."""


class InferenceError(CognilogicError):
    """A query produced no inference chain."""
