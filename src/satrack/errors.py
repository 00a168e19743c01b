"""
satrack.errors — Failure Types
================================

Hard failures abort one object's computation for one tick.  The engine
catches :class:`SatrackError` subclasses per object and carries on.
"""


class SatrackError(Exception):
    """Base class for all satrack failures."""


class ParseError(SatrackError, ValueError):
    """Element-set text is malformed, fails its checksum, or holds
    physically invalid values."""

    def __init__(self, message: str, name: str = "", errors=None):
        self.name = name
        self.errors = list(errors or [message])
        prefix = f"{name}: " if name else ""
        super().__init__(prefix + message)


class PropagationFailure(SatrackError, RuntimeError):
    """The orbit model could not produce a finite state at the requested time."""

    def __init__(self, message: str, code: int = 0):
        self.code = code
        super().__init__(message)


class TransformFailure(SatrackError, ValueError):
    """A frame conversion received or produced non-finite values."""
