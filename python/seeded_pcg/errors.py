from __future__ import annotations


class RngError(ValueError):
    """Base class for generator precondition violations."""


class InvalidRange(RngError):
    pass


class LengthMismatch(RngError):
    pass


class EmptyInput(RngError):
    pass
