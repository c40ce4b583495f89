"""
Error kinds raised by the subspace-stream engine.
"""


class SubspaceStreamError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(SubspaceStreamError, ValueError):
    """An option is out of range. Raised at construction time."""


class InvalidTimestamp(SubspaceStreamError, ValueError):
    """
    Time went backwards relative to a cluster's last edit.

    Always indicates an ordering bug in the caller.
    """

    def __init__(self, timestamp: int, last_timestamp: int):
        self.timestamp = timestamp
        self.last_timestamp = last_timestamp
        super().__init__(
            f"timestamp {timestamp} is older than last edit at {last_timestamp}"
        )


class MalformedPoint(SubspaceStreamError, ValueError):
    """A stream point cannot be processed. The point is dropped."""


class DimensionMismatch(MalformedPoint):
    """Point dimensionality differs from the configured dimensionality."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected {expected} dimensions, got {actual}")


class EmptyNeighborhoodDegeneracy(SubspaceStreamError, ArithmeticError):
    """
    A statistic would require dividing by a zero weight or an empty set.

    Callers treat the affected object as not yet classifiable.
    """
