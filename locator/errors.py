"""Exception taxonomy for the oracle and the positioning tiers.

None of these escape the public operations: oracle failures collapse into a
NONE classification and positioning failures advance the tier chain.
"""

from __future__ import annotations

from enum import Enum


class ClassificationOracleFailure(RuntimeError):
    """The oracle could not produce a usable reply."""


class OracleUnavailableError(ClassificationOracleFailure):
    """Every configured oracle endpoint failed (network, status, timeout or malformed body)."""


class PositioningErrorKind(str, Enum):
    DENIED = "denied"
    UNAVAILABLE = "unavailable"
    TIMED_OUT = "timed_out"
    UNSUPPORTED = "unsupported"


class PositioningError(RuntimeError):
    """Base class for a failed position acquisition."""
    kind: PositioningErrorKind = PositioningErrorKind.UNAVAILABLE

    def __init__(self, message: str, *, source: str = "geolocation") -> None:
        super().__init__(message)
        self.message = message
        self.source = source


class PositioningDeniedError(PositioningError):
    kind = PositioningErrorKind.DENIED


class PositioningUnavailableError(PositioningError):
    kind = PositioningErrorKind.UNAVAILABLE


class PositioningTimeoutError(PositioningError):
    kind = PositioningErrorKind.TIMED_OUT


class PositioningUnsupportedError(PositioningError):
    kind = PositioningErrorKind.UNSUPPORTED


class AllSourcesExhaustedError(RuntimeError):
    """Raised only if a tier chain without an always-succeeding final tier runs dry."""
