# core/errors.py

from enum import Enum
from typing import Optional

class FailureKind(str, Enum):
    RATE_LIMITED = "RATE_LIMITED"
    OTHER = "OTHER"

class IrrigationError(Exception):
    """Base class for all failures raised inside the irrigation engine."""

class InvalidSample(IrrigationError):
    """A sensor reading outside any plausible domain (NaN, infinite, non-numeric)."""

class ProviderUnavailable(IrrigationError):
    """The AI recommendation provider could not produce a usable recommendation."""

    def __init__(self, kind: FailureKind, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.kind = kind
        self.cause = cause

    @property
    def rate_limited(self) -> bool:
        return self.kind is FailureKind.RATE_LIMITED

class PersistenceUnavailable(IrrigationError):
    """The cooldown store (or another persisted scalar) could not be read or written."""
