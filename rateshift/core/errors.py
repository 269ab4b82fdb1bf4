# rateshift/core/errors.py

"""
Exception types raised by the rateshift core.

Every precondition violation is reported synchronously as one of these
types; the engine and encoder never return a partially valid result.
"""


class RateShiftError(Exception):
    """Base class for all rateshift errors."""


class InvalidParameter(RateShiftError, ValueError):
    """
    Raised when a stretch rate is non-positive, non-finite, or outside
    the supported range. Checked before any buffer is allocated.
    """


class InvalidInput(RateShiftError, ValueError):
    """
    Raised for malformed PCM input: zero channels, mismatched channel
    lengths, a non-positive sample rate, or an unreadable container header.
    """


class AllocationFailure(RateShiftError, MemoryError):
    """Raised when the output buffer cannot be allocated. Never retried."""


class ConversionInProgress(RateShiftError):
    """Raised when a conversion is requested for a file already being converted."""
