# rateshift/__init__.py

"""
rateshift: pitch-preserving speed change for audio files.

The core API is `stretch` (time-scale a PcmBuffer) and `encode`
(serialize a PcmBuffer to 16-bit WAV bytes).
"""

from .version import __version__
from .core import (
    PcmBuffer,
    StretchParameters,
    stretch,
    encode,
    RateShiftError,
    InvalidParameter,
    InvalidInput,
    AllocationFailure,
)

__all__ = [
    "__version__",
    "PcmBuffer",
    "StretchParameters",
    "stretch",
    "encode",
    "RateShiftError",
    "InvalidParameter",
    "InvalidInput",
    "AllocationFailure",
]
