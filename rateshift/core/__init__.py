# rateshift/core/__init__.py

"""
Core Processing Package for rateshift.

Contains modules for:
- PCM value types and errors
- Frame scheduling
- The pitch-preserving time-stretch engine
- WAV container encoding and audio file I/O
- End-to-end file conversion
"""

from .errors import (
    RateShiftError,
    InvalidParameter,
    InvalidInput,
    AllocationFailure,
    ConversionInProgress,
)
from .buffer import PcmBuffer, StretchParameters
from .stretch import stretch, stretch_channel
from .audio.wav import encode, ContainerByteStream
from . import frames
from . import audio
from . import convert

__all__ = [
    "RateShiftError",
    "InvalidParameter",
    "InvalidInput",
    "AllocationFailure",
    "ConversionInProgress",
    "PcmBuffer",
    "StretchParameters",
    "stretch",
    "stretch_channel",
    "encode",
    "ContainerByteStream",
    "frames",
    "audio",
    "convert",
]
