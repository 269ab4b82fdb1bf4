# rateshift/core/audio/__init__.py

"""
Audio container handling: WAV encoding and decoder/file adapters.
"""

from . import io
from . import wav
from .wav import ContainerByteStream, WavHeader, encode, float_to_pcm16, parse_header

__all__ = [
    "io",
    "wav",
    "ContainerByteStream",
    "WavHeader",
    "encode",
    "float_to_pcm16",
    "parse_header",
]
