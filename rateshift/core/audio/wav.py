# rateshift/core/audio/wav.py

"""
Canonical 16-bit PCM WAV encoding.

Produces a fixed 44-byte RIFF/WAVE header followed by interleaved,
little-endian, signed 16-bit samples.
"""

import logging
import struct
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from rateshift.core.buffer import PcmBuffer
from rateshift.core.errors import InvalidInput

logger = logging.getLogger(__name__)

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
PCM_FORMAT = 1
FMT_CHUNK_SIZE = 16

# Largest values the 32- and 16-bit header fields can hold
MAX_UINT32 = 0xFFFFFFFF
MAX_UINT16 = 0xFFFF
MAX_DATA_SIZE = MAX_UINT32 - 36

# RIFF id, chunk size, WAVE, fmt id, fmt size, audio format, channels,
# sample rate, byte rate, block align, bits per sample, data id, data size
_HEADER_STRUCT = struct.Struct("<4sI4s4sIHHIIHH4sI")


@dataclass(frozen=True)
class WavHeader:
    """Decoded fields of a canonical 44-byte WAV header."""
    chunk_size: int
    audio_format: int
    num_channels: int
    sample_rate: int
    byte_rate: int
    block_align: int
    bits_per_sample: int
    data_size: int

    @property
    def frame_count(self) -> int:
        return self.data_size // self.block_align if self.block_align else 0


@dataclass(frozen=True)
class ContainerByteStream:
    """An encoded WAV file: header plus sample payload."""
    header: bytes
    payload: bytes

    def to_bytes(self) -> bytes:
        return self.header + self.payload

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __len__(self) -> int:
        return len(self.header) + len(self.payload)

    @property
    def header_fields(self) -> WavHeader:
        return parse_header(self.header)


def float_to_pcm16(samples: NDArray[np.floating]) -> NDArray[np.int16]:
    """
    Converts float samples to signed 16-bit integers.

    Non-finite values are mapped first (NaN -> 0, +inf -> 1, -inf -> -1),
    then samples are clamped to [-1, 1] and scaled by 32768 when negative and
    32767 otherwise, truncating toward zero.
    """
    data = np.nan_to_num(np.asarray(samples, dtype=np.float64), nan=0.0, posinf=1.0, neginf=-1.0)
    clamped = np.clip(data, -1.0, 1.0)
    scaled = np.where(clamped < 0, clamped * 32768.0, clamped * 32767.0)
    return np.trunc(scaled).astype(np.int16)


def build_header(num_channels: int, sample_rate: int, data_size: int) -> bytes:
    """Packs the 44-byte header for 16-bit linear PCM."""
    block_align = num_channels * BYTES_PER_SAMPLE
    byte_rate = sample_rate * block_align
    return _HEADER_STRUCT.pack(
        b"RIFF",
        36 + data_size,
        b"WAVE",
        b"fmt ",
        FMT_CHUNK_SIZE,
        PCM_FORMAT,
        num_channels,
        sample_rate,
        byte_rate,
        block_align,
        BITS_PER_SAMPLE,
        b"data",
        data_size,
    )


def _check_header_limits(num_channels: int, sample_rate: int, data_size: int) -> None:
    if num_channels * BYTES_PER_SAMPLE > MAX_UINT16:
        raise InvalidInput(f"Too many channels for a WAV header: {num_channels}")
    if sample_rate * num_channels * BYTES_PER_SAMPLE > MAX_UINT32:
        raise InvalidInput(f"Sample rate {sample_rate} Hz does not fit a 32-bit WAV header")
    if data_size > MAX_DATA_SIZE:
        raise InvalidInput(
            f"Audio data of {data_size} bytes exceeds the {MAX_DATA_SIZE}-byte WAV limit"
        )


def encode(buffer: PcmBuffer) -> ContainerByteStream:
    """
    Serializes a PCM buffer to a 16-bit WAV byte stream.

    Args:
        buffer: Input audio (not modified).

    Returns:
        ContainerByteStream with a 44-byte header and
        frame_count * num_channels * 2 payload bytes.

    Raises:
        InvalidInput: If `buffer` is not a PcmBuffer, has no channels, or its
                      size or sample rate do not fit the 32-bit header fields.
    """
    if not isinstance(buffer, PcmBuffer):
        raise InvalidInput(f"Expected a PcmBuffer, got {type(buffer).__name__}")
    if buffer.num_channels == 0:
        raise InvalidInput("Cannot encode a buffer with zero channels.")
    _check_header_limits(
        buffer.num_channels,
        buffer.sample_rate,
        buffer.frame_count * buffer.num_channels * BYTES_PER_SAMPLE,
    )

    # (channels, frames) -> frames-major interleaving
    interleaved = float_to_pcm16(buffer.channels).T.reshape(-1)
    payload = interleaved.astype("<i2", copy=False).tobytes()
    header = build_header(buffer.num_channels, buffer.sample_rate, len(payload))

    logger.debug(
        f"Encoded WAV: channels={buffer.num_channels}, sr={buffer.sample_rate}, "
        f"frames={buffer.frame_count}, data_size={len(payload)}"
    )
    return ContainerByteStream(header=header, payload=payload)


def parse_header(data: bytes) -> WavHeader:
    """
    Reads back a canonical 44-byte WAV header.

    Raises:
        InvalidInput: If `data` is shorter than 44 bytes or the chunk ids are wrong.
    """
    if len(data) < HEADER_SIZE:
        raise InvalidInput(f"WAV header needs {HEADER_SIZE} bytes, got {len(data)}")
    (riff, chunk_size, wave, fmt_id, fmt_size, audio_format, num_channels,
     sample_rate, byte_rate, block_align, bits, data_id, data_size) = _HEADER_STRUCT.unpack_from(data, 0)
    if riff != b"RIFF" or wave != b"WAVE" or fmt_id != b"fmt " or data_id != b"data":
        raise InvalidInput("Not a canonical RIFF/WAVE header.")
    if fmt_size != FMT_CHUNK_SIZE:
        raise InvalidInput(f"Unexpected fmt chunk size {fmt_size}; only canonical PCM headers are supported.")
    return WavHeader(
        chunk_size=chunk_size,
        audio_format=audio_format,
        num_channels=num_channels,
        sample_rate=sample_rate,
        byte_rate=byte_rate,
        block_align=block_align,
        bits_per_sample=bits,
        data_size=data_size,
    )
