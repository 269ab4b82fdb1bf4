# rateshift/core/buffer.py

"""
Value types passed between the decoder, the time-stretch engine and the
container encoder.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence, Union

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidInput, InvalidParameter

logger = logging.getLogger(__name__)

# Supported speed range (matches the 0.5x - 2.0x speed slider)
DEFAULT_MIN_RATE = 0.5
DEFAULT_MAX_RATE = 2.0


def _as_channel_array(channels: Any) -> NDArray[np.float32]:
    """Converts nested sequences or an ndarray to a (channels, frames) float32 array."""
    if isinstance(channels, np.ndarray):
        if channels.ndim == 1:
            raise InvalidInput(
                "PCM data must be 2D (channels, frames); got a 1D array. "
                "Wrap mono data as [samples]."
            )
        if channels.ndim != 2:
            raise InvalidInput(f"PCM data must be 2D (channels, frames), got shape {channels.shape}")
        if channels.shape[0] == 0:
            raise InvalidInput("PCM buffer must have at least one channel.")
        return np.array(channels, dtype=np.float32, copy=True)

    channel_list = list(channels)
    if not channel_list:
        raise InvalidInput("PCM buffer must have at least one channel.")

    arrays = []
    for index, channel in enumerate(channel_list):
        arr = np.asarray(channel, dtype=np.float32)
        if arr.ndim != 1:
            raise InvalidInput(f"Channel {index} must be a 1D sequence of samples, got shape {arr.shape}")
        arrays.append(arr)

    lengths = {arr.shape[0] for arr in arrays}
    if len(lengths) != 1:
        raise InvalidInput(
            f"All channels must have equal length, got lengths {[arr.shape[0] for arr in arrays]}"
        )
    return np.stack(arrays, axis=0)


@dataclass(frozen=True, eq=False)
class PcmBuffer:
    """
    De-interleaved linear PCM audio.

    Attributes:
        channels: float32 array of shape (n_channels, frame_count). Samples are
                  unclamped amplitudes with nominal range [-1.0, 1.0].
                  The array is a private read-only copy of whatever was passed in.
        sample_rate: Sampling rate in Hz (positive integer).
    """
    channels: NDArray[np.float32]
    sample_rate: int

    def __post_init__(self):
        # Validate the sample rate before touching (and copying) the samples
        if isinstance(self.sample_rate, bool) or not isinstance(self.sample_rate, (int, np.integer)):
            raise InvalidInput(f"Sample rate must be an integer, got {self.sample_rate!r}")
        if self.sample_rate <= 0:
            raise InvalidInput(f"Sample rate must be positive, got {self.sample_rate}")

        data = _as_channel_array(self.channels)
        data.setflags(write=False)
        # Frozen dataclass: bypass __setattr__ for the normalised fields
        object.__setattr__(self, "channels", data)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @property
    def num_channels(self) -> int:
        return int(self.channels.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self.channels.shape[1])

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return self.frame_count / self.sample_rate

    @classmethod
    def from_mono(cls, samples: Union[NDArray[np.floating], Sequence[float]], sample_rate: int) -> "PcmBuffer":
        """Builds a single-channel buffer from a 1D sample sequence."""
        return cls(channels=[samples], sample_rate=sample_rate)

    @classmethod
    def from_librosa(cls, data: NDArray[np.floating], sample_rate: int) -> "PcmBuffer":
        """
        Builds a buffer from librosa's load output.

        librosa returns shape (n_samples,) for mono and (n_channels, n_samples)
        for multi-channel audio.
        """
        if data.ndim == 1:
            data = data[np.newaxis, :]
        return cls(channels=data, sample_rate=int(sample_rate))


@dataclass(frozen=True)
class StretchParameters:
    """
    A user-selected time-stretch request.

    rate > 1.0 shortens (speeds up) the audio, rate < 1.0 lengthens it.
    rate == 1.0 is a valid no-op length-wise.
    """
    rate: float
    min_rate: float = DEFAULT_MIN_RATE
    max_rate: float = DEFAULT_MAX_RATE

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """
        Raises:
            InvalidParameter: If the rate is non-finite, non-positive, or outside
                              [min_rate, max_rate].
        """
        rate = self.rate
        if isinstance(rate, bool) or not isinstance(rate, (int, float, np.floating, np.integer)):
            raise InvalidParameter(f"Stretch rate must be a number, got {rate!r}")
        if not math.isfinite(rate):
            raise InvalidParameter(f"Stretch rate must be finite, got {rate}")
        if rate <= 0:
            raise InvalidParameter(f"Stretch rate must be positive, got {rate}")
        if not (self.min_rate <= rate <= self.max_rate):
            raise InvalidParameter(
                f"Stretch rate {rate} is outside the supported range "
                f"[{self.min_rate}, {self.max_rate}]"
            )
