# rateshift/core/frames.py

"""
Frame scheduling for the time-stretch engine.

Splits an input channel into fixed-size analysis frames (zero-padded past the
end of the channel) and deposits synthesized frames into a fixed-length
output accumulator.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Literal, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import AllocationFailure, InvalidParameter

logger = logging.getLogger(__name__)

DepositMode = Literal["overwrite", "add"]


@dataclass(frozen=True)
class AnalysisFrame:
    """One slice of an input channel. `samples` always has the full frame size."""
    samples: NDArray[np.float64]
    start_index: int

    def __len__(self) -> int:
        return int(self.samples.shape[0])


class SynthesisAccumulator:
    """
    Output-in-progress for a single channel.

    The length is fixed at construction; deposits past the end are clipped.
    """

    def __init__(self, length: int):
        if length < 0:
            raise ValueError(f"Accumulator length must be non-negative, got {length}")
        try:
            self.samples: NDArray[np.float64] = np.zeros(length, dtype=np.float64)
        except MemoryError as e:
            raise AllocationFailure(f"Could not allocate output buffer of {length} samples") from e

    def __len__(self) -> int:
        return int(self.samples.shape[0])


def output_length(input_length: int, rate: float) -> int:
    """Number of output samples for `input_length` input samples at `rate`: ceil(n / rate)."""
    if input_length <= 0:
        return 0
    return int(math.ceil(input_length / rate))


def analysis_hop(frame_size: int, rate: float) -> int:
    """Distance between consecutive analysis frames (the frame size scaled by rate)."""
    return max(1, int(round(frame_size * rate)))


def next_frame(channel: NDArray[np.floating], cursor: int, frame_size: int) -> AnalysisFrame:
    """
    Extracts `frame_size` consecutive samples starting at `cursor`.

    Samples beyond the end of the channel read as 0.0. Advancing the cursor
    between calls is the caller's job.

    Args:
        channel: 1D input samples.
        cursor: Start offset into `channel` (non-negative).
        frame_size: Number of samples in the frame (positive).

    Returns:
        AnalysisFrame with float64 samples of length `frame_size`.
    """
    if frame_size <= 0:
        raise InvalidParameter(f"Frame size must be positive, got {frame_size}")
    if cursor < 0:
        raise ValueError(f"Frame cursor must be non-negative, got {cursor}")

    samples = np.zeros(frame_size, dtype=np.float64)
    available = max(0, min(frame_size, channel.shape[0] - cursor))
    if available > 0:
        samples[:available] = channel[cursor:cursor + available]
    return AnalysisFrame(samples=samples, start_index=cursor)


def deposit_frame(
    accumulator: SynthesisAccumulator,
    frame: NDArray[np.floating],
    write_index: int,
    mode: DepositMode = "overwrite",
) -> int:
    """
    Writes a synthesized frame into the accumulator at `write_index`.

    Out-of-range samples are dropped; the accumulator never grows.

    Args:
        accumulator: Target accumulator.
        frame: Synthesized samples.
        write_index: Offset in the accumulator of frame[0].
        mode: 'overwrite' replaces existing samples, 'add' sums them (overlap-add).

    Returns:
        Number of samples actually written.
    """
    if mode not in ("overwrite", "add"):
        raise ValueError(f"Unknown deposit mode: '{mode}'. Use 'overwrite' or 'add'.")
    if write_index < 0:
        raise ValueError(f"Write index must be non-negative, got {write_index}")
    end = min(len(accumulator), write_index + frame.shape[0])
    count = max(0, end - write_index)
    if count == 0:
        return 0

    target = accumulator.samples[write_index:end]
    if mode == "overwrite":
        target[:] = frame[:count]
    else:
        target += frame[:count]
    return count


def schedule(input_length: int, frame_size: int, rate: float) -> Iterator[Tuple[int, int]]:
    """
    Yields (read_cursor, write_index) pairs covering the whole output.

    Frames are read every `analysis_hop(frame_size, rate)` samples and written
    contiguously every `frame_size` samples. An empty input schedules nothing.
    """
    total = output_length(input_length, rate)
    hop = analysis_hop(frame_size, rate)
    n_frames = int(math.ceil(total / frame_size)) if total else 0
    logger.debug(
        f"Scheduling {n_frames} frames: input={input_length}, output={total}, "
        f"frame_size={frame_size}, analysis_hop={hop}"
    )
    for k in range(n_frames):
        yield k * hop, k * frame_size
