# rateshift/core/stretch.py

"""
Pitch-preserving time stretching.

Each channel is read frame by frame (see `frames.py`). For every sample the
engine estimates an instantaneous phase from the angle of the (previous,
current) sample pair, unwraps it against the expected analysis phase advance, and
accumulates the resulting instantaneous frequency into a synthesis phase. The
output sample is the cosine of that phase, so the tracked frequency (and hence
the pitch) does not depend on the rate, while the frame scheduling scales the
time axis.

All phase tracking lives in a per-call, per-channel `PhaseState`; nothing is
kept between calls, so concurrent calls on independently owned buffers are
safe. Concurrent calls that mutate the same buffer are not supported.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .buffer import DEFAULT_MAX_RATE, DEFAULT_MIN_RATE, PcmBuffer, StretchParameters
from .errors import AllocationFailure, InvalidInput, InvalidParameter
from .frames import (
    SynthesisAccumulator,
    analysis_hop,
    deposit_frame,
    next_frame,
    output_length,
    schedule,
)

logger = logging.getLogger(__name__)

TWO_PI = 2.0 * np.pi
DEFAULT_FRAME_SIZE = 2048


@dataclass
class PhaseState:
    """Running phase-tracking state for one channel, threaded through successive frames."""
    last_phase: float = 0.0
    sum_phase: float = 0.0
    expected_phase: float = 0.0
    last_sample: float = 0.0


def _process_frame(
    samples: NDArray[np.float64],
    state: PhaseState,
    omega_step: float,
    phase_scale: float,
) -> NDArray[np.float64]:
    """
    Resynthesizes one analysis frame and advances `state` in place.

    Args:
        samples: Analysis frame samples (float64).
        state: Phase state carried over from the previous frame.
        omega_step: Expected analysis phase advance per sample (omega / frame_size).
        phase_scale: Factor applied to the instantaneous frequency before it is
                     accumulated (rate * synthesis_hop / analysis_hop).

    Returns:
        Synthesized frame of the same length as `samples`.
    """
    n = samples.shape[0]

    previous = np.empty(n, dtype=np.float64)
    previous[0] = state.last_sample
    previous[1:] = samples[:-1]

    # Full-circle phase of the (previous, current) sample pair.
    # A zero (or overflowing) ratio denominator gives no usable phase.
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        valid = np.isfinite(samples / previous)
    raw_phase = np.where(valid, np.arctan2(samples, previous), 0.0)

    # Hold the last usable phase across samples without one
    source = np.where(valid, np.arange(n), -1)
    np.maximum.accumulate(source, out=source)
    phase = np.where(source >= 0, raw_phase[np.maximum(source, 0)], state.last_phase)

    last = np.empty(n, dtype=np.float64)
    last[0] = state.last_phase
    last[1:] = phase[:-1]

    # Deviation from the expected analysis phase, wrapped to [-pi, pi]
    expected = state.expected_phase + omega_step * np.arange(1, n + 1, dtype=np.float64)
    deviation = (phase - expected) - (last - (expected - omega_step))
    deviation -= TWO_PI * np.round(deviation / TWO_PI)

    inst_freq = np.where(valid, omega_step + deviation, 0.0)
    synth_phase = state.sum_phase + np.cumsum(inst_freq * phase_scale)

    state.last_sample = float(samples[-1])
    state.last_phase = float(phase[-1])
    state.sum_phase = float(np.mod(synth_phase[-1], TWO_PI))
    state.expected_phase = float(np.mod(expected[-1], TWO_PI))

    return np.cos(synth_phase)


def stretch_channel(
    samples: NDArray[np.floating],
    sample_rate: int,
    rate: float,
    frame_size: int = DEFAULT_FRAME_SIZE,
) -> NDArray[np.float64]:
    """
    Time-stretches a single channel.

    Args:
        samples: 1D input samples.
        sample_rate: Sampling rate in Hz.
        rate: Speed factor (>1 shortens, <1 lengthens).
        frame_size: Analysis/synthesis frame size in samples.

    Returns:
        float64 array of length ceil(len(samples) / rate).

    Raises:
        InvalidParameter: If `rate` is non-finite or non-positive, or `frame_size`
                          is not positive.
    """
    if isinstance(rate, bool) or not math.isfinite(rate) or rate <= 0:
        raise InvalidParameter(f"Stretch rate must be a positive finite number, got {rate}")
    if frame_size <= 0:
        raise InvalidParameter(f"Frame size must be positive, got {frame_size}")
    if sample_rate <= 0:
        raise InvalidInput(f"Sample rate must be positive, got {sample_rate}")

    input_length = int(samples.shape[0])
    accumulator = SynthesisAccumulator(output_length(input_length, rate))
    if input_length == 0:
        return accumulator.samples

    # Expected phase advance over one frame, spread evenly over its samples
    omega = TWO_PI * frame_size / sample_rate
    omega_step = omega / frame_size
    hop = analysis_hop(frame_size, rate)
    phase_scale = rate * frame_size / hop

    state = PhaseState()
    for cursor, write_index in schedule(input_length, frame_size, rate):
        frame = next_frame(samples, cursor, frame_size)
        synthesized = _process_frame(frame.samples, state, omega_step, phase_scale)
        deposit_frame(accumulator, synthesized, write_index)

    return accumulator.samples


def stretch(
    pcm: PcmBuffer,
    rate: float,
    *,
    frame_size: int = DEFAULT_FRAME_SIZE,
    min_rate: float = DEFAULT_MIN_RATE,
    max_rate: float = DEFAULT_MAX_RATE,
    max_workers: int = 1,
) -> PcmBuffer:
    """
    Time-stretches every channel of a PCM buffer without changing its pitch.

    Channels are processed independently with private phase state. With
    `max_workers > 1` they run on a thread pool; the result is identical to
    sequential processing.

    Output samples are `cos(phase)` and do not follow the input's amplitude
    envelope: tones come out at full scale, and silent input (where no phase
    can be estimated) becomes a constant 1.0, which encodes as full-scale DC.

    Args:
        pcm: Input buffer (read only).
        rate: Speed factor in [min_rate, max_rate].
        frame_size: Engine frame size in samples.
        min_rate: Lowest accepted rate.
        max_rate: Highest accepted rate.
        max_workers: Number of channels processed in parallel.

    Returns:
        A new PcmBuffer with the same channel count and sample rate and
        ceil(frame_count / rate) frames.

    Raises:
        InvalidParameter: Invalid rate or frame size (checked before any allocation).
        InvalidInput: If `pcm` is not a PcmBuffer.
        AllocationFailure: If the output buffer cannot be allocated.
    """
    params = StretchParameters(rate=rate, min_rate=min_rate, max_rate=max_rate)
    if frame_size <= 0:
        raise InvalidParameter(f"Frame size must be positive, got {frame_size}")
    if max_workers < 1:
        raise InvalidParameter(f"max_workers must be at least 1, got {max_workers}")
    if not isinstance(pcm, PcmBuffer):
        raise InvalidInput(f"Expected a PcmBuffer, got {type(pcm).__name__}")

    n_out = output_length(pcm.frame_count, params.rate)
    logger.debug(
        f"Stretching {pcm.num_channels} channel(s) at rate={params.rate}: "
        f"{pcm.frame_count} -> {n_out} frames (frame_size={frame_size}, workers={max_workers})"
    )

    try:
        output = np.empty((pcm.num_channels, n_out), dtype=np.float32)
    except MemoryError as e:
        raise AllocationFailure(
            f"Could not allocate output buffer of {pcm.num_channels}x{n_out} samples"
        ) from e

    def _run(index: int) -> NDArray[np.float64]:
        return stretch_channel(pcm.channels[index], pcm.sample_rate, params.rate, frame_size)

    if max_workers > 1 and pcm.num_channels > 1:
        with ThreadPoolExecutor(max_workers=min(max_workers, pcm.num_channels)) as executor:
            results = list(executor.map(_run, range(pcm.num_channels)))
    else:
        results = [_run(index) for index in range(pcm.num_channels)]

    for index, channel in enumerate(results):
        output[index] = channel

    return PcmBuffer(channels=output, sample_rate=pcm.sample_rate)
