# tests/test_frames.py

"""
Tests for frame scheduling in rateshift.core.frames.
"""

import pytest
import numpy as np
from numpy.testing import assert_equal

from rateshift.core.frames import (
    SynthesisAccumulator,
    analysis_hop,
    deposit_frame,
    next_frame,
    output_length,
    schedule,
)
from rateshift.core.errors import InvalidParameter

# --- Test Fixtures ---

@pytest.fixture
def ramp():
    """Ten samples 0.0 .. 0.9."""
    return np.arange(10, dtype=np.float32) / 10.0

# --- next_frame ---

def test_next_frame_inside_channel(ramp):
    frame = next_frame(ramp, cursor=2, frame_size=4)
    assert frame.start_index == 2
    assert len(frame) == 4
    assert frame.samples.dtype == np.float64
    assert_equal(frame.samples, ramp[2:6].astype(np.float64))

def test_next_frame_zero_pads_past_end(ramp):
    frame = next_frame(ramp, cursor=8, frame_size=4)
    assert_equal(frame.samples, np.array([ramp[8], ramp[9], 0.0, 0.0], dtype=np.float64))

def test_next_frame_larger_than_input(ramp):
    """A frame bigger than the whole channel is a single zero-padded frame."""
    frame = next_frame(ramp, cursor=0, frame_size=16)
    assert len(frame) == 16
    assert_equal(frame.samples[:10], ramp.astype(np.float64))
    assert_equal(frame.samples[10:], np.zeros(6))

def test_next_frame_cursor_beyond_end(ramp):
    frame = next_frame(ramp, cursor=25, frame_size=4)
    assert_equal(frame.samples, np.zeros(4))

def test_next_frame_invalid_arguments(ramp):
    with pytest.raises(InvalidParameter):
        next_frame(ramp, cursor=0, frame_size=0)
    with pytest.raises(ValueError):
        next_frame(ramp, cursor=-1, frame_size=4)

# --- deposit_frame ---

def test_deposit_overwrite():
    acc = SynthesisAccumulator(6)
    acc.samples[:] = 9.0
    written = deposit_frame(acc, np.array([1.0, 2.0]), write_index=1)
    assert written == 2
    assert_equal(acc.samples, [9.0, 1.0, 2.0, 9.0, 9.0, 9.0])

def test_deposit_clips_and_never_grows():
    acc = SynthesisAccumulator(5)
    written = deposit_frame(acc, np.ones(4), write_index=3)
    assert written == 2
    assert len(acc) == 5
    assert_equal(acc.samples, [0.0, 0.0, 0.0, 1.0, 1.0])

def test_deposit_past_end_writes_nothing():
    acc = SynthesisAccumulator(3)
    assert deposit_frame(acc, np.ones(4), write_index=3) == 0
    assert deposit_frame(acc, np.ones(4), write_index=10) == 0
    assert_equal(acc.samples, np.zeros(3))

def test_deposit_add_overlaps():
    acc = SynthesisAccumulator(4)
    deposit_frame(acc, np.ones(3), write_index=0, mode="add")
    deposit_frame(acc, np.ones(3), write_index=1, mode="add")
    assert_equal(acc.samples, [1.0, 2.0, 2.0, 1.0])

def test_deposit_invalid_mode():
    acc = SynthesisAccumulator(4)
    with pytest.raises(ValueError, match="Unknown deposit mode"):
        deposit_frame(acc, np.ones(2), write_index=0, mode="blend")

def test_accumulator_negative_length():
    with pytest.raises(ValueError):
        SynthesisAccumulator(-1)

# --- Lengths and scheduling ---

@pytest.mark.parametrize("n, rate, expected", [
    (0, 1.0, 0),
    (0, 2.0, 0),
    (100, 1.0, 100),
    (8000, 2.0, 4000),
    (101, 2.0, 51),
    (100, 0.5, 200),
])
def test_output_length(n, rate, expected):
    assert output_length(n, rate) == expected

def test_analysis_hop():
    assert analysis_hop(2048, 1.0) == 2048
    assert analysis_hop(2048, 1.5) == 3072
    assert analysis_hop(2048, 0.5) == 1024
    assert analysis_hop(1, 0.5) >= 1 # never zero

def test_schedule_empty_input():
    assert list(schedule(0, 2048, 1.0)) == []

def test_schedule_reads_every_hop_and_writes_contiguously():
    # 10000 samples at 2x -> 5000 output samples -> 3 frames of 2048
    steps = list(schedule(10000, 2048, 2.0))
    assert steps == [(0, 0), (4096, 2048), (8192, 4096)]

def test_schedule_covers_output():
    n, frame_size, rate = 3000, 512, 0.7
    steps = list(schedule(n, frame_size, rate))
    last_write = steps[-1][1]
    assert last_write < output_length(n, rate) <= last_write + frame_size
