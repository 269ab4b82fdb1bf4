# tests/test_stretch.py

"""
Tests for the time-stretch engine in rateshift.core.stretch.
"""

import math

import pytest
import numpy as np
from numpy.testing import assert_array_equal

from rateshift.core.buffer import PcmBuffer
from rateshift.core.errors import AllocationFailure, InvalidInput, InvalidParameter
from rateshift.core.stretch import PhaseState, stretch, stretch_channel

# --- Test Fixtures ---

@pytest.fixture
def sine_8k():
    """One second of a 440 Hz sine at 8000 Hz, mono."""
    sr = 8000
    t = np.arange(sr) / sr
    signal = (0.8 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)
    return PcmBuffer.from_mono(signal, sr)

@pytest.fixture
def stereo_22k():
    """Half a second of two different tones at 22050 Hz."""
    sr = 22050
    t = np.arange(sr // 2) / sr
    left = 0.6 * np.sin(2 * np.pi * 440.0 * t)
    right = 0.5 * np.sin(2 * np.pi * 660.0 * t + np.pi / 4)
    return PcmBuffer(channels=np.stack([left, right]), sample_rate=sr)

def _dominant_frequency(signal, sr):
    centered = signal.astype(np.float64) - np.mean(signal)
    spectrum = np.abs(np.fft.rfft(centered * np.hanning(len(centered))))
    freqs = np.fft.rfftfreq(len(centered), d=1.0 / sr)
    return freqs[np.argmax(spectrum)]

# --- Length properties ---

def test_stretch_sine_at_double_rate(sine_8k):
    """8000 samples at 2x give 4000 samples with the same rate and channel count."""
    out = stretch(sine_8k, 2.0)
    assert isinstance(out, PcmBuffer)
    assert out.frame_count == 4000
    assert out.num_channels == 1
    assert out.sample_rate == 8000
    assert out.channels.dtype == np.float32

@pytest.mark.parametrize("rate", [0.5, 0.7, 1.0, 1.3, 2.0])
@pytest.mark.parametrize("n", [1, 100, 2047, 2048, 2049, 5000])
def test_stretch_output_length(rate, n):
    rng = np.random.default_rng(7)
    pcm = PcmBuffer(channels=rng.uniform(-1, 1, size=(2, n)), sample_rate=16000)
    out = stretch(pcm, rate)
    for channel in out.channels:
        assert len(channel) == math.ceil(n / rate)

def test_stretch_rate_one_keeps_length(sine_8k):
    assert stretch(sine_8k, 1.0).frame_count == sine_8k.frame_count

def test_stretch_min_and_max_rate(sine_8k):
    """0.5x doubles the frame count and 2.0x halves it."""
    assert stretch(sine_8k, 0.5).frame_count == 2 * sine_8k.frame_count
    assert stretch(sine_8k, 2.0).frame_count == sine_8k.frame_count // 2

@pytest.mark.parametrize("rate", [0.5, 1.0, 2.0])
def test_stretch_empty_channel(rate):
    pcm = PcmBuffer(channels=[[]], sample_rate=8000)
    out = stretch(pcm, rate)
    assert out.num_channels == 1
    assert out.frame_count == 0

def test_stretch_frame_larger_than_input():
    pcm = PcmBuffer.from_mono(np.linspace(-0.5, 0.5, 300), 8000)
    out = stretch(pcm, 1.5, frame_size=4096)
    assert out.frame_count == math.ceil(300 / 1.5)

# --- Invalid parameters ---

@pytest.mark.parametrize("rate", [0.0, -1.0, float("nan"), float("inf"), 0.25, 4.0])
def test_stretch_invalid_rate_allocates_nothing(sine_8k, rate, mocker):
    mock_channel = mocker.patch("rateshift.core.stretch.stretch_channel")
    mock_accumulator = mocker.patch("rateshift.core.stretch.SynthesisAccumulator")
    with pytest.raises(InvalidParameter):
        stretch(sine_8k, rate)
    mock_channel.assert_not_called()
    mock_accumulator.assert_not_called()

def test_stretch_custom_rate_range(sine_8k):
    out = stretch(sine_8k, 4.0, min_rate=0.25, max_rate=4.0)
    assert out.frame_count == 2000

@pytest.mark.parametrize("kwargs", [{"frame_size": 0}, {"frame_size": -8}, {"max_workers": 0}])
def test_stretch_invalid_engine_settings(sine_8k, kwargs):
    with pytest.raises(InvalidParameter):
        stretch(sine_8k, 1.0, **kwargs)

def test_stretch_rejects_non_buffer():
    with pytest.raises(InvalidInput):
        stretch([[0.0, 0.1]], 1.0)

def test_stretch_allocation_failure(sine_8k, mocker):
    mocker.patch.object(np, "empty", side_effect=MemoryError)
    with pytest.raises(AllocationFailure) as excinfo:
        stretch(sine_8k, 1.5)
    assert isinstance(excinfo.value, MemoryError)

def test_stretch_channel_invalid_rate():
    with pytest.raises(InvalidParameter):
        stretch_channel(np.zeros(10), 8000, 0.0)

# --- Signal properties ---

def test_stretch_output_is_bounded_and_finite(sine_8k):
    out = stretch(sine_8k, 1.3)
    assert np.all(np.isfinite(out.channels))
    assert np.max(np.abs(out.channels)) <= 1.0 + 1e-6

def test_stretch_handles_zero_denominators():
    """Silence and isolated zeros never produce NaN or inf."""
    signal = np.zeros(5000, dtype=np.float32)
    signal[1000:1010] = 0.5
    signal[2000::7] = -0.25
    out = stretch(PcmBuffer.from_mono(signal, 8000), 0.8)
    assert np.all(np.isfinite(out.channels))

def test_stretch_is_deterministic(stereo_22k):
    first = stretch(stereo_22k, 1.7)
    second = stretch(stereo_22k, 1.7)
    assert_array_equal(first.channels, second.channels)

def test_stretch_does_not_modify_input(stereo_22k):
    before = stereo_22k.channels.copy()
    stretch(stereo_22k, 0.6)
    assert_array_equal(stereo_22k.channels, before)

def test_stretch_channels_are_independent(stereo_22k):
    """Each channel gives the same result as stretching it alone."""
    out = stretch(stereo_22k, 1.25)
    for index in range(stereo_22k.num_channels):
        mono = PcmBuffer.from_mono(stereo_22k.channels[index], stereo_22k.sample_rate)
        assert_array_equal(out.channels[index], stretch(mono, 1.25).channels[0])

def test_stretch_parallel_matches_sequential(stereo_22k):
    sequential = stretch(stereo_22k, 0.9, max_workers=1)
    parallel = stretch(stereo_22k, 0.9, max_workers=4)
    assert_array_equal(sequential.channels, parallel.channels)

@pytest.mark.parametrize("rate", [0.5, 1.0, 2.0])
def test_stretch_keeps_input_pitch(sine_8k, rate):
    """The 440 Hz input stays at 440 Hz whatever the rate."""
    out = stretch(sine_8k, rate).channels[0]
    assert abs(_dominant_frequency(out, sine_8k.sample_rate) - 440.0) <= 5.0

def test_stretch_tone_has_no_dc_offset(sine_8k):
    out = stretch(sine_8k, 1.0).channels[0]
    assert abs(float(np.mean(out))) < 0.05

def test_stretch_silence_is_constant_full_scale():
    pcm = PcmBuffer.from_mono(np.zeros(3000), 8000)
    out = stretch(pcm, 1.5)
    assert_array_equal(out.channels[0], np.ones(2000, dtype=np.float32))

def test_phase_state_defaults():
    state = PhaseState()
    assert (state.last_phase, state.sum_phase, state.expected_phase, state.last_sample) == (0.0, 0.0, 0.0, 0.0)
