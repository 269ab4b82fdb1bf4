# rateshift/core/convert.py

"""
End-to-end conversion: decode a file, change its speed, encode it as WAV.

This is the thin layer around the core operations (`stretch`, `encode`):
it reads engine settings from the configuration, names the output file,
reports original/adjusted durations and refuses to start a second
conversion of a file that is already being converted.
"""

import logging
import math
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Set, Union

from rateshift.config import RateShiftConfig
from .audio.io import load_pcm, write_container
from .audio.wav import ContainerByteStream, encode
from .buffer import PcmBuffer
from .errors import ConversionInProgress, InvalidParameter
from .stretch import stretch

logger = logging.getLogger(__name__)

DEFAULT_FILENAME_TEMPLATE = "speed-adjusted-{stem}.wav"


@dataclass(frozen=True)
class ConversionResult:
    """Summary of a finished file conversion."""
    output_path: Path
    rate: float
    num_channels: int
    sample_rate: int
    original_duration: float
    adjusted_duration: float
    bytes_written: int

    @property
    def duration_difference(self) -> float:
        return abs(self.original_duration - self.adjusted_duration)


# --- Duration helpers ---

def adjusted_duration(seconds: float, rate: float) -> float:
    """Playback duration after changing speed by `rate`."""
    if not math.isfinite(rate) or rate <= 0:
        raise InvalidParameter(f"Stretch rate must be a positive finite number, got {rate}")
    return seconds / rate


def format_duration(seconds: float) -> str:
    """Formats seconds as 'm:ss' (both parts floored)."""
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def default_output_path(
    input_path: Path,
    output_dir: Optional[Path] = None,
    template: str = DEFAULT_FILENAME_TEMPLATE,
) -> Path:
    """
    Output file path for `input_path`.

    The name comes from `template` with '{stem}' replaced by the input stem.
    The suffix is always '.wav'. Without `output_dir` the file goes next to
    the input.
    """
    name = Path(template.format(stem=input_path.stem))
    if name.suffix.lower() != ".wav":
        name = name.with_name(name.name + ".wav")
    directory = output_dir if output_dir is not None else input_path.parent
    return directory / name


# --- In-flight tracking ---

class ConversionGuard:
    """
    Tracks which input files are being converted.

    Thread safe. Claiming a path that is already claimed raises
    ConversionInProgress; different paths may be converted concurrently.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._active: Set[Path] = set()

    @staticmethod
    def _key(path: Union[str, Path]) -> Path:
        return Path(path).expanduser().resolve()

    def is_active(self, path: Union[str, Path]) -> bool:
        with self._lock:
            return self._key(path) in self._active

    @contextmanager
    def claim(self, path: Union[str, Path]) -> Iterator[Path]:
        key = self._key(path)
        with self._lock:
            if key in self._active:
                raise ConversionInProgress(f"A conversion of '{key}' is already in progress.")
            self._active.add(key)
        try:
            yield key
        finally:
            with self._lock:
                self._active.discard(key)


# --- Conversion ---

def convert_buffer(
    pcm: PcmBuffer,
    rate: float,
    config: Optional[RateShiftConfig] = None,
) -> ContainerByteStream:
    """Stretches `pcm` by `rate` using the engine settings in `config` and encodes it."""
    engine = (config or RateShiftConfig()).engine
    stretched = stretch(
        pcm,
        rate,
        frame_size=engine.frame_size,
        min_rate=engine.min_rate,
        max_rate=engine.max_rate,
        max_workers=engine.max_workers,
    )
    return encode(stretched)


def convert_file(
    input_path: Path,
    rate: Optional[float] = None,
    output_path: Optional[Path] = None,
    config: Optional[RateShiftConfig] = None,
    guard: Optional[ConversionGuard] = None,
) -> ConversionResult:
    """
    Converts an audio file to a speed-adjusted 16-bit WAV file.

    Args:
        input_path: Any file librosa can decode.
        rate: Speed factor; defaults to `config.engine.default_rate`.
        output_path: Target file. Defaults to `default_output_path` inside
                     `config.paths.output_dir`.
        config: Configuration; defaults are used if None.
        guard: Optional in-flight registry shared between callers.

    Returns:
        ConversionResult describing the written file.

    Raises:
        InvalidParameter: Rate outside the configured range (before decoding).
        ConversionInProgress: If `guard` already holds `input_path`.
        FileNotFoundError: If `input_path` does not exist.
    """
    config = config or RateShiftConfig()
    rate = config.engine.default_rate if rate is None else rate
    # Check the rate before paying for decoding
    if not math.isfinite(rate) or rate <= 0 or not (config.engine.min_rate <= rate <= config.engine.max_rate):
        raise InvalidParameter(
            f"Stretch rate {rate} is outside the supported range "
            f"[{config.engine.min_rate}, {config.engine.max_rate}]"
        )

    if output_path is None:
        output_path = default_output_path(
            input_path, config.paths.output_dir, config.output.filename_template
        )

    guard = guard or ConversionGuard()
    with guard.claim(input_path):
        pcm = load_pcm(input_path)
        logger.info(
            f"Converting '{input_path.name}': {pcm.num_channels} channel(s), "
            f"{pcm.sample_rate} Hz, {format_duration(pcm.duration)} at {rate}x"
        )
        stream = convert_buffer(pcm, rate, config)
        bytes_written = write_container(stream, output_path)

    return ConversionResult(
        output_path=output_path,
        rate=rate,
        num_channels=pcm.num_channels,
        sample_rate=pcm.sample_rate,
        original_duration=pcm.duration,
        adjusted_duration=adjusted_duration(pcm.duration, rate),
        bytes_written=bytes_written,
    )
