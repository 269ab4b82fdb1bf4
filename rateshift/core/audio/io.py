# rateshift/core/audio/io.py

"""
Loads decoded audio with librosa and writes encoded WAV streams to disk.
"""

import logging
from pathlib import Path
from typing import Optional, Tuple

import librosa
import numpy as np
import soundfile as sf
from numpy.typing import NDArray

from rateshift.core.buffer import PcmBuffer
from .wav import ContainerByteStream

logger = logging.getLogger(__name__)

# Extensions soundfile can decode, plus mp3 which librosa handles via audioread
SUPPORTED_READ_EXTENSIONS = {f".{fmt.lower()}" for fmt in sf.available_formats()}
SUPPORTED_READ_EXTENSIONS.add(".mp3")

logger.debug(f"Supported audio read extensions: {SUPPORTED_READ_EXTENSIONS}")


def load_audio(
    file_path: Path,
    sr: Optional[int] = None,
    mono: bool = False,
) -> Tuple[NDArray[np.float32], int]:
    """
    Decodes an audio file using librosa.

    Args:
        file_path: Path object for the audio file.
        sr: Target sampling rate. If None, uses the native sampling rate.
        mono: If True, mix down to a single channel.

    Returns:
        A tuple containing:
        - data (NDArray[np.float32]): shape (n_samples,) for mono input or
                                      mono=True, otherwise (n_channels, n_samples).
        - sample_rate (int): Sampling rate of `data`.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the path is not a file.
        Exception: For librosa/soundfile/audioread decoding errors.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Audio input file not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Input path is not a file: {file_path}")
    if file_path.suffix.lower() not in SUPPORTED_READ_EXTENSIONS:
        logger.warning(f"Extension '{file_path.suffix}' is not a known audio format; trying to decode anyway.")

    logger.info(f"Loading audio from: {file_path} (sr={sr}, mono={mono})")
    try:
        data, sample_rate = librosa.load(file_path, sr=sr, mono=mono, dtype=np.float32)
    except Exception as e:
        logger.error(f"Error loading audio file {file_path}: {e}")
        raise

    logger.debug(f"Audio loaded successfully. Shape: {data.shape}, SR: {sample_rate}")
    return data, int(sample_rate)


def load_pcm(file_path: Path, sr: Optional[int] = None) -> PcmBuffer:
    """Decodes an audio file into a PcmBuffer, keeping all channels."""
    data, sample_rate = load_audio(file_path, sr=sr, mono=False)
    return PcmBuffer.from_librosa(data, sample_rate)


def write_container(stream: ContainerByteStream, output_path: Path) -> int:
    """
    Writes an encoded stream to `output_path`, creating parent directories.

    Returns:
        Number of bytes written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    data = stream.to_bytes()
    try:
        output_path.write_bytes(data)
    except OSError as e:
        logger.error(f"Error saving audio file {output_path}: {e}")
        raise
    logger.info(f"Audio successfully saved to {output_path} ({len(data)} bytes)")
    return len(data)
