# rateshift/cli/stretch_cmd.py

"""
CLI commands for changing the playback speed of audio files.
"""

import logging
from pathlib import Path
from typing import Optional

import click

from rateshift.config import RateShiftConfig
from rateshift.core.audio.io import load_pcm
from rateshift.core.convert import (
    adjusted_duration,
    convert_file,
    format_duration,
)
from rateshift.core.errors import ConversionInProgress, InvalidInput, InvalidParameter

logger = logging.getLogger(__name__)

# --- Common Options ---
input_argument = click.argument("input_file", type=click.Path(dir_okay=False, resolve_path=True))
rate_option = click.option("-r", "--rate", type=float, default=None,
                           help="Speed factor (>1 speeds up, <1 slows down). Defaults to engine.default_rate.")


def _get_config(ctx: click.Context) -> RateShiftConfig:
    if isinstance(ctx.obj, dict) and isinstance(ctx.obj.get('config'), RateShiftConfig):
        return ctx.obj['config']
    return RateShiftConfig()


def _echo_durations(original: float, adjusted: float, rate: float):
    click.echo(f"Original duration: {format_duration(original)}")
    click.echo(f"Adjusted duration: {format_duration(adjusted)} (at {rate:.2f}x)")
    click.echo(f"Difference: {format_duration(abs(original - adjusted))}")


# --- Stretch Command ---
@click.command("stretch")
@input_argument
@rate_option
@click.option("-o", "--output", type=click.Path(dir_okay=False, resolve_path=True), default=None,
              help="Output WAV path. Defaults to 'speed-adjusted-<name>.wav' in paths.output_dir.")
@click.option("--frame-size", type=click.IntRange(min=1), default=None,
              help="Engine frame size in samples (overrides engine.frame_size).")
@click.option("--workers", type=click.IntRange(min=1), default=None,
              help="Channels processed in parallel (overrides engine.max_workers).")
@click.pass_context
def stretch_cmd(ctx, input_file: str, rate: Optional[float], output: Optional[str],
                frame_size: Optional[int], workers: Optional[int]):
    """Change the speed of INPUT_FILE without changing its pitch and save it as WAV."""
    config = _get_config(ctx)
    if frame_size is not None or workers is not None:
        engine = config.engine.model_copy(update={
            k: v for k, v in (("frame_size", frame_size), ("max_workers", workers)) if v is not None
        })
        config = config.model_copy(update={"engine": engine})

    input_path = Path(input_file)
    output_path = Path(output) if output else None
    logger.info(f"Running 'stretch' on: {input_path} (rate={rate}, output={output_path})")

    if not input_path.is_file():
        raise click.UsageError(f"Input file not found: {input_path}")

    try:
        result = convert_file(input_path, rate=rate, output_path=output_path, config=config)
    except FileNotFoundError:
        raise click.UsageError(f"Input file not found: {input_path}")
    except (InvalidParameter, InvalidInput, ConversionInProgress) as e:
        raise click.UsageError(str(e))
    except Exception as e:
        logger.error(f"An unexpected error occurred during conversion: {e}", exc_info=True)
        raise click.Abort() from e

    click.echo(f"Saved '{result.output_path.name}' ({result.num_channels} ch, {result.sample_rate} Hz).")
    _echo_durations(result.original_duration, result.adjusted_duration, result.rate)


# --- Info Command ---
@click.command("info")
@input_argument
@rate_option
@click.pass_context
def info_cmd(ctx, input_file: str, rate: Optional[float]):
    """Show the duration of INPUT_FILE before and after a speed change."""
    config = _get_config(ctx)
    rate = config.engine.default_rate if rate is None else rate
    input_path = Path(input_file)

    if not input_path.is_file():
        raise click.UsageError(f"Input file not found: {input_path}")
    if not (config.engine.min_rate <= rate <= config.engine.max_rate):
        raise click.UsageError(
            f"Rate {rate} is outside the supported range "
            f"[{config.engine.min_rate}, {config.engine.max_rate}]."
        )

    try:
        pcm = load_pcm(input_path)
    except Exception as e:
        logger.error(f"Could not decode '{input_path}': {e}", exc_info=True)
        raise click.Abort() from e

    click.echo(f"File: {input_path.name}")
    click.echo(f"Channels: {pcm.num_channels}")
    click.echo(f"Sample rate: {pcm.sample_rate} Hz")
    _echo_durations(pcm.duration, adjusted_duration(pcm.duration, rate), rate)
