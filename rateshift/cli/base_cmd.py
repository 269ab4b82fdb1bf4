# rateshift/cli/base_cmd.py

"""
Base setup for CLI commands: configuration loading and logging initialization.
"""

import logging
import sys

import click

from rateshift.config import load_configuration, RateShiftConfig
from rateshift.utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def _resolve_verbosity(ctx: click.Context) -> int:
    """Reads -v/-q from the current context, falling back to the parent's."""
    for context in (ctx, ctx.parent):
        if context is None:
            continue
        if context.params.get('quiet', False):
            return -1
        verbose = context.params.get('verbose', 0) or 0
        if verbose > 0:
            return verbose
    return 0


class ConfigGroup(click.Group):
    """
    A Click Group that loads configuration and sets up logging before invoking
    the group or its subcommands. The config is passed via ctx.obj['config'].
    """
    def invoke(self, ctx: click.Context):
        if ctx.obj is None:
            ctx.obj = {}

        setup_success = False
        try:
            # --- Setup Phase ---
            if 'config' not in ctx.obj:
                config = load_configuration()
                ctx.obj['config'] = config
                setup_logging(config, _resolve_verbosity(ctx))
                logger.debug("Logging setup complete in ConfigGroup.")
            else:
                config: RateShiftConfig = ctx.obj['config']
                logger.debug("Configuration already loaded in context.")

            setup_success = True

            # --- Command Execution Phase ---
            return super().invoke(ctx)

        except click.exceptions.Exit:
            raise
        except Exception as e:
            if not setup_success:
                logging.getLogger("rateshift.error").critical(f"Critical error during CLI setup: {e!r}", exc_info=True)
                # Logging might not be set up yet
                print(f"CRITICAL SETUP ERROR: {e!r}", file=sys.stderr)
                ctx.exit(1)
            raise


# --- Common CLI Options ---
verbose_option = click.option(
    '-v', '--verbose',
    count=True,
    help="Increase verbosity level (-v for INFO, -vv for DEBUG)."
)
quiet_option = click.option(
    '-q', '--quiet',
    is_flag=True,
    default=False,
    help="Suppress all console output except critical errors."
)
