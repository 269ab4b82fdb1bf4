# rateshift/config/__init__.py

"""
Configuration management for rateshift.

This package handles loading configuration from files (TOML),
environment variables, and internal defaults, providing a unified
configuration object.
"""

from .models import RateShiftConfig
from .loaders import load_configuration

__all__ = [
    "RateShiftConfig",
    "load_configuration",
]
