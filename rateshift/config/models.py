# rateshift/config/models.py

"""
Pydantic models for the rateshift configuration (rateshift.toml).
Uses Pydantic V2 syntax.
"""

from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# --- Helper Functions ---

def _resolve_path(path: Union[str, Path]) -> Path:
    """Resolves and expands user paths."""
    return Path(path).expanduser().resolve()

# --- Model Definitions ---

class EngineConfig(BaseModel):
    """Time-stretch engine settings."""
    frame_size: int = Field(2048, gt=0, description="Samples per analysis/synthesis frame.")
    min_rate: float = Field(0.5, gt=0, description="Lowest accepted speed factor.")
    max_rate: float = Field(2.0, gt=0, description="Highest accepted speed factor.")
    default_rate: float = Field(1.0, gt=0, description="Speed factor used when none is given.")
    max_workers: int = Field(1, ge=1, description="Channels processed in parallel.")

    @model_validator(mode='after')
    def check_rate_bounds(self) -> "EngineConfig":
        if self.min_rate > self.max_rate:
            raise ValueError(f"min_rate ({self.min_rate}) must not exceed max_rate ({self.max_rate})")
        if not (self.min_rate <= self.default_rate <= self.max_rate):
            raise ValueError(
                f"default_rate ({self.default_rate}) must lie within "
                f"[{self.min_rate}, {self.max_rate}]"
            )
        return self

class OutputConfig(BaseModel):
    """Naming of converted files."""
    filename_template: str = Field("speed-adjusted-{stem}.wav", description="Output file name; '{stem}' is the input file stem.")

    @field_validator('filename_template')
    @classmethod
    def check_template(cls, value: str) -> str:
        if "{stem}" not in value:
            raise ValueError("filename_template must contain '{stem}'")
        return value

class PathsConfig(BaseModel):
    """File system locations used by rateshift."""
    output_dir: Path = Field(default=Path("./rateshift_output"), description="Default directory for converted files.")
    log_directory: Path = Field(default=Path("./rateshift_logs"), description="Directory for log files.")

    @field_validator('output_dir', 'log_directory', mode='before')
    @classmethod
    def resolve_paths_before_validation(cls, value: Any) -> Path:
        """Resolves paths before Pydantic validates them."""
        if isinstance(value, (str, Path)):
            return _resolve_path(value)
        return value

class LoggingConfig(BaseModel):
    """Logging configuration settings."""
    log_file_enabled: bool = Field(True, description="Enable/disable persistent file logging.")
    log_filename_template: str = Field("rateshift_run_{timestamp:%Y%m%d_%H%M%S}.log", description="Naming pattern for log files.")
    log_level_file: str = Field("DEBUG", description="Minimum level for file logs (DEBUG, INFO, WARNING, ERROR, CRITICAL).")
    log_format: str = Field("%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)", description="Format string for file log entries.")
    log_level_console: str = Field("INFO", description="Default minimum level for console output (overridden by verbosity flags).")

    @field_validator('log_level_file', 'log_level_console')
    @classmethod
    def check_log_level(cls, value: str) -> str:
        """Validate log level strings."""
        allowed_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_value = value.upper()
        if upper_value not in allowed_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of {allowed_levels}")
        return upper_value

class RateShiftConfig(BaseModel):
    """Root configuration model for rateshift."""
    model_config = ConfigDict(
        extra='allow',
        validate_assignment=True
    )

    engine: EngineConfig = Field(default_factory=EngineConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
