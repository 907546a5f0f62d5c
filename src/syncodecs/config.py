"""
Syncodecs Configuration
=======================

This module handles configuration loading for the synthetic codecs.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. YAML config file
    3. Default values (lowest priority)

Environment Variable Mapping:
    SYNCODECS_CONFIG               -> path of the YAML file
    SYNCODECS_INITIAL_RATE_BPS     -> codec.initial_target_rate_bps
    SYNCODECS_DEFAULT_FPS          -> codec.default_fps
    SYNCODECS_FRAMES_EXCLUDED      -> trace.frames_excluded
    SYNCODECS_LOW_BPP_THRESHOLD    -> trace.low_bpp_threshold
    SYNCODECS_HIGH_BPP_THRESHOLD   -> trace.high_bpp_threshold
    SYNCODECS_PAYLOAD_SIZE         -> packetizer.payload_size
    SYNCODECS_PER_PACKET_OVERHEAD  -> packetizer.per_packet_overhead
    SYNCODECS_LOG_LEVEL            -> logging.level
    SYNCODECS_LOG_FORMAT           -> logging.format

All sections are frozen: the settings object is built once on import and
never mutated afterwards.

Example:
    from syncodecs.config import settings

    print(settings.trace.low_bpp_threshold)
    print(settings.statistics.transient_length)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class CodecConfig(BaseModel):
    """Settings shared by every codec."""

    model_config = ConfigDict(frozen=True)

    initial_target_rate_bps: float = Field(
        default=150_000.0,
        gt=0,
        description="Target rate a codec starts with before the host sets one",
    )
    default_fps: float = Field(
        default=25.0,
        gt=0,
        description="Frame rate of fps-based codecs when none is given",
    )


class TraceConfig(BaseModel):
    """Trace directory contract and resolution adaptation constants."""

    model_config = ConfigDict(frozen=True)

    min_bitrate_kbps: int = Field(default=100, ge=1, description="Lowest accepted trace bitrate")
    max_bitrate_kbps: int = Field(default=6000, ge=1, description="Highest accepted trace bitrate")
    bitrate_step_kbps: int = Field(default=100, ge=1, description="Trace bitrates must be multiples of this")
    frames_excluded: int = Field(
        default=20,
        ge=0,
        description="Initial frames skipped when a trace wraps around",
    )
    low_bpp_threshold: float = Field(
        default=0.7,
        gt=0,
        description="Bits per pixel below which resolution is increased",
    )
    high_bpp_threshold: float = Field(
        default=1.5,
        gt=0,
        description="Bits per pixel above which resolution is decreased",
    )
    waggoner_exponent: float = Field(
        default=0.75,
        gt=0,
        description="Exponent of Waggoner's power law for large resolutions",
    )
    waggoner_limit_resolution: str = Field(
        default="480p",
        description="Resolution above which Waggoner's power law applies",
    )
    file_extension: str = Field(default=".txt", description="Trace file extension")
    size_column: int = Field(
        default=2,
        ge=0,
        description="Zero-based column holding the frame size in a trace line",
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> "TraceConfig":
        if self.low_bpp_threshold >= self.high_bpp_threshold:
            raise ValueError("low_bpp_threshold must be below high_bpp_threshold")
        if self.min_bitrate_kbps > self.max_bitrate_kbps:
            raise ValueError("min_bitrate_kbps must not exceed max_bitrate_kbps")
        return self


class StatisticsConfig(BaseModel):
    """Defaults of the statistics-based codec."""

    model_config = ConfigDict(frozen=True)

    max_update_ratio: float = Field(
        default=0.1,
        ge=0,
        description="Largest relative rate change in one update (0 = unlimited)",
    )
    update_interval: float = Field(
        default=0.1,
        ge=0,
        description="Seconds after an accepted update during which updates are refused",
    )
    big_change_ratio: float = Field(
        default=0.5,
        gt=0,
        description="Relative rate change that triggers a transient phase",
    )
    transient_length: int = Field(default=10, ge=1, description="Transient phase length in frames")
    i_frame_ratio: float = Field(
        default=4.0,
        gt=0,
        description="I-frame size relative to a steady frame",
    )
    rand_max_ratio: float = Field(
        default=0.1,
        ge=0,
        lt=1.0,
        description="Half-width of the default uniform noise factor",
    )
    min_transient_frame_ratio: float = Field(
        default=0.2,
        ge=0,
        description="Floor of a compensating transient frame relative to a steady frame",
    )


class PacketizerConfig(BaseModel):
    """Defaults of the shaped packetizer."""

    model_config = ConfigDict(frozen=True)

    payload_size: int = Field(default=1000, ge=1, description="Maximum payload per packet (bytes)")
    per_packet_overhead: int = Field(
        default=0,
        ge=0,
        description="Bytes added to every packet on the wire (IP/UDP/RTP headers)",
    )

    @model_validator(mode="after")
    def _check_overhead(self) -> "PacketizerConfig":
        if self.per_packet_overhead >= self.payload_size:
            raise ValueError("per_packet_overhead must be smaller than payload_size")
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for syncodecs.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    model_config = ConfigDict(frozen=True)

    codec: CodecConfig = Field(default_factory=CodecConfig)
    trace: TraceConfig = Field(default_factory=TraceConfig)
    statistics: StatisticsConfig = Field(default_factory=StatisticsConfig)
    packetizer: PacketizerConfig = Field(default_factory=PacketizerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Priority (highest to lowest):
        1. Environment variables
        2. YAML config file
        3. Default values

    Args:
        config_path: Path to a YAML file. If None, SYNCODECS_CONFIG is
            consulted, then common locations in the working directory.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        config_path = os.environ.get("SYNCODECS_CONFIG")
    if config_path is None:
        for path in (Path("syncodecs.yaml"), Path("syncodecs.yml")):
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    elif config_path:
        logger.warning(f"Config file {config_path} not found, using defaults")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Codec settings
    if env_rate := os.environ.get("SYNCODECS_INITIAL_RATE_BPS"):
        config_data.setdefault("codec", {})["initial_target_rate_bps"] = float(env_rate)
    if env_fps := os.environ.get("SYNCODECS_DEFAULT_FPS"):
        config_data.setdefault("codec", {})["default_fps"] = float(env_fps)

    # Trace settings
    if env_excluded := os.environ.get("SYNCODECS_FRAMES_EXCLUDED"):
        config_data.setdefault("trace", {})["frames_excluded"] = int(env_excluded)
    if env_low := os.environ.get("SYNCODECS_LOW_BPP_THRESHOLD"):
        config_data.setdefault("trace", {})["low_bpp_threshold"] = float(env_low)
    if env_high := os.environ.get("SYNCODECS_HIGH_BPP_THRESHOLD"):
        config_data.setdefault("trace", {})["high_bpp_threshold"] = float(env_high)

    # Packetizer settings
    if env_payload := os.environ.get("SYNCODECS_PAYLOAD_SIZE"):
        config_data.setdefault("packetizer", {})["payload_size"] = int(env_payload)
    if env_overhead := os.environ.get("SYNCODECS_PER_PACKET_OVERHEAD"):
        config_data.setdefault("packetizer", {})["per_packet_overhead"] = int(env_overhead)

    # Logging settings
    if env_log := os.environ.get("SYNCODECS_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log
    if env_format := os.environ.get("SYNCODECS_LOG_FORMAT"):
        config_data.setdefault("logging", {})["format"] = env_format


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


# =============================================================================
# Global Settings Instance
# =============================================================================

# Loaded once on import; hosts call setup_logging() themselves
settings = load_config()
