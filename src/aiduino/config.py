"""
aiduino Configuration
=====================

This module handles configuration loading for the streaming service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    AIDUINO_SOURCE_BACKEND      -> source.backend
    AIDUINO_SERIAL_PORT         -> source.serial.port
    AIDUINO_BAUD_RATE           -> source.serial.baud_rate
    AIDUINO_WS_URL              -> source.websocket.url
    AIDUINO_BUFFER_CAPACITY     -> buffer.capacity
    AIDUINO_SUMMARY_URL         -> summary.endpoint_url
    AIDUINO_SUMMARY_INTERVAL    -> summary.interval_seconds
    AIDUINO_SUMMARY_MIN_SAMPLES -> summary.min_samples
    AIDUINO_AI_URL              -> ai.completions_url
    AIDUINO_AI_MODEL            -> ai.model
    AIDUINO_AI_API_KEY          -> ai.api_key
    AIDUINO_PORT                -> server.port
    AIDUINO_LOG_LEVEL           -> logging.level
    PORT                        -> server.port (Cloud Run)

Example:
    from aiduino.config import settings

    print(settings.source.backend)
    print(settings.buffer.capacity)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="aiduino", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class SerialConfig(BaseModel):
    """Physical serial link configuration."""

    port: str = Field(default="/dev/ttyACM0", description="Serial device path or name")
    baud_rate: int = Field(default=9600, gt=0, description="Line speed in baud")
    read_timeout_seconds: float = Field(
        default=0.5,
        gt=0,
        description="Maximum wait of one blocking read",
    )
    read_size: int = Field(default=256, ge=1, description="Maximum bytes per chunk")


class WebSocketSourceConfig(BaseModel):
    """WebSocket bridge configuration."""

    url: str = Field(
        default="ws://localhost:8765/serial",
        description="WebSocket URL of the serial bridge",
    )
    open_timeout_seconds: float = Field(default=10.0, gt=0, description="Handshake timeout")


class SimulatedSourceConfig(BaseModel):
    """Simulated device configuration."""

    interval_seconds: float = Field(default=1.0, ge=0, description="Seconds between lines")
    max_lines: int = Field(default=0, ge=0, description="Lines before end of stream (0 = unlimited)")
    corrupt_every: int = Field(default=0, ge=0, description="Malformed line every N lines (0 = never)")
    max_chunk_size: int = Field(default=16, ge=1, description="Largest chunk delivered")


class SourceConfig(BaseModel):
    """Byte source selection."""

    backend: str = Field(
        default="simulated",
        description="Byte source backend: 'serial', 'websocket' or 'simulated'",
    )
    serial: SerialConfig = Field(default_factory=SerialConfig)
    websocket: WebSocketSourceConfig = Field(default_factory=WebSocketSourceConfig)
    simulated: SimulatedSourceConfig = Field(default_factory=SimulatedSourceConfig)


class BufferConfig(BaseModel):
    """Sample window configuration."""

    capacity: int = Field(default=60, ge=1, description="Samples kept in the rolling window")


class SummaryConfig(BaseModel):
    """Summary scheduler configuration."""

    enabled: bool = Field(default=True, description="Run the summary scheduler")
    endpoint_url: Optional[str] = Field(
        default=None,
        description="Summary endpoint URL; None uses the in-process AI backend",
    )
    min_samples: int = Field(default=10, ge=1, description="Samples required before summarizing")
    interval_seconds: float = Field(default=60.0, gt=0, description="Seconds between summaries")
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="Summary request timeout")


class AIConfig(BaseModel):
    """Chat-completions backend used by POST /api/summary."""

    completions_url: str = Field(
        default="https://ai.hackclub.com/chat/completions",
        description="OpenAI-style chat-completions endpoint",
    )
    model: str = Field(default="gpt-3.5-turbo", description="Model name")
    api_key: Optional[str] = Field(default=None, description="Bearer token, if required")
    max_words: int = Field(default=60, ge=1, description="Word budget stated in the prompt")
    timeout_seconds: float = Field(default=30.0, gt=0, description="Upstream request timeout")


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8001, ge=1, le=65535, description="Bind port")
    autoconnect: bool = Field(default=False, description="Connect the byte source at startup")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for aiduino.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    buffer: BufferConfig = Field(default_factory=BufferConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
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
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration
    """
    if config_path is None:
        config_path = os.environ.get("AIDUINO_CONFIG")

    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Source settings
    source = config_data.setdefault("source", {})
    if env_backend := os.environ.get("AIDUINO_SOURCE_BACKEND"):
        source["backend"] = env_backend
    if env_port := os.environ.get("AIDUINO_SERIAL_PORT"):
        source.setdefault("serial", {})["port"] = env_port
    if env_baud := os.environ.get("AIDUINO_BAUD_RATE"):
        source.setdefault("serial", {})["baud_rate"] = int(env_baud)
    if env_ws := os.environ.get("AIDUINO_WS_URL"):
        source.setdefault("websocket", {})["url"] = env_ws

    # Buffer settings
    if env_capacity := os.environ.get("AIDUINO_BUFFER_CAPACITY"):
        config_data.setdefault("buffer", {})["capacity"] = int(env_capacity)

    # Summary settings
    if env_summary_url := os.environ.get("AIDUINO_SUMMARY_URL"):
        config_data.setdefault("summary", {})["endpoint_url"] = env_summary_url
    if env_interval := os.environ.get("AIDUINO_SUMMARY_INTERVAL"):
        config_data.setdefault("summary", {})["interval_seconds"] = float(env_interval)
    if env_min := os.environ.get("AIDUINO_SUMMARY_MIN_SAMPLES"):
        config_data.setdefault("summary", {})["min_samples"] = int(env_min)

    # AI backend settings
    if env_ai_url := os.environ.get("AIDUINO_AI_URL"):
        config_data.setdefault("ai", {})["completions_url"] = env_ai_url
    if env_model := os.environ.get("AIDUINO_AI_MODEL"):
        config_data.setdefault("ai", {})["model"] = env_model
    if env_key := os.environ.get("AIDUINO_AI_API_KEY"):
        config_data.setdefault("ai", {})["api_key"] = env_key

    # Server settings (Cloud Run uses PORT env var)
    if env_server_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_server_port)
    elif env_server_port := os.environ.get("AIDUINO_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_server_port)

    # Logging settings
    if env_log := os.environ.get("AIDUINO_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


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

# Global settings instance - loaded on import
settings = load_config()
setup_logging(settings)
