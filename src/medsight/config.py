"""
MedSight Configuration
======================

This module handles configuration loading for the guidance service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    MEDSIGHT_RULE_SET          -> classifier.rule_set
    MEDSIGHT_ANALYSIS_INTERVAL -> guidance.analysis_interval_seconds
    MEDSIGHT_FRAME_SOURCE      -> guidance.frame_source
    MEDSIGHT_AUTOSTART         -> guidance.autostart
    MEDSIGHT_STREAM_URL        -> stream.url
    MEDSIGHT_SPEECH_BACKEND    -> speech.backend
    MEDSIGHT_VOICE_ENABLED     -> speech.voice_enabled
    MEDSIGHT_PORT              -> server.port
    MEDSIGHT_LOG_LEVEL         -> logging.level
    PORT                       -> server.port (Cloud Run)

Example:
    from medsight.config import settings

    print(settings.classifier.rule_set)
    print(settings.guidance.analysis_interval_seconds)
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AppConfig(BaseModel):
    """Service identification configuration."""

    name: str = Field(default="medsight-guidance", description="Service name")
    version: str = Field(default="v0.1.0", description="API version")


class ClassifierConfig(BaseModel):
    """Frame color classifier configuration."""

    rule_set: str = Field(
        default="standard",
        description="Rule set: 'standard' (7 rules) or 'basic' (2 rules)",
    )


class SyntheticSourceConfig(BaseModel):
    """Synthetic frame source configuration."""

    width: int = Field(default=64, ge=1, description="Frame width in pixels")
    height: int = Field(default=48, ge=1, description="Frame height in pixels")
    color: List[int] = Field(
        default_factory=lambda: [128, 128, 128],
        min_length=3,
        max_length=3,
        description="Base RGB color of the synthetic frame",
    )


class GuidanceConfig(BaseModel):
    """Periodic frame analysis configuration."""

    analysis_interval_seconds: float = Field(
        default=3.0,
        gt=0,
        description="Seconds between frame analyses while recording",
    )
    frame_source: str = Field(
        default="synthetic",
        description="Frame source: 'synthetic' or 'stream'",
    )
    autostart: bool = Field(
        default=False,
        description="Start recording as soon as the service starts",
    )
    speak_results: bool = Field(
        default=True,
        description="Read newly detected conditions aloud",
    )
    log_every_n_frames: int = Field(
        default=20,
        ge=1,
        description="Log a summary every N analyzed frames",
    )
    synthetic: SyntheticSourceConfig = Field(default_factory=SyntheticSourceConfig)


class StreamConfig(BaseModel):
    """Camera frame stream connection configuration."""

    url: str = Field(
        default="ws://localhost:8000/ws/camera",
        description="WebSocket URL of the camera frame stream",
    )
    reconnect_backoff_ms: int = Field(
        default=500,
        ge=100,
        description="Backoff in milliseconds between reconnect attempts",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Maximum reconnection attempts (0 = unlimited)",
    )
    max_queue_size: int = Field(
        default=5,
        ge=1,
        description="Maximum size of internal frame buffer",
    )


class SpeechConfig(BaseModel):
    """Speech synthesis configuration."""

    backend: str = Field(
        default="log",
        description="Speech backend: 'log' or 'pyttsx3'",
    )
    voice_enabled: bool = Field(default=True, description="Speak responses aloud")
    rate: float = Field(default=0.8, gt=0, le=2.0, description="Relative speech rate")
    volume: float = Field(default=1.0, ge=0, le=1.0, description="Speech volume")
    fallback_transcript: str = Field(
        default="chest compression",
        description="Transcript returned when no recognizer is available",
    )


class AssistantConfig(BaseModel):
    """Voice command and chatbot configuration."""

    command_history_size: int = Field(
        default=5,
        ge=1,
        description="Number of matched voice commands kept in history",
    )


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="text", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for MedSight.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    app: AppConfig = Field(default_factory=AppConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    guidance: GuidanceConfig = Field(default_factory=GuidanceConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    speech: SpeechConfig = Field(default_factory=SpeechConfig)
    assistant: AssistantConfig = Field(default_factory=AssistantConfig)
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


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Classifier settings
    if env_rules := os.environ.get("MEDSIGHT_RULE_SET"):
        config_data.setdefault("classifier", {})["rule_set"] = env_rules

    # Guidance settings
    if env_interval := os.environ.get("MEDSIGHT_ANALYSIS_INTERVAL"):
        config_data.setdefault("guidance", {})["analysis_interval_seconds"] = float(env_interval)
    if env_source := os.environ.get("MEDSIGHT_FRAME_SOURCE"):
        config_data.setdefault("guidance", {})["frame_source"] = env_source
    if env_autostart := os.environ.get("MEDSIGHT_AUTOSTART"):
        config_data.setdefault("guidance", {})["autostart"] = _env_flag(env_autostart)

    # Stream settings
    if env_url := os.environ.get("MEDSIGHT_STREAM_URL"):
        config_data.setdefault("stream", {})["url"] = env_url

    # Speech settings
    if env_speech := os.environ.get("MEDSIGHT_SPEECH_BACKEND"):
        config_data.setdefault("speech", {})["backend"] = env_speech
    if env_voice := os.environ.get("MEDSIGHT_VOICE_ENABLED"):
        config_data.setdefault("speech", {})["voice_enabled"] = _env_flag(env_voice)

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("MEDSIGHT_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("MEDSIGHT_LOG_LEVEL"):
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

settings = load_config()
setup_logging(settings)
