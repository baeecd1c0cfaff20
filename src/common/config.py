"""
Configuration loader for the NationSense backend.

Loads settings from config.yaml. Environment variables are used ONLY for secrets.
Never log secrets.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field


class GatewayConfig(BaseModel):
    """Configuration for the WebSocket gateway."""

    host: str = Field(default="127.0.0.1", description="Host to bind to")
    port: int = Field(default=8000, description="Port to bind to")
    connection_timeout: int = Field(default=300, description="Idle connection timeout in seconds")


class ProviderConfig(BaseModel):
    """Configuration for the generative model provider (Gemini)."""

    api_key_env: str = Field(
        default="GEMINI_API_KEY", description="Environment variable holding the API key"
    )
    profile_model: str = Field(default="gemini-2.5-flash", description="Model for profile lookup")
    insight_model: str = Field(default="gemini-2.5-flash", description="Model for insights")
    chat_model: str = Field(default="gemini-2.5-flash", description="Model for the chat persona")
    vision_model: str = Field(
        default="gemini-2.5-flash-image", description="Model for image generation"
    )
    temperature: Optional[float] = Field(default=None, description="Temperature override")
    request_timeout: float = Field(
        default=60.0, description="Timeout in seconds per request or per streamed increment"
    )
    expected_trait_count: int = Field(
        default=3, description="Number of traits the profile prompt asks for"
    )


class SessionConfig(BaseModel):
    """Configuration for per-connection sessions."""

    suggestions: List[str] = Field(
        default_factory=lambda: [
            "India",
            "United States",
            "China",
            "Brazil",
            "Australia",
            "Egypt",
            "Japan",
            "Kenya",
        ],
        description="Countries offered before the first search",
    )


class Config(BaseModel):
    """Main configuration object."""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    providers: ProviderConfig = Field(default_factory=ProviderConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    log_level: str = Field(default="INFO", description="Logging level")
    enable_pretty_print: bool = Field(
        default=False, description="Enable custom pretty print for debugging"
    )
    save_to_file: bool = Field(default=False, description="Save logs to file")
    log_file_path: str = Field(default="server.log", description="Log file path (relative to root)")
    max_log_file_size: int = Field(
        default=10485760, description="Max log file size in bytes (10MB)"
    )
    backup_count: int = Field(default=5, description="Number of backup log files to keep")


_LOGGING_KEYS = {
    "level": "log_level",
    "enable_pretty_print": "enable_pretty_print",
    "save_to_file": "save_to_file",
    "log_file_path": "log_file_path",
    "max_log_file_size": "max_log_file_size",
    "backup_count": "backup_count",
}


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from YAML file.

    Environment variables are used ONLY for secrets (API keys), not configuration.

    Args:
        config_path: Path to config.yaml file. Defaults to ./config.yaml

    Returns:
        Loaded configuration object
    """
    if config_path is None:
        config_path = Path("config.yaml")

    config_data: Dict[str, Any] = {}

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    # Flatten the nested logging section onto the top-level fields
    logging_config = config_data.pop("logging", None) or {}
    for yaml_key, field_name in _LOGGING_KEYS.items():
        if yaml_key in logging_config:
            config_data[field_name] = logging_config[yaml_key]

    return Config(**config_data)
