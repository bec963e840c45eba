"""Configuration loader for the VALR client.

Supports YAML format with environment variable interpolation.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .constants import (
    API_BASE_URL,
    RATE_LIMITS,
    WS_BASE_URL,
    WS_PING_INTERVAL_SECONDS,
    WS_RECONNECT_DELAY_SECONDS,
)


@dataclass
class ApiConfig:
    """REST API settings."""
    base_url: str = API_BASE_URL
    timeout: float = 30.0


@dataclass
class WebSocketConfig:
    """WebSocket session settings."""
    base_url: str = WS_BASE_URL
    auto_reconnect: bool = True
    reconnect_delay: float = WS_RECONNECT_DELAY_SECONDS
    max_reconnect_attempts: Optional[int] = None  # None = unbounded
    ping_interval: float = WS_PING_INTERVAL_SECONDS


@dataclass
class LoggingConfig:
    log_file: Optional[str] = "valr.log"
    level: str = "INFO"
    enable_console: bool = True


@dataclass
class RateLimitConfig:
    """Client-side request pacing (off by default)."""
    enabled: bool = False
    per_key_per_minute: int = RATE_LIMITS["per_key_per_minute"]


@dataclass
class ValrConfig:
    """Complete client configuration."""
    api: ApiConfig = field(default_factory=ApiConfig)
    websocket: WebSocketConfig = field(default_factory=WebSocketConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "ValrConfig":
        """Load configuration from YAML file with env var interpolation.

        Example YAML:
            api:
              timeout: 10
            websocket:
              reconnect_delay: 2.5
              max_reconnect_attempts: 10
            logging:
              log_file: "${LOG_DIR}/valr.log"
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with config_file.open("r") as f:
            raw = f.read()

        # Interpolate environment variables: ${VAR_NAME}
        for key, value in os.environ.items():
            raw = raw.replace(f"${{{key}}}", value)

        data = yaml.safe_load(raw) or {}

        return cls(
            api=ApiConfig(**data.get("api", {})),
            websocket=WebSocketConfig(**data.get("websocket", {})),
            logging=LoggingConfig(**data.get("logging", {})),
            rate_limit=RateLimitConfig(**data.get("rate_limit", {})),
        )

    def to_yaml(self, output_path: str) -> None:
        """Save configuration to YAML file."""
        data = {
            "api": {
                "base_url": self.api.base_url,
                "timeout": self.api.timeout,
            },
            "websocket": {
                "base_url": self.websocket.base_url,
                "auto_reconnect": self.websocket.auto_reconnect,
                "reconnect_delay": self.websocket.reconnect_delay,
                "max_reconnect_attempts": self.websocket.max_reconnect_attempts,
                "ping_interval": self.websocket.ping_interval,
            },
            "logging": {
                "log_file": self.logging.log_file,
                "level": self.logging.level,
                "enable_console": self.logging.enable_console,
            },
            "rate_limit": {
                "enabled": self.rate_limit.enabled,
                "per_key_per_minute": self.rate_limit.per_key_per_minute,
            },
        }

        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with output_file.open("w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
