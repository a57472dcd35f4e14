"""
Configuration management for the exporter.
Centralizes all runtime settings in one place.
"""
import os
import re
from dataclasses import dataclass
from typing import Optional, Dict, Any

from .errors import ConfigurationError

DEFAULT_PORT = 10001
DEFAULT_PREFIX = "mastodon"
DEFAULT_TIMEOUT = 10.0

_PREFIX_PATTERN = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")


def _env_number(name: str, default, convert):
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return convert(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number (got {value!r})") from None


@dataclass
class ExporterConfig:
    """Configuration for the exporter.

    Fields left as ``None`` are filled from the environment, then from the
    built-in defaults, so explicitly passed values (e.g. CLI flags) win.
    """

    # Upstream Mastodon instance
    instance_url: Optional[str] = None
    access_token: Optional[str] = None
    timeout: Optional[float] = None

    # Exposition
    port: Optional[int] = None
    prefix: Optional[str] = None

    # Logging Configuration
    log_level: Optional[str] = None
    log_format: Optional[str] = None  # json or console
    log_file: Optional[str] = None

    def __post_init__(self):
        """Apply environment overrides for unset values."""
        if self.instance_url is None:
            self.instance_url = os.getenv("MASTODON_INSTANCE_URI")
        if self.access_token is None:
            self.access_token = os.getenv("MASTODON_ACCESS_TOKEN", "")
        if self.timeout is None:
            self.timeout = _env_number("FETCH_TIMEOUT", DEFAULT_TIMEOUT, float)
        if self.port is None:
            self.port = _env_number("METRICS_PORT", DEFAULT_PORT, int)
        if self.prefix is None:
            self.prefix = os.getenv("METRICS_PREFIX", DEFAULT_PREFIX)
        if self.log_level is None:
            self.log_level = os.getenv("LOG_LEVEL", "INFO")
        if self.log_format is None:
            self.log_format = os.getenv("LOG_FORMAT", "json")
        if self.log_file is None:
            self.log_file = os.getenv("LOG_FILE")

    def validate(self):
        """Raise ConfigurationError if the exporter cannot run with these settings."""
        if not self.access_token:
            raise ConfigurationError(
                "MASTODON_ACCESS_TOKEN environment variable is not set"
            )
        if not self.instance_url:
            raise ConfigurationError("--instance is required")
        if not self.instance_url.startswith("https://"):
            raise ConfigurationError(
                f"--instance must start with https:// (got {self.instance_url!r})"
            )
        if not _PREFIX_PATTERN.match(self.prefix):
            raise ConfigurationError(f"invalid metric prefix {self.prefix!r}")
        if self.timeout <= 0:
            raise ConfigurationError("--timeout must be positive")
        if self.log_format not in ("json", "console"):
            raise ConfigurationError(f"unknown log format {self.log_format!r}")

    @property
    def base_url(self) -> str:
        return self.instance_url.rstrip("/")

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ExporterConfig':
        """Create config from dictionary."""
        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary, with the access token redacted."""
        return {
            'instance_url': self.instance_url,
            'access_token': '***' if self.access_token else '',
            'timeout': self.timeout,
            'port': self.port,
            'prefix': self.prefix,
            'log_level': self.log_level,
            'log_format': self.log_format,
            'log_file': self.log_file,
        }
