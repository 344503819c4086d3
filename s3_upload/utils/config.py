"""
Environment configuration loader for s3-upload.

Loads settings and credentials from a .env file or environment variables.
Credentials are resolved separately from settings so they are never cached
or logged.
"""

import os
from pathlib import Path
from typing import Optional, Tuple
from dataclasses import dataclass

from dotenv import load_dotenv

from s3_upload.errors import ConfigurationError, CredentialsError

ACCESS_KEY_ENV = "AWS_ACCESS_KEY_ID"
SECRET_KEY_ENV = "AWS_SECRET_ACCESS_KEY"

# Part size used by the managed uploader when nothing is configured
DEFAULT_PART_SIZE_MB = 5


def load_env_file(env_path: Optional[Path] = None) -> None:
    """
    Load a .env file into os.environ if present.

    Variables already set in the environment take precedence.

    Args:
        env_path: Path to the .env file (default: ./.env)
    """
    env_path = env_path if env_path is not None else Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def resolve_credentials() -> Tuple[str, str]:
    """
    Read the access key and secret key from the environment.

    The two variables are checked one after the other; the first missing
    one is reported.

    Returns:
        (access_key, secret_key)

    Raises:
        CredentialsError: If either variable is unset or empty
    """
    access_key = os.getenv(ACCESS_KEY_ENV, "")
    if not access_key:
        raise CredentialsError("getenv", f"Env var {ACCESS_KEY_ENV} not set")

    secret_key = os.getenv(SECRET_KEY_ENV, "")
    if not secret_key:
        raise CredentialsError("getenv", f"Env var {SECRET_KEY_ENV} not set")

    return access_key, secret_key


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError("config", f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigurationError("config", f"{name} must be positive, got {value}")
    return value


@dataclass
class UploaderSettings:
    """Runtime settings for the upload tool."""

    # Logging
    log_level: str = "DEBUG"
    log_format: str = "json"

    # External tool
    aws_cli_path: str = "aws"

    # Managed upload
    multipart_threshold_mb: int = DEFAULT_PART_SIZE_MB
    multipart_chunksize_mb: int = DEFAULT_PART_SIZE_MB

    # Metrics
    metrics_enabled: bool = True
    pushgateway_url: Optional[str] = None

    @property
    def multipart_threshold_bytes(self) -> int:
        return self.multipart_threshold_mb * 1024 * 1024

    @property
    def multipart_chunksize_bytes(self) -> int:
        return self.multipart_chunksize_mb * 1024 * 1024

    @classmethod
    def from_env(cls) -> "UploaderSettings":
        """
        Load settings from environment variables.

        Attempts to load .env file if present, then reads from os.environ.

        Returns:
            UploaderSettings instance with loaded values

        Raises:
            ConfigurationError: If a numeric variable is not a positive integer
        """
        load_env_file()

        log_format = os.getenv("LOG_FORMAT", "json").lower()
        if log_format not in ("json", "text"):
            raise ConfigurationError(
                "config", f"LOG_FORMAT must be 'json' or 'text', got {log_format!r}"
            )

        return cls(
            log_level=os.getenv("LOG_LEVEL", "DEBUG").upper(),
            log_format=log_format,
            aws_cli_path=os.getenv("AWS_CLI_PATH", "aws"),
            multipart_threshold_mb=_int_env("S3_MULTIPART_THRESHOLD_MB", DEFAULT_PART_SIZE_MB),
            multipart_chunksize_mb=_int_env("S3_MULTIPART_CHUNKSIZE_MB", DEFAULT_PART_SIZE_MB),
            metrics_enabled=os.getenv("METRICS_ENABLED", "true").lower() == "true",
            pushgateway_url=os.getenv("PROMETHEUS_PUSHGATEWAY_URL") or None,
        )


# Global settings instance (lazy-loaded)
_settings: Optional[UploaderSettings] = None


def get_settings() -> UploaderSettings:
    """
    Get or create the settings singleton.

    Returns:
        UploaderSettings instance loaded from environment
    """
    global _settings
    if _settings is None:
        _settings = UploaderSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
