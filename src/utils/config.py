"""
Configuration Management Module
Handles loading and validation of environment variables and settings
"""

import os
from dataclasses import dataclass
from dotenv import load_dotenv

from .security_validators import (
    DEFAULT_MAX_EMAIL_SIZE,
    MAX_MIME_DEPTH,
    MAX_MIME_PARTS,
    MAX_TOTAL_ATTACHMENT_BYTES,
)


class ConfigurationError(ValueError):
    """Raised when configuration values are missing or out of range"""


@dataclass
class ParserConfig:
    """Resource limits applied while decoding a raw message"""
    max_mime_depth: int = MAX_MIME_DEPTH
    max_mime_parts: int = MAX_MIME_PARTS
    max_total_attachment_bytes: int = MAX_TOTAL_ATTACHMENT_BYTES
    max_email_size: int = DEFAULT_MAX_EMAIL_SIZE


@dataclass
class SystemConfig:
    """Configuration for system settings"""
    log_level: str = "INFO"
    log_format: str = "text"


class Config:
    """Main configuration class"""

    LOG_FORMATS = ("text", "json")

    def __init__(self, env_file: str = ".env"):
        """
        Initialize configuration from environment file

        Variables already present in the process environment win over the
        file, matching python-dotenv's default behaviour.

        Args:
            env_file: Path to environment file (default: .env)
        """
        load_dotenv(env_file)

        self.parser = self._load_parser_config()
        self.system = self._load_system_config()

    def _load_parser_config(self) -> ParserConfig:
        """Load decoder resource limits"""
        return ParserConfig(
            max_mime_depth=self._get_int("MAX_MIME_DEPTH", MAX_MIME_DEPTH),
            max_mime_parts=self._get_int("MAX_MIME_PARTS", MAX_MIME_PARTS),
            max_total_attachment_bytes=self._get_int(
                "MAX_TOTAL_ATTACHMENT_BYTES", MAX_TOTAL_ATTACHMENT_BYTES
            ),
            max_email_size=self._get_int("MAX_EMAIL_SIZE", DEFAULT_MAX_EMAIL_SIZE),
        )

    def _load_system_config(self) -> SystemConfig:
        """Load system configuration"""
        return SystemConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text").strip().lower(),
        )

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Read an integer environment variable"""
        value = os.getenv(key)
        if value is None or not value.strip():
            return default
        try:
            return int(value.strip())
        except ValueError:
            raise ConfigurationError(f"{key} must be an integer, got {value!r}")

    def validate(self) -> bool:
        """
        Validate configuration

        Returns:
            True if configuration is valid

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self.parser.max_mime_depth < 1:
            raise ConfigurationError("MAX_MIME_DEPTH must be at least 1")

        if self.parser.max_mime_parts < 1:
            raise ConfigurationError("MAX_MIME_PARTS must be at least 1")

        if self.parser.max_total_attachment_bytes < 0:
            raise ConfigurationError("MAX_TOTAL_ATTACHMENT_BYTES cannot be negative")

        if self.system.log_format not in self.LOG_FORMATS:
            raise ConfigurationError(
                f"LOG_FORMAT must be one of {', '.join(self.LOG_FORMATS)}"
            )

        return True
