"""
Configuration management for the auth service.

Settings are read once at process start (environment variables, then `.env`)
and handed to every component that needs them. The object is frozen.
"""
import re
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}


def parse_duration(value: str) -> int:
    """
    Convert a lifetime such as "1h", "2d", "30m", "45s" or "3600" to seconds.

    Raises:
        ValueError: If the value has an unknown unit or is not positive
    """
    match = _DURATION_RE.match(str(value))
    if not match:
        raise ValueError(f"Invalid duration '{value}'. Use <n>s, <n>m, <n>h, <n>d or plain seconds")
    seconds = int(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    if seconds <= 0:
        raise ValueError("Duration must be positive")
    return seconds


class Settings(BaseSettings):
    """Auth service configuration loaded from environment variables"""

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    # Database Configuration
    DATABASE_URL: str = Field(..., min_length=1)
    DB_LOGGING: bool = False

    # Token Configuration
    JWT_SECRET: str = Field(..., min_length=1)
    JWT_EXPIRES_IN: str = "1h"

    # Password hashing work factor (pbkdf2_sha256 rounds)
    PASSWORD_HASH_ROUNDS: int = Field(29000, ge=10000)

    # CORS Configuration (comma separated)
    CORS_ORIGIN: str = "*"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("JWT_EXPIRES_IN")
    @classmethod
    def validate_expires_in(cls, v: str) -> str:
        parse_duration(v)
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level '{v}'")
        return level

    @property
    def token_lifetime_seconds(self) -> int:
        return parse_duration(self.JWT_EXPIRES_IN)

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]


def load_settings() -> Settings:
    """
    Build the process settings.

    A missing DATABASE_URL or JWT_SECRET raises a pydantic ValidationError,
    which aborts startup instead of serving degraded traffic.
    """
    return Settings()
