import re
from pathlib import Path

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TOKEN_TTL = "7d"

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(ValueError):
    pass


def parse_duration(value) -> float:
    """Parse a lifetime such as ``"7d"``, ``"12h"``, ``"30m"``, ``"45s"`` or ``"3600"`` into seconds."""
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        match = _DURATION_RE.match(str(value))
        if not match:
            raise ConfigError(f"invalid duration: {value!r}")
        seconds = float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
    if seconds <= 0:
        raise ConfigError(f"duration must be positive: {value!r}")
    return seconds


class Settings(BaseSettings):
    """Server settings, read from the environment (and ``.env``) once at startup."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, frozen=True, extra="ignore")

    jwt_secret: str = Field(min_length=1)
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: float = Field(
        default=parse_duration(DEFAULT_TOKEN_TTL),
        validation_alias=AliasChoices("token_ttl_seconds", "jwt_expires_in"),
    )
    # Default to local SQLite for dev/tests; override via env in Docker/Prod
    database_url: str = "sqlite:///./todo.db"
    cors_origin: str = "http://localhost:5173"
    host: str = "127.0.0.1"
    port: int = Field(default=5000, ge=1, le=65535)
    log_level: str = "INFO"
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    @field_validator("token_ttl_seconds", mode="before")
    @classmethod
    def token_ttl_from_duration(cls, v):
        return parse_duration(v)

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level: {v!r}")
        return level

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            return cls()
        except ValidationError as e:
            raise ConfigError(str(e)) from e


class ClientSettings(BaseSettings):
    """``todo`` CLI settings: ``TODO_API_URL`` and ``TODO_TOKEN_FILE``."""

    model_config = SettingsConfigDict(env_prefix="TODO_", case_sensitive=False, frozen=True, extra="ignore")

    api_url: str = "http://localhost:5000"
    token_file: Path = Field(default_factory=lambda: Path.home() / ".todo_api_token")

    @field_validator("api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("token_file")
    @classmethod
    def expand_home(cls, v: Path) -> Path:
        return v.expanduser()

    @classmethod
    def from_env(cls) -> "ClientSettings":
        try:
            return cls()
        except ValidationError as e:
            raise ConfigError(str(e)) from e
