"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- Credentials are never required: a missing API key means "offline"
"""

import os
from collections.abc import Callable, Iterable
from functools import lru_cache
from importlib.resources import files
from typing import Literal, cast

from dotenv import dotenv_values, load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()

# Conversation and snapshot bounds
MAX_HISTORY_MESSAGES = 10
MAX_SNAPSHOT_RECORDS = 30

API_KEY_ENV_VAR = "OPENAI_API_KEY"
DEFAULT_ENDPOINT_URL = "https://api.openai.com/v1/responses"
DEFAULT_MODEL_NAME = "gpt-4.1-mini"
PACKAGED_CONFIG_FILE = "coach.env"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class CoachConfig(BaseModel):
    """Wellness coach request settings with secure defaults."""

    model_name: str = Field(default=DEFAULT_MODEL_NAME, description="Model identifier")
    endpoint_url: str = Field(
        default=DEFAULT_ENDPOINT_URL, description="Responses-style completion endpoint"
    )
    timeout_seconds: float = Field(
        default=30.0, gt=0.0, description="Timeout for the single outbound request"
    )
    history_limit: int = Field(
        default=MAX_HISTORY_MESSAGES, gt=0, description="History messages sent with a request"
    )
    snapshot_window: int = Field(
        default=MAX_SNAPSHOT_RECORDS, gt=0, description="Most recent health records summarised"
    )
    api_key_env_var: str = Field(
        default=API_KEY_ENV_VAR, description="Environment/packaged key holding the API key"
    )

    @field_validator("endpoint_url")
    def validate_endpoint(cls, v: str) -> str:
        if not v.startswith("https://"):
            raise ValueError("Coach endpoint must use https")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(default="INFO", description="Logging level")
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    coach: CoachConfig = Field(default_factory=CoachConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> LogLevel:
        v = val.strip().upper()
        return cast(
            LogLevel,
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    coach_config = CoachConfig(
        model_name=os.getenv("COACH_MODEL", DEFAULT_MODEL_NAME),
        endpoint_url=os.getenv("COACH_ENDPOINT_URL", DEFAULT_ENDPOINT_URL),
        timeout_seconds=float(os.getenv("COACH_TIMEOUT_SECONDS", "30.0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        coach=coach_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


# Credential resolution
#
# Each resolver returns a candidate key or None. Resolvers are evaluated in
# order and only until one yields a non-empty value.
CredentialResolver = Callable[[], str | None]


def explicit_credential(value: str | None) -> CredentialResolver:
    """Resolver for a key handed in directly (tests, embedding apps)."""
    return lambda: value


def environment_credential(name: str = API_KEY_ENV_VAR) -> CredentialResolver:
    """Resolver reading the process environment."""
    return lambda: os.environ.get(name)


def packaged_credential(
    name: str = API_KEY_ENV_VAR, filename: str = PACKAGED_CONFIG_FILE
) -> CredentialResolver:
    """Resolver reading the dotenv file shipped inside the package."""

    def _resolve() -> str | None:
        resource = files("embr_coach").joinpath(filename)
        if not resource.is_file():
            return None
        with resource.open("r", encoding="utf-8") as stream:
            return dotenv_values(stream=stream).get(name)

    return _resolve


def default_credential_resolvers(
    override: str | None = None, name: str = API_KEY_ENV_VAR
) -> list[CredentialResolver]:
    """Override, then environment, then packaged configuration."""
    return [
        explicit_credential(override),
        environment_credential(name),
        packaged_credential(name),
    ]


def resolve_credential(resolvers: Iterable[CredentialResolver]) -> str | None:
    """Return the first non-blank credential, or None when every layer is empty."""
    for resolver in resolvers:
        value = resolver()
        if value and value.strip():
            return value.strip()
    return None
