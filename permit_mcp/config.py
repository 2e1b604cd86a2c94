"""
Server configuration loaded from environment variables.

Uses pydantic-settings to define typed configuration that reads from the
process environment (and a local .env file, if one exists). Nothing is
hardcoded in source code: the API key in particular only ever comes from the
environment.

Variables (all prefixed with PERMIT_):
- PERMIT_API_KEY       Permit.io API key (required)
- PERMIT_PROJECT_ID    Project id or key, defaults to "default"
- PERMIT_ENV_ID        Default environment used when a tool call omits envId
- PERMIT_API_URL       Base URL of the Permit.io API
- PERMIT_LOG_LEVEL     Logging verbosity
- PERMIT_TRANSPORT     "stdio" (default) or "streamable-http"
- PERMIT_HOST / PERMIT_PORT   Bind address for the HTTP transport

The settings object is frozen. It is built once in main() and handed to the
API client and server factory, so request logic never reads the environment.
"""

from typing import Literal

from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings

from permit_mcp.errors import StartupConfigurationError

ENV_PREFIX = "PERMIT_"
DEFAULT_PROJECT_ID = "default"


class Settings(BaseSettings):
    """
    Permit MCP server configuration with environment variable bindings.

    Each field maps to an environment variable with the PERMIT_ prefix, so
    `api_key` reads PERMIT_API_KEY and `env_id` reads PERMIT_ENV_ID.
    """

    # --- Permit.io API ---

    # Bearer credential sent on every upstream request. No default: the
    # server refuses to start without it.
    api_key: str

    # Project path segment used in every endpoint.
    project_id: str = DEFAULT_PROJECT_ID

    # Environment used when a tool call does not name one explicitly.
    env_id: str | None = None

    api_url: str = "https://api.permit.io"

    # --- Server ---

    log_level: str = "info"
    transport: Literal["stdio", "streamable-http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = 8080

    model_config = {
        "env_prefix": ENV_PREFIX,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        # The .env file may carry variables for other tools.
        "extra": "ignore",
        "frozen": True,
    }

    @field_validator("api_key")
    @classmethod
    def _api_key_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value

    @field_validator("project_id", mode="before")
    @classmethod
    def _blank_project_is_default(cls, value):
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_PROJECT_ID
        return value

    @field_validator("env_id", mode="before")
    @classmethod
    def _blank_env_is_unset(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


def _env_var_name(loc: tuple) -> str:
    field = str(loc[0]) if loc else "?"
    return f"{ENV_PREFIX}{field.upper()}"


def load_settings(**overrides) -> Settings:
    """
    Build the settings object, translating validation failures.

    pydantic reports failures per field; we turn them into messages that
    name the environment variable an operator has to set, e.g.
    "Missing required environment variable: PERMIT_API_KEY".

    Raises:
        StartupConfigurationError: If a required variable is missing or a
            value does not validate.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = []
        for error in e.errors():
            name = _env_var_name(error.get("loc", ()))
            if error.get("type") == "missing":
                problems.append(f"Missing required environment variable: {name}")
            else:
                problems.append(f"Invalid value for {name}: {error.get('msg')}")
        raise StartupConfigurationError("; ".join(problems)) from e
