# viyakit/client/settings.py
from __future__ import annotations

from typing import Literal

from pydantic import AnyHttpUrl, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from viyakit.shared.exceptions import ValidationError
from viyakit.types import ServerType

DEFAULT_LOGIN_PATH = "/SASLogon/login"
DEFAULT_CONTEXT_LIST_LIMIT = 10000

_http_url = TypeAdapter(AnyHttpUrl)


def validate_server_url(url: str) -> str:
    """Return `url` without a trailing slash, or raise ValidationError.

    An empty string is accepted and means "same origin": every path is then
    used as-is.
    """
    if not url:
        return ""
    try:
        _http_url.validate_python(url)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid server url: '{url}'", data=e.errors(include_url=False)) from e
    return url.rstrip("/")


class ClientSettings(BaseSettings):
    """viyakit client settings.

    All settings can be configured via environment variables with the prefix
    VIYAKIT_. For example, VIYAKIT_SERVER_TYPE=SAS9 sets server_type.
    """

    model_config = SettingsConfigDict(
        env_prefix="VIYAKIT_",
        env_file=".env",
        extra="ignore",
    )

    server_url: str = ""
    server_type: ServerType = ServerType.SASVIYA
    login_path: str = DEFAULT_LOGIN_PATH

    # HTTP settings
    timeout: float = 30.0
    allow_insecure_requests: bool = False
    """Disable TLS verification (self-signed development servers)."""

    context_list_limit: int = DEFAULT_CONTEXT_LIST_LIMIT

    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("server_url")
    @classmethod
    def _check_server_url(cls, v: str) -> str:
        try:
            return validate_server_url(v)
        except ValidationError as e:
            # pydantic only converts ValueError into a field error
            raise ValueError(e.message) from e

    @field_validator("login_path")
    @classmethod
    def _check_login_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("login_path must start with '/'")
        return v

    @field_validator("context_list_limit")
    @classmethod
    def _check_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"context_list_limit must be positive, got: {v}")
        return v
