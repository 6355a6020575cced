# viyakit/types.py
"""Wire models for the SAS Logon and compute/launcher context REST surfaces."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

LoginForm = dict[str, str]


class ServerType(str, Enum):
    SASVIYA = "SASVIYA"
    SAS9 = "SAS9"


class SessionStatus(BaseModel):
    """Result of probing the login endpoint."""

    isLoggedIn: bool
    userName: str
    loginForm: LoginForm | None = None
    """Hidden fields scraped from the login page; None when already logged in."""


class LoginResult(BaseModel):
    isLoggedIn: bool
    userName: str


class LaunchContextRef(BaseModel):
    """Non-owning reference from a compute context to a launcher context."""

    contextName: str = ""
    model_config = ConfigDict(extra="allow")


class ContextEnvironment(BaseModel):
    autoExecLines: list[str] | None = None
    options: list[str] | None = None
    model_config = ConfigDict(extra="allow")


class ContextSummary(BaseModel):
    """List view of a context. Detailed attributes are never included."""

    createdBy: str | None = None
    id: str
    name: str
    version: Any = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class Context(BaseModel):
    """Full view of a compute context.

    Unknown server fields are kept so an edit can send the resource back
    without dropping anything the client does not model.
    """

    id: str
    name: str
    createdBy: str | None = None
    version: Any = None
    description: str | None = None
    launchContext: LaunchContextRef | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)
    environment: ContextEnvironment | None = None
    authorizedUsers: list[str] | None = None
    authorizeAllAuthenticatedUsers: bool | None = None

    model_config = ConfigDict(extra="allow")


class LauncherContext(BaseModel):
    id: str | None = None
    name: str
    description: str | None = None
    launchType: str | None = None
    createdBy: str | None = None
    version: Any = None

    model_config = ConfigDict(extra="allow")


class EditContextInput(BaseModel):
    """Partial update for a compute context.

    Only fields explicitly set are merged onto the current resource;
    `attributes` are merged key by key.
    """

    id: str | None = None
    """Used to find the context when `name` is being changed."""

    name: str | None = None
    description: str | None = None
    launchContext: LaunchContextRef | None = None
    attributes: dict[str, Any] | None = None
    environment: ContextEnvironment | None = None
    authorizedUsers: list[str] | None = None
    authorizeAllAuthenticatedUsers: bool | None = None

    model_config = ConfigDict(extra="allow")


class ExecutableContext(ContextSummary):
    """A compute context that ran the diagnostic probe.

    `attributes["sysUserId"]` holds the account the context runs as.
    """


class HttpResponse(BaseModel):
    """Structured transport result."""

    result: Any = None
    etag: str | None = None
    status: int


class PageResponse(BaseModel):
    """Browser-style text response used by the login handshake."""

    url: str
    status: int
    text: str
