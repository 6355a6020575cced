# viyakit/__init__.py

from importlib.metadata import PackageNotFoundError, version

from viyakit.client.auth import AuthManager, SessionState
from viyakit.client.contexts import ContextManager
from viyakit.client.defaults import DefaultContextRegistry
from viyakit.client.request_client import RequestClient
from viyakit.client.session import ClientSession
from viyakit.client.settings import ClientSettings
from viyakit.shared.exceptions import (
    DuplicateResourceError,
    MissingNameError,
    NotFoundError,
    ProtectedResourceError,
    TransportError,
    ValidationError,
    ViyaKitError,
)
from viyakit.types import Context, ContextSummary, EditContextInput, ExecutableContext, LauncherContext, ServerType

try:
    __version__ = version("viyakit")
except PackageNotFoundError:
    # running from a source checkout
    __version__ = "0.0.0"
__all__ = [
    "AuthManager",
    "ClientSession",
    "ClientSettings",
    "Context",
    "ContextManager",
    "ContextSummary",
    "DefaultContextRegistry",
    "DuplicateResourceError",
    "EditContextInput",
    "ExecutableContext",
    "LauncherContext",
    "MissingNameError",
    "NotFoundError",
    "ProtectedResourceError",
    "RequestClient",
    "ServerType",
    "SessionState",
    "TransportError",
    "ValidationError",
    "ViyaKitError",
]
