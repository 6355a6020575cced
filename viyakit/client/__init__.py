# viyakit/client/__init__.py
from .session import ClientSession
from .settings import ClientSettings

__all__ = ["ClientSession", "ClientSettings"]
