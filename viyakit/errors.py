# viyakit/errors.py
from typing import Any
from pydantic import BaseModel, ConfigDict

# Client error codes
VALIDATION_FAILED = -33001
PROTECTED_RESOURCE = -33002
DUPLICATE_RESOURCE = -33003
RESOURCE_NOT_FOUND = -33004
# Transport error codes
TRANSPORT_FAILURE = -33100


class ErrorData(BaseModel):
    """Error information attached to every viyakit exception."""

    code: int
    """The error type that occurred."""

    message: str
    """
    A short description of the error. Prefixes added while the error travels up
    through the context manager are part of the message.
    """

    status: int | None = None
    """HTTP status code of the failed response, if the error came from one."""

    data: Any | None = None
    """
    Additional information about the error, e.g. the list of reserved context
    names for a protected-resource violation.
    """

    model_config = ConfigDict(extra="allow")
