# viyakit/shared/exceptions.py
"""Exception types for viyakit."""

from __future__ import annotations

import copy
from typing import Any

from viyakit.errors import (
    DUPLICATE_RESOURCE,
    PROTECTED_RESOURCE,
    RESOURCE_NOT_FOUND,
    TRANSPORT_FAILURE,
    VALIDATION_FAILED,
    ErrorData,
)


class ViyaKitError(Exception):
    """
    Base exception for all viyakit errors.
    """

    error: ErrorData
    default_code: int = TRANSPORT_FAILURE

    def __init__(
        self,
        message: str,
        code: int | None = None,
        status: int | None = None,
        data: Any | None = None,
    ):
        super().__init__(message)
        self.error = ErrorData(
            code=code if code is not None else self.default_code,
            message=message,
            status=status,
            data=data,
        )

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def status(self) -> int | None:
        return self.error.status


class ValidationError(ViyaKitError):
    """Invalid input, detected before any request is sent."""

    default_code = VALIDATION_FAILED


class MissingNameError(ValidationError):
    """A context operation was called without a context name."""

    def __init__(self, message: str = "Context name is required.", **kwargs: Any):
        super().__init__(message, **kwargs)


class ProtectedResourceError(ViyaKitError):
    """Attempt to create, edit or delete a platform default context."""

    default_code = PROTECTED_RESOURCE


class DuplicateResourceError(ViyaKitError):
    """A context with the requested name already exists."""

    default_code = DUPLICATE_RESOURCE


class NotFoundError(ViyaKitError):
    """A context could not be found on the server."""

    default_code = RESOURCE_NOT_FOUND


class TransportError(ViyaKitError):
    """HTTP or network failure. `status` is None when no response was received."""

    default_code = TRANSPORT_FAILURE


def prefix_message(err: BaseException, prefix: str) -> ViyaKitError:
    """
    Return a copy of `err` whose message starts with `prefix`.

    viyakit errors keep their class, code, status and data; any other exception
    becomes a TransportError. A message that already starts with `prefix`
    is not prefixed twice. Raise the result `from err` to keep the cause chain.
    """
    if not isinstance(err, ViyaKitError):
        return TransportError(f"{prefix}{err}")

    message = err.message if err.message.startswith(prefix) else f"{prefix}{err.message}"
    clone = copy.copy(err)
    clone.args = (message,)
    clone.error = err.error.model_copy(update={"message": message})
    return clone
