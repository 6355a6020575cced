# viyakit/client/defaults.py
from __future__ import annotations

from typing import Iterable

from viyakit.shared.exceptions import ProtectedResourceError

DEFAULT_COMPUTE_CONTEXTS: tuple[str, ...] = (
    "CAS Formats service compute context",
    "Data Mining compute context",
    "Import 9 service compute context",
    "SAS Job Execution compute context",
    "SAS Model Manager compute context",
    "SAS Studio compute context",
    "SAS Visual Forecasting compute context",
)

DEFAULT_LAUNCHER_CONTEXTS: tuple[str, ...] = (
    "CAS Formats service launcher context",
    "Data Mining launcher context",
    "Import 9 service launcher context",
    "Job Flow Execution launcher context",
    "SAS Job Execution launcher context",
    "SAS Model Manager launcher context",
    "SAS Studio launcher context",
    "SAS Visual Forecasting launcher context",
)


class DefaultContextRegistry:
    """
    Reserved names of the contexts that ship with the platform.

    Reserved contexts may never be created, edited or deleted through the
    client; `check` raises before any request is made.
    """

    def __init__(
        self,
        compute: Iterable[str] = DEFAULT_COMPUTE_CONTEXTS,
        launcher: Iterable[str] = DEFAULT_LAUNCHER_CONTEXTS,
    ):
        self._compute: tuple[str, ...] = tuple(compute)
        self._launcher: tuple[str, ...] = tuple(launcher)

    @property
    def compute(self) -> list[str]:
        return list(self._compute)

    @property
    def launcher(self) -> list[str]:
        return list(self._launcher)

    def is_reserved_compute(self, name: str) -> bool:
        return name in self._compute

    def is_reserved_launcher(self, name: str) -> bool:
        return name in self._launcher

    @staticmethod
    def check(
        name: str,
        reserved: Iterable[str],
        error_message: str = "",
        list_defaults: bool = False,
    ) -> None:
        """
        Raise ProtectedResourceError if `name` is one of `reserved`.

        With `list_defaults`, the message enumerates the reserved names so an
        operator can see which ones are off limits.
        """
        reserved = list(reserved)
        if name not in reserved:
            return
        message = error_message
        if list_defaults:
            message += "\nDefault contexts:" + "".join(
                f"\n{i}. {context}" for i, context in enumerate(reserved, start=1)
            )
        raise ProtectedResourceError(message, data=reserved)
