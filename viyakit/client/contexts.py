# viyakit/client/contexts.py
"""Compute and launcher context lifecycle over the Viya REST API."""

from __future__ import annotations

import logging
from typing import Any, Protocol, TypeVar
from urllib.parse import quote

import anyio
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from viyakit.client.defaults import DefaultContextRegistry
from viyakit.client.request_client import RequestClient
from viyakit.client.settings import DEFAULT_CONTEXT_LIST_LIMIT, validate_server_url
from viyakit.shared.exceptions import (
    DuplicateResourceError,
    MissingNameError,
    NotFoundError,
    TransportError,
    ViyaKitError,
    prefix_message,
)
from viyakit.types import (
    Context,
    ContextSummary,
    EditContextInput,
    ExecutableContext,
    LauncherContext,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

SYSUSERID_PROBE = ["%put &=sysuserid;"]
SYSUSERID_PREFIX = "SYSUSERID="
DEFAULT_LAUNCH_TYPE = "direct"


class ScriptExecutorFnT(Protocol):
    """Runs SAS code in a compute context and returns an object exposing its log."""

    async def __call__(
        self,
        job_name: str,
        lines_of_code: list[str],
        context_name: str,
        access_token: str | None,
    ) -> Any: ...


def _summaries(payload: Any) -> list[ContextSummary]:
    """Map a `{items: [...]}` payload to summaries; anything malformed maps to nothing."""
    items = payload.get("items") if isinstance(payload, dict) else None
    if not isinstance(items, list):
        return []

    summaries: list[ContextSummary] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            summaries.append(
                ContextSummary(
                    createdBy=item.get("createdBy"),
                    id=item["id"],
                    name=item["name"],
                    version=item.get("version"),
                    attributes={},
                )
            )
        except (KeyError, PydanticValidationError):
            logger.debug("Skipping malformed context item: %r", item)
    return summaries


def _log_lines(result: Any) -> list[str]:
    log = result.get("log") if isinstance(result, dict) else getattr(result, "log", None)
    if isinstance(log, str):
        return log.splitlines()
    if isinstance(log, list):
        # Viya job logs come back as [{"line": "...", "type": "normal"}, ...]
        return [
            entry.get("line", "") if isinstance(entry, dict) else str(entry)
            for entry in log
        ]
    return []


def parse_sys_user_id(result: Any) -> str | None:
    """Value of the `SYSUSERID=` line in a probe's log, or None."""
    for line in _log_lines(result):
        line = line.strip()
        if line.startswith(SYSUSERID_PREFIX):
            return line[len(SYSUSERID_PREFIX):]
    return None


class ContextManager:
    """Create, read, edit and delete compute and launcher contexts.

    Platform default contexts are protected: creating, editing or deleting one
    fails before any request is sent.
    """

    def __init__(
        self,
        server_url: str,
        request_client: RequestClient,
        *,
        defaults: DefaultContextRegistry | None = None,
        list_limit: int = DEFAULT_CONTEXT_LIST_LIMIT,
    ):
        self._server_url = validate_server_url(server_url)
        self._request_client = request_client
        self._defaults = defaults or DefaultContextRegistry()
        self._list_limit = list_limit

    # ---- defaults ---------------------------------------------------------

    @property
    def default_compute_contexts(self) -> list[str]:
        return self._defaults.compute

    @property
    def default_launcher_contexts(self) -> list[str]:
        return self._defaults.launcher

    def is_default_context(
        self,
        context: str,
        default_contexts: list[str] | None = None,
        error_message: str = "",
        list_defaults: bool = False,
    ) -> None:
        """Raise ProtectedResourceError if `context` is a default context."""
        if default_contexts is None:
            default_contexts = self._defaults.compute
        self._defaults.check(context, default_contexts, error_message, list_defaults)

    # ---- reads ------------------------------------------------------------

    async def get_compute_contexts(self, access_token: str | None = None) -> list[ContextSummary]:
        payload = await self._get_payload(
            f"{self._server_url}/compute/contexts?limit={self._list_limit}",
            access_token,
            "Error while getting compute contexts. ",
        )
        return _summaries(payload)

    async def get_launcher_contexts(self, access_token: str | None = None) -> list[ContextSummary]:
        payload = await self._get_payload(
            f"{self._server_url}/launcher/contexts?limit={self._list_limit}",
            access_token,
            "Error while getting launcher contexts. ",
        )
        return _summaries(payload)

    async def get_compute_context_by_name(self, context_name: str, access_token: str | None = None) -> Context:
        name_filter = quote(f'eq(name,"{context_name}")', safe="")
        payload = await self._get_payload(
            f"{self._server_url}/compute/contexts?filter={name_filter}",
            access_token,
            "Error while getting compute context by name. ",
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list) or not items:
            raise NotFoundError(f"The context '{context_name}' was not found at '{self._server_url}'.")
        return self._parse(items[0], Context, "Error while getting compute context by name. ")

    async def get_compute_context_by_id(self, context_id: str, access_token: str | None = None) -> Context:
        payload = await self._get_payload(
            f"{self._server_url}/compute/contexts/{context_id}",
            access_token,
            "Error while getting compute context by id. ",
        )
        return self._parse(payload, Context, "Error while getting compute context by id. ")

    async def get_executable_contexts(
        self,
        execute_script: ScriptExecutorFnT,
        access_token: str | None = None,
        *,
        concurrency: int = 1,
    ) -> list[ExecutableContext]:
        """
        Probe every compute context with a script that prints the run-as user.

        Probes run one at a time in list order by default; each one starts a
        remote server process. `concurrency > 1` allows that many probes in
        flight. A failed probe excludes its context instead of aborting the scan.
        """
        payload = await self._get_payload(
            f"{self._server_url}/compute/contexts?limit={self._list_limit}",
            access_token,
            "Error while fetching compute contexts. ",
        )
        contexts = _summaries(payload)
        results: list[Any] = [None] * len(contexts)

        async def probe(index: int, context: ContextSummary) -> None:
            try:
                results[index] = await execute_script(
                    f"test-{context.name}",
                    list(SYSUSERID_PROBE),
                    context.name,
                    access_token,
                )
            except Exception as e:
                logger.warning("Compute context '%s' is not executable: %s", context.name, e)

        if concurrency <= 1:
            for index, context in enumerate(contexts):
                await probe(index, context)
        else:
            limiter = anyio.CapacityLimiter(concurrency)

            async def limited(index: int, context: ContextSummary) -> None:
                async with limiter:
                    await probe(index, context)

            async with anyio.create_task_group() as tg:
                for index, context in enumerate(contexts):
                    tg.start_soon(limited, index, context)

        executable: list[ExecutableContext] = []
        for context, result in zip(contexts, results):
            if result is None:
                continue
            sys_user_id = parse_sys_user_id(result)
            if sys_user_id is None:
                continue
            executable.append(
                ExecutableContext(
                    createdBy=context.createdBy,
                    id=context.id,
                    name=context.name,
                    version=context.version,
                    attributes={"sysUserId": sys_user_id},
                )
            )
        return executable

    # ---- writes -----------------------------------------------------------

    async def create_compute_context(
        self,
        context_name: str,
        launch_context_name: str | None,
        shared_account_id: str | None,
        auto_exec_lines: list[str] | None,
        access_token: str | None = None,
        authorized_users: list[str] | None = None,
    ) -> Context:
        self._validate_context_name(context_name)
        self._defaults.check(
            context_name,
            self._defaults.compute,
            f"Compute context '{context_name}' already exists.",
        )

        existing = await self.get_compute_contexts(access_token)
        if any(context.name == context_name for context in existing):
            raise DuplicateResourceError(f"Compute context '{context_name}' already exists.")

        if launch_context_name:
            launch_context_name = await self._ensure_launcher_context(launch_context_name, access_token)

        attributes: dict[str, Any] = {"reuseServerProcesses": True}
        if shared_account_id:
            attributes["runServerAs"] = shared_account_id

        request_body: dict[str, Any] = {
            "name": context_name,
            "launchContext": {"contextName": launch_context_name or ""},
            "attributes": attributes,
        }
        if authorized_users:
            request_body["authorizedUsers"] = authorized_users
        else:
            request_body["authorizeAllAuthenticatedUsers"] = True
        if auto_exec_lines:
            request_body["environment"] = {"autoExecLines": auto_exec_lines}

        result = await self._post_new(
            f"{self._server_url}/compute/contexts",
            request_body,
            access_token,
            "Error while creating compute context. ",
            f"Compute context '{context_name}' already exists.",
        )
        context = self._parse(result, Context, "Error while creating compute context. ")
        logger.info("Created compute context '%s' (%s)", context.name, context.id)
        return context

    async def create_launcher_context(
        self,
        context_name: str,
        description: str,
        launch_type: str = DEFAULT_LAUNCH_TYPE,
        access_token: str | None = None,
    ) -> LauncherContext:
        self._validate_context_name(context_name)
        self._defaults.check(
            context_name,
            self._defaults.launcher,
            f"Launcher context '{context_name}' already exists.",
        )

        existing = await self.get_launcher_contexts(access_token)
        if any(context.name == context_name for context in existing):
            raise DuplicateResourceError(f"Launcher context '{context_name}' already exists.")

        request_body = {
            "name": context_name,
            "description": description,
            "launchType": launch_type,
        }
        result = await self._post_new(
            f"{self._server_url}/launcher/contexts",
            request_body,
            access_token,
            "Error while creating launcher context. ",
            f"Launcher context '{context_name}' already exists.",
        )
        context = self._parse(result, LauncherContext, "Error while creating launcher context. ")
        logger.info("Created launcher context '%s'", context.name)
        return context

    async def edit_compute_context(
        self,
        context_name: str,
        edited_context: EditContextInput,
        access_token: str | None = None,
    ) -> Context:
        """
        Apply `edited_context` to a compute context with optimistic concurrency.

        The context is re-read right before the update and its ETag is sent as
        `If-Match`, so the update fails if the context changed in between.
        """
        self._validate_context_name(context_name)
        self._defaults.check(
            context_name,
            self._defaults.compute,
            "Editing default SAS compute contexts is not allowed.",
            list_defaults=True,
        )

        try:
            original = await self.get_compute_context_by_name(context_name, access_token)
        except NotFoundError:
            # the edit may rename the context; fall back to its id
            if not edited_context.id:
                raise
            original = await self.get_compute_context_by_id(edited_context.id, access_token)

        url = f"{self._server_url}/compute/contexts/{original.id}"
        try:
            response = await self._request_client.get(url, access_token)
        except TransportError as e:
            if e.status == 404:
                raise NotFoundError(
                    f"The context '{context_name}' was not found at '{self._server_url}'.",
                    status=404,
                ) from e
            raise

        if not response.etag:
            raise TransportError(
                f"The server returned no ETag for compute context '{context_name}'; "
                "refusing to update it without If-Match."
            )

        current: dict[str, Any] = response.result if isinstance(response.result, dict) else {}
        edits = edited_context.model_dump(mode="json", exclude_unset=True, exclude={"id"})
        body = {
            **current,
            **edits,
            "attributes": {**(current.get("attributes") or {}), **(edits.get("attributes") or {})},
        }

        try:
            updated = await self._request_client.put(
                url,
                body,
                access_token,
                {"If-Match": response.etag},
            )
        except ViyaKitError as e:
            raise prefix_message(e, "Error while updating compute context. ") from e

        logger.info("Updated compute context '%s' (%s)", context_name, original.id)
        return self._parse(updated.result or body, Context, "Error while updating compute context. ")

    async def delete_compute_context(self, context_name: str, access_token: str | None = None) -> None:
        self._validate_context_name(context_name)
        self._defaults.check(
            context_name,
            self._defaults.compute,
            "Deleting default SAS compute contexts is not allowed.",
            list_defaults=True,
        )

        context = await self.get_compute_context_by_name(context_name, access_token)
        try:
            await self._request_client.delete(
                f"{self._server_url}/compute/contexts/{context.id}",
                access_token,
            )
        except ViyaKitError as e:
            raise prefix_message(e, "Error while deleting compute context. ") from e
        logger.info("Deleted compute context '%s' (%s)", context_name, context.id)

    # ---- helpers ----------------------------------------------------------

    @staticmethod
    def _validate_context_name(name: str | None) -> None:
        if not name:
            raise MissingNameError()

    async def _ensure_launcher_context(self, name: str, access_token: str | None) -> str:
        if self._defaults.is_reserved_launcher(name):
            return name
        launcher_contexts = await self.get_launcher_contexts(access_token)
        if any(context.name == name for context in launcher_contexts):
            return name

        try:
            created = await self.create_launcher_context(
                name,
                f"The launcher context for {name}",
                DEFAULT_LAUNCH_TYPE,
                access_token,
            )
        except ViyaKitError as e:
            prefix = "Error while creating launcher context. "
            message = e.message if e.message.startswith(prefix) else f"{prefix}{e.message}"
            raise TransportError(message, status=e.status, data=e.error.data) from e

        if not created.name:
            raise TransportError("Error while creating launcher context.")
        return created.name

    async def _get_payload(self, url: str, access_token: str | None, error_prefix: str) -> Any:
        try:
            response = await self._request_client.get(url, access_token)
        except ViyaKitError as e:
            raise prefix_message(e, error_prefix) from e
        return response.result

    async def _post_new(
        self,
        url: str,
        body: dict[str, Any],
        access_token: str | None,
        error_prefix: str,
        duplicate_message: str,
    ) -> Any:
        try:
            response = await self._request_client.post(url, body, access_token)
        except TransportError as e:
            if e.status == 409:
                # the server's own uniqueness check is the authority
                raise DuplicateResourceError(duplicate_message, status=409) from e
            raise prefix_message(e, error_prefix) from e
        return response.result

    @staticmethod
    def _parse(payload: Any, model: type[ModelT], error_prefix: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except PydanticValidationError as e:
            raise TransportError(f"{error_prefix}Unexpected response from server: {e}") from e
