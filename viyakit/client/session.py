# viyakit/client/session.py
import logging
from contextlib import AsyncExitStack
from typing import Any

import httpx

from viyakit.client.auth import AuthManager, LoginCallbackT
from viyakit.client.contexts import ContextManager
from viyakit.client.defaults import DefaultContextRegistry
from viyakit.client.request_client import RequestClient
from viyakit.client.settings import ClientSettings
from viyakit.shared._httpx_utils import ViyaKitHttpClientFactory, create_viyakit_http_client
from viyakit.types import LoginResult

logger = logging.getLogger(__name__)


class ClientSession:
    """
    One logical connection to a SAS server.

    Owns a single httpx.AsyncClient whose cookie jar is shared by the logon
    handshake and the context REST calls, and closes it on exit.

        async with ClientSession(ClientSettings(server_url="https://viya.example.com")) as s:
            await s.auth.log_in("user", "secret")
            contexts = await s.contexts.get_compute_contexts()
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        on_login: LoginCallbackT | None = None,
        defaults: DefaultContextRegistry | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        httpx_client_factory: ViyaKitHttpClientFactory = create_viyakit_http_client,
    ) -> None:
        self.settings = settings or ClientSettings()
        self._on_login = on_login
        self._defaults = defaults
        self._transport = transport
        self._httpx_client_factory = httpx_client_factory
        self._exit_stack: AsyncExitStack | None = None
        self._auth: AuthManager | None = None
        self._contexts: ContextManager | None = None

    async def __aenter__(self) -> "ClientSession":
        stack = AsyncExitStack()
        await stack.__aenter__()
        try:
            http_client = await stack.enter_async_context(
                self._httpx_client_factory(
                    timeout=httpx.Timeout(self.settings.timeout),
                    verify=not self.settings.allow_insecure_requests,
                    transport=self._transport,
                )
            )
        except BaseException:
            await stack.aclose()
            raise
        self._exit_stack = stack

        request_client = RequestClient(http_client)
        self._auth = AuthManager(
            self.settings.server_url,
            self.settings.server_type,
            request_client,
            self._on_login,
            login_path=self.settings.login_path,
        )
        self._contexts = ContextManager(
            self.settings.server_url,
            request_client,
            defaults=self._defaults,
            list_limit=self.settings.context_list_limit,
        )
        logger.debug("Opened session to %s", self.settings.server_url or "<relative>")
        return self

    async def __aexit__(self, *exc_info: Any) -> bool | None:
        stack, self._exit_stack = self._exit_stack, None
        self._auth = None
        self._contexts = None
        if stack is not None:
            await stack.aclose()
        logger.debug("Closed session to %s", self.settings.server_url or "<relative>")
        return None

    @property
    def auth(self) -> AuthManager:
        if self._auth is None:
            raise RuntimeError("ClientSession is not open; use 'async with ClientSession(...)'")
        return self._auth

    @property
    def contexts(self) -> ContextManager:
        if self._contexts is None:
            raise RuntimeError("ClientSession is not open; use 'async with ClientSession(...)'")
        return self._contexts

    async def log_in(self, username: str, password: str) -> LoginResult:
        return await self.auth.log_in(username, password)

    async def log_out(self) -> bool:
        return await self.auth.log_out()
