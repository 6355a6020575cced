# viyakit/client/auth.py
"""SAS Logon handshake: session probing, credential form submission and logout."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

from viyakit.client import forms
from viyakit.client.request_client import RequestClient
from viyakit.client.settings import DEFAULT_LOGIN_PATH, validate_server_url
from viyakit.types import LoginForm, LoginResult, ServerType, SessionStatus

logger = logging.getLogger(__name__)

LoginCallbackT = Callable[[], Awaitable[None] | None]

# SAS Logon reads the service name from "_service", not "serviceId".
SERVICE_FIELD = "_service"
DEFAULT_SERVICE = "default"


class SessionState(str, Enum):
    unknown = "unknown"
    checking = "checking"
    authenticated = "authenticated"
    form_presented = "form_presented"
    submitting_primary = "submitting_primary"
    awaiting_secondary = "awaiting_secondary"
    failed = "failed"


@dataclass
class AuthSession:
    """Process-local logon state. Only `AuthManager` mutates it."""

    login_url: str
    logout_url: str
    user_name: str = ""
    state: SessionState = SessionState.unknown


def _default_logout_path(server_type: ServerType) -> str:
    return "/SASLogon/logout?" if server_type == ServerType.SAS9 else "/SASLogon/logout.do?"


class AuthManager:
    """Logs into and out of a SAS server through its web logon pages.

    The cookie jar of the RequestClient's http client holds the server-side
    session; `is_logged_in` is never cached and always comes from a probe.
    Not safe for concurrent `log_in` calls on the same instance.
    """

    def __init__(
        self,
        server_url: str,
        server_type: ServerType,
        request_client: RequestClient,
        on_login: LoginCallbackT | None = None,
        *,
        login_path: str = DEFAULT_LOGIN_PATH,
        success_markers: tuple[str, ...] = forms.LOGIN_SUCCESS_MARKERS,
    ) -> None:
        self._server_url = validate_server_url(server_url)
        self._server_type = server_type
        self._request_client = request_client
        self._on_login = on_login
        self._success_markers = success_markers
        self.session = AuthSession(
            login_url=f"{self._server_url}{login_path}",
            logout_url=f"{self._server_url}{_default_logout_path(server_type)}",
        )

    @property
    def user_name(self) -> str:
        return self.session.user_name

    @property
    def login_url(self) -> str:
        return self.session.login_url

    @property
    def logout_url(self) -> str:
        return self.session.logout_url

    def _transition(self, state: SessionState) -> None:
        if self.session.state != state:
            logger.debug("Logon state %s -> %s", self.session.state.value, state.value)
        self.session.state = state

    async def log_in(self, username: str, password: str) -> LoginResult:
        """Log into the server with the supplied credentials.

        Returns `isLoggedIn=False` when the server rejects the credentials;
        raises TransportError only when the server cannot be reached.
        """
        self.session.user_name = username

        status = await self.check_session()
        if status.isLoggedIn:
            logger.debug("Session already active for '%s'; skipping credential submission", username)
            return LoginResult(isLoggedIn=True, userName=self.session.user_name)

        login_params: dict[str, str] = dict(status.loginForm or {})
        login_params.update(
            {
                SERVICE_FIELD: DEFAULT_SERVICE,
                "username": username,
                "password": password,
            }
        )

        self._transition(SessionState.submitting_primary)
        login_response = await self._request_client.submit_form(self.session.login_url, login_params)

        logged_in = False
        if forms.requires_secondary_authorization(login_response.text):
            self._transition(SessionState.awaiting_secondary)
            logged_in = await self._submit_authorization_form(login_response.text)
        else:
            logged_in = forms.evaluate_login_success(login_response.text, self._success_markers)

        if not logged_in:
            # The session may have been established anyway, e.g. by the
            # authorize form redirect chain.
            current = await self.check_session()
            logged_in = current.isLoggedIn

        if logged_in:
            self._transition(SessionState.authenticated)
            logger.info("Logged in as '%s'", self.session.user_name)
            await self._fire_on_login()
        else:
            self._transition(SessionState.failed)
            logger.info("Login failed for '%s'", self.session.user_name)

        return LoginResult(isLoggedIn=logged_in, userName=self.session.user_name)

    async def check_session(self) -> SessionStatus:
        """Probe the login endpoint to find out whether a session is active.

        When it is not, the hidden fields of the login form are returned for
        the next submission and the login URL follows the form's action.
        """
        self._transition(SessionState.checking)
        page = await self._request_client.fetch_page(self.session.login_url.replace(".do", ""))
        is_logged_in = forms.is_authenticated(page.text)

        login_form: LoginForm | None = None
        if is_logged_in:
            self._transition(SessionState.authenticated)
        else:
            self._update_login_url(page.text)
            login_form = forms.extract_hidden_fields(page.text) or None
            self._transition(SessionState.form_presented)

        return SessionStatus(isLoggedIn=is_logged_in, userName=self.session.user_name, loginForm=login_form)

    async def log_out(self) -> bool:
        """Log out of the server. Local user name and URLs are kept."""
        await self._request_client.fetch_page(self.session.logout_url)
        self._transition(SessionState.unknown)
        logger.info("Logged out '%s'", self.session.user_name)
        return True

    def _update_login_url(self, body: str) -> None:
        action = forms.resolve_form_action(body, self._server_url)
        if not action:
            return
        if self._server_type != ServerType.SASVIYA:
            action = action.replace(".do", "")
        if action != self.session.login_url:
            logger.debug("Login endpoint moved to %s", action)
        self.session.login_url = action

    async def _submit_authorization_form(self, body: str) -> bool:
        form = forms.extract_authorization_form(body, self._server_url)
        if form is None:
            logger.warning("Authorization form requested but could not be parsed")
            return False
        response = await self._request_client.submit_form(form.action, form.fields)
        return forms.evaluate_login_success(response.text, self._success_markers)

    async def _fire_on_login(self) -> None:
        if self._on_login is None:
            return
        result = self._on_login()
        if inspect.isawaitable(result):
            await result
