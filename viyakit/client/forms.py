# viyakit/client/forms.py
"""
Pattern-based analysis of SAS Logon pages.

Every function here is pure and tolerant: malformed or unexpected markup yields
the "no match" value (False, {}, None) instead of an exception.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urljoin

LOGIN_SUCCESS_MARKERS: tuple[str, ...] = ("You have signed in",)

_LOGOUT_CONTROL = re.compile(r"<button.+onClick.+logout", re.IGNORECASE)
_LOGIN_FORM = re.compile(r'<form.+action="(.*Logon[^"]*).*>')
_HIDDEN_INPUT = re.compile(r'<input.*"hidden"[^>]*>')
_NAME_VALUE = re.compile(r'name="([^"]*)"\svalue="([^"]*)')

_AUTHORIZE_FORM = re.compile(r'<form.+action="(.*Logon/oauth/authorize[^"]*).*>')
_AUTHORIZE_FORM_BLOCK = re.compile(
    r'<form[^>]*id="application_authorization"[^>]*>(.*?)</form>',
    re.IGNORECASE | re.DOTALL,
)
_ACTION_ATTR = re.compile(r'action="([^"]*)"', re.IGNORECASE)
_ANY_INPUT = re.compile(r"<input[^>]*>", re.IGNORECASE)
_NAME_ATTR = re.compile(r'name="([^"]*)"', re.IGNORECASE)
_VALUE_ATTR = re.compile(r'value="([^"]*)"', re.IGNORECASE)

APPROVAL_FIELD = "user_oauth_approval"


@dataclass
class AuthorizationForm:
    """The second-stage "authorize this application" form."""

    action: str
    fields: dict[str, str] = field(default_factory=dict)


def is_authenticated(body: str | None) -> bool:
    """True iff the page shows a log-out control."""
    if not body:
        return False
    return _LOGOUT_CONTROL.search(body) is not None


def _login_form_action(body: str) -> str | None:
    match = _LOGIN_FORM.search(body)
    return match.group(1) if match else None


def extract_hidden_fields(body: str | None) -> dict[str, str]:
    """Hidden input name/value pairs of the login form, or {} if there is none."""
    if not body or _login_form_action(body) is None:
        return {}

    fields: dict[str, str] = {}
    for tag in _HIDDEN_INPUT.findall(body):
        match = _NAME_VALUE.search(tag)
        if match:
            fields[match.group(1)] = match.group(2)
    return fields


def _resolve(action: str, server_url: str) -> str:
    action = action.split("?", 1)[0]
    if action.startswith("/"):
        return f"{server_url}{action}" if server_url else action
    if server_url and not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", action):
        return urljoin(f"{server_url}/", action)
    return action


def resolve_form_action(body: str | None, server_url: str = "") -> str | None:
    """Login form action with the query string stripped.

    Site-relative actions are resolved against `server_url`. Returns None when
    the page has no login form.
    """
    if not body:
        return None
    action = _login_form_action(body)
    if not action:
        return None
    return _resolve(action, server_url)


def requires_secondary_authorization(body: str | None) -> bool:
    """True if the page is an OAuth-consent style "authorize" form."""
    if not body:
        return False
    return _AUTHORIZE_FORM.search(body) is not None


def extract_authorization_form(body: str | None, server_url: str = "") -> AuthorizationForm | None:
    """Action and inputs of the authorize form, with the approval field set to "true"."""
    if not body:
        return None
    block = _AUTHORIZE_FORM_BLOCK.search(body)
    if block is not None:
        action_match = _ACTION_ATTR.search(block.group(0))
        inner = block.group(1)
    else:
        action_match = _AUTHORIZE_FORM.search(body)
        inner = body
    if action_match is None or not action_match.group(1):
        return None

    fields: dict[str, str] = {}
    for tag in _ANY_INPUT.findall(inner):
        name = _NAME_ATTR.search(tag)
        if not name or not name.group(1):
            continue
        value = _VALUE_ATTR.search(tag)
        fields[name.group(1)] = value.group(1) if value else ""
    if APPROVAL_FIELD in fields:
        fields[APPROVAL_FIELD] = "true"

    return AuthorizationForm(action=_resolve(action_match.group(1), server_url), fields=fields)


def evaluate_login_success(body: str | None, markers: tuple[str, ...] = LOGIN_SUCCESS_MARKERS) -> bool:
    """True if a submitted-login response carries one of the success markers."""
    if not body:
        return False
    return any(marker in body for marker in markers)
