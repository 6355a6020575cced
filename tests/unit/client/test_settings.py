# tests/unit/client/test_settings.py
import pytest
from pydantic import ValidationError as PydanticValidationError

from viyakit.client.settings import DEFAULT_CONTEXT_LIST_LIMIT, ClientSettings, validate_server_url
from viyakit.shared.exceptions import ValidationError
from viyakit.types import ServerType


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from VIYAKIT_* variables and any .env in the working directory."""
    for name in ("SERVER_URL", "SERVER_TYPE", "LOGIN_PATH", "TIMEOUT", "ALLOW_INSECURE_REQUESTS",
                 "CONTEXT_LIST_LIMIT", "DEBUG", "LOG_LEVEL"):
        monkeypatch.delenv(f"VIYAKIT_{name}", raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    settings = ClientSettings()

    assert settings.server_url == ""
    assert settings.server_type == ServerType.SASVIYA
    assert settings.login_path == "/SASLogon/login"
    assert settings.timeout == 30.0
    assert settings.allow_insecure_requests is False
    assert settings.context_list_limit == DEFAULT_CONTEXT_LIST_LIMIT
    assert settings.log_level == "INFO"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("VIYAKIT_SERVER_URL", "https://viya.example.com/")
    monkeypatch.setenv("VIYAKIT_SERVER_TYPE", "SAS9")
    monkeypatch.setenv("VIYAKIT_ALLOW_INSECURE_REQUESTS", "true")
    monkeypatch.setenv("VIYAKIT_CONTEXT_LIST_LIMIT", "50")
    monkeypatch.setenv("VIYAKIT_LOG_LEVEL", "DEBUG")

    settings = ClientSettings()

    assert settings.server_url == "https://viya.example.com"
    assert settings.server_type == ServerType.SAS9
    assert settings.allow_insecure_requests is True
    assert settings.context_list_limit == 50
    assert settings.log_level == "DEBUG"


def test_settings_from_dotenv(tmp_path):
    (tmp_path / ".env").write_text("VIYAKIT_SERVER_URL=https://env-file.example.com\nUNRELATED=1\n")

    assert ClientSettings().server_url == "https://env-file.example.com"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"server_url": "ftp://viya.example.com"},
        {"server_url": "not a url"},
        {"login_path": "SASLogon/login"},
        {"context_list_limit": 0},
        {"log_level": "CHATTY"},
    ],
)
def test_invalid_settings(kwargs):
    with pytest.raises(PydanticValidationError):
        ClientSettings(**kwargs)


def test_validate_server_url():
    assert validate_server_url("") == ""
    assert validate_server_url("http://localhost:8080//") == "http://localhost:8080"

    with pytest.raises(ValidationError) as exc_info:
        validate_server_url("viya.example.com")
    assert exc_info.value.message == "Invalid server url: 'viya.example.com'"
