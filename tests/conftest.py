# tests/conftest.py
import logging

import httpx
import pytest

from viyakit.client.request_client import RequestClient
from viyakit.shared._httpx_utils import create_viyakit_http_client

from tests.fake_viya import FakeViyaServer

# ------------------------------------------------------------------------------
# 1. Global Configuration
# ------------------------------------------------------------------------------

@pytest.fixture(scope="session")
def anyio_backend():
    """
    Tells pytest to use 'asyncio' as the backend for anyio tests.
    viyakit runs on anyio, and this keeps it compatible with httpx.
    """
    return "asyncio"


@pytest.fixture(autouse=True)
def setup_test_logging(caplog):
    """
    Automatically captures logging at DEBUG level for every test.
    If a test fails, pytest will show the logs (request lines and logon state transitions).
    """
    caplog.set_level(logging.DEBUG)


# ------------------------------------------------------------------------------
# 2. Shared Transport Fixtures
# ------------------------------------------------------------------------------

@pytest.fixture
def viya_server():
    return FakeViyaServer()


@pytest.fixture
def mock_transport(viya_server):
    return httpx.MockTransport(viya_server.handle)


@pytest.fixture
async def http_client(mock_transport):
    async with create_viyakit_http_client(transport=mock_transport) as client:
        yield client


@pytest.fixture
async def request_client(http_client):
    return RequestClient(http_client)
