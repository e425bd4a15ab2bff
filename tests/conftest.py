"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

from acp_bridge.state.store import AcpState
from tests.utils import FakeConnector, FakeSocket

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
async def socket() -> FakeSocket:
    """An open in-memory socket."""
    return FakeSocket()


@pytest.fixture
def connector() -> FakeConnector:
    """Connector that always succeeds."""
    return FakeConnector()


@pytest.fixture
def state() -> AcpState:
    return AcpState()
