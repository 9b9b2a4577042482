"""Shared test fixtures for the py-ordinals test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from fakes import BackendStub, EsploraStub, FakeWallet, address_stats, inject_transport

from ordinal_minter.chain.backend.client import BackendClient
from ordinal_minter.chain.esplora.client import EsploraClient
from ordinal_minter.config.settings import AppConfig, BackendConfig, MetricsConfig
from ordinal_minter.models import Network
from ordinal_minter.network.context import NetworkContext
from ordinal_minter.session import SessionContext

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from ordinal_minter.notifications.events import Notice


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def app_config() -> AppConfig:
    """Provide a test AppConfig with safe defaults."""
    return AppConfig(
        network=Network.TESTNET,
        backend=BackendConfig(url="https://backend.test/api"),
        metrics=MetricsConfig(enabled=False),
    )


@pytest.fixture
def notices() -> list[Notice]:
    return []


@pytest.fixture
def session(app_config: AppConfig, notices: list[Notice]) -> SessionContext:
    return SessionContext(network=NetworkContext(app_config), notify=notices.append)


@pytest.fixture
def wallet() -> FakeWallet:
    return FakeWallet()


@pytest.fixture
def backend_stub() -> BackendStub:
    return BackendStub()


@pytest.fixture
async def backend(app_config: AppConfig, backend_stub: BackendStub) -> AsyncIterator[BackendClient]:
    client = BackendClient(app_config.backend)
    inject_transport(client, backend_stub, base_url="https://backend.test/api")
    yield client
    await client.close()


@pytest.fixture
def esplora_stubs() -> dict[Network, EsploraStub]:
    return {
        Network.MAINNET: EsploraStub(address_stats(900_000, 100_000, 0, 0)),
        Network.TESTNET: EsploraStub(),
    }


@pytest.fixture
async def providers(
    app_config: AppConfig, esplora_stubs: dict[Network, EsploraStub]
) -> AsyncIterator[dict[Network, EsploraClient]]:
    clients: dict[Network, EsploraClient] = {}
    for network, stub in esplora_stubs.items():
        url = app_config.endpoints_for(network).provider_url
        client = EsploraClient(url)
        inject_transport(client, stub, base_url=url)
        clients[network] = client
    yield clients
    for client in clients.values():
        await client.close()
