"""Tests for the OrdinalEngine orchestration layer."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from fakes import BROADCAST_TXID, ORDINALS_ADDRESS, make_inscriptions

from ordinal_minter.engine.client import OrdinalEngine
from ordinal_minter.errors.ordinal_errors import PreconditionViolation
from ordinal_minter.models import BalanceSnapshot, Network, OrdinalDraft
from ordinal_minter.notifications.events import NoticeKind
from ordinal_minter.services.creation_service import PipelineState
from ordinal_minter.wallet.capability import Canceled

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fakes import BackendStub, EsploraStub, FakeWallet

    from ordinal_minter.chain.backend.client import BackendClient
    from ordinal_minter.chain.esplora.client import EsploraClient
    from ordinal_minter.config.settings import AppConfig


async def _wait_for_state(engine: OrdinalEngine, state: PipelineState) -> None:
    for _ in range(200):
        if engine.pipeline.state is state:
            return
        await asyncio.sleep(0)
    msg = f"pipeline never reached {state}"
    raise AssertionError(msg)


@pytest.fixture
async def engine(
    app_config: AppConfig,
    wallet: FakeWallet,
    backend: BackendClient,
    providers: dict[Network, EsploraClient],
) -> AsyncIterator[OrdinalEngine]:
    eng = OrdinalEngine(app_config, wallet=wallet, backend=backend, providers=providers)
    await eng.initialize()
    yield eng
    await eng.close()


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


class TestEngineLifecycle:
    def test_initial_state(self, app_config: AppConfig) -> None:
        eng = OrdinalEngine(app_config)
        assert eng.is_initialized is False
        assert eng.config is app_config

    def test_components_require_initialize(self, app_config: AppConfig) -> None:
        eng = OrdinalEngine(app_config)
        with pytest.raises(RuntimeError, match="not initialized"):
            _ = eng.pipeline
        with pytest.raises(RuntimeError, match="not initialized"):
            _ = eng.session

    @pytest.mark.asyncio
    async def test_double_initialize_raises(self, engine: OrdinalEngine) -> None:
        with pytest.raises(RuntimeError, match="already initialized"):
            await engine.initialize()

    @pytest.mark.asyncio
    async def test_initialize_builds_owned_clients(self, app_config: AppConfig) -> None:
        async with OrdinalEngine(app_config) as eng:
            assert eng.is_initialized is True
            assert eng.network.network is Network.TESTNET
            assert eng.metrics is None
            assert len(eng._owned) == 4
        assert eng.is_initialized is False
        assert eng._owned == []

    @pytest.mark.asyncio
    async def test_close_idempotent(self, engine: OrdinalEngine) -> None:
        await engine.close()
        await engine.close()
        assert engine.is_initialized is False

    @pytest.mark.asyncio
    async def test_injected_clients_not_closed(
        self, engine: OrdinalEngine, backend: BackendClient
    ) -> None:
        await engine.close()
        assert backend.is_connected is True


# ---------------------------------------------------------------------------
# Connect / disconnect
# ---------------------------------------------------------------------------


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_refreshes_balance_and_inscriptions(
        self, engine: OrdinalEngine, wallet: FakeWallet
    ) -> None:
        wallet.inscriptions = make_inscriptions(3)
        address = await engine.connect()
        assert address == ORDINALS_ADDRESS
        assert engine.session.address == ORDINALS_ADDRESS
        assert engine.balance_snapshot == BalanceSnapshot(300_000, 100_000)
        assert len(engine.inscription_items) == 3

    @pytest.mark.asyncio
    async def test_connect_survives_malformed_provider_data(
        self,
        engine: OrdinalEngine,
        wallet: FakeWallet,
        esplora_stubs: dict[Network, EsploraStub],
    ) -> None:
        wallet.pages_override = [[{"inscriptionId": "x", "timestamp": "2023-01-01T00:00:00Z"}]]
        esplora_stubs[Network.TESTNET].stats = []  # type: ignore[assignment]
        address = await engine.connect()
        assert address == ORDINALS_ADDRESS
        assert engine.balance_snapshot.is_known is False
        assert engine.inscription_items == ()
        kinds = [n.kind for n in engine.notifications.recent]
        assert kinds.count(NoticeKind.PROVIDER_FAILURE) == 2

    @pytest.mark.asyncio
    async def test_canceled_connect_fetches_nothing(
        self,
        engine: OrdinalEngine,
        wallet: FakeWallet,
        esplora_stubs: dict[Network, EsploraStub],
    ) -> None:
        wallet.address_result = Canceled()
        assert await engine.connect() is None
        assert engine.balance_snapshot.is_known is False
        assert esplora_stubs[Network.TESTNET].requests == []
        assert wallet.count("get_inscriptions") == 0
        assert engine.notifications.recent[-1].kind == NoticeKind.CANCELLATION

    @pytest.mark.asyncio
    async def test_disconnect_clears_session(
        self, engine: OrdinalEngine, wallet: FakeWallet
    ) -> None:
        wallet.inscriptions = make_inscriptions(3)
        await engine.connect()
        engine.disconnect()
        assert engine.session.address is None
        assert engine.balance_snapshot.is_known is False
        assert engine.inscription_items == ()

    @pytest.mark.asyncio
    async def test_refresh_balance_without_wallet(self, engine: OrdinalEngine) -> None:
        snap = await engine.refresh_balance()
        assert snap.is_known is False

    @pytest.mark.asyncio
    async def test_reload_inscriptions(self, engine: OrdinalEngine, wallet: FakeWallet) -> None:
        assert await engine.reload_inscriptions() is False
        wallet.inscriptions = make_inscriptions(2)
        await engine.connect()
        wallet.inscriptions = make_inscriptions(5)
        assert await engine.reload_inscriptions() is True
        assert len(engine.inscription_items) == 5

    @pytest.mark.asyncio
    async def test_load_more_inscriptions(
        self, engine: OrdinalEngine, wallet: FakeWallet
    ) -> None:
        wallet.inscriptions = make_inscriptions(70)
        await engine.connect()
        assert await engine.load_more_inscriptions() is True
        assert len(engine.inscription_items) == 70
        assert await engine.load_more_inscriptions() is False


# ---------------------------------------------------------------------------
# Network switch
# ---------------------------------------------------------------------------


class TestSwitchNetwork:
    @pytest.mark.asyncio
    async def test_switch_resets_session(
        self, engine: OrdinalEngine, wallet: FakeWallet
    ) -> None:
        wallet.inscriptions = make_inscriptions(3)
        await engine.connect()
        epoch = engine.network.epoch

        assert engine.switch_network() is Network.MAINNET
        assert engine.network.network is Network.MAINNET
        assert engine.network.epoch == epoch + 1
        assert engine.session.wallet.connected is False
        assert engine.session.wallet.address is None
        assert engine.session.wallet.permission_granted is False
        assert engine.balance_snapshot.is_known is False
        assert engine.inscription_items == ()
        notice = engine.notifications.recent[-1]
        assert notice.kind == NoticeKind.NETWORK_SWITCHED
        assert notice.content == {"network": "mainnet"}

    @pytest.mark.asyncio
    async def test_switch_to_same_network_is_noop(
        self, engine: OrdinalEngine, wallet: FakeWallet
    ) -> None:
        await engine.connect()
        assert engine.switch_network(Network.TESTNET) is Network.TESTNET
        assert engine.network.epoch == 0
        assert engine.session.address == ORDINALS_ADDRESS

    @pytest.mark.asyncio
    async def test_switch_cancels_in_flight_creation(
        self,
        engine: OrdinalEngine,
        wallet: FakeWallet,
        backend_stub: BackendStub,
    ) -> None:
        await engine.connect()
        wallet.sign_gate = asyncio.Event()
        task = engine.submit_ordinal(OrdinalDraft(raw_content="gm"))
        await _wait_for_state(engine, PipelineState.AWAITING_WALLET_SIGNATURE)

        engine.switch_network()
        assert engine.pipeline.state is PipelineState.CANCELED

        outcome = await task
        assert outcome.state is PipelineState.CANCELED
        assert "/api/broadcast" not in backend_stub.paths
        assert engine.created_ordinals == ()

    @pytest.mark.asyncio
    async def test_reconnect_after_switch_uses_new_network(
        self,
        engine: OrdinalEngine,
        wallet: FakeWallet,
        esplora_stubs: dict[Network, EsploraStub],
    ) -> None:
        await engine.connect()
        engine.switch_network()
        await engine.connect()
        networks = [c["network"] for n, c in wallet.calls if n == "get_address"]
        assert networks == ["Testnet", "Mainnet"]
        assert len(esplora_stubs[Network.MAINNET].requests) == 1
        assert engine.balance_snapshot == BalanceSnapshot(800_000, 0)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------


class TestCreateOrdinal:
    @pytest.mark.asyncio
    async def test_create_refreshes_balance_and_listing(
        self,
        engine: OrdinalEngine,
        wallet: FakeWallet,
        esplora_stubs: dict[Network, EsploraStub],
    ) -> None:
        await engine.connect()
        wallet.inscriptions = make_inscriptions(1)
        outcome = await engine.create_ordinal(OrdinalDraft(raw_content="gm"))

        assert outcome.succeeded
        assert engine.created_ordinals[0].transaction_or_inscription_id == BROADCAST_TXID
        assert len(esplora_stubs[Network.TESTNET].requests) == 2
        assert len(engine.inscription_items) == 1
        assert NoticeKind.ORDINAL_CREATED in [n.kind for n in engine.notifications.recent]

    @pytest.mark.asyncio
    async def test_failed_create_does_not_refresh(
        self,
        engine: OrdinalEngine,
        backend_stub: BackendStub,
        esplora_stubs: dict[Network, EsploraStub],
    ) -> None:
        await engine.connect()
        backend_stub.prepare_status = 400
        outcome = await engine.create_ordinal(OrdinalDraft(raw_content="gm"))
        assert outcome.state is PipelineState.FAILED
        assert len(esplora_stubs[Network.TESTNET].requests) == 1

    @pytest.mark.asyncio
    async def test_submit_rejects_before_task(
        self, engine: OrdinalEngine, backend_stub: BackendStub
    ) -> None:
        with pytest.raises(PreconditionViolation):
            engine.submit_ordinal(OrdinalDraft(raw_content="gm"))
        assert engine._background == set()
        assert backend_stub.requests == []
        assert engine.notifications.recent[-1].kind == NoticeKind.PRECONDITION

    @pytest.mark.asyncio
    async def test_back_to_back_submit_rejects_second(
        self, engine: OrdinalEngine, wallet: FakeWallet
    ) -> None:
        await engine.connect()
        wallet.sign_gate = asyncio.Event()
        first = engine.submit_ordinal(OrdinalDraft(raw_content="gm"))
        assert engine.pipeline.state is PipelineState.ENCODING

        with pytest.raises(PreconditionViolation) as exc_info:
            engine.submit_ordinal(OrdinalDraft(raw_content="gn"))
        assert exc_info.value.code == "creation-in-flight"
        assert len(engine._background) == 1

        wallet.sign_gate.set()
        outcome = await first
        assert outcome.succeeded
        assert wallet.count("sign_psbt") == 1
        assert len(engine.created_ordinals) == 1

    @pytest.mark.asyncio
    async def test_close_aborts_background_creation(
        self, engine: OrdinalEngine, wallet: FakeWallet
    ) -> None:
        await engine.connect()
        wallet.sign_gate = asyncio.Event()
        task = engine.submit_ordinal(OrdinalDraft(raw_content="gm"))
        await _wait_for_state(engine, PipelineState.AWAITING_WALLET_SIGNATURE)
        await engine.close()
        assert task.done()
        assert engine._background == set()
