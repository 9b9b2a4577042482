"""OrdinalEngine — session root owning the network context and every component."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Self

from ordinal_minter.models import Network
from ordinal_minter.network.context import NetworkContext
from ordinal_minter.notifications.events import Notice, NoticeKind
from ordinal_minter.session import SessionContext

if TYPE_CHECKING:
    from collections.abc import Awaitable, Mapping

    from ordinal_minter.chain.backend.client import BackendClient
    from ordinal_minter.chain.esplora.client import EsploraClient
    from ordinal_minter.config.settings import AppConfig
    from ordinal_minter.metrics.collector import MinterMetrics
    from ordinal_minter.models import BalanceSnapshot, CreatedOrdinal, InscriptionRecord, OrdinalDraft
    from ordinal_minter.notifications.service import NotificationService
    from ordinal_minter.services.balance_service import BalanceTracker
    from ordinal_minter.services.creation_service import CreationOutcome, OrdinalCreationPipeline
    from ordinal_minter.services.inscription_service import InscriptionPaginator
    from ordinal_minter.services.wallet_service import WalletConnectionManager
    from ordinal_minter.wallet.capability import WalletCapability

logger = logging.getLogger(__name__)

# Error messages
_ERR_NOT_INITIALIZED = "Engine not initialized. Call initialize() first."


class OrdinalEngine:
    """Central engine that owns the session and all components.

    Collaborators (wallet, backend, data providers) may be injected; any that
    are not are built from configuration and owned (closed) by the engine.

    Usage::

        async with OrdinalEngine(config) as engine:
            address = await engine.connect()
            outcome = await engine.create_ordinal(OrdinalDraft(raw_content="gm"))
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        wallet: WalletCapability | None = None,
        backend: BackendClient | None = None,
        providers: Mapping[Network, EsploraClient] | None = None,
        notifications: NotificationService | None = None,
        metrics: MinterMetrics | None = None,
    ) -> None:
        """Initialize the engine with configuration and optional collaborators.

        Args:
            config: Application configuration.
            wallet: Wallet capability; defaults to a JSON-RPC wallet bridge.
            backend: Preparation backend client.
            providers: Esplora client per network.
            notifications: Notice bus; one is created if omitted.
            metrics: Prometheus metrics; created when enabled in config.
        """
        self._config = config
        self._initialized = False

        self._wallet = wallet
        self._backend = backend
        self._providers = dict(providers) if providers is not None else None
        self._owned: list[Any] = []

        self._notifications = notifications
        self._metrics = metrics
        self._session: SessionContext | None = None

        # Components
        self._connection: WalletConnectionManager | None = None
        self._balance: BalanceTracker | None = None
        self._paginator: InscriptionPaginator | None = None
        self._pipeline: OrdinalCreationPipeline | None = None
        self._background: set[asyncio.Task[Any]] = set()

    async def initialize(self) -> None:
        """Connect owned clients and build the session components.

        Raises:
            RuntimeError: If already initialized.
        """
        if self._initialized:
            msg = "Engine already initialized"
            raise RuntimeError(msg)

        # Import here to keep module import light
        from ordinal_minter.chain.backend.client import BackendClient
        from ordinal_minter.chain.esplora.client import EsploraClient
        from ordinal_minter.notifications.service import NotificationService
        from ordinal_minter.services.balance_service import BalanceTracker
        from ordinal_minter.services.creation_service import OrdinalCreationPipeline
        from ordinal_minter.services.inscription_service import InscriptionPaginator
        from ordinal_minter.services.wallet_service import WalletConnectionManager
        from ordinal_minter.wallet.bridge import WalletBridgeClient

        config = self._config

        if self._wallet is None:
            bridge = WalletBridgeClient(config.wallet)
            await bridge.connect()
            self._owned.append(bridge)
            self._wallet = bridge

        if self._backend is None:
            self._backend = BackendClient(config.backend)
            await self._backend.connect()
            self._owned.append(self._backend)

        if self._providers is None:
            self._providers = {}
            for network in Network:
                client = EsploraClient(
                    config.endpoints_for(network).provider_url,
                    timeout=config.provider_timeout,
                )
                await client.connect()
                self._owned.append(client)
                self._providers[network] = client

        if self._notifications is None:
            self._notifications = NotificationService()

        if self._metrics is None and config.metrics.enabled:
            from ordinal_minter.metrics.collector import MinterMetrics

            self._metrics = MinterMetrics()

        self._session = SessionContext(
            network=NetworkContext(config),
            notify=self._notifications.publish,
            metrics=self._metrics,
        )
        self._connection = WalletConnectionManager(self._session, self._wallet)
        self._balance = BalanceTracker(self._session, self._providers)
        self._paginator = InscriptionPaginator(
            self._session,
            self._wallet,
            self._connection,
            page_size=config.pagination.page_size,
        )
        self._pipeline = OrdinalCreationPipeline(
            self._session,
            self._wallet,
            self._backend,
            self._balance,
            mode=config.backend.mode,
        )

        self._initialized = True
        logger.info("Ordinal engine initialized on %s", self._session.network.network)

    async def close(self) -> None:
        """Abort in-flight work and close owned clients.

        Can be called multiple times (idempotent).
        """
        if not self._initialized:
            return

        if self._pipeline is not None:
            self._pipeline.abort("engine closed")
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        self._background.clear()

        for client in reversed(self._owned):
            await client.close()
        self._owned.clear()

        self._initialized = False
        logger.info("Ordinal engine shut down")

    async def __aenter__(self) -> Self:
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def session(self) -> SessionContext:
        return self._require(self._session)

    @property
    def network(self) -> NetworkContext:
        return self.session.network

    @property
    def notifications(self) -> NotificationService:
        return self._require(self._notifications)

    @property
    def metrics(self) -> MinterMetrics | None:
        return self._metrics

    @property
    def connection(self) -> WalletConnectionManager:
        return self._require(self._connection)

    @property
    def balance(self) -> BalanceTracker:
        return self._require(self._balance)

    @property
    def inscriptions(self) -> InscriptionPaginator:
        return self._require(self._paginator)

    @property
    def pipeline(self) -> OrdinalCreationPipeline:
        return self._require(self._pipeline)

    @property
    def balance_snapshot(self) -> BalanceSnapshot:
        return self.balance.snapshot

    @property
    def inscription_items(self) -> tuple[InscriptionRecord, ...]:
        return self.inscriptions.items

    @property
    def created_ordinals(self) -> tuple[CreatedOrdinal, ...]:
        return self.pipeline.history

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------

    async def connect(self) -> str | None:
        """Connect the wallet, then refresh balance and inscriptions together.

        Returns:
            The connected address, or None if the connection did not happen.
        """
        address = await self.connection.connect()
        if address is None:
            return None
        self.inscriptions.reset()
        await asyncio.gather(
            self.balance.refresh(address),
            self.inscriptions.load_page(0),
        )
        return address

    def disconnect(self) -> None:
        """Drop the wallet session and everything derived from it."""
        self.pipeline.abort("wallet disconnected")
        self.connection.disconnect()
        self.balance.reset()
        self.inscriptions.reset()
        logger.info("Wallet disconnected")

    def switch_network(self, network: Network | None = None) -> Network:
        """Switch the active network and reset the session as one unit.

        Runs without awaiting, so no coroutine observes a partially reset
        session. In-flight fetches see the new epoch and discard their results.
        """
        session = self.session
        previous = session.network.network
        target = session.network.switch_network(network)
        if target is previous:
            return target

        self.pipeline.abort("network switched")
        session.wallet.clear()
        self.balance.reset()
        self.inscriptions.reset()
        logger.info("Network switched from %s to %s", previous, target)
        session.notify(
            Notice(
                kind=NoticeKind.NETWORK_SWITCHED,
                message=f"Switched to {target.value}",
                content={"network": target.value},
            )
        )
        return target

    async def refresh_balance(self) -> BalanceSnapshot:
        """Re-fetch the balance of the connected address."""
        address = self.session.address
        if address is None:
            return self.balance.snapshot
        return await self.balance.refresh(address)

    async def load_more_inscriptions(self) -> bool:
        return await self.inscriptions.load_more()

    async def reload_inscriptions(self) -> bool:
        """Clear the listing and fetch the first page again."""
        if self.session.address is None:
            return False
        self.inscriptions.reset()
        return await self.inscriptions.load_page(0)

    async def create_ordinal(self, draft: OrdinalDraft) -> CreationOutcome:
        """Run the creation pipeline; on success refresh balance and listing.

        Raises:
            PreconditionViolation: See :meth:`OrdinalCreationPipeline.create`.
        """
        return await self._settle(self.pipeline.start(draft))

    def submit_ordinal(self, draft: OrdinalDraft) -> asyncio.Task[CreationOutcome]:
        """Start :meth:`create_ordinal` in the background and return its task.

        The pipeline is claimed before this returns, so a rejected
        submission, including one made while another is still pending,
        raises here.
        """
        task = asyncio.create_task(self._settle(self.pipeline.start(draft)))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _settle(self, run: Awaitable[CreationOutcome]) -> CreationOutcome:
        outcome = await run
        if outcome.succeeded:
            await asyncio.gather(self.refresh_balance(), self.reload_inscriptions())
        return outcome

    def _require(self, component: Any) -> Any:
        if component is None or not self._initialized:
            raise RuntimeError(_ERR_NOT_INITIALIZED)
        return component
