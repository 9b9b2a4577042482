"""Balance service — confirmed/unconfirmed balance from address UTXO statistics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ordinal_minter.errors.ordinal_errors import OrdinalError, ProviderFailure
from ordinal_minter.models import BalanceSnapshot

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ordinal_minter.chain.esplora.client import AddressStats, EsploraClient
    from ordinal_minter.models import Network
    from ordinal_minter.session import SessionContext

logger = logging.getLogger(__name__)


class BalanceTracker:
    """Keeps the session's :class:`BalanceSnapshot` current.

    The snapshot is replaced wholesale by each refresh; a failed refresh
    leaves it explicitly unknown rather than zero.
    """

    def __init__(
        self,
        session: SessionContext,
        providers: Mapping[Network, EsploraClient],
    ) -> None:
        self._session = session
        self._providers = providers
        self._snapshot = BalanceSnapshot.unknown()
        self._generation = 0

    @property
    def snapshot(self) -> BalanceSnapshot:
        return self._snapshot

    @staticmethod
    def compute(stats: AddressStats) -> BalanceSnapshot:
        """Derive the balance from chain and mempool funding/spending sums.

        ``unconfirmed`` is the net mempool delta and is not clamped.
        """
        confirmed = stats.chain_stats.funded_txo_sum - stats.chain_stats.spent_txo_sum
        total_with_pending = confirmed + (
            stats.mempool_stats.funded_txo_sum - stats.mempool_stats.spent_txo_sum
        )
        return BalanceSnapshot(
            confirmed_sats=confirmed,
            unconfirmed_sats=total_with_pending - confirmed,
        )

    async def refresh(self, address: str) -> BalanceSnapshot:
        """Fetch statistics for *address* and replace the snapshot.

        Never raises for provider errors: the snapshot becomes unknown, the
        failure is logged and published. Results that arrive after a reset
        or network switch are discarded.
        """
        session = self._session
        epoch = session.network.epoch
        generation = self._generation
        provider = self._providers[session.network.network]

        try:
            with session.track_balance_refresh():
                stats = await provider.get_address_stats(address)
        except OrdinalError as exc:
            logger.warning("Balance refresh for %s failed: %s", address, exc.message)
            if not self._is_current(epoch, generation):
                return self._snapshot
            self._snapshot = BalanceSnapshot.unknown()
            if session.metrics is not None:
                session.metrics.record_balance_failure()
            session.report(
                ProviderFailure(f"Could not fetch balance: {exc.message}"), retryable=True
            )
            return self._snapshot

        if not self._is_current(epoch, generation):
            logger.info("Discarding stale balance for %s", address)
            return self._snapshot

        self._snapshot = self.compute(stats)
        logger.debug(
            "Balance for %s: confirmed=%s unconfirmed=%s",
            address,
            self._snapshot.confirmed_sats,
            self._snapshot.unconfirmed_sats,
        )
        return self._snapshot

    def reset(self) -> None:
        """Mark the balance unknown and invalidate in-flight refreshes."""
        self._generation += 1
        self._snapshot = BalanceSnapshot.unknown()

    def _is_current(self, epoch: int, generation: int) -> bool:
        return self._session.is_current(epoch) and generation == self._generation
