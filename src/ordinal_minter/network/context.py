"""NetworkContext — the active chain selection and the endpoints derived from it."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ordinal_minter.models import Network

if TYPE_CHECKING:
    from ordinal_minter.config.settings import AppConfig, NetworkEndpoints


class NetworkContext:
    """Holds the active network and exposes its endpoints.

    ``switch_network()`` is the only mutator. Each switch increments
    :attr:`epoch`; work started under an older epoch must not apply its
    result.
    """

    def __init__(self, config: AppConfig, network: Network | None = None) -> None:
        self._config = config
        self._network = network or config.network
        self._epoch = 0

    @property
    def network(self) -> Network:
        return self._network

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def is_testnet(self) -> bool:
        return self._network is Network.TESTNET

    @property
    def endpoints(self) -> NetworkEndpoints:
        return self._config.endpoints_for(self._network)

    @property
    def provider_url(self) -> str:
        """Base URL of the UTXO data provider."""
        return self.endpoints.provider_url

    @property
    def wallet_network(self) -> str:
        """Network token understood by the wallet."""
        return self.endpoints.wallet_network

    def preview_url(self, inscription_id: str) -> str:
        """Content-host URL for *inscription_id* on the active network."""
        return self.endpoints.content_url_template.format(inscription_id=inscription_id)

    def switch_network(self, network: Network | None = None) -> Network:
        """Toggle the network, or set it to *network*, and return the new value.

        Switching to the already-active network is a no-op and keeps the epoch.
        """
        target = network or self._network.other
        if target is not self._network:
            self._network = target
            self._epoch += 1
        return self._network
