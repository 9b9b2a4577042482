"""Esplora REST client — address funding/spending statistics.

Async HTTP client for an Esplora-compatible block explorer API
(blockstream.info, mempool.space):
- GET /address/<addr>

The base URL selects the network (``/api`` vs ``/testnet/api``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from ordinal_minter.errors.ordinal_errors import ProviderFailure, TransportFailure

# ---------------------------------------------------------------------------
# Data models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TxoStats:
    """Funded/spent output sums for one state (chain or mempool)."""

    funded_txo_sum: int  # satoshis
    spent_txo_sum: int  # satoshis

    @property
    def net(self) -> int:
        return self.funded_txo_sum - self.spent_txo_sum

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TxoStats:
        data = data or {}
        return cls(
            funded_txo_sum=int(data.get("funded_txo_sum", 0)),
            spent_txo_sum=int(data.get("spent_txo_sum", 0)),
        )


@dataclass(frozen=True)
class AddressStats:
    """Address statistics from Esplora."""

    address: str
    chain_stats: TxoStats
    mempool_stats: TxoStats

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, address: str = "") -> AddressStats:
        return cls(
            address=data.get("address", address),
            chain_stats=TxoStats.from_dict(data.get("chain_stats")),
            mempool_stats=TxoStats.from_dict(data.get("mempool_stats")),
        )


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class EsploraClient:
    """Async HTTP client for an Esplora block explorer.

    Usage::

        esplora = EsploraClient("https://blockstream.info/testnet/api")
        await esplora.connect()
        try:
            stats = await esplora.get_address_stats("tb1q...")
        finally:
            await esplora.close()
    """

    def __init__(self, base_url: str, *, timeout: float = 30.0) -> None:
        """Initialize the Esplora client.

        Args:
            base_url: API root, e.g. ``https://blockstream.info/api``.
            timeout: Request timeout in seconds.
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Accept": "application/json"},
            timeout=self._timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        """Check if the HTTP client is active."""
        return self._client is not None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_address_stats(self, address: str) -> AddressStats:
        """Get chain and mempool funding/spending totals for an address.

        Args:
            address: Bitcoin address string.

        Returns:
            AddressStats with chain and mempool sums.

        Raises:
            TransportFailure: If the provider is unreachable.
            ProviderFailure: On a non-2xx response or malformed body,
                or if the client is not connected.
        """
        client = self._ensure_connected()
        try:
            resp = await client.get(f"/address/{address}")
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Esplora request failed: {exc}") from exc

        if resp.status_code != 200:
            msg = f"Esplora address lookup failed ({resp.status_code}): {resp.text.strip()}"
            raise ProviderFailure(msg)

        try:
            data: Any = resp.json()
        except ValueError as exc:
            raise ProviderFailure(f"Malformed Esplora response: {exc}") from exc
        if not isinstance(data, dict):
            msg = f"Malformed Esplora response: expected an object, got {type(data).__name__}"
            raise ProviderFailure(msg)
        try:
            return AddressStats.from_dict(data, address=address)
        except (ValueError, TypeError, AttributeError) as exc:
            raise ProviderFailure(f"Malformed Esplora response: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "EsploraClient not connected. Call connect() first."
            raise ProviderFailure(msg)
        return self._client
