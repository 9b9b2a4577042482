#!/usr/bin/env python3
"""Ordinal address tool — check balances and inscription preview URLs.

A standalone CLI utility built on the engine's data-provider client:

    # Confirmed / unconfirmed / total balance of an address
    ordinal-tool balance <address> [--testnet]

    # Content URL of an inscription on the configured content host
    ordinal-tool preview <inscription_id> [--testnet]

    # Show the endpoints the engine would use
    ordinal-tool endpoints

Endpoints come from ``ORDMINT_`` environment variables, like the engine's.
"""

from __future__ import annotations

import asyncio
import sys

from ordinal_minter.config.settings import AppConfig
from ordinal_minter.models import Network


def _network(flags: list[str]) -> Network:
    return Network.TESTNET if "--testnet" in flags else Network.MAINNET


def _cmd_balance(config: AppConfig, address: str, network: Network) -> int:
    """Print the balance of *address* computed from chain and mempool stats."""
    from ordinal_minter.chain.esplora.client import EsploraClient
    from ordinal_minter.errors.ordinal_errors import OrdinalError
    from ordinal_minter.services.balance_service import BalanceTracker

    async def _run() -> int:
        esplora = EsploraClient(
            config.endpoints_for(network).provider_url, timeout=config.provider_timeout
        )
        await esplora.connect()
        try:
            stats = await esplora.get_address_stats(address)
        except OrdinalError as exc:
            print(f"Could not fetch balance: {exc.message}")
            return 1
        finally:
            await esplora.close()

        bal = BalanceTracker.compute(stats)
        print(f"Address:      {address}  ({network.value})")
        print(f"Confirmed:    {bal.confirmed_sats:>12,} sats  ({bal.confirmed_sats / 1e8:.8f} BTC)")
        print(
            f"Unconfirmed:  {bal.unconfirmed_sats:>12,} sats  ({bal.unconfirmed_sats / 1e8:.8f} BTC)"
        )
        print(f"Total:        {bal.total_sats:>12,} sats  ({bal.total_sats / 1e8:.8f} BTC)")
        return 0

    return asyncio.run(_run())


def _cmd_preview(config: AppConfig, inscription_id: str, network: Network) -> int:
    template = config.endpoints_for(network).content_url_template
    print(template.format(inscription_id=inscription_id))
    return 0


def _cmd_endpoints(config: AppConfig) -> int:
    for network in Network:
        endpoints = config.endpoints_for(network)
        print(f"[{network.value}]")
        print(f"  provider:  {endpoints.provider_url}")
        print(f"  wallet:    {endpoints.wallet_network}")
        print(f"  content:   {endpoints.content_url_template}")
    print(f"[backend]    {config.backend.url}  (mode={config.backend.mode.value})")
    print(f"[wallet]     {config.wallet.url}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print(__doc__)
        return 1

    cmd = args[0].lower()
    positional = [a for a in args[1:] if not a.startswith("--")]
    flags = [a for a in args[1:] if a.startswith("--")]
    config = AppConfig()

    if cmd == "balance":
        if not positional:
            print("Usage: ordinal-tool balance <address> [--testnet]")
            return 1
        return _cmd_balance(config, positional[0], _network(flags))
    if cmd == "preview":
        if not positional:
            print("Usage: ordinal-tool preview <inscription_id> [--testnet]")
            return 1
        return _cmd_preview(config, positional[0], _network(flags))
    if cmd == "endpoints":
        return _cmd_endpoints(config)

    print(f"Unknown command: {cmd}")
    print(__doc__)
    return 1


if __name__ == "__main__":
    sys.exit(main())
