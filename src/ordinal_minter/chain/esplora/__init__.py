"""Esplora block explorer client."""

from ordinal_minter.chain.esplora.client import AddressStats, EsploraClient, TxoStats

__all__ = ["AddressStats", "EsploraClient", "TxoStats"]
