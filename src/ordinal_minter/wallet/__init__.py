"""Wallet capability port and its JSON-RPC bridge adapter."""

from ordinal_minter.wallet.bridge import WalletBridgeClient
from ordinal_minter.wallet.capability import (
    AddressPurpose,
    AddressResult,
    Canceled,
    InscriptionPage,
    Signed,
    WalletAddress,
    WalletCapability,
)

__all__ = [
    "AddressPurpose",
    "AddressResult",
    "Canceled",
    "InscriptionPage",
    "Signed",
    "WalletAddress",
    "WalletBridgeClient",
    "WalletCapability",
]
