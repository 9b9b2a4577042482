"""Session components: wallet connection, balance, inscription listing, creation."""

from __future__ import annotations

from ordinal_minter.services.balance_service import BalanceTracker
from ordinal_minter.services.creation_service import (
    CreationOutcome,
    OrdinalCreationPipeline,
    PipelineState,
)
from ordinal_minter.services.inscription_service import PAGE_SIZE, InscriptionPaginator
from ordinal_minter.services.wallet_service import WalletConnectionManager

__all__ = [
    "PAGE_SIZE",
    "BalanceTracker",
    "CreationOutcome",
    "InscriptionPaginator",
    "OrdinalCreationPipeline",
    "PipelineState",
    "WalletConnectionManager",
]
