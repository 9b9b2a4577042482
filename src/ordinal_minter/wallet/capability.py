"""Wallet capability port — what the engine needs from a browser wallet.

Every prompt the user can dismiss resolves to a two-outcome result
(``AddressResult | Canceled``, ``Signed | Canceled``) that the caller awaits,
so cancellation is a value, not an exception. A missing or broken wallet
raises :class:`~ordinal_minter.errors.ordinal_errors.CapabilityError`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ordinal_minter.models import PayloadKind


class AddressPurpose(enum.StrEnum):
    """Why an address is requested from the wallet."""

    ORDINALS = "ordinals"
    PAYMENT = "payment"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WalletAddress:
    address: str
    purpose: str = ""
    public_key: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WalletAddress:
        return cls(
            address=data.get("address", ""),
            purpose=data.get("purpose", ""),
            public_key=data.get("publicKey", data.get("public_key", "")),
        )


@dataclass(frozen=True)
class AddressResult:
    """Addresses granted by the wallet, in the order it returned them."""

    addresses: tuple[WalletAddress, ...] = ()

    def primary(self, purpose: str = AddressPurpose.ORDINALS) -> str | None:
        """The address for *purpose*, else the first address, else None."""
        for item in self.addresses:
            if item.purpose == purpose and item.address:
                return item.address
        for item in self.addresses:
            if item.address:
                return item.address
        return None


@dataclass(frozen=True)
class Signed:
    """The wallet approved the request.

    ``artifact`` is the signed PSBT when the wallet did not broadcast;
    ``txid`` is set when the wallet broadcast the transaction itself.
    """

    artifact: str = ""
    txid: str = ""

    @property
    def broadcast_by_wallet(self) -> bool:
        return bool(self.txid)


@dataclass(frozen=True)
class Canceled:
    """The user dismissed the wallet prompt."""

    reason: str = "canceled by user"


@dataclass(frozen=True)
class InscriptionPage:
    """One page of the wallet's inscription enumeration."""

    total: int = 0
    items: list[dict[str, Any]] = field(default_factory=list)
    limit: int = 0
    offset: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InscriptionPage:
        items = data.get("inscriptions", data.get("items", data.get("list", []))) or []
        return cls(
            total=int(data.get("total", len(items)) or 0),
            items=list(items),
            limit=int(data.get("limit", 0) or 0),
            offset=int(data.get("offset", 0) or 0),
        )


# ---------------------------------------------------------------------------
# Port
# ---------------------------------------------------------------------------


@runtime_checkable
class WalletCapability(Protocol):
    """Operations a connected wallet offers the engine."""

    async def get_address(
        self, purposes: Sequence[AddressPurpose], network: str
    ) -> AddressResult | Canceled: ...

    async def sign_psbt(
        self,
        psbt: str,
        *,
        address: str,
        signing_indexes: Sequence[int],
        network: str,
    ) -> Signed | Canceled: ...

    async def create_inscription(
        self,
        *,
        content_type: str,
        payload: str,
        payload_kind: PayloadKind,
        network: str,
        request: dict[str, Any] | None = None,
    ) -> Signed | Canceled: ...

    async def request_permissions(self) -> bool: ...

    async def get_inscriptions(self, offset: int, limit: int) -> InscriptionPage: ...
