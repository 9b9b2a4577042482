"""Session-scoped data models — wallet session, balance, inscriptions, drafts.

Nothing here is persisted: every model lives in session memory and vanishes
when the process exits.
"""

from __future__ import annotations

import enum
import mimetypes
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Network(enum.StrEnum):
    """Bitcoin chain selection."""

    MAINNET = "mainnet"
    TESTNET = "testnet"

    @property
    def other(self) -> Network:
        """The network a toggle switches to."""
        return Network.TESTNET if self is Network.MAINNET else Network.MAINNET


class OrdinalStatus(enum.StrEnum):
    """Final status of a created ordinal.

    ``CREATED`` when the wallet itself broadcast the inscription,
    ``BROADCASTED`` when the backend broadcast the signed PSBT.
    """

    CREATED = "created"
    BROADCASTED = "broadcasted"


class PayloadKind(enum.StrEnum):
    """Encoding of the content handed to backend and wallet."""

    TEXT = "text"
    BASE64 = "base64"


# ---------------------------------------------------------------------------
# Wallet session
# ---------------------------------------------------------------------------


@dataclass
class WalletSession:
    """The one wallet session of a running engine."""

    address: str | None = None
    connected: bool = False
    permission_granted: bool = False

    def clear(self) -> None:
        """Forget the address and every capability grant."""
        self.address = None
        self.connected = False
        self.permission_granted = False


# ---------------------------------------------------------------------------
# Balance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BalanceSnapshot:
    """Confirmed/unconfirmed balance in satoshis.

    ``None`` means the balance could not be determined, which is distinct
    from a zero balance. ``unconfirmed_sats`` is the net pending delta and
    may be negative when pending spends exceed pending receipts.
    """

    confirmed_sats: int | None = None
    unconfirmed_sats: int | None = None

    @property
    def is_known(self) -> bool:
        return self.confirmed_sats is not None and self.unconfirmed_sats is not None

    @property
    def total_sats(self) -> int | None:
        if not self.is_known:
            return None
        return self.confirmed_sats + self.unconfirmed_sats  # type: ignore[operator]

    @classmethod
    def unknown(cls) -> BalanceSnapshot:
        return cls(None, None)


# ---------------------------------------------------------------------------
# Inscriptions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InscriptionRecord:
    """An inscription owned by the connected wallet.

    Attributes:
        inscription_id: Unique inscription identifier (``<txid>i<index>``).
        inscription_number: Inscription number as reported by the wallet.
        content_type: MIME type of the inscribed content.
        genesis_transaction: Transaction that created the inscription.
        timestamp_unix_seconds: Genesis timestamp.
        preview_url: Content URL on the active network's content host.
    """

    inscription_id: str
    inscription_number: str
    content_type: str
    genesis_transaction: str
    timestamp_unix_seconds: int
    preview_url: str

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, preview_url: str) -> InscriptionRecord:
        """Create a record from a wallet enumeration item (camelCase or snake_case)."""
        inscription_id = data.get("inscriptionId", data.get("inscription_id", data.get("id", "")))
        number = data.get("inscriptionNumber", data.get("inscription_number", data.get("number", "")))
        return cls(
            inscription_id=str(inscription_id),
            inscription_number=str(number),
            content_type=data.get("contentType", data.get("content_type", "")),
            genesis_transaction=data.get(
                "genesisTransaction", data.get("genesis_transaction", "")
            ),
            timestamp_unix_seconds=int(data.get("timestamp", 0) or 0),
            preview_url=preview_url,
        )

    @property
    def short_genesis(self) -> str:
        """First ten characters of the genesis txid, for compact listings."""
        return f"{self.genesis_transaction[:10]}..."


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

_TEXT_CONTENT_TYPE = "text/plain"
_BINARY_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class OrdinalDraft:
    """User input for one creation attempt, handed over by value.

    Attributes:
        raw_content: Text content typed by the user.
        raw_file: Binary file content; takes precedence over text when set.
        file_content_type: MIME type of ``raw_file``.
        file_name: Original file name, used to guess a missing content type.
    """

    raw_content: str = ""
    raw_file: bytes | None = None
    file_content_type: str | None = None
    file_name: str | None = None

    @property
    def has_file(self) -> bool:
        return self.raw_file is not None

    @property
    def content_type(self) -> str:
        """Content type of the payload the draft encodes to."""
        if not self.has_file:
            return _TEXT_CONTENT_TYPE
        if self.file_content_type:
            return self.file_content_type
        if self.file_name:
            guessed, _ = mimetypes.guess_type(self.file_name)
            if guessed:
                return guessed
        return _BINARY_CONTENT_TYPE


@dataclass(frozen=True)
class CreatedOrdinal:
    """One successful creation, appended to the session's creation log."""

    transaction_or_inscription_id: str
    content_type: str
    content_echo: str
    status: OrdinalStatus
    created_at_iso: str

    @classmethod
    def now(
        cls,
        txid: str,
        *,
        content_type: str,
        content_echo: str,
        status: OrdinalStatus,
    ) -> CreatedOrdinal:
        return cls(
            transaction_or_inscription_id=txid,
            content_type=content_type,
            content_echo=content_echo,
            status=status,
            created_at_iso=datetime.now(UTC).isoformat(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.transaction_or_inscription_id,
            "contentType": self.content_type,
            "content": self.content_echo,
            "status": self.status.value,
            "timestamp": self.created_at_iso,
        }
