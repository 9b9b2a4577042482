"""Backend request/response models — prepared artifacts and broadcast results."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any

from ordinal_minter.models import PayloadKind


@dataclass(frozen=True)
class InscriptionPayload:
    """Encoded content for one creation run.

    Attributes:
        kind: ``text`` for plain text, ``base64`` for binary file content.
        content_type: MIME type of the content.
        data: Raw text, or base64 of the file bytes.
        text: The user's text, echoed to the backend and the creation log.
    """

    kind: PayloadKind
    content_type: str
    data: str
    text: str = ""

    @property
    def is_binary(self) -> bool:
        return self.kind is PayloadKind.BASE64

    @property
    def data_url(self) -> str | None:
        """``data:`` URL of a binary payload, None for text."""
        if not self.is_binary:
            return None
        return f"data:{self.content_type};base64,{self.data}"

    @classmethod
    def from_text(cls, text: str) -> InscriptionPayload:
        return cls(kind=PayloadKind.TEXT, content_type="text/plain", data=text, text=text)

    @classmethod
    def from_bytes(cls, raw: bytes, content_type: str, *, text: str = "") -> InscriptionPayload:
        encoded = base64.b64encode(raw).decode("ascii")
        return cls(kind=PayloadKind.BASE64, content_type=content_type, data=encoded, text=text)


@dataclass(frozen=True)
class PreparedArtifact:
    """What the backend hands back for the wallet to act on.

    ``psbt`` is set for the PSBT flow, ``inscription_request`` for the
    wallet-broadcast flow.
    """

    psbt: str = ""
    inscription_request: dict[str, Any] | None = None
    inputs_to_sign: tuple[int, ...] = (0,)

    @classmethod
    def from_prepare(cls, data: dict[str, Any]) -> PreparedArtifact:
        indexes = data.get("signingIndexes", data.get("signing_indexes")) or [0]
        return cls(
            psbt=data.get("preparedArtifact", data.get("psbt", data.get("psbtBase64", ""))),
            inputs_to_sign=tuple(int(i) for i in indexes),
        )

    @classmethod
    def from_inscription(cls, data: dict[str, Any]) -> PreparedArtifact:
        request = data.get("inscriptionRequest", data.get("inscription_request"))
        return cls(inscription_request=request if isinstance(request, dict) else {})


@dataclass(frozen=True)
class BroadcastResult:
    """Backend broadcast response."""

    txid: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BroadcastResult:
        return cls(txid=str(data.get("txid", data.get("txId", ""))))
