"""WalletBridgeClient — JSON-RPC 2.0 wallet capability over HTTP.

Talks to a local bridge that forwards ``request(method, params)`` calls to a
sats-connect compatible browser wallet:
- getAddresses
- signPsbt
- createInscription
- wallet_requestPermissions
- ord_getInscriptions

User rejections come back as JSON-RPC error ``-32000`` and map to
:class:`Canceled`. ``-32002`` (access denied) is the wallet refusing rather
than the user dismissing a prompt: it fails address and signing requests with
:class:`CapabilityError` and reads as a denied permission.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING, Any

import httpx

from ordinal_minter.errors.ordinal_errors import CapabilityError, ProviderFailure
from ordinal_minter.models import PayloadKind
from ordinal_minter.wallet.capability import (
    AddressResult,
    Canceled,
    InscriptionPage,
    Signed,
    WalletAddress,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ordinal_minter.config.settings import WalletBridgeConfig
    from ordinal_minter.wallet.capability import AddressPurpose

logger = logging.getLogger(__name__)

# JSON-RPC error codes used by sats-connect wallets
RPC_USER_REJECTION = -32000
RPC_METHOD_NOT_SUPPORTED = -32001
RPC_ACCESS_DENIED = -32002

_PAYLOAD_TYPES = {
    PayloadKind.TEXT: "PLAIN_TEXT",
    PayloadKind.BASE64: "BASE_64",
}


class _Rejected(Exception):
    """Internal: the wallet answered with a rejection error."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code


class WalletBridgeClient:
    """Async JSON-RPC client implementing :class:`WalletCapability`.

    Usage::

        wallet = WalletBridgeClient(config.wallet)
        await wallet.connect()
        try:
            result = await wallet.get_address([AddressPurpose.ORDINALS], "Mainnet")
        finally:
            await wallet.close()
    """

    def __init__(self, config: WalletBridgeConfig) -> None:
        self._config = config
        self._client: httpx.AsyncClient | None = None
        self._ids = itertools.count(1)

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        self._client = httpx.AsyncClient(
            headers={"Content-Type": "application/json"},
            timeout=self._config.timeout,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    # ------------------------------------------------------------------
    # WalletCapability
    # ------------------------------------------------------------------

    async def get_address(
        self, purposes: Sequence[AddressPurpose], network: str
    ) -> AddressResult | Canceled:
        params = {
            "purposes": [str(p) for p in purposes],
            "message": self._config.message,
            "network": {"type": network},
        }
        try:
            result = await self._call("getAddresses", params)
        except _Rejected as exc:
            return self._canceled(exc, "address access")
        items = result.get("addresses", []) if isinstance(result, dict) else []
        return AddressResult(tuple(WalletAddress.from_dict(item) for item in items))

    async def sign_psbt(
        self,
        psbt: str,
        *,
        address: str,
        signing_indexes: Sequence[int],
        network: str,
    ) -> Signed | Canceled:
        params = {
            "psbt": psbt,
            "signInputs": {address: list(signing_indexes)},
            "broadcast": False,
            "network": {"type": network},
            "message": "Sign transaction to create Bitcoin Ordinal",
        }
        try:
            result = await self._call("signPsbt", params)
        except _Rejected as exc:
            return self._canceled(exc, "signing")
        result = result if isinstance(result, dict) else {}
        return Signed(
            artifact=result.get("psbt", result.get("psbtBase64", "")),
            txid=result.get("txid", ""),
        )

    async def create_inscription(
        self,
        *,
        content_type: str,
        payload: str,
        payload_kind: PayloadKind,
        network: str,
        request: dict[str, Any] | None = None,
    ) -> Signed | Canceled:
        params: dict[str, Any] = {
            **(request or {}),
            "contentType": content_type,
            "content": payload,
            "payloadType": _PAYLOAD_TYPES[payload_kind],
            "network": {"type": network},
        }
        try:
            result = await self._call("createInscription", params)
        except _Rejected as exc:
            return self._canceled(exc, "inscription")
        result = result if isinstance(result, dict) else {}
        return Signed(txid=result.get("txId", result.get("txid", "")))

    async def request_permissions(self) -> bool:
        try:
            result = await self._call("wallet_requestPermissions", None)
        except _Rejected:
            return False
        return result is not False

    async def get_inscriptions(self, offset: int, limit: int) -> InscriptionPage:
        try:
            result = await self._call("ord_getInscriptions", {"offset": offset, "limit": limit})
        except _Rejected as exc:
            raise ProviderFailure(f"Wallet refused to list inscriptions: {exc}") from exc
        except CapabilityError as exc:
            raise ProviderFailure(exc.message) from exc
        try:
            return InscriptionPage.from_dict(result if isinstance(result, dict) else {})
        except (ValueError, TypeError) as exc:
            raise ProviderFailure(f"Malformed inscription page: {exc}") from exc

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    def _canceled(exc: _Rejected, action: str) -> Canceled:
        """Map a rejection to :class:`Canceled`; access denial raises instead."""
        if exc.code == RPC_ACCESS_DENIED:
            msg = f"Wallet denied {action}: {exc}"
            raise CapabilityError(msg, rpc_code=exc.code) from exc
        return Canceled(str(exc))

    def _ensure_connected(self) -> httpx.AsyncClient:
        if self._client is None:
            msg = "Wallet bridge not connected. Call connect() first."
            raise CapabilityError(msg)
        return self._client

    async def _call(self, method: str, params: dict[str, Any] | None) -> Any:
        """Send one JSON-RPC request and return its ``result``.

        Raises:
            _Rejected: The user rejected the prompt or denied access.
            CapabilityError: Transport failure or any other wallet error.
        """
        client = self._ensure_connected()
        request_id = next(self._ids)
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
        if params is not None:
            body["params"] = params

        try:
            response = await client.post(self._config.url, json=body)
        except httpx.HTTPError as exc:
            raise CapabilityError(f"Wallet bridge unreachable: {exc}") from exc

        if not response.is_success:
            msg = f"Wallet bridge {method} failed ({response.status_code})"
            raise CapabilityError(msg)

        try:
            data = response.json()
        except ValueError as exc:
            raise CapabilityError(f"Wallet bridge {method} returned invalid JSON") from exc

        error = data.get("error") if isinstance(data, dict) else None
        if error:
            if not isinstance(error, dict):
                raise CapabilityError(f"Wallet {method} failed: {error}")
            try:
                code = int(error.get("code", 0))
            except (ValueError, TypeError):
                code = 0
            message = error.get("message", "wallet error")
            if code in (RPC_USER_REJECTION, RPC_ACCESS_DENIED):
                logger.info("Wallet rejected %s: %s", method, message)
                raise _Rejected(code, message)
            raise CapabilityError(f"Wallet {method} failed: {message}", rpc_code=code)

        return data.get("result") if isinstance(data, dict) else None
