"""Backend HTTP client — prepare, broadcast, create-inscription.

Provides an async HTTP client for the transaction-construction backend:
- POST /prepare — build an unsigned PSBT for the content
- POST /broadcast — broadcast a wallet-signed PSBT
- POST /create-inscription — build an inscription request for the wallet

Any non-2xx response is a hard failure of the current step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from ordinal_minter.chain.backend.models import BroadcastResult, PreparedArtifact
from ordinal_minter.errors.ordinal_errors import BackendFailure, TransportFailure

if TYPE_CHECKING:
    from ordinal_minter.chain.backend.models import InscriptionPayload
    from ordinal_minter.config.settings import BackendConfig


class BackendClient:
    """Async HTTP client for the ordinal preparation backend.

    Usage::

        backend = BackendClient(config)
        await backend.connect()
        try:
            artifact = await backend.prepare(payload, address="bc1p...", network="Mainnet")
        finally:
            await backend.close()
    """

    def __init__(self, config: BackendConfig) -> None:
        """Initialize the backend client.

        Args:
            config: Backend configuration (url, token, timeout).
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def connect(self) -> None:
        """Create the underlying HTTP client."""
        headers: dict[str, str] = {
            "Content-Type": "application/json",
        }
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"

        self._client = httpx.AsyncClient(
            base_url=self._config.url.rstrip("/"),
            headers=headers,
            timeout=self._config.timeout,
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

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def prepare(
        self,
        payload: InscriptionPayload,
        *,
        address: str,
        network: str,
    ) -> PreparedArtifact:
        """Ask the backend for an unsigned PSBT inscribing *payload*.

        Args:
            payload: Encoded content.
            address: Wallet address receiving the inscription and paying fees.
            network: Wallet-facing network token.

        Returns:
            PreparedArtifact carrying the PSBT (base64).

        Raises:
            BackendFailure: On a non-2xx response or one carrying no PSBT.
            TransportFailure: If the backend is unreachable.
        """
        body = {
            "content": payload.text,
            "contentType": payload.content_type,
            "fileData": payload.data_url,
            "address": address,
            "network": network,
        }
        data = await self._post("/prepare", body, "prepare")
        artifact = PreparedArtifact.from_prepare(data)
        if not artifact.psbt:
            raise BackendFailure("Backend prepare returned no PSBT")
        return artifact

    async def create_inscription(
        self,
        payload: InscriptionPayload,
        *,
        address: str,
        network: str,
    ) -> PreparedArtifact:
        """Ask the backend for an inscription request the wallet can execute."""
        body = {
            "content": payload.data,
            "contentType": payload.content_type,
            "address": address,
            "network": network,
        }
        data = await self._post("/create-inscription", body, "create-inscription")
        return PreparedArtifact.from_inscription(data)

    async def broadcast(self, signed_artifact: str, *, network: str) -> BroadcastResult:
        """Broadcast a wallet-signed PSBT.

        Returns:
            BroadcastResult with the transaction id.

        Raises:
            BackendFailure: On a non-2xx response or a response without txid.
        """
        data = await self._post(
            "/broadcast",
            {"signedArtifact": signed_artifact, "network": network},
            "broadcast",
        )
        result = BroadcastResult.from_dict(data)
        if not result.txid:
            raise BackendFailure("Backend broadcast returned no transaction id")
        return result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ensure_connected(self) -> httpx.AsyncClient:
        """Return the HTTP client, raising if not connected."""
        if self._client is None:
            msg = "Backend client not connected. Call connect() first."
            raise BackendFailure(msg, status_code=500)
        return self._client

    async def _post(self, path: str, body: dict[str, Any], operation: str) -> dict[str, Any]:
        client = self._ensure_connected()
        try:
            response = await client.post(path, json=body)
        except httpx.HTTPError as exc:
            raise TransportFailure(f"Backend {operation} failed: {exc}") from exc

        if not response.is_success:
            self._raise_for_status(response, operation)

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendFailure(f"Backend {operation} returned invalid JSON") from exc
        return data if isinstance(data, dict) else {}

    def _raise_for_status(self, response: httpx.Response, operation: str) -> None:
        """Raise a BackendFailure carrying the backend's reported reason."""
        status = response.status_code
        try:
            body = response.json()
            detail = body.get("error", body.get("message", body.get("detail", response.text)))
        except Exception:
            detail = response.text

        raise BackendFailure(f"Backend {operation} failed ({status}): {detail}", status_code=status)
