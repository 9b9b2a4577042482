"""Wallet connection service — address acquisition and capability grants."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ordinal_minter.errors.ordinal_errors import (
    CapabilityDenied,
    CapabilityError,
    OrdinalError,
    UserCancellation,
)
from ordinal_minter.wallet.capability import AddressPurpose, Canceled

if TYPE_CHECKING:
    from ordinal_minter.session import SessionContext
    from ordinal_minter.wallet.capability import WalletCapability

logger = logging.getLogger(__name__)

_PURPOSES = (AddressPurpose.ORDINALS, AddressPurpose.PAYMENT)


class WalletConnectionManager:
    """Acquires the wallet address and the inscription-listing permission.

    Failures never raise: cancellations and wallet errors become notices and
    leave the session unconnected.
    """

    def __init__(self, session: SessionContext, wallet: WalletCapability) -> None:
        self._session = session
        self._wallet = wallet

    @property
    def is_connected(self) -> bool:
        return self._session.wallet.connected

    @property
    def address(self) -> str | None:
        return self._session.address

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def connect(self) -> str | None:
        """Request an ordinals + payment address for the active network.

        Returns:
            The connected address, or None if the user canceled or the
            wallet failed.
        """
        session = self._session
        epoch = session.network.epoch
        try:
            result = await self._wallet.get_address(_PURPOSES, session.network.wallet_network)
        except OrdinalError as exc:
            logger.warning("Wallet connection failed: %s", exc.message)
            session.report(CapabilityError(f"Failed to connect wallet: {exc.message}"))
            return None
        except Exception:
            logger.exception("Wallet connection failed")
            session.report(CapabilityError("Failed to connect wallet. Please try again."))
            return None

        if not session.is_current(epoch):
            logger.warning("Discarding wallet address acquired before a network switch")
            return None

        if isinstance(result, Canceled):
            session.report(UserCancellation("Wallet connection was canceled"))
            return None

        address = result.primary(AddressPurpose.ORDINALS)
        if not address:
            session.report(CapabilityError("Wallet returned no address"))
            return None

        wallet = session.wallet
        if wallet.address != address:
            wallet.permission_granted = False
        wallet.address = address
        wallet.connected = True
        logger.info("Wallet connected on %s: %s", session.network.network, address)
        return address

    def disconnect(self) -> None:
        """Forget the address and every grant."""
        self._session.wallet.clear()

    async def request_inscription_capability(self) -> bool:
        """Ask the wallet for permission to enumerate inscriptions.

        Idempotent: returns True at once when already granted. A denial
        returns False and is not retried; the user has to re-invoke.
        """
        session = self._session
        if session.wallet.permission_granted:
            return True

        epoch = session.network.epoch
        try:
            granted = await self._wallet.request_permissions()
        except OrdinalError as exc:
            logger.warning("Permission request failed: %s", exc.message)
            session.report(exc)
            return False

        if not session.is_current(epoch):
            logger.warning("Discarding permission grant from before a network switch")
            return False

        if not granted:
            session.report(CapabilityDenied("Permission to read your inscriptions was denied"))
            return False

        session.wallet.permission_granted = True
        return True
