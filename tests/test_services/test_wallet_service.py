"""Tests for WalletConnectionManager."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest
from fakes import ORDINALS_ADDRESS, PAYMENT_ADDRESS

from ordinal_minter.errors.ordinal_errors import CapabilityError
from ordinal_minter.notifications.events import NoticeKind
from ordinal_minter.services.wallet_service import WalletConnectionManager
from ordinal_minter.wallet.capability import AddressResult, Canceled, WalletAddress

if TYPE_CHECKING:
    from fakes import FakeWallet

    from ordinal_minter.notifications.events import Notice
    from ordinal_minter.session import SessionContext


@pytest.fixture
def manager(session: SessionContext, wallet: FakeWallet) -> WalletConnectionManager:
    return WalletConnectionManager(session, wallet)


class TestConnect:
    @pytest.mark.asyncio
    async def test_connect_prefers_ordinals_address(
        self, manager: WalletConnectionManager, wallet: FakeWallet, session: SessionContext
    ) -> None:
        address = await manager.connect()
        assert address == ORDINALS_ADDRESS
        assert manager.is_connected is True
        assert manager.address == ORDINALS_ADDRESS
        assert session.wallet.permission_granted is False
        name, args = wallet.calls[0]
        assert name == "get_address"
        assert args["purposes"] == ["ordinals", "payment"]
        assert args["network"] == "Testnet"

    @pytest.mark.asyncio
    async def test_connect_falls_back_to_first_address(
        self, manager: WalletConnectionManager, wallet: FakeWallet
    ) -> None:
        wallet.address_result = AddressResult((WalletAddress(PAYMENT_ADDRESS, "payment"),))
        assert await manager.connect() == PAYMENT_ADDRESS

    @pytest.mark.asyncio
    async def test_cancel_leaves_unconnected(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        session: SessionContext,
        notices: list[Notice],
    ) -> None:
        wallet.address_result = Canceled()
        assert await manager.connect() is None
        assert session.wallet.connected is False
        assert session.wallet.address is None
        assert [n.kind for n in notices] == [NoticeKind.CANCELLATION]
        assert notices[0].message == "Wallet connection was canceled"

    @pytest.mark.asyncio
    async def test_wallet_error_reports_connection_failed(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        notices: list[Notice],
    ) -> None:
        wallet.address_result = CapabilityError("no wallet installed")
        assert await manager.connect() is None
        assert manager.is_connected is False
        assert notices[0].kind == NoticeKind.CONNECTION_FAILED
        assert "no wallet installed" in notices[0].message

    @pytest.mark.asyncio
    async def test_unexpected_error_reports_connection_failed(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        notices: list[Notice],
    ) -> None:
        wallet.address_result = KeyError("addresses")
        assert await manager.connect() is None
        assert notices[0].kind == NoticeKind.CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_empty_address_list(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        notices: list[Notice],
    ) -> None:
        wallet.address_result = AddressResult()
        assert await manager.connect() is None
        assert notices[0].kind == NoticeKind.CONNECTION_FAILED

    @pytest.mark.asyncio
    async def test_address_from_before_switch_is_discarded(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        session: SessionContext,
    ) -> None:
        wallet.address_gate = asyncio.Event()
        task = asyncio.create_task(manager.connect())
        await asyncio.sleep(0)
        session.network.switch_network()
        wallet.address_gate.set()
        assert await task is None
        assert session.wallet.connected is False

    @pytest.mark.asyncio
    async def test_new_address_drops_permission(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        session: SessionContext,
    ) -> None:
        await manager.connect()
        session.wallet.permission_granted = True
        await manager.connect()
        assert session.wallet.permission_granted is True

        wallet.address_result = AddressResult((WalletAddress("tb1pother", "ordinals"),))
        await manager.connect()
        assert session.wallet.permission_granted is False

    @pytest.mark.asyncio
    async def test_disconnect(
        self, manager: WalletConnectionManager, session: SessionContext
    ) -> None:
        await manager.connect()
        manager.disconnect()
        assert session.wallet.connected is False
        assert session.wallet.address is None
        assert manager.address is None


class TestInscriptionCapability:
    @pytest.mark.asyncio
    async def test_grant_is_idempotent(
        self, manager: WalletConnectionManager, wallet: FakeWallet
    ) -> None:
        await manager.connect()
        assert await manager.request_inscription_capability() is True
        assert await manager.request_inscription_capability() is True
        assert wallet.count("request_permissions") == 1

    @pytest.mark.asyncio
    async def test_denial_reports_and_is_not_retried(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        session: SessionContext,
        notices: list[Notice],
    ) -> None:
        wallet.permission_result = False
        assert await manager.request_inscription_capability() is False
        assert session.wallet.permission_granted is False
        assert wallet.count("request_permissions") == 1
        assert notices[-1].kind == NoticeKind.PERMISSION_DENIED

    @pytest.mark.asyncio
    async def test_wallet_error_reports(
        self,
        manager: WalletConnectionManager,
        wallet: FakeWallet,
        notices: list[Notice],
    ) -> None:
        wallet.permission_result = CapabilityError("bridge down")
        assert await manager.request_inscription_capability() is False
        assert notices[-1].kind == NoticeKind.CONNECTION_FAILED
