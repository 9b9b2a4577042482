"""Inscription service — incremental, deduplicated listing of owned inscriptions."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from ordinal_minter.errors.ordinal_errors import OrdinalError, ProviderFailure
from ordinal_minter.models import InscriptionRecord

if TYPE_CHECKING:
    from ordinal_minter.services.wallet_service import WalletConnectionManager
    from ordinal_minter.session import SessionContext
    from ordinal_minter.wallet.capability import InscriptionPage, WalletCapability

logger = logging.getLogger(__name__)

PAGE_SIZE = 60


class InscriptionPaginator:
    """Accumulates the wallet's inscriptions page by page.

    Pages are fetched strictly one at a time. The collection is append-only
    within a session and keyed by ``inscription_id``; a record the wallet
    returns twice (the backing ordering shifted between pages) is kept once.
    """

    def __init__(
        self,
        session: SessionContext,
        wallet: WalletCapability,
        connection: WalletConnectionManager,
        *,
        page_size: int = PAGE_SIZE,
    ) -> None:
        self._session = session
        self._wallet = wallet
        self._connection = connection
        self._page_size = page_size

        self._items: list[InscriptionRecord] = []
        self._seen: set[str] = set()
        self._offset = 0
        self._total = 0
        self._has_more = False
        self._loading = False
        self._generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def items(self) -> tuple[InscriptionRecord, ...]:
        return tuple(self._items)

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def total(self) -> int:
        return self._total

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def page_size(self) -> int:
        return self._page_size

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load_page(self, offset: int) -> bool:
        """Fetch one page starting at *offset* and append it.

        Returns:
            True if a page was applied. False when the permission was
            denied, the fetch failed, another fetch is outstanding, or the
            collection was reset while the fetch was in flight.
        """
        if self._loading:
            logger.debug("Inscription page already loading; ignoring load_page(%d)", offset)
            return False

        session = self._session
        epoch = session.network.epoch
        generation = self._generation
        self._loading = True
        try:
            if not await self._connection.request_inscription_capability():
                return False
            if not self._is_current(epoch, generation):
                return False

            try:
                page = await self._wallet.get_inscriptions(offset, self._page_size)
                records = self._parse(page, offset)
            except OrdinalError as exc:
                logger.warning("Inscription page at offset %d failed: %s", offset, exc.message)
                if self._is_current(epoch, generation):
                    session.report(
                        ProviderFailure(f"Could not load inscriptions: {exc.message}"),
                        retryable=True,
                    )
                return False

            if not self._is_current(epoch, generation):
                logger.info("Discarding inscription page fetched before a reset")
                return False

            self._apply(records, page, offset)
            return True
        finally:
            if generation == self._generation:
                self._loading = False

    async def load_more(self) -> bool:
        """Fetch the next page. No-op when exhausted or a fetch is outstanding."""
        if not self._has_more or self._loading:
            return False
        return await self.load_page(self._offset)

    def reset(self) -> None:
        """Clear the collection and invalidate any in-flight fetch."""
        self._generation += 1
        self._items.clear()
        self._seen.clear()
        self._offset = 0
        self._total = 0
        self._has_more = False
        self._loading = False
        if self._session.metrics is not None:
            self._session.metrics.set_loaded(0)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _is_current(self, epoch: int, generation: int) -> bool:
        return self._session.is_current(epoch) and generation == self._generation

    def _parse(self, page: InscriptionPage, offset: int) -> list[InscriptionRecord]:
        """Build records for *page*; a malformed item fails the whole page."""
        network = self._session.network
        records: list[InscriptionRecord] = []
        for raw in page.items:
            try:
                record = InscriptionRecord.from_dict(raw, preview_url="")
            except (ValueError, TypeError, AttributeError) as exc:
                msg = f"Malformed inscription at offset {offset}: {exc}"
                raise ProviderFailure(msg) from exc
            if not record.inscription_id:
                logger.warning("Skipping inscription without an id at offset %d", offset)
                continue
            records.append(
                replace(record, preview_url=network.preview_url(record.inscription_id))
            )
        return records

    def _apply(
        self, records: list[InscriptionRecord], page: InscriptionPage, offset: int
    ) -> None:
        for record in records:
            if record.inscription_id in self._seen:
                logger.debug("Skipping duplicate inscription %s", record.inscription_id)
                continue
            self._seen.add(record.inscription_id)
            self._items.append(record)

        fetched = len(page.items)
        self._total = page.total
        self._offset = offset + fetched
        self._has_more = fetched == self._page_size
        if self._session.metrics is not None:
            self._session.metrics.record_page(len(self._items))
