"""SessionContext — the explicit per-engine session state shared by components.

Created at engine start, reset on network switch, dropped at engine close.
Components read the wallet session and network through it; only the wallet
connection manager and the engine's reset path write the wallet session.
"""

from __future__ import annotations

import contextlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ordinal_minter.models import WalletSession
from ordinal_minter.notifications.events import Notice

if TYPE_CHECKING:
    from ordinal_minter.metrics.collector import MinterMetrics
    from ordinal_minter.network.context import NetworkContext
    from ordinal_minter.notifications.service import NoticeSink

logger = logging.getLogger(__name__)


def _log_notice(notice: Notice) -> None:
    logger.info("Notice %s: %s", notice.kind, notice.message)


@dataclass
class SessionContext:
    """Shared, explicitly injected session state."""

    network: NetworkContext
    wallet: WalletSession = field(default_factory=WalletSession)
    notify: NoticeSink = _log_notice
    metrics: MinterMetrics | None = None

    @property
    def address(self) -> str | None:
        return self.wallet.address if self.wallet.connected else None

    def is_current(self, epoch: int) -> bool:
        """Whether work started under *epoch* may still apply its result."""
        return epoch == self.network.epoch

    def report(self, exc: Exception, *, retryable: bool = False) -> None:
        """Publish *exc* as a user-visible notice."""
        self.notify(Notice.from_error(exc, retryable=retryable))

    def track_balance_refresh(self) -> contextlib.AbstractContextManager[None]:
        if self.metrics is None:
            return contextlib.nullcontext()
        return self.metrics.track_balance_refresh()
