"""Creation service — the ordinal creation state machine.

One run walks::

    IDLE → ENCODING → AWAITING_BACKEND_PREPARATION → AWAITING_WALLET_SIGNATURE
         → BROADCASTING → COMPLETED

with side exits to CANCELED and FAILED from every non-terminal state. In
inscription mode the wallet broadcasts itself and the run goes from
AWAITING_WALLET_SIGNATURE straight to COMPLETED.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ordinal_minter.chain.backend.models import InscriptionPayload
from ordinal_minter.config.settings import CreationMode
from ordinal_minter.errors.definitions import (
    ErrBalanceUnknown,
    ErrCreationInFlight,
    ErrEmptyDraft,
    ErrInsufficientBalance,
    ErrWalletNotConnected,
)
from ordinal_minter.errors.ordinal_errors import (
    CapabilityError,
    OrdinalError,
    PreconditionViolation,
    UserCancellation,
)
from ordinal_minter.models import CreatedOrdinal, OrdinalStatus
from ordinal_minter.notifications.events import Notice, NoticeKind
from ordinal_minter.wallet.capability import Canceled

if TYPE_CHECKING:
    from ordinal_minter.chain.backend.client import BackendClient
    from ordinal_minter.models import OrdinalDraft
    from ordinal_minter.services.balance_service import BalanceTracker
    from ordinal_minter.session import SessionContext
    from ordinal_minter.wallet.capability import Signed, WalletCapability

logger = logging.getLogger(__name__)


class PipelineState(enum.StrEnum):
    """States of one creation run."""

    IDLE = "idle"
    ENCODING = "encoding"
    AWAITING_BACKEND_PREPARATION = "awaiting_backend_preparation"
    AWAITING_WALLET_SIGNATURE = "awaiting_wallet_signature"
    BROADCASTING = "broadcasting"
    COMPLETED = "completed"
    CANCELED = "canceled"
    FAILED = "failed"

    @property
    def in_flight(self) -> bool:
        return self in _IN_FLIGHT

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL


_IN_FLIGHT = frozenset(
    {
        PipelineState.ENCODING,
        PipelineState.AWAITING_BACKEND_PREPARATION,
        PipelineState.AWAITING_WALLET_SIGNATURE,
        PipelineState.BROADCASTING,
    }
)
_TERMINAL = frozenset({PipelineState.COMPLETED, PipelineState.CANCELED, PipelineState.FAILED})


@dataclass(frozen=True)
class CreationOutcome:
    """Result of one ``create()`` run.

    Attributes:
        state: Terminal state reached.
        ordinal: The created ordinal when ``state`` is COMPLETED.
        reason: Cancellation or failure reason.
    """

    state: PipelineState
    ordinal: CreatedOrdinal | None = None
    reason: str = ""

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.COMPLETED


class OrdinalCreationPipeline:
    """Drives backend preparation and the wallet signing handshake.

    At most one run is in flight; a second ``create()`` is rejected before
    any I/O. Successful runs are appended to an append-only creation log.
    """

    def __init__(
        self,
        session: SessionContext,
        wallet: WalletCapability,
        backend: BackendClient,
        balance: BalanceTracker,
        *,
        mode: CreationMode = CreationMode.PSBT,
    ) -> None:
        self._session = session
        self._wallet = wallet
        self._backend = backend
        self._balance = balance
        self._mode = mode

        self._state = PipelineState.IDLE
        self._transitions: list[PipelineState] = []
        self._history: list[CreatedOrdinal] = []
        self._run_task: asyncio.Task[CreationOutcome] | None = None
        self._abort_reason: str | None = None
        self._last_outcome: CreationOutcome | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def mode(self) -> CreationMode:
        return self._mode

    @property
    def is_busy(self) -> bool:
        return self._state.in_flight

    @property
    def transitions(self) -> tuple[PipelineState, ...]:
        """States entered by the current (or most recent) run, in order."""
        return tuple(self._transitions)

    @property
    def history(self) -> tuple[CreatedOrdinal, ...]:
        """Ordinals created in this session, oldest first."""
        return tuple(self._history)

    @property
    def last_outcome(self) -> CreationOutcome | None:
        return self._last_outcome

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_preconditions(self, draft: OrdinalDraft) -> None:
        """Raise :class:`PreconditionViolation` if a run may not start now."""
        if self._state.in_flight:
            raise ErrCreationInFlight
        wallet = self._session.wallet
        if not wallet.connected or not wallet.address:
            raise ErrWalletNotConnected
        confirmed = self._balance.snapshot.confirmed_sats
        if confirmed is None:
            raise ErrBalanceUnknown
        if confirmed <= 0:
            raise ErrInsufficientBalance
        if not draft.has_file and not draft.raw_content.strip():
            raise ErrEmptyDraft

    async def create(self, draft: OrdinalDraft) -> CreationOutcome:
        """Run the pipeline for *draft* to a terminal state.

        Raises:
            PreconditionViolation: Rejected before any state change or
                network call (not connected, balance unknown or zero,
                empty draft, run already in flight).
        """
        return await self.start(draft)

    def start(self, draft: OrdinalDraft) -> Coroutine[Any, Any, CreationOutcome]:
        """Claim the pipeline for *draft* and schedule its run.

        The pipeline is in ENCODING when this returns, so any later
        ``start()`` or ``create()`` is rejected until the run ends. The
        returned coroutine waits for the terminal outcome.

        Raises:
            PreconditionViolation: As for :meth:`create`, raised here
                without awaiting.
        """
        try:
            self.check_preconditions(draft)
        except PreconditionViolation as exc:
            self._session.report(exc)
            raise

        address = self._session.wallet.address or ""
        self._transitions = []
        self._abort_reason = None
        self._transition(PipelineState.ENCODING)

        run_task = asyncio.create_task(self._run(draft, address))
        self._run_task = run_task
        return self._wait(run_task)

    async def _wait(self, run_task: asyncio.Task[CreationOutcome]) -> CreationOutcome:
        try:
            outcome = await run_task
        except asyncio.CancelledError:
            outcome = self._finish(
                PipelineState.CANCELED, reason=self._abort_reason or "creation aborted"
            )
            if self._abort_reason is None:
                # The caller itself was cancelled.
                run_task.cancel()
                raise
        finally:
            if self._run_task is run_task:
                self._run_task = None
        return outcome

    def abort(self, reason: str = "creation aborted") -> bool:
        """Cancel the in-flight run, if any, and mark it CANCELED at once.

        Returns:
            True if a run was aborted.
        """
        if not self._state.in_flight:
            return False
        logger.info("Aborting ordinal creation in state %s: %s", self._state, reason)
        self._abort_reason = reason
        if self._run_task is not None:
            self._run_task.cancel()
        self._finish(PipelineState.CANCELED, reason=reason)
        return True

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def _run(self, draft: OrdinalDraft, address: str) -> CreationOutcome:
        payload = self.encode(draft)
        network = self._session.network.network.value
        wallet_network = self._session.network.wallet_network

        self._transition(PipelineState.AWAITING_BACKEND_PREPARATION)
        try:
            if self._mode is CreationMode.PSBT:
                artifact = await self._backend.prepare(payload, address=address, network=network)
            else:
                artifact = await self._backend.create_inscription(
                    payload, address=address, network=network
                )
        except OrdinalError as exc:
            return self._fail(exc)

        self._transition(PipelineState.AWAITING_WALLET_SIGNATURE)
        try:
            signed: Signed | Canceled
            if self._mode is CreationMode.PSBT:
                signed = await self._wallet.sign_psbt(
                    artifact.psbt,
                    address=address,
                    signing_indexes=artifact.inputs_to_sign,
                    network=wallet_network,
                )
            else:
                signed = await self._wallet.create_inscription(
                    content_type=payload.content_type,
                    payload=payload.data,
                    payload_kind=payload.kind,
                    network=wallet_network,
                    request=artifact.inscription_request,
                )
        except OrdinalError as exc:
            return self._fail(exc)

        if isinstance(signed, Canceled):
            self._session.report(UserCancellation("Transaction signing was canceled"))
            return self._finish(PipelineState.CANCELED, reason=signed.reason)

        if signed.broadcast_by_wallet:
            return self._complete(signed.txid, payload, OrdinalStatus.CREATED)
        if not signed.artifact:
            return self._fail(CapabilityError("Wallet returned no signed transaction"))

        self._transition(PipelineState.BROADCASTING)
        try:
            result = await self._backend.broadcast(signed.artifact, network=network)
        except OrdinalError as exc:
            return self._fail(exc)
        return self._complete(result.txid, payload, OrdinalStatus.BROADCASTED)

    @staticmethod
    def encode(draft: OrdinalDraft) -> InscriptionPayload:
        """Choose exactly one payload kind: the file if present, else the text."""
        if draft.raw_file is not None:
            return InscriptionPayload.from_bytes(
                draft.raw_file, draft.content_type, text=draft.raw_content
            )
        return InscriptionPayload.from_text(draft.raw_content)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Ordinal creation: %s -> %s", self._state, state)
        self._state = state
        self._transitions.append(state)

    def _finish(
        self,
        state: PipelineState,
        *,
        ordinal: CreatedOrdinal | None = None,
        reason: str = "",
    ) -> CreationOutcome:
        # An abort already moved the run to CANCELED; keep that outcome.
        if self._state.terminal and self._last_outcome is not None and self._abort_reason:
            return self._last_outcome
        self._transition(state)
        outcome = CreationOutcome(state=state, ordinal=ordinal, reason=reason)
        self._last_outcome = outcome
        if self._session.metrics is not None:
            self._session.metrics.record_outcome(state.value)
        return outcome

    def _fail(self, exc: OrdinalError) -> CreationOutcome:
        logger.warning("Ordinal creation failed in state %s: %s", self._state, exc.message)
        self._session.report(exc)
        return self._finish(PipelineState.FAILED, reason=exc.message)

    def _complete(
        self, txid: str, payload: InscriptionPayload, status: OrdinalStatus
    ) -> CreationOutcome:
        ordinal = CreatedOrdinal.now(
            txid,
            content_type=payload.content_type,
            content_echo=payload.text,
            status=status,
        )
        self._history.append(ordinal)
        logger.info("Ordinal created: %s (%s)", txid, status)
        self._session.notify(
            Notice(
                kind=NoticeKind.ORDINAL_CREATED,
                message=f"Ordinal created successfully! Transaction ID: {txid}",
                content=ordinal.to_dict(),
            )
        )
        return self._finish(PipelineState.COMPLETED, ordinal=ordinal)
