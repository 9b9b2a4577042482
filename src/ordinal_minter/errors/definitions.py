"""Predefined precondition errors raised by the session components."""

from __future__ import annotations

from ordinal_minter.errors.ordinal_errors import PreconditionViolation

# -- Wallet ----------------------------------------------------------------

ErrWalletNotConnected = PreconditionViolation(
    "Please connect your wallet first", code="wallet-not-connected"
)

# -- Balance ---------------------------------------------------------------

ErrBalanceUnknown = PreconditionViolation(
    "Balance is not known yet; refresh the balance and try again", code="balance-unknown"
)
ErrInsufficientBalance = PreconditionViolation(
    "Your balance is insufficient to create an ordinal. Please add funds to your address.",
    code="insufficient-balance",
)

# -- Creation --------------------------------------------------------------

ErrCreationInFlight = PreconditionViolation(
    "An ordinal is already being created", code="creation-in-flight"
)
ErrEmptyDraft = PreconditionViolation(
    "Enter text content or choose a file", code="empty-draft"
)
