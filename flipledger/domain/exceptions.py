"""Exceptions raised by flipledger domain services."""

from __future__ import annotations

from typing import Sequence


class LedgerError(RuntimeError):
    """Base class for domain exceptions."""

    code = "LEDGER_ERROR"
    retryable = False


class InvalidRequest(LedgerError):
    """Raised for malformed input that passed transport validation."""

    code = "INVALID_REQUEST"


class AuthenticationFailed(LedgerError):
    """Raised when a request cannot prove control of the address it mutates."""

    code = "AUTHENTICATION_FAILED"


class UserNotFound(LedgerError):
    """Raised when no record exists for an address."""

    code = "NOT_FOUND"

    def __init__(self, address: str) -> None:
        super().__init__(f"User {address} not found")
        self.address = address


class AlreadyRegistered(LedgerError):
    """Raised when registering an address that already has a record."""

    code = "ALREADY_REGISTERED"


class AlreadyProcessed(LedgerError):
    """Raised when an external payment reference was already credited."""

    code = "ALREADY_PROCESSED"

    def __init__(self, external_ref: str) -> None:
        super().__init__(f"Payment {external_ref} already processed")
        self.external_ref = external_ref


class InsufficientFunds(LedgerError):
    """Raised when bank and gift points cannot cover a purchase."""

    code = "INSUFFICIENT_FUNDS"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(f"Insufficient points: need {required}, have {available}")
        self.required = required
        self.available = available


class PackUnavailable(LedgerError):
    """Raised when opening more packs than the inventory holds."""

    code = "PACK_UNAVAILABLE"


class UnknownPack(LedgerError):
    """Raised for a pack type missing from the catalog."""

    code = "UNKNOWN_PACK"


class NoCardsAvailable(LedgerError):
    """Raised when the catalog has no cards to draw from."""

    code = "NO_CARDS_AVAILABLE"


class PickLocked(LedgerError):
    """Raised when a write would alter a locked round pick."""

    code = "PICK_LOCKED"

    def __init__(self, field: str, index: int) -> None:
        super().__init__(f"{field}[{index}] is locked and cannot be changed")
        self.field = field
        self.index = index


class RoundRegression(LedgerError):
    """Raised when a write would move currentRound backwards."""

    code = "ROUND_REGRESSION"


class InvalidQuantity(InvalidRequest):
    """Raised for non-positive counts or oversized pick lists."""

    code = "INVALID_QUANTITY"


class PaymentRejected(LedgerError):
    """Raised by a payment verifier that refuses a proof."""

    code = "PAYMENT_REJECTED"


class InvariantViolation(LedgerError):
    """Raised when a mutation would leave the record inconsistent."""

    code = "INVARIANT_VIOLATION"

    def __init__(self, violations: Sequence[str]) -> None:
        super().__init__("Invariant violation: " + "; ".join(violations))
        self.violations = tuple(violations)


class UpstreamUnavailable(LedgerError):
    """Raised when the record store cannot be reached in time. Safe to retry."""

    code = "UPSTREAM_UNAVAILABLE"
    retryable = True
