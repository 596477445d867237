"""Domain models and services."""

from .exceptions import (
    AlreadyProcessed,
    AlreadyRegistered,
    AuthenticationFailed,
    InsufficientFunds,
    InvalidQuantity,
    InvalidRequest,
    InvariantViolation,
    LedgerError,
    NoCardsAvailable,
    PackUnavailable,
    PaymentRejected,
    PickLocked,
    RoundRegression,
    UnknownPack,
    UpstreamUnavailable,
    UserNotFound,
)
from .cards import Card, CardCatalog, PackType, default_pack_types
from .auth import AuthProof, SignatureGateway
from .distributor import Draw, WeightedRewardDistributor
from .idempotency import IdempotencyLedger
from .payments import (
    MinimumAmountVerifier,
    PaymentProof,
    PaymentReconciler,
    PaymentVerifier,
    ReconcileOutcome,
    TrustingVerifier,
)
from .rounds import RoundPickStateMachine
from .operations import (
    CreditPoints,
    GrantPacks,
    OpenPack,
    Operation,
    PurchaseWithPoints,
    ReconcilePayment,
    Register,
    SavePicks,
)
from .coordinator import LedgerCoordinator, MutationResult

__all__ = [
    "AlreadyProcessed",
    "AlreadyRegistered",
    "AuthenticationFailed",
    "InsufficientFunds",
    "InvalidQuantity",
    "InvalidRequest",
    "InvariantViolation",
    "LedgerError",
    "NoCardsAvailable",
    "PackUnavailable",
    "PaymentRejected",
    "PickLocked",
    "RoundRegression",
    "UnknownPack",
    "UpstreamUnavailable",
    "UserNotFound",
    "Card",
    "CardCatalog",
    "PackType",
    "default_pack_types",
    "AuthProof",
    "SignatureGateway",
    "Draw",
    "WeightedRewardDistributor",
    "IdempotencyLedger",
    "MinimumAmountVerifier",
    "PaymentProof",
    "PaymentReconciler",
    "PaymentVerifier",
    "ReconcileOutcome",
    "TrustingVerifier",
    "RoundPickStateMachine",
    "CreditPoints",
    "GrantPacks",
    "OpenPack",
    "Operation",
    "PurchaseWithPoints",
    "ReconcilePayment",
    "Register",
    "SavePicks",
    "LedgerCoordinator",
    "MutationResult",
]
