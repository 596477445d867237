"""Ledger operations accepted by the coordinator, one payload shape per kind."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence, Union

from ..storage.base import RoundPick


@dataclass(slots=True, frozen=True)
class SavePicks:
    """Omitted (``None``) fields are left untouched."""

    next_round: Sequence[RoundPick | None] | None = None
    active_round: Sequence[RoundPick] | None = None
    current_round: int | None = None

    kind = "savePicks"
    requires_signature = True


@dataclass(slots=True, frozen=True)
class ReconcilePayment:
    external_ref: str
    pack_type: str = "common"
    count: int = 1
    claimed_amount: Decimal | None = None
    sender: str | None = None

    kind = "reconcilePayment"
    requires_signature = False


@dataclass(slots=True, frozen=True)
class OpenPack:
    pack_type: str = "common"
    count: int = 1

    kind = "openPack"
    requires_signature = True


@dataclass(slots=True, frozen=True)
class PurchaseWithPoints:
    pack_type: str = "common"
    count: int = 1

    kind = "purchaseWithPoints"
    requires_signature = True


@dataclass(slots=True, frozen=True)
class Register:
    username: str

    kind = "register"
    requires_signature = False


@dataclass(slots=True, frozen=True)
class CreditPoints:
    """In-process credit issued by round settlement or admin tooling."""

    bank: int = 0
    gift: int = 0
    note: str | None = None
    log_type: str = "system"

    kind = "creditPoints"
    requires_signature = False


@dataclass(slots=True, frozen=True)
class GrantPacks:
    """In-process grant of pack tokens by admin tooling."""

    pack_type: str = "common"
    count: int = 1
    note: str | None = None

    kind = "grantPacks"
    requires_signature = False


Operation = Union[
    SavePicks, ReconcilePayment, OpenPack, PurchaseWithPoints, Register, CreditPoints, GrantPacks
]
