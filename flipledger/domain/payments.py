"""Turn on-chain payment proofs into pack credits, at most once per transaction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, Sequence

from ..storage.base import UserRecord
from .distributor import WeightedRewardDistributor
from .exceptions import InvalidQuantity, PaymentRejected
from .idempotency import IdempotencyLedger, normalize_ref
from .inventory import grant_items

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PaymentProof:
    external_ref: str
    pack_type: str = "common"
    count: int = 1
    claimed_amount: Decimal | None = None
    sender: str | None = None


@dataclass(slots=True, frozen=True)
class ReconcileOutcome:
    granted_cards: Sequence[str]
    already_processed: bool = False


class PaymentVerifier(Protocol):
    """Checks a proof against the payment network before it is credited.

    Raise :class:`PaymentRejected` for a proof that must never be credited and
    :class:`UpstreamUnavailable` when the network cannot be consulted.
    """

    async def verify(self, user_id: str, proof: PaymentProof) -> None:
        ...


class TrustingVerifier:
    """Accept every proof; the upstream verifier already vouched for it."""

    async def verify(self, user_id: str, proof: PaymentProof) -> None:
        return None


@dataclass(slots=True)
class MinimumAmountVerifier:
    """Refuse proofs that claim less than the pack price or come from another wallet."""

    price_per_pack: Decimal

    async def verify(self, user_id: str, proof: PaymentProof) -> None:
        if proof.claimed_amount is not None:
            required = self.price_per_pack * proof.count
            if Decimal(proof.claimed_amount) < required:
                raise PaymentRejected(
                    f"Payment {proof.external_ref} covers {proof.claimed_amount}, need {required}"
                )
        if proof.sender is not None and proof.sender.lower() != user_id.lower():
            raise PaymentRejected(
                f"Payment {proof.external_ref} was sent by {proof.sender.lower()}, not {user_id}"
            )


class PaymentReconciler:
    """Credit packs bought on the payment network.

    The proof's transaction id is the idempotency key: a replay returns an
    ``already_processed`` outcome with no cards instead of an error, so a
    client retrying after a lost response is neither penalised nor paid
    twice. The reconciler never retries anything itself.
    """

    def __init__(
        self,
        distributor: WeightedRewardDistributor,
        ledger: IdempotencyLedger | None = None,
    ) -> None:
        self._distributor = distributor
        self._ledger = ledger or IdempotencyLedger()

    @property
    def ledger(self) -> IdempotencyLedger:
        return self._ledger

    def check_proof(self, proof: PaymentProof) -> None:
        normalize_ref(proof.external_ref)
        if isinstance(proof.count, bool) or not isinstance(proof.count, int) or proof.count < 1:
            raise InvalidQuantity(f"Pack count must be a positive integer, got {proof.count!r}")
        self._distributor.pack(proof.pack_type)

    def reconcile(
        self, record: UserRecord, proof: PaymentProof, *, now: datetime | None = None
    ) -> ReconcileOutcome:
        self.check_proof(proof)
        if self._ledger.has_processed(record, proof.external_ref):
            logger.info(
                "Payment %s for %s already credited; ignoring replay",
                proof.external_ref,
                record.user_id,
            )
            return ReconcileOutcome(granted_cards=(), already_processed=True)

        cards = self._distributor.draw_cards(proof.pack_type, proof.count)
        grant_items(record, cards)
        self._ledger.mark_processed(
            record,
            proof.external_ref,
            f"crypto-{proof.pack_type}-pack-x{proof.count}",
            items=cards,
            now=now,
        )
        return ReconcileOutcome(granted_cards=tuple(cards))
