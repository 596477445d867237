"""Crypto purchase verification."""

from __future__ import annotations

from fastapi import APIRouter

from .deps import Coordinator
from .schemas import VerifyPurchaseRequest, VerifyPurchaseResponse

router = APIRouter(prefix="/api/shop", tags=["shop"])


@router.post("/verify-purchase", response_model=VerifyPurchaseResponse)
async def verify_purchase(
    body: VerifyPurchaseRequest, coordinator: Coordinator
) -> VerifyPurchaseResponse:
    """Credit packs for a confirmed on-chain payment.

    Resubmitting the same ``txHash`` is safe: the reply carries
    ``alreadyProcessed: true`` and no new cards.
    """
    result = await coordinator.reconcile_payment(
        body.user_id,
        body.tx_hash,
        claimed_amount=body.amount,
        pack_type=body.pack_type,
        count=body.count,
        sender=body.sender,
    )
    return VerifyPurchaseResponse(
        user=result.record.to_dict(),
        new_cards=list(result.granted_cards),
        already_processed=result.already_processed,
    )
