"""Request and response models for the HTTP surface.

Field names are snake_case in Python and camelCase on the wire, matching the
record store's format.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..domain.auth import AuthProof
from ..storage.base import RoundPick


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignedRequest(WireModel):
    """Body fields shared by every wallet-signed write."""

    user_id: str = Field(..., min_length=1)
    message: str | None = None
    signature: str | None = None

    def auth_proof(self) -> AuthProof | None:
        if self.message is None or self.signature is None:
            return None
        return AuthProof(message=self.message, signature=self.signature)


class RoundPickModel(WireModel):
    token_id: str = Field(..., min_length=1)
    dir: Literal["UP", "DOWN"] = "UP"
    duplicate_index: int = Field(default=0, ge=0)
    locked: bool = False
    p_lock: float | None = None
    points_locked: int | None = None
    start_price: float | None = None

    def to_pick(self) -> RoundPick:
        return RoundPick(
            token_id=self.token_id,
            dir=self.dir,
            duplicate_index=self.duplicate_index,
            locked=self.locked,
            p_lock=self.p_lock,
            points_locked=self.points_locked,
            start_price=self.start_price,
        )


class RegisterRequest(WireModel):
    address: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1, max_length=64)


class SavePicksRequest(SignedRequest):
    """Omitted fields are left as stored."""

    next_round: list[RoundPickModel | None] | None = None
    active_round: list[RoundPickModel] | None = None
    current_round: int | None = None

    def next_round_picks(self) -> list[RoundPick | None] | None:
        if self.next_round is None:
            return None
        return [pick.to_pick() if pick is not None else None for pick in self.next_round]

    def active_round_picks(self) -> list[RoundPick] | None:
        if self.active_round is None:
            return None
        return [pick.to_pick() for pick in self.active_round]


class OpenPackRequest(SignedRequest):
    pack_type: str = "common"
    count: int = 1


class PurchasePackRequest(SignedRequest):
    pack_type: str = "common"
    count: int = 1
    use_inventory: bool = False


class VerifyPurchaseRequest(WireModel):
    user_id: str = Field(..., min_length=1)
    tx_hash: str = Field(..., min_length=1)
    pack_type: str = "common"
    count: int = 1
    amount: Decimal | None = None
    sender: str | None = None


class UserResponse(WireModel):
    ok: bool = True
    user: dict[str, Any]


class CheckResponse(WireModel):
    exists: bool
    user: dict[str, Any] | None = None


class RegisterResponse(UserResponse):
    is_new_user: bool = True


class SaveResponse(WireModel):
    ok: bool = True
    changed: bool = False


class PackResponse(UserResponse):
    new_cards: list[str] = Field(default_factory=list)
    pack_type: str
    cost: int = 0
    consumed_packs: int = 0


class VerifyPurchaseResponse(UserResponse):
    new_cards: list[str] = Field(default_factory=list)
    already_processed: bool = False


class ErrorResponse(WireModel):
    ok: bool = False
    error: str
    code: str
    retryable: bool = False
