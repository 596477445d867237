"""Point balances."""

from __future__ import annotations

from dataclasses import dataclass

from ..storage.base import UserRecord
from .exceptions import InsufficientFunds


@dataclass(slots=True)
class PointsWallet:
    """Mutable view of a record's bank and gift balances used by services."""

    bank: int = 0
    gift: int = 0
    total: int = 0

    @classmethod
    def of(cls, record: UserRecord) -> "PointsWallet":
        return cls(bank=record.bank_points, gift=record.gift_points, total=record.total_points)

    @property
    def spendable(self) -> int:
        return self.bank + self.gift

    def debit(self, amount: int) -> tuple[int, int]:
        """Spend ``amount``, bank first; return how much came from (bank, gift)."""
        if amount < 0:
            raise ValueError("Cannot debit negative amount")
        if self.spendable < amount:
            raise InsufficientFunds(required=amount, available=self.spendable)
        from_bank = min(self.bank, amount)
        from_gift = amount - from_bank
        self.bank -= from_bank
        self.gift -= from_gift
        return from_bank, from_gift

    def credit_bank(self, amount: int) -> None:
        """Earned points count towards the lifetime total."""
        if amount < 0:
            raise ValueError("Cannot credit negative amount")
        self.bank += amount
        self.total += amount

    def credit_gift(self, amount: int) -> None:
        if amount < 0:
            raise ValueError("Cannot credit negative amount")
        self.gift += amount

    def apply_to(self, record: UserRecord) -> None:
        record.bank_points = self.bank
        record.gift_points = self.gift
        record.total_points = self.total
