"""Round pick lifecycle: empty -> staged -> locked."""

from __future__ import annotations

import logging
from typing import Sequence

from ..storage.base import RoundPick, UserRecord
from .exceptions import InvalidQuantity, PickLocked, RoundRegression

logger = logging.getLogger(__name__)


class RoundPickStateMachine:
    """Accept client writes to round picks that keep the pick lifecycle consistent.

    ``nextRound`` holds staged picks and may be rewritten freely, slot by slot,
    unless a slot is locked. ``activeRound`` entries may be added or locked,
    but a locked entry is immutable; promotion and settlement belong to the
    round settlement process. ``currentRound`` never moves backwards.

    Every check runs before anything is assigned, so a rejected write leaves
    the record untouched.
    """

    def __init__(self, slots: int = 5) -> None:
        if slots < 1:
            raise ValueError("slots must be positive")
        self._slots = slots

    @property
    def slots(self) -> int:
        return self._slots

    def empty_next_round(self) -> list[RoundPick | None]:
        return [None] * self._slots

    def apply(
        self,
        record: UserRecord,
        *,
        next_round: Sequence[RoundPick | None] | None = None,
        active_round: Sequence[RoundPick] | None = None,
        current_round: int | None = None,
    ) -> bool:
        """Validate and apply the provided fields; return whether anything changed."""
        staged = self._check_next_round(record, next_round) if next_round is not None else None
        active = self._check_active_round(record, active_round) if active_round is not None else None
        if current_round is not None:
            self._check_current_round(record, current_round)

        changed = False
        if staged is not None and staged != record.next_round:
            record.next_round = staged
            changed = True
        if active is not None and active != record.active_round:
            record.active_round = active
            changed = True
        if current_round is not None and current_round != record.current_round:
            record.current_round = current_round
            changed = True
        return changed

    def _check_next_round(
        self, record: UserRecord, picks: Sequence[RoundPick | None]
    ) -> list[RoundPick | None]:
        if len(picks) > self._slots:
            raise InvalidQuantity(f"nextRound accepts at most {self._slots} slots, got {len(picks)}")
        staged = list(picks) + [None] * (self._slots - len(picks))
        for index, existing in enumerate(record.next_round):
            if existing is None or not existing.locked:
                continue
            # stored lists can be longer than the slot count
            if index >= len(staged) or staged[index] != existing:
                logger.warning("Rejected write to locked nextRound[%s] of %s", index, record.user_id)
                raise PickLocked("nextRound", index)
        return staged

    def _check_active_round(
        self, record: UserRecord, picks: Sequence[RoundPick]
    ) -> list[RoundPick]:
        proposed = list(picks)
        if any(pick is None for pick in proposed):
            raise InvalidQuantity("activeRound cannot contain empty slots")
        for index, existing in enumerate(record.active_round):
            if not existing.locked:
                continue
            if index >= len(proposed) or proposed[index] != existing:
                logger.warning(
                    "Rejected write to locked activeRound[%s] of %s", index, record.user_id
                )
                raise PickLocked("activeRound", index)
        return proposed

    def _check_current_round(self, record: UserRecord, current_round: int) -> None:
        if isinstance(current_round, bool) or not isinstance(current_round, int) or current_round < 1:
            raise InvalidQuantity(f"currentRound must be a positive integer, got {current_round!r}")
        if current_round < record.current_round:
            raise RoundRegression(
                f"currentRound cannot move from {record.current_round} back to {current_round}"
            )
