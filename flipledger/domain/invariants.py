"""Consistency rules every persisted user record must satisfy."""

from __future__ import annotations

from collections import Counter

from ..storage.base import UserRecord


def check_record(record: UserRecord, *, round_slots: int = 5) -> list[str]:
    """Return violations of the per-record rules (empty list when consistent)."""
    violations: list[str] = []

    for name in ("total_points", "bank_points", "gift_points"):
        value = getattr(record, name)
        if not isinstance(value, int) or value < 0:
            violations.append(f"{name} must be a non-negative integer, got {value!r}")

    for item_id, count in record.inventory.items():
        if not isinstance(count, int) or count <= 0:
            violations.append(f"inventory[{item_id!r}] must be positive, got {count!r}")

    refs = Counter(entry.external_ref for entry in record.logs if entry.external_ref)
    for ref, seen in refs.items():
        if seen > 1:
            violations.append(f"payment {ref} credited {seen} times")

    if len(record.next_round) > round_slots:
        violations.append(f"nextRound has {len(record.next_round)} slots, limit {round_slots}")

    if record.current_round < 1:
        violations.append(f"currentRound must be positive, got {record.current_round}")

    return violations


def check_transition(
    before: UserRecord | None, after: UserRecord, *, round_slots: int = 5
) -> list[str]:
    """Return violations of the record rules plus the rules relating two versions."""
    violations = check_record(after, round_slots=round_slots)
    if before is None:
        return violations

    if after.user_id != before.user_id:
        violations.append(f"id changed from {before.user_id} to {after.user_id}")
    if after.total_points < before.total_points:
        violations.append(
            f"totalPoints decreased from {before.total_points} to {after.total_points}"
        )
    if after.current_round < before.current_round:
        violations.append(
            f"currentRound decreased from {before.current_round} to {after.current_round}"
        )
    if after.logs[: len(before.logs)] != before.logs:
        violations.append("logs are append-only")
    if after.round_history[: len(before.round_history)] != before.round_history:
        violations.append("roundHistory is append-only")

    for index, pick in enumerate(before.active_round):
        if not pick.locked:
            continue
        if index >= len(after.active_round) or after.active_round[index] != pick:
            violations.append(f"locked activeRound[{index}] was modified")

    return violations
