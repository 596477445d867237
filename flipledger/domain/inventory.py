"""Inventory bookkeeping. Counts are strictly positive; empty entries are removed."""

from __future__ import annotations

from typing import Iterable

from ..storage.base import UserRecord
from .exceptions import InvalidQuantity, PackUnavailable


def grant_items(record: UserRecord, item_ids: Iterable[str], quantity: int = 1) -> None:
    if quantity <= 0:
        raise InvalidQuantity("Quantity must be positive")
    for item_id in item_ids:
        record.inventory[item_id] = record.inventory.get(item_id, 0) + quantity


def consume_item(record: UserRecord, item_id: str, quantity: int = 1) -> int:
    """Remove ``quantity`` of ``item_id``; return what is left."""
    if quantity <= 0:
        raise InvalidQuantity("Quantity must be positive")
    held = record.inventory.get(item_id, 0)
    if held < quantity:
        raise PackUnavailable(f"No {item_id} packs left: have {held}, need {quantity}")
    remaining = held - quantity
    if remaining:
        record.inventory[item_id] = remaining
    else:
        del record.inventory[item_id]
    return remaining
