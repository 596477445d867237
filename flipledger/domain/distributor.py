"""Weighted card draws for pack openings."""

from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import Sequence

from .cards import CardCatalog, PackType
from .exceptions import InvalidQuantity, NoCardsAvailable, UnknownPack


@dataclass(slots=True, frozen=True)
class Draw:
    card_id: str
    tier: str
    fallback: bool = False


class WeightedRewardDistributor:
    """Turn pack openings into card ids.

    Each card is drawn independently: a tier is chosen with probability
    proportional to the pack's weight for it, then a card is chosen uniformly
    from that tier's pool. An empty pool falls back to the whole catalog so a
    pack always yields ``cards_per_pack`` cards. The only source of randomness
    is the injected ``rng``.
    """

    def __init__(self, catalog: CardCatalog, *, rng: Random | None = None) -> None:
        self._catalog = catalog
        self._rng = rng or Random()

    def draw_cards(self, pack_type: str, quantity: int) -> list[str]:
        return [draw.card_id for draw in self.draw(pack_type, quantity)]

    def draw(self, pack_type: str, quantity: int) -> list[Draw]:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidQuantity(f"Pack quantity must be a positive integer, got {quantity!r}")
        pack = self.pack(pack_type)
        return [self._draw_one(pack) for _ in range(pack.cards_per_pack * quantity)]

    def pack(self, pack_type: str) -> PackType:
        try:
            return self._catalog.get_pack(pack_type)
        except KeyError as exc:
            raise UnknownPack(f"Unknown pack type '{pack_type}'") from exc

    def pick_tier(self, pack: PackType) -> str | None:
        weights = [(tier, weight) for tier, weight in pack.tier_weights if weight > 0]
        total = sum(weight for _, weight in weights)
        if total <= 0:
            return None
        threshold = self._rng.random() * total
        for tier, weight in weights:
            if threshold < weight:
                return tier
            threshold -= weight
        # float residue can leave threshold a hair above the last span
        return weights[-1][0]

    def _draw_one(self, pack: PackType) -> Draw:
        tier = self.pick_tier(pack)
        pool = self._catalog.pool(tier) if tier is not None else ()
        if pool:
            return Draw(card_id=self._uniform(pool), tier=tier)
        catalog = self._catalog.all_card_ids()
        if not catalog:
            raise NoCardsAvailable("Card catalog is empty")
        card_id = self._uniform(catalog)
        return Draw(
            card_id=card_id,
            tier=self._catalog.get_card(card_id).tier,
            fallback=True,
        )

    def _uniform(self, pool: Sequence[str]) -> str:
        return pool[int(self._rng.random() * len(pool))]
