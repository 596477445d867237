"""Card domain models and utilities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

SENTIENT = "sentient"
GENESIS = "genesis"
UNICORN = "unicorn"

DEFAULT_TIERS: tuple[str, ...] = (SENTIENT, GENESIS, UNICORN)


@dataclass(slots=True, frozen=True)
class Card:
    """Definition of a collectible card."""

    card_id: str
    name: str
    tier: str = SENTIENT
    symbol: str | None = None


@dataclass(slots=True, frozen=True)
class PackType:
    """A purchasable pack and the rarity weights its cards are drawn with.

    ``tier_weights`` is ordered: the distributor walks tiers in this order.
    """

    pack_id: str
    name: str
    tier_weights: tuple[tuple[str, float], ...]
    cost_points: int = 0
    cards_per_pack: int = 5

    @property
    def total_weight(self) -> float:
        return sum(weight for _, weight in self.tier_weights if weight > 0)

    def weight_of(self, tier: str) -> float:
        for name, weight in self.tier_weights:
            if name == tier:
                return weight
        return 0.0


def default_pack_types(cards_per_pack: int = 5) -> tuple[PackType, ...]:
    return (
        PackType(
            pack_id="common",
            name="Common Pack",
            tier_weights=((SENTIENT, 95.0), (GENESIS, 4.0), (UNICORN, 1.0)),
            cost_points=5000,
            cards_per_pack=cards_per_pack,
        ),
        PackType(
            pack_id="rare",
            name="Rare Pack",
            tier_weights=((SENTIENT, 60.0), (GENESIS, 30.0), (UNICORN, 10.0)),
            cost_points=10000,
            cards_per_pack=cards_per_pack,
        ),
    )


class CardCatalog:
    """Registry of cards and pack types."""

    def __init__(self) -> None:
        self._cards: dict[str, Card] = {}
        self._packs: dict[str, PackType] = {}
        self._pools: dict[str, list[str]] = {}

    def register_card(self, card: Card) -> None:
        if card.card_id in self._cards:
            raise ValueError(f"Card {card.card_id} already registered")
        self._cards[card.card_id] = card
        self._pools.setdefault(card.tier, []).append(card.card_id)

    def register_cards(self, cards: Iterable[Card]) -> None:
        for card in cards:
            self.register_card(card)

    def get_card(self, card_id: str) -> Card:
        try:
            return self._cards[card_id]
        except KeyError as exc:
            raise KeyError(f"Card {card_id} not found") from exc

    def register_pack(self, pack: PackType) -> None:
        if pack.pack_id in self._packs:
            raise ValueError(f"Pack {pack.pack_id} already registered")
        self._packs[pack.pack_id] = pack

    def register_packs(self, packs: Iterable[PackType]) -> None:
        for pack in packs:
            self.register_pack(pack)

    def get_pack(self, pack_id: str) -> PackType:
        try:
            return self._packs[pack_id]
        except KeyError as exc:
            raise KeyError(f"Pack {pack_id} not found") from exc

    def has_pack(self, pack_id: str) -> bool:
        return pack_id in self._packs

    def pool(self, tier: str) -> Sequence[str]:
        """Card ids of one tier, in registration order."""
        return tuple(self._pools.get(tier, ()))

    def all_card_ids(self) -> Sequence[str]:
        return tuple(self._cards)

    def iter_cards(self) -> Iterable[Card]:
        return self._cards.values()

    def iter_packs(self) -> Iterable[PackType]:
        return self._packs.values()
