"""Monte-Carlo checks of pack draw odds."""

from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import Dict

from ..domain.cards import CardCatalog
from ..domain.distributor import WeightedRewardDistributor


@dataclass(slots=True)
class DistributionResult:
    pack_id: str
    packs: int
    draws: int = 0
    fallbacks: int = 0
    tier_counts: Dict[str, int] = field(default_factory=dict)
    expected_shares: Dict[str, float] = field(default_factory=dict)
    card_counts: Dict[str, int] = field(default_factory=dict)

    def observed_share(self, tier: str) -> float:
        return self.tier_counts.get(tier, 0) / self.draws if self.draws else 0.0

    @property
    def chi_squared(self) -> float:
        """Pearson statistic of tier counts against the pack weights.

        Only meaningful when ``fallbacks`` is zero.
        """
        statistic = 0.0
        for tier, share in self.expected_shares.items():
            expected = share * self.draws
            if expected <= 0:
                continue
            observed = self.tier_counts.get(tier, 0)
            statistic += (observed - expected) ** 2 / expected
        return statistic

    @property
    def degrees_of_freedom(self) -> int:
        return max(0, sum(1 for share in self.expected_shares.values() if share > 0) - 1)


class DrawSimulator:
    """Open many packs with a private distributor and tally the results."""

    def __init__(self, catalog: CardCatalog, *, rng: Random | None = None) -> None:
        self._catalog = catalog
        self._distributor = WeightedRewardDistributor(catalog, rng=rng or Random())

    def simulate(self, pack_id: str, *, packs: int = 1000) -> DistributionResult:
        pack = self._distributor.pack(pack_id)
        total = pack.total_weight
        result = DistributionResult(
            pack_id=pack_id,
            packs=packs,
            expected_shares={
                tier: (weight / total if total and weight > 0 else 0.0)
                for tier, weight in pack.tier_weights
            },
        )
        for draw in self._distributor.draw(pack_id, packs):
            result.draws += 1
            if draw.fallback:
                result.fallbacks += 1
            result.tier_counts[draw.tier] = result.tier_counts.get(draw.tier, 0) + 1
            result.card_counts[draw.card_id] = result.card_counts.get(draw.card_id, 0) + 1
        return result
