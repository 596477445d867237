from random import Random

import pytest

from flipledger.diagnostics.distribution import DrawSimulator
from flipledger.domain.cards import Card, CardCatalog, PackType, default_pack_types
from flipledger.domain.distributor import WeightedRewardDistributor
from flipledger.domain.exceptions import InvalidQuantity, NoCardsAvailable, UnknownPack
from flipledger.testing import build_catalog


class ScriptedRandom(Random):
    """Replays fixed values from ``random()``."""

    def __init__(self, values):
        super().__init__(0)
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


def _catalog(*cards: Card) -> CardCatalog:
    catalog = CardCatalog()
    catalog.register_cards(cards)
    catalog.register_packs(default_pack_types())
    return catalog


def test_each_pack_yields_five_cards_per_unit():
    distributor = WeightedRewardDistributor(build_catalog(seed=1), rng=Random(1))
    for quantity in (1, 2, 7):
        assert len(distributor.draw_cards("common", quantity)) == 5 * quantity


def test_drawn_cards_come_from_catalog():
    catalog = build_catalog(seed=3)
    distributor = WeightedRewardDistributor(catalog, rng=Random(3))
    known = set(catalog.all_card_ids())
    assert set(distributor.draw_cards("rare", 10)) <= known


def test_pick_tier_walks_weights_in_declared_order():
    pack = default_pack_types()[0]  # common: 95 / 4 / 1
    rng = ScriptedRandom([0.5, 0.96, 0.995, 0.0])
    distributor = WeightedRewardDistributor(_catalog(Card("a", "A")), rng=rng)
    assert distributor.pick_tier(pack) == "sentient"
    assert distributor.pick_tier(pack) == "genesis"
    assert distributor.pick_tier(pack) == "unicorn"
    assert distributor.pick_tier(pack) == "sentient"


def test_pick_tier_skips_zero_weights():
    pack = PackType(
        pack_id="odd",
        name="Odd",
        tier_weights=(("sentient", 0.0), ("genesis", 3.0), ("unicorn", 1.0)),
    )
    rng = ScriptedRandom([0.0, 0.74, 0.76])
    distributor = WeightedRewardDistributor(_catalog(Card("a", "A")), rng=rng)
    assert [distributor.pick_tier(pack) for _ in range(3)] == ["genesis", "genesis", "unicorn"]


def test_uniform_choice_within_tier():
    catalog = _catalog(
        Card("s1", "S1", tier="sentient"),
        Card("s2", "S2", tier="sentient"),
        Card("s3", "S3", tier="sentient"),
    )
    # tier roll, card roll for each of five cards
    rng = ScriptedRandom([0.1, 0.0, 0.1, 0.34, 0.1, 0.67, 0.1, 0.99, 0.1, 0.5])
    distributor = WeightedRewardDistributor(catalog, rng=rng)
    assert distributor.draw_cards("common", 1) == ["s1", "s2", "s3", "s3", "s2"]


def test_empty_tier_falls_back_to_whole_catalog():
    catalog = _catalog(Card("g1", "G1", tier="genesis"))
    distributor = WeightedRewardDistributor(catalog, rng=Random(11))
    draws = distributor.draw("common", 3)
    assert len(draws) == 15
    assert all(draw.card_id == "g1" for draw in draws)
    assert any(draw.fallback for draw in draws)
    assert all(draw.tier == "genesis" for draw in draws)


def test_empty_catalog_raises():
    catalog = CardCatalog()
    catalog.register_packs(default_pack_types())
    distributor = WeightedRewardDistributor(catalog, rng=Random(0))
    with pytest.raises(NoCardsAvailable):
        distributor.draw_cards("common", 1)


@pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
def test_rejects_invalid_quantity(quantity):
    distributor = WeightedRewardDistributor(build_catalog(seed=2), rng=Random(2))
    with pytest.raises(InvalidQuantity):
        distributor.draw_cards("common", quantity)


def test_rejects_unknown_pack():
    distributor = WeightedRewardDistributor(build_catalog(seed=2), rng=Random(2))
    with pytest.raises(UnknownPack):
        distributor.draw_cards("mythic", 1)


def test_same_seed_same_cards():
    catalog = build_catalog(seed=5)
    first = WeightedRewardDistributor(catalog, rng=Random(42)).draw_cards("rare", 4)
    second = WeightedRewardDistributor(catalog, rng=Random(42)).draw_cards("rare", 4)
    assert first == second


@pytest.mark.parametrize("pack_id", ["common", "rare"])
def test_tier_frequencies_match_weights(pack_id):
    simulator = DrawSimulator(build_catalog(seed=9), rng=Random(2024))
    result = simulator.simulate(pack_id, packs=4000)
    assert result.draws == 20000
    assert result.fallbacks == 0
    assert result.degrees_of_freedom == 2
    # 99.9th percentile of chi-squared with 2 degrees of freedom
    assert result.chi_squared < 13.82
    for tier, share in result.expected_shares.items():
        assert result.observed_share(tier) == pytest.approx(share, abs=0.02)
