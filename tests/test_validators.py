from decimal import Decimal

from flipledger import FlipLedgerConfig, LedgerApp
from flipledger.domain.cards import Card, CardCatalog, PackType
from flipledger.testing import app_fixture
from flipledger.validators import validate_app


def test_validate_app_success():
    assert validate_app(app_fixture()) == []


def test_validate_app_detects_empty_catalog():
    issues = validate_app(LedgerApp(FlipLedgerConfig()))
    assert "No cards registered in application." in issues


def test_validate_app_detects_bad_pack_and_config():
    catalog = CardCatalog()
    catalog.register_card(Card(card_id="tok_a", name="A"))
    catalog.register_pack(
        PackType(pack_id="dead", name="Dead", tier_weights=(("sentient", 0.0),), cards_per_pack=0)
    )
    config = FlipLedgerConfig()
    config.shop.pack_price = Decimal("0")
    config.ledger.store_timeout_seconds = 0

    issues = validate_app(LedgerApp(config, catalog=catalog))

    assert "Pack 'dead' has no positive tier weight." in issues
    assert "Pack 'dead' has non-positive cardsPerPack '0'." in issues
    assert "Starter pack 'common' is not a registered pack type." in issues
    assert "Shop configuration 'pack_price' must be positive." in issues
    assert "Ledger configuration 'store_timeout_seconds' must be positive." in issues
