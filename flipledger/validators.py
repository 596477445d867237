"""Validation utilities for flipledger applications."""

from __future__ import annotations

from .app import LedgerApp


def validate_app(app: LedgerApp) -> list[str]:
    """Return list of validation errors discovered in configured app."""
    errors: list[str] = []
    catalog = app.catalog

    card_ids = set()
    for card in catalog.iter_cards():
        card_ids.add(card.card_id)
        if not card.name.strip():
            errors.append(f"Card '{card.card_id}' has an empty name.")
        if not card.tier.strip():
            errors.append(f"Card '{card.card_id}' has an empty tier.")
    if not card_ids:
        errors.append("No cards registered in application.")

    for pack in catalog.iter_packs():
        if pack.cards_per_pack <= 0:
            errors.append(
                f"Pack '{pack.pack_id}' has non-positive cardsPerPack '{pack.cards_per_pack}'."
            )
        if pack.cost_points < 0:
            errors.append(f"Pack '{pack.pack_id}' has negative costPoints '{pack.cost_points}'.")
        if pack.total_weight <= 0:
            errors.append(f"Pack '{pack.pack_id}' has no positive tier weight.")
        for tier, weight in pack.tier_weights:
            if weight < 0:
                errors.append(f"Pack '{pack.pack_id}' tier weight for '{tier}' is negative.")

    config = app.config
    if not catalog.has_pack(config.shop.starter_pack):
        errors.append(f"Starter pack '{config.shop.starter_pack}' is not a registered pack type.")
    if config.shop.starter_pack_count < 0:
        errors.append("Shop configuration 'starter_pack_count' cannot be negative.")
    if config.shop.cards_per_pack <= 0:
        errors.append("Shop configuration 'cards_per_pack' must be positive.")
    if config.shop.pack_price <= 0:
        errors.append("Shop configuration 'pack_price' must be positive.")
    if config.ledger.round_slots <= 0:
        errors.append("Ledger configuration 'round_slots' must be positive.")
    if config.ledger.store_timeout_seconds <= 0:
        errors.append("Ledger configuration 'store_timeout_seconds' must be positive.")
    if not config.auth.message_prefix:
        errors.append("Auth configuration 'message_prefix' cannot be empty.")
    if config.storage.backend == "oracle" and not config.oracle.secret:
        errors.append("Oracle backend configured without a bearer secret.")

    return errors


__all__ = ["validate_app"]
