"""Load cards and pack types from JSON definitions."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Sequence

from ..domain.cards import DEFAULT_TIERS, Card, CardCatalog, PackType


@dataclass(slots=True)
class CatalogDefinition:
    cards: Sequence[Card]
    packs: Sequence[PackType]


def load_catalog_from_json(
    catalog: CardCatalog, path: str | Path, *, cards_per_pack: int = 5
) -> CatalogDefinition:
    """Load cards and packs from a JSON file and register them on the catalog."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    definition = parse_catalog_dict(data, cards_per_pack=cards_per_pack)
    catalog.register_cards(definition.cards)
    catalog.register_packs(definition.packs)
    return definition


def parse_catalog_dict(data: dict[str, Any], *, cards_per_pack: int = 5) -> CatalogDefinition:
    """Parse a JSON dict (already decoded) into domain objects."""
    errors = validate_catalog_dict(data)
    if errors:
        raise ValueError(_format_errors("Catalog validation failed", errors))
    cards = tuple(parse_card(entry) for entry in data.get("cards", []))
    packs = tuple(
        parse_pack(entry, cards_per_pack=cards_per_pack) for entry in data.get("packs", [])
    )
    return CatalogDefinition(cards=cards, packs=packs)


def parse_card(entry: dict[str, Any]) -> Card:
    return Card(
        card_id=entry["id"],
        name=entry.get("name", entry["id"]),
        tier=entry["tier"],
        symbol=entry.get("symbol"),
    )


def parse_pack(entry: dict[str, Any], *, cards_per_pack: int = 5) -> PackType:
    # JSON objects keep key order, which is the order tiers are walked in
    weights = entry.get("tierWeights", {})
    return PackType(
        pack_id=entry["id"],
        name=entry.get("name", entry["id"]),
        tier_weights=tuple((str(tier), float(weight)) for tier, weight in weights.items()),
        cost_points=int(entry.get("costPoints", 0)),
        cards_per_pack=int(entry.get("cardsPerPack", cards_per_pack)),
    )


def validate_catalog_file(path: str | Path) -> list[str]:
    """Validate catalog JSON file and return a list of errors."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return validate_catalog_dict(data)


def validate_catalog_dict(data: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Catalog must be a JSON object."]

    tiers: set[str] = set()
    cards_raw = data.get("cards")
    if not isinstance(cards_raw, list) or not cards_raw:
        errors.append("Catalog must contain non-empty 'cards' array.")
    else:
        card_ids: set[str] = set()
        for idx, entry in enumerate(cards_raw, start=1):
            if not isinstance(entry, dict):
                errors.append(f"Card #{idx} must be an object.")
                continue
            card_id = entry.get("id")
            if not isinstance(card_id, str) or not card_id.strip():
                errors.append(f"Card #{idx} must define non-empty 'id'.")
                continue
            if card_id in card_ids:
                errors.append(f"Card id '{card_id}' defined multiple times.")
            card_ids.add(card_id)

            tier = entry.get("tier")
            if not isinstance(tier, str) or not tier.strip():
                errors.append(f"Card '{card_id}' must define non-empty 'tier'.")
            else:
                tiers.add(tier)

            name = entry.get("name")
            if name is not None and (not isinstance(name, str) or not name.strip()):
                errors.append(f"Card '{card_id}' 'name' must be a non-empty string.")
            symbol = entry.get("symbol")
            if symbol is not None and not isinstance(symbol, str):
                errors.append(f"Card '{card_id}' 'symbol' must be a string.")

    packs_raw = data.get("packs", [])
    if not isinstance(packs_raw, list):
        errors.append("Catalog 'packs' must be an array.")
        return errors

    known_tiers = tiers | set(DEFAULT_TIERS)
    pack_ids: set[str] = set()
    for idx, entry in enumerate(packs_raw, start=1):
        if not isinstance(entry, dict):
            errors.append(f"Pack #{idx} must be an object.")
            continue
        pack_id = entry.get("id")
        if not isinstance(pack_id, str) or not pack_id.strip():
            errors.append(f"Pack #{idx} must define non-empty 'id'.")
            continue
        if pack_id in pack_ids:
            errors.append(f"Pack id '{pack_id}' defined multiple times.")
        pack_ids.add(pack_id)

        cost = entry.get("costPoints", 0)
        if isinstance(cost, bool) or not isinstance(cost, int) or cost < 0:
            errors.append(f"Pack '{pack_id}' has invalid 'costPoints' value '{cost}'.")

        per_pack = entry.get("cardsPerPack", 1)
        if isinstance(per_pack, bool) or not isinstance(per_pack, int) or per_pack <= 0:
            errors.append(f"Pack '{pack_id}' has invalid 'cardsPerPack' value '{per_pack}'.")

        weights = entry.get("tierWeights")
        if not isinstance(weights, dict) or not weights:
            errors.append(f"Pack '{pack_id}' must define non-empty 'tierWeights' object.")
            continue
        positive = 0
        for tier, weight in weights.items():
            if tier not in known_tiers:
                errors.append(f"Pack '{pack_id}' tierWeights reference unknown tier '{tier}'.")
            if isinstance(weight, bool) or not isinstance(weight, (int, float)) or weight < 0:
                errors.append(
                    f"Pack '{pack_id}' tierWeights for '{tier}' must be non-negative number."
                )
            elif weight > 0:
                positive += 1
        if not positive:
            errors.append(f"Pack '{pack_id}' needs at least one positive tier weight.")

    return errors


def _format_errors(prefix: str, errors: Iterable[str]) -> str:
    formatted = "\n".join(f"- {err}" for err in errors)
    return f"{prefix}:\n{formatted}"
