"""Automated checks to highlight balancing issues."""

from __future__ import annotations

from dataclasses import dataclass

from ..app import LedgerApp


@dataclass(slots=True)
class ChecklistIssue:
    severity: str
    message: str


def run_checklist(app: LedgerApp) -> list[ChecklistIssue]:
    issues: list[ChecklistIssue] = []
    catalog = app.catalog

    packs = list(catalog.iter_packs())
    if not packs:
        issues.append(ChecklistIssue("error", "No pack types registered."))

    cards = list(catalog.iter_cards())
    if not cards:
        issues.append(ChecklistIssue("error", "No cards registered; every draw will fail."))

    drawn_tiers: set[str] = set()
    for pack in packs:
        for tier, weight in pack.tier_weights:
            if weight <= 0:
                issues.append(
                    ChecklistIssue("info", f"Pack {pack.pack_id} never draws tier '{tier}'.")
                )
                continue
            drawn_tiers.add(tier)
            if cards and not catalog.pool(tier):
                share = weight / pack.total_weight
                issues.append(
                    ChecklistIssue(
                        "warning",
                        f"Pack {pack.pack_id}: tier '{tier}' has no cards, "
                        f"{share:.1%} of draws fall back to the full catalog.",
                    )
                )
        if pack.cost_points == 0:
            issues.append(
                ChecklistIssue("warning", f"Pack {pack.pack_id} costs 0 points.")
            )

    orphan_tiers = sorted({card.tier for card in cards} - drawn_tiers)
    for tier in orphan_tiers:
        issues.append(
            ChecklistIssue(
                "warning",
                f"Cards of tier '{tier}' are only reachable through the fallback pool.",
            )
        )

    if not catalog.has_pack(app.config.shop.starter_pack):
        issues.append(
            ChecklistIssue(
                "error",
                f"Starter pack '{app.config.shop.starter_pack}' is not a registered pack type.",
            )
        )

    return issues
