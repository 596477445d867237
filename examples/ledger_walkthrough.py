"""Walk one player through registration, purchases, pack openings and a pick save."""

from __future__ import annotations

import asyncio
from pathlib import Path

from flipledger import FlipLedgerConfig, LedgerApp
from flipledger.cli import configure_logging
from flipledger.storage import RoundPick
from flipledger.testing import LocalSigner


async def main() -> None:
    configure_logging("INFO")
    config = FlipLedgerConfig(catalog_path=str(Path(__file__).with_name("catalog.json")))
    app = LedgerApp(config)
    ledger = app.coordinator
    wallet = LocalSigner()

    await ledger.register(wallet.address, "walkthrough")
    opened = await ledger.open_pack(wallet.address, wallet.sign("Open Pack"), "common")
    print("starter pack:", ", ".join(opened.granted_cards))

    await app.admin.grant_points(wallet.address, bank=3000, gift=7000, reason="walkthrough")
    bought = await ledger.purchase_with_points(wallet.address, wallet.sign("Buy Pack"), "rare")
    print("rare pack for", bought.cost_points, "points:", ", ".join(bought.granted_cards))

    paid = await ledger.reconcile_payment(wallet.address, "0xfeed" + "0" * 60, count=2)
    again = await ledger.reconcile_payment(wallet.address, "0xFEED" + "0" * 60, count=2)
    print("crypto packs:", len(paid.granted_cards), "cards; replay processed:", again.already_processed)

    picks = [RoundPick(token_id=card) for card in opened.granted_cards[:3]]
    saved = await ledger.save_picks(wallet.address, wallet.sign("Save Picks"), next_round=picks)
    print("staged picks:", [pick.token_id for pick in saved.record.next_round if pick])

    await app.aclose()


if __name__ == "__main__":
    asyncio.run(main())
