from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from ..app import LedgerApp
from ..domain.coordinator import LedgerCoordinator


def get_ledger(request: Request) -> LedgerApp:
    return request.app.state.ledger


def get_coordinator(ledger: Annotated[LedgerApp, Depends(get_ledger)]) -> LedgerCoordinator:
    return ledger.coordinator


Coordinator = Annotated[LedgerCoordinator, Depends(get_coordinator)]
