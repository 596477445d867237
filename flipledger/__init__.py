"""flipledger public API."""

from .app import LedgerApp
from .config import FlipLedgerConfig
from .domain.coordinator import LedgerCoordinator, MutationResult

__all__ = [
    "FlipLedgerConfig",
    "LedgerApp",
    "LedgerCoordinator",
    "MutationResult",
]
