"""HTTP surface for the ledger."""

from .main import create_app

__all__ = ["create_app"]
