"""Testing utilities for flipledger."""

from .factory import CardFactory, LocalSigner, UserRecordFactory, build_catalog
from .fixtures import app_fixture, memory_app, signer

__all__ = [
    "CardFactory",
    "LocalSigner",
    "UserRecordFactory",
    "build_catalog",
    "app_fixture",
    "memory_app",
    "signer",
]
