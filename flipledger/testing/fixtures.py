"""Pytest fixtures for flipledger."""

from __future__ import annotations

from random import Random

import pytest

from ..app import LedgerApp
from ..config import FlipLedgerConfig
from .factory import LocalSigner, build_catalog


@pytest.fixture()
def memory_app() -> LedgerApp:
    return app_fixture()


@pytest.fixture()
def signer() -> LocalSigner:
    return LocalSigner()


def app_fixture(*, seed: int = 7, per_tier: int = 4, **kwargs) -> LedgerApp:
    """Helper for ad-hoc tests where pytest is not available."""
    config = FlipLedgerConfig(rng_seed=seed)
    return LedgerApp(config, catalog=build_catalog(per_tier, seed=seed), rng=Random(seed), **kwargs)
