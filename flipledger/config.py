"""Configuration models for flipledger."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Literal

StorageBackend = Literal["memory", "sqlalchemy", "oracle"]

_TRUTHY = {"1", "true", "yes"}


@dataclass(slots=True)
class StorageConfig:
    """Configure where user records are persisted."""

    backend: StorageBackend = "memory"
    dsn: str | None = None
    echo_sql: bool = False

    def resolve_dsn(self) -> str | None:
        if self.dsn:
            return self.dsn
        if self.backend == "sqlalchemy":
            return "sqlite+aiosqlite:///./flipledger.db"
        return None


@dataclass(slots=True)
class OracleConfig:
    """Remote record store endpoint, used when ``storage.backend == "oracle"``."""

    url: str | None = None
    secret: str = ""
    timeout_seconds: float = 10.0


@dataclass(slots=True)
class AuthConfig:
    """Signed-message rules."""

    message_prefix: str = "Flip Royale:"


@dataclass(slots=True)
class ShopConfig:
    """Pack economy settings."""

    cards_per_pack: int = 5
    starter_pack: str = "common"
    starter_pack_count: int = 1
    pack_price: Decimal = Decimal("0.1")


@dataclass(slots=True)
class LedgerConfig:
    """Coordinator limits."""

    store_timeout_seconds: float = 10.0
    round_slots: int = 5


@dataclass(slots=True)
class FlipLedgerConfig:
    """Top-level configuration container."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    oracle: OracleConfig = field(default_factory=OracleConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    shop: ShopConfig = field(default_factory=ShopConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    catalog_path: str | None = None
    rng_seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "FlipLedgerConfig":
        """Create config from environment variables prefixed with FLIPLEDGER_."""
        prefix = "FLIPLEDGER_"

        storage = StorageConfig(
            backend=os.getenv(f"{prefix}STORAGE_BACKEND", "memory"),
            dsn=os.getenv(f"{prefix}STORAGE_DSN"),
            echo_sql=os.getenv(f"{prefix}STORAGE_ECHO_SQL", "false").lower() in _TRUTHY,
        )
        if storage.backend not in ("memory", "sqlalchemy", "oracle"):
            raise ValueError(f"Unsupported FLIPLEDGER_STORAGE_BACKEND '{storage.backend}'")

        oracle = OracleConfig(
            url=os.getenv(f"{prefix}ORACLE_URL") or None,
            secret=os.getenv(f"{prefix}ORACLE_SECRET", ""),
            timeout_seconds=float(os.getenv(f"{prefix}ORACLE_TIMEOUT", "10")),
        )

        shop = ShopConfig(
            cards_per_pack=int(os.getenv(f"{prefix}CARDS_PER_PACK", "5")),
            starter_pack=os.getenv(f"{prefix}STARTER_PACK", "common") or "common",
            starter_pack_count=int(os.getenv(f"{prefix}STARTER_PACK_COUNT", "1")),
            pack_price=_parse_decimal(os.getenv(f"{prefix}PACK_PRICE", "0.1")),
        )

        return cls(
            storage=storage,
            oracle=oracle,
            auth=AuthConfig(
                message_prefix=os.getenv(f"{prefix}MESSAGE_PREFIX", "Flip Royale:") or "Flip Royale:"
            ),
            shop=shop,
            ledger=LedgerConfig(
                store_timeout_seconds=float(os.getenv(f"{prefix}STORE_TIMEOUT", "10")),
                round_slots=int(os.getenv(f"{prefix}ROUND_SLOTS", "5")),
            ),
            catalog_path=os.getenv(f"{prefix}CATALOG_PATH") or None,
            rng_seed=(
                int(os.getenv(f"{prefix}RNG_SEED")) if os.getenv(f"{prefix}RNG_SEED") else None
            ),
            log_level=os.getenv(f"{prefix}LOG_LEVEL", "INFO").upper(),
        )


def _parse_decimal(raw: str) -> Decimal:
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid decimal value for FLIPLEDGER_PACK_PRICE: {raw!r}") from exc
