"""Top level application object wiring the ledger together."""

from __future__ import annotations

import logging
from random import Random
from typing import Any

from .admin.service import AdminService
from .config import FlipLedgerConfig
from .domain.auth import SignatureGateway
from .domain.cards import CardCatalog, default_pack_types
from .domain.coordinator import LedgerCoordinator
from .domain.distributor import WeightedRewardDistributor
from .domain.events import EventBus
from .domain.payments import MinimumAmountVerifier, PaymentReconciler, PaymentVerifier
from .domain.rounds import RoundPickStateMachine
from .loaders.json_loader import load_catalog_from_json
from .storage.base import AuditStore, UserRecordStore
from .storage.memory import InMemoryAuditStore, InMemoryUserStore
from .storage.oracle import OracleUserStore
from .storage.sqlalchemy import AsyncSQLAlchemyStorage

logger = logging.getLogger(__name__)


class LedgerApp:
    """Central dependency container used by the HTTP API, CLI and tests."""

    def __init__(
        self,
        config: FlipLedgerConfig | None = None,
        *,
        user_store: UserRecordStore | None = None,
        audit_store: AuditStore | None = None,
        catalog: CardCatalog | None = None,
        event_bus: EventBus | None = None,
        rng: Random | None = None,
        verifier: PaymentVerifier | None = None,
    ) -> None:
        self.config = config or FlipLedgerConfig()
        self.event_bus = event_bus or EventBus()
        self.catalog = catalog or self._build_catalog()

        self._rng = rng or (
            Random(self.config.rng_seed) if self.config.rng_seed is not None else Random()
        )

        self._sqlalchemy_storage: AsyncSQLAlchemyStorage | None = None
        self._oracle_store: OracleUserStore | None = None
        self.user_store, self.audit_store = self._wire_storage(user_store, audit_store)

        self.gateway = SignatureGateway(self.config.auth.message_prefix)
        self.distributor = WeightedRewardDistributor(self.catalog, rng=self._rng)
        self.reconciler = PaymentReconciler(self.distributor)
        self.rounds = RoundPickStateMachine(self.config.ledger.round_slots)
        self.verifier = verifier or MinimumAmountVerifier(self.config.shop.pack_price)
        self.coordinator = LedgerCoordinator(
            self.user_store,
            gateway=self.gateway,
            distributor=self.distributor,
            reconciler=self.reconciler,
            rounds=self.rounds,
            shop=self.config.shop,
            audit_store=self.audit_store,
            event_bus=self.event_bus,
            verifier=self.verifier,
            store_timeout=self.config.ledger.store_timeout_seconds,
        )
        self.admin = AdminService(self.coordinator, self.audit_store, self.event_bus)

    def _build_catalog(self) -> CardCatalog:
        catalog = CardCatalog()
        if self.config.catalog_path:
            definition = load_catalog_from_json(
                catalog, self.config.catalog_path, cards_per_pack=self.config.shop.cards_per_pack
            )
            logger.info(
                "Loaded %d cards and %d packs from %s",
                len(definition.cards),
                len(definition.packs),
                self.config.catalog_path,
            )
        if not any(True for _ in catalog.iter_packs()):
            catalog.register_packs(default_pack_types(self.config.shop.cards_per_pack))
        return catalog

    def _wire_storage(
        self,
        user_store: UserRecordStore | None,
        audit_store: AuditStore | None,
    ) -> tuple[UserRecordStore, AuditStore]:
        if user_store is not None and audit_store is not None:
            return user_store, audit_store

        backend = self.config.storage.backend
        if backend == "memory":
            return user_store or InMemoryUserStore(), audit_store or InMemoryAuditStore()
        if backend == "sqlalchemy":
            dsn = self.config.storage.resolve_dsn()
            if not dsn:
                raise ValueError("SQLAlchemy backend requires a DSN")
            storage = AsyncSQLAlchemyStorage(dsn, echo=self.config.storage.echo_sql)
            self._sqlalchemy_storage = storage
            return user_store or storage.user_store(), audit_store or storage.audit_store()
        if backend == "oracle":
            oracle = self.config.oracle
            if not oracle.url:
                raise ValueError("Oracle backend requires FLIPLEDGER_ORACLE_URL")
            if user_store is None:
                self._oracle_store = OracleUserStore(
                    oracle.url, oracle.secret, timeout=oracle.timeout_seconds
                )
            return user_store or self._oracle_store, audit_store or InMemoryAuditStore()
        raise ValueError(f"Unsupported storage backend {backend}")

    def snapshot(self) -> dict[str, Any]:
        """Export current configuration for debugging."""
        return {
            "storage": self.config.storage.backend,
            "cards": [card.card_id for card in self.catalog.iter_cards()],
            "packs": [pack.pack_id for pack in self.catalog.iter_packs()],
            "message_prefix": self.gateway.message_prefix,
            "round_slots": self.rounds.slots,
        }

    async def init_backend(self) -> None:
        """Initialize storage backend resources (e.g., database tables)."""
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.init_models()

    async def aclose(self) -> None:
        if self._oracle_store:
            await self._oracle_store.aclose()
        if self._sqlalchemy_storage:
            await self._sqlalchemy_storage.dispose()
