from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import LedgerApp
from ..config import FlipLedgerConfig
from .auth import router as auth_router
from .errors import install_error_handlers
from .health import router as health_router
from .rounds import router as rounds_router
from .shop import router as shop_router
from .users import router as users_router


def create_app(ledger: LedgerApp | None = None) -> FastAPI:
    """Build the HTTP application around ``ledger`` (or one configured from the environment)."""
    ledger = ledger or LedgerApp(FlipLedgerConfig.from_env())

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
        await ledger.init_backend()
        yield
        await ledger.aclose()

    app = FastAPI(title="flipledger", version=pkg_version("flipledger"), lifespan=lifespan)
    app.state.ledger = ledger

    app.include_router(auth_router)
    app.include_router(health_router)
    app.include_router(rounds_router)
    app.include_router(shop_router)
    app.include_router(users_router)
    install_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    return app
