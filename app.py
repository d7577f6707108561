"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.asynchronous.mongo_client import AsyncMongoClient

from config import AppSettings
from errors import register_error_handlers
from infrastructure.email.zeptomail import ZeptoMailProvider
from infrastructure.http_client import HttpClient
from infrastructure.token_signer import TokenSigner
from repositories.account_repository import AccountRepository
from repositories.game_result_repository import GameResultRepository
from routes.auth_routes import router as auth_router
from routes.game_result_routes import router as game_result_router
from routes.health_routes import router as health_router
from services.auth_service import AuthService
from services.game_result_service import GameResultService
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(settings: Optional[AppSettings] = None) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(
        log_level=settings.logging.log_level,
        log_format=settings.logging.log_format,
        env=settings.env,
    )

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        mongo_client: AsyncMongoClient = AsyncMongoClient(
            settings.db.mongodb_uri, tz_aware=True
        )
        db = mongo_client[settings.db.db_name]
        app.state.mongo_client = mongo_client
        app.state.db = db

        accounts = AccountRepository(db)
        results = GameResultRepository(db)
        await accounts.ensure_indexes()
        await results.ensure_indexes()

        http_client = HttpClient(timeout=10.0)
        email_provider = ZeptoMailProvider(
            settings.email,
            http_client,
            frontend_url=settings.frontend_url,
            registration_otp_minutes=settings.auth.registration_otp_ttl_seconds // 60,
            login_otp_minutes=settings.auth.login_otp_ttl_seconds // 60,
            reset_link_minutes=settings.auth.reset_token_ttl_seconds // 60,
        )

        app.state.auth_service = AuthService(
            accounts,
            email_provider,
            TokenSigner(settings.jwt),
            settings.auth,
            frontend_url=settings.frontend_url,
        )
        app.state.game_result_service = GameResultService(results)

        log.info("app_started", db_name=settings.db.db_name, env=settings.env)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await http_client.aclose()
        await mongo_client.close()
        log.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(game_result_router)

    return app
