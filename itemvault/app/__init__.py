from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from itemvault.app import auth
from itemvault.app.config import Settings, get_settings
from itemvault.app.database import create_engine, create_schema, create_session_factory
from itemvault.app.errors import register_exception_handlers, unauthorized_response
from itemvault.app.items import health_router, router as items_router
from itemvault.app.security import PasswordHasher, TokenError, TokenService, extract_bearer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    engine = app.state.engine
    if settings.e2e or settings.create_schema:
        await create_schema(engine, reset=settings.e2e)
    try:
        yield
    finally:
        await engine.dispose()


def _register_cors(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )


def _register_private_middleware(app: FastAPI, settings: Settings) -> None:
    protected_prefixes = settings.private_path_prefixes

    @app.middleware('http')
    async def _guard_private(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        if request.url.path.startswith(protected_prefixes):
            try:
                token = extract_bearer(request.headers.get('authorization'))
                request.state.user_id = app.state.tokens.verify(token)
            except TokenError as exc:
                logger.debug('Refused bearer token for %s: %s', request.url.path, exc.kind)
                return unauthorized_response()
        return await call_next(request)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    application = FastAPI(title='itemvault API', lifespan=lifespan)

    engine = create_engine(settings)
    application.state.settings = settings
    application.state.engine = engine
    application.state.session_factory = create_session_factory(engine)
    application.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    application.state.tokens = TokenService(
        settings.secret_key,
        algorithm=settings.algorithm,
        ttl=timedelta(minutes=settings.access_token_expire_minutes),
    )

    register_exception_handlers(application)
    _register_private_middleware(application, settings)
    _register_cors(application, settings)

    application.include_router(health_router)
    application.include_router(auth.router)
    application.include_router(items_router)
    return application


__all__ = ['create_app']
