from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

BEARER_CHALLENGE = {'WWW-Authenticate': 'Bearer'}


class AppError(Exception):
    """Base for errors that map onto a client-facing JSON response."""

    status_code = 500
    detail = 'Internal server error'
    headers: dict[str, str] | None = None

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class DuplicateEmailError(AppError):
    status_code = 400
    detail = 'Email already registered'


class AuthenticationError(AppError):
    status_code = 401
    detail = 'Not authenticated'
    headers = BEARER_CHALLENGE


class InvalidCredentialsError(AuthenticationError):
    detail = 'Invalid credentials'


class NotFoundError(AppError):
    status_code = 404
    detail = 'Item not found'


def unauthorized_response() -> JSONResponse:
    return JSONResponse(status_code=401, content={'detail': AuthenticationError.detail}, headers=BEARER_CHALLENGE)


def _field_errors(errors: list[dict[str, Any]]) -> list[dict[str, str]]:
    out = []
    for err in errors:
        loc = [str(part) for part in err.get('loc', ()) if part not in ('body', 'query', 'path')]
        out.append({'field': '.'.join(loc) or '__root__', 'message': err.get('msg', 'Invalid value')})
    return out


def _validation_response(errors: list[dict[str, Any]]) -> JSONResponse:
    return JSONResponse(status_code=400, content={'detail': 'Validation failed', 'errors': _field_errors(errors)})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={'detail': exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _validation_response(list(exc.errors()))

    @app.exception_handler(ValidationError)
    async def _model_validation(request: Request, exc: ValidationError) -> JSONResponse:
        return _validation_response(exc.errors())

    @app.exception_handler(SQLAlchemyError)
    async def _store_failure(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception('Store failure on %s %s', request.method, request.url.path)
        return JSONResponse(status_code=503, content={'detail': 'Storage unavailable'})

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception('Unhandled error on %s %s', request.method, request.url.path)
        return JSONResponse(status_code=500, content={'detail': 'Internal server error'})
