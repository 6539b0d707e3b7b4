"""HTTP surface of the registration Mini App.

``POST /registration`` runs, in order: body parsing, Telegram init data
verification, payload validation, the duplicate check and the append.
Each step either passes or ends the request with one error response.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from registration_miniapp import messages
from registration_miniapp.config import AppConfig
from registration_miniapp.errors import (
    AuthenticationError,
    InternalError,
    RegistrationError,
    ValidationError,
)
from registration_miniapp.models import validate_payload
from registration_miniapp.services.init_data import (
    InitDataVerifier,
    build_verifier,
    extract_user_id,
)
from registration_miniapp.services.registration import RegistrationService
from registration_miniapp.sheets import RowStore, build_row_store

LOGGER = logging.getLogger(__name__)

router = APIRouter()

BEARER_PREFIX = "bearer "


def resolve_init_data(authorization: Optional[str], body: dict[str, Any]) -> str:
    """Pick the init data string, preferring the ``Authorization`` header."""

    if authorization:
        token = authorization.strip()
        if token.lower().startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):].strip()
        if token:
            return token
    candidate = body.get("initData")
    if isinstance(candidate, str) and candidate:
        return candidate
    raise AuthenticationError(messages.AUTH_REQUIRED)


async def _read_body(request: Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError(messages.BODY_NOT_OBJECT) from None
    if not isinstance(body, dict):
        raise ValidationError(messages.BODY_NOT_OBJECT)
    return body


def _authenticate(verifier: InitDataVerifier, init_data: str) -> int:
    try:
        validated = verifier(init_data)
    except AuthenticationError:
        raise
    except Exception as exc:
        LOGGER.info("Init data verification failed: %s", exc)
        raise AuthenticationError(messages.AUTH_INVALID) from exc
    return extract_user_id(validated)


@router.post("/registration")
async def register(request: Request) -> dict[str, bool]:
    service: RegistrationService = request.app.state.registration_service
    verifier: InitDataVerifier = request.app.state.init_data_verifier

    try:
        body = await _read_body(request)
        init_data = resolve_init_data(request.headers.get("Authorization"), body)
        telegram_user_id = _authenticate(verifier, init_data)
        payload = validate_payload(body)
        await service.register(payload, telegram_user_id)
    except RegistrationError:
        raise
    except Exception as exc:
        LOGGER.exception("Registration error")
        raise InternalError(str(exc)) from exc

    return {"success": True}


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


async def _registration_error_handler(request: Request, exc: RegistrationError) -> JSONResponse:
    if isinstance(exc, AuthenticationError):
        LOGGER.warning("Registration rejected: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def create_app(
    config: AppConfig,
    *,
    store: Optional[RowStore] = None,
    verifier: Optional[InitDataVerifier] = None,
) -> FastAPI:
    """Build the FastAPI application; ``store`` and ``verifier`` may be replaced."""

    app = FastAPI(
        title="Registration Mini App API",
        description="Telegram Mini App registration backend",
        version="0.1.0",
    )
    app.state.registration_service = RegistrationService(
        store if store is not None else build_row_store(config),
        sheet_name=config.sheet_name,
        timeout=config.request_timeout,
    )
    app.state.init_data_verifier = verifier or build_verifier(
        config.bot_token, expires_in=config.init_data_expires_in
    )
    app.add_exception_handler(RegistrationError, _registration_error_handler)
    app.include_router(router)
    return app


__all__ = ["create_app", "resolve_init_data", "router"]
