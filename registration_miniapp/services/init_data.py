"""Validation of the ``initData`` string a Telegram Mini App receives at launch.

Telegram signs the launch parameters with a key derived from the bot token:

* ``secret = HMAC_SHA256(key="WebAppData", msg=bot_token)``
* ``hash = hex(HMAC_SHA256(key=secret, msg=data_check_string))``

where the data-check-string is every ``key=value`` pair except ``hash``,
sorted by key and joined with ``\\n``.  See
https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional
from urllib.parse import parse_qsl

from telegram import User

from registration_miniapp import messages
from registration_miniapp.errors import AuthenticationError

LOGGER = logging.getLogger(__name__)

WEB_APP_DATA_KEY = b"WebAppData"


@dataclass(slots=True)
class InitData:
    auth_date: int
    hash: str
    user: Optional[User] = None
    query_id: Optional[str] = None
    start_param: Optional[str] = None


InitDataVerifier = Callable[[str], InitData]


def sign_init_data(fields: dict[str, str], bot_token: str) -> str:
    """Return the hex signature Telegram would attach to ``fields``."""

    data_check_string = "\n".join(f"{key}={fields[key]}" for key in sorted(fields))
    secret = hmac.new(WEB_APP_DATA_KEY, bot_token.encode("utf-8"), hashlib.sha256).digest()
    return hmac.new(secret, data_check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_init_data(
    init_data: str,
    bot_token: str,
    *,
    expires_in: int = 86400,
    now: Optional[float] = None,
) -> InitData:
    """Check the signature of ``init_data`` and return its parsed content.

    ``expires_in`` is the maximum age of ``auth_date`` in seconds; ``0``
    disables the age check.  Raises :class:`AuthenticationError` on any
    failure.
    """

    if not init_data:
        raise AuthenticationError(messages.AUTH_REQUIRED)

    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    received_hash = fields.pop("hash", "")
    if not received_hash:
        LOGGER.info("Rejected init data without a hash")
        raise AuthenticationError(messages.AUTH_INVALID)

    expected_hash = sign_init_data(fields, bot_token)
    if not hmac.compare_digest(expected_hash, received_hash.lower()):
        LOGGER.info("Rejected init data with a mismatching signature")
        raise AuthenticationError(messages.AUTH_INVALID)

    try:
        auth_date = int(fields.get("auth_date", ""))
    except ValueError:
        LOGGER.info("Rejected init data with a malformed auth_date")
        raise AuthenticationError(messages.AUTH_INVALID) from None

    if expires_in > 0:
        current = time.time() if now is None else now
        if auth_date + expires_in < current:
            LOGGER.info("Rejected expired init data (auth_date=%s)", auth_date)
            raise AuthenticationError(messages.AUTH_INVALID)

    return InitData(
        auth_date=auth_date,
        hash=received_hash,
        user=_parse_user(fields.get("user")),
        query_id=fields.get("query_id"),
        start_param=fields.get("start_param"),
    )


def _parse_user(raw: Optional[str]) -> Optional[User]:
    if not raw:
        return None
    try:
        payload: Any = json.loads(raw)
    except json.JSONDecodeError:
        raise AuthenticationError(messages.AUTH_INVALID) from None
    if not isinstance(payload, dict) or not isinstance(payload.get("id"), int):
        return None
    return User(
        id=payload["id"],
        first_name=str(payload.get("first_name", "")),
        is_bot=bool(payload.get("is_bot", False)),
        last_name=payload.get("last_name"),
        username=payload.get("username"),
        language_code=payload.get("language_code"),
        is_premium=payload.get("is_premium"),
    )


def extract_user_id(init_data: InitData) -> int:
    if init_data.user is None or not init_data.user.id:
        raise AuthenticationError(messages.AUTH_NO_USER)
    return init_data.user.id


def build_verifier(bot_token: str, *, expires_in: int = 86400) -> InitDataVerifier:
    def verify(init_data: str) -> InitData:
        return verify_init_data(init_data, bot_token, expires_in=expires_in)

    return verify


__all__ = [
    "InitData",
    "InitDataVerifier",
    "build_verifier",
    "extract_user_id",
    "sign_init_data",
    "verify_init_data",
]
