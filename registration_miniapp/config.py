from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional, TypeVar

from dotenv import load_dotenv

TOKEN_ENVIRONMENT_KEYS: tuple[str, ...] = ("BOT_TOKEN", "TELEGRAM_BOT_TOKEN")

DEFAULT_SHEET_NAME = "Registrations"
DEFAULT_INIT_DATA_EXPIRES_IN = 86400
DEFAULT_REQUEST_TIMEOUT = 15.0

N = TypeVar("N", int, float)


@dataclass(slots=True)
class AppConfig:
    """Configuration container for the registration Mini App backend."""

    bot_token: str
    spreadsheet_id: Optional[str] = None
    sheet_name: str = DEFAULT_SHEET_NAME
    service_account_info: Optional[dict[str, Any]] = None
    init_data_expires_in: int = DEFAULT_INIT_DATA_EXPIRES_IN
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    webapp_url: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000
    use_memory_store: bool = False

    @property
    def sheets_configured(self) -> bool:
        return bool(self.spreadsheet_id and self.service_account_info)

    @classmethod
    def load(cls, env_path: str | os.PathLike[str] | None = ".env") -> "AppConfig":
        """Load configuration from environment variables."""
        if env_path is not None:
            load_dotenv(env_path)

        token = _first_env(TOKEN_ENVIRONMENT_KEYS)
        if not token:
            raise RuntimeError(
                "BOT_TOKEN is not defined. Please add it to your .env file before starting the server."
            )

        return cls(
            bot_token=token,
            spreadsheet_id=_clean(os.getenv("GOOGLE_SHEET_ID")),
            sheet_name=_clean(os.getenv("GOOGLE_SHEET_NAME")) or DEFAULT_SHEET_NAME,
            service_account_info=load_service_account_info(),
            init_data_expires_in=_number_env("INIT_DATA_EXPIRES_IN", int, DEFAULT_INIT_DATA_EXPIRES_IN),
            request_timeout=_number_env("REQUEST_TIMEOUT", float, DEFAULT_REQUEST_TIMEOUT),
            webapp_url=_clean(os.getenv("WEBAPP_URL")),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_number_env("PORT", int, 8000),
            use_memory_store=(_clean(os.getenv("REGISTRATION_STORE")) or "").lower() == "memory",
        )


def load_service_account_info() -> Optional[dict[str, Any]]:
    """Resolve service account credentials from the environment.

    Checked in order: inline JSON, a JSON key file, then the
    ``GOOGLE_SERVICE_ACCOUNT_EMAIL``/``GOOGLE_PRIVATE_KEY`` pair.
    """

    json_blob = _clean(os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON"))
    if json_blob:
        json_blob = json_blob.strip("'\"")
        try:
            return json.loads(json_blob)
        except json.JSONDecodeError as exc:
            raise RuntimeError("GOOGLE_SERVICE_ACCOUNT_JSON does not contain valid JSON") from exc

    credentials_path = _clean(os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE"))
    if credentials_path:
        try:
            return json.loads(Path(credentials_path).expanduser().read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise RuntimeError(
                f"Unable to read service account file {credentials_path}: {exc}"
            ) from exc

    client_email = _clean(os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL"))
    private_key = os.getenv("GOOGLE_PRIVATE_KEY")
    if client_email and private_key:
        return {
            "type": "service_account",
            "client_email": client_email,
            "private_key": private_key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    return None


def _number_env(key: str, parse: Callable[[str], N], default: N) -> N:
    raw = _clean(os.getenv(key))
    if raw is None:
        return default
    try:
        return parse(raw)
    except ValueError:
        raise RuntimeError(f"{key} must be a number, got {raw!r}") from None


def _first_env(keys: tuple[str, ...]) -> Optional[str]:
    for key in keys:
        value = _clean(os.getenv(key))
        if value:
            return value
    return None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


__all__ = ["AppConfig", "load_service_account_info", "TOKEN_ENVIRONMENT_KEYS"]
