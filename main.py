"""Entrypoint for the registration Mini App backend.

``python main.py`` serves the HTTP API (``POST /registration``) with uvicorn.
``python main.py bot`` runs the Telegram bot whose ``/start`` command opens
the registration form as a Mini App.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI
from telegram.error import InvalidToken as TelegramInvalidToken
from telegram.error import NetworkError as TelegramNetworkError

from registration_miniapp.api import create_app
from registration_miniapp.bot import LauncherBot
from registration_miniapp.config import TOKEN_ENVIRONMENT_KEYS, AppConfig

LOGGER = logging.getLogger(__name__)


def _configure_logging() -> None:
    logging.basicConfig(level=logging.INFO)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("telegram.ext").setLevel(logging.WARNING)
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)


def _load_config() -> AppConfig:
    try:
        return AppConfig.load()
    except RuntimeError as exc:
        LOGGER.error("%s (checked: %s)", exc, ", ".join(TOKEN_ENVIRONMENT_KEYS))
        raise SystemExit(1) from exc


def build_app(config: AppConfig) -> FastAPI:
    try:
        return create_app(config)
    except RuntimeError as exc:
        LOGGER.error("%s", exc)
        raise SystemExit(1) from exc


def serve(config: AppConfig) -> None:
    app = build_app(config)
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)


def run_bot(config: AppConfig) -> None:
    if sys.platform.startswith("win"):
        # run_polling hangs on shutdown with the proactor loop
        try:  # pragma: no cover - specific to Windows runtime
            asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
        except AttributeError:
            pass

    application = LauncherBot(token=config.bot_token, webapp_url=config.webapp_url).build_application()
    try:
        application.run_polling()
    except TelegramInvalidToken as exc:  # pragma: no cover - network dependent
        LOGGER.error("Telegram rejected the bot token. Check %s.", ", ".join(TOKEN_ENVIRONMENT_KEYS))
        raise SystemExit(1) from exc
    except TelegramNetworkError as exc:  # pragma: no cover - network dependent
        LOGGER.error("Network failure while talking to Telegram: %s", exc)
        raise SystemExit(1) from exc


def main(argv: Optional[Sequence[str]] = None) -> None:  # pragma: no cover - thin wrapper
    args = list(sys.argv[1:] if argv is None else argv)
    _configure_logging()
    config = _load_config()

    command = args[0] if args else "serve"
    if command == "serve":
        serve(config)
    elif command == "bot":
        run_bot(config)
    else:
        LOGGER.error("Unknown command %r; expected 'serve' or 'bot'", command)
        raise SystemExit(2)


if __name__ == "__main__":  # pragma: no cover - module executable guard
    main()
