from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from telegram import Update
from telegram.ext import Application, ApplicationBuilder, CommandHandler, ContextTypes

from registration_miniapp import messages
from registration_miniapp.keyboards.user import registration_keyboard

LOGGER = logging.getLogger(__name__)


@dataclass
class LauncherBot:
    """Answers ``/start`` with a button that opens the registration Mini App."""

    token: str
    webapp_url: Optional[str] = None

    def build_application(self) -> Application:
        application = ApplicationBuilder().token(self.token).build()
        application.add_handler(CommandHandler("start", self._start))
        return application

    def start_reply(self) -> dict:
        if not self.webapp_url:
            return {"text": messages.WEBAPP_UNAVAILABLE}
        return {
            "text": messages.WELCOME_MESSAGE,
            "reply_markup": registration_keyboard(self.webapp_url),
        }

    async def _start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        if update.effective_message is None:
            return
        if not self.webapp_url:
            LOGGER.warning("WEBAPP_URL is not configured; cannot offer the registration form")
        await update.effective_message.reply_text(**self.start_reply())


__all__ = ["LauncherBot"]
