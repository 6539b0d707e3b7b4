from __future__ import annotations

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo

from registration_miniapp import messages


def registration_keyboard(webapp_url: str) -> InlineKeyboardMarkup:
    # inline buttons launch the Mini App with signed initData
    buttons = [
        [InlineKeyboardButton(messages.OPEN_FORM_BUTTON, web_app=WebAppInfo(url=webapp_url))],
    ]
    return InlineKeyboardMarkup(buttons)
