import json
import time
from typing import Any, Optional, Sequence
from urllib.parse import urlencode

import pytest

from registration_miniapp.config import AppConfig
from registration_miniapp.services.init_data import sign_init_data
from registration_miniapp.sheets import InMemoryRowStore

BOT_TOKEN = "123456:TEST-TOKEN"


def make_init_data(
    user: Optional[dict[str, Any]] = None,
    *,
    bot_token: str = BOT_TOKEN,
    auth_date: Optional[int] = None,
    extra: Optional[dict[str, str]] = None,
) -> str:
    fields = {
        "auth_date": str(int(time.time()) if auth_date is None else auth_date),
        "query_id": "AAHdF6IQAAAAAN0XohDhrOrc",
    }
    if user is not None:
        fields["user"] = json.dumps(user, separators=(",", ":"))
    fields.update(extra or {})
    fields["hash"] = sign_init_data(fields, bot_token)
    return urlencode(fields)


def valid_body(**overrides: Any) -> dict[str, Any]:
    body = {
        "fullName": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "+44 20 7946 0000",
        "experienceLevel": "expert",
        "consentPd": True,
        "consentMarketing": False,
    }
    body.update(overrides)
    return body


class RecordingStore(InMemoryRowStore):
    def __init__(self) -> None:
        super().__init__()
        self.calls: list[tuple[str, str]] = []

    def read_column(self, range_name: str) -> list[str]:
        self.calls.append(("read", range_name))
        return super().read_column(range_name)

    def append_row(self, range_name: str, values: Sequence[Any]) -> None:
        self.calls.append(("append", range_name))
        super().append_row(range_name, values)


class FailingStore(InMemoryRowStore):
    def __init__(self, *, fail_on: str = "read", error: Optional[Exception] = None) -> None:
        super().__init__()
        self.fail_on = fail_on
        self.error = error or ConnectionError("sheets unavailable")

    def read_column(self, range_name: str) -> list[str]:
        if self.fail_on == "read":
            raise self.error
        return super().read_column(range_name)

    def append_row(self, range_name: str, values: Sequence[Any]) -> None:
        if self.fail_on == "append":
            raise self.error
        super().append_row(range_name, values)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(bot_token=BOT_TOKEN, request_timeout=5)


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()
