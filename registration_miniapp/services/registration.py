from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from functools import partial
from typing import Any, Callable, TypeVar

from registration_miniapp import messages
from registration_miniapp.config import DEFAULT_REQUEST_TIMEOUT, DEFAULT_SHEET_NAME
from registration_miniapp.errors import ConflictError, InternalError
from registration_miniapp.models import RegistrationPayload, RegistrationRecord
from registration_miniapp.sheets import RowStore
from registration_miniapp.utils.formatting import utc_now

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class RegistrationService:
    """Duplicate check and append against the registrations sheet.

    The check and the append are two independent store calls with no lock
    or transaction between them: two concurrent first submissions for the
    same Telegram user can both pass :meth:`is_registered` and both append.
    """

    def __init__(
        self,
        store: RowStore,
        *,
        sheet_name: str = DEFAULT_SHEET_NAME,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.sheet_name = sheet_name
        self.timeout = timeout
        self._clock = clock

    @property
    def identity_range(self) -> str:
        return f"{self.sheet_name}!A:A"

    async def is_registered(self, telegram_user_id: int) -> bool:
        existing = await self._call_store(self.store.read_column, self.identity_range)
        return str(telegram_user_id) in existing

    async def append_record(
        self, payload: RegistrationPayload, telegram_user_id: int
    ) -> RegistrationRecord:
        record = RegistrationRecord.from_payload(payload, telegram_user_id, now=self._clock())
        await self._call_store(
            self.store.append_row, self.sheet_name, record.to_row(), abandon=False
        )
        return record

    async def register(
        self, payload: RegistrationPayload, telegram_user_id: int
    ) -> RegistrationRecord:
        if await self.is_registered(telegram_user_id):
            LOGGER.info("Rejected duplicate registration for user %s", telegram_user_id)
            raise ConflictError()
        record = await self.append_record(payload, telegram_user_id)
        LOGGER.info(
            "Registered user %s (%s)", telegram_user_id, record.experience_level.value
        )
        return record

    async def _call_store(self, func: Callable[..., T], *args: Any, abandon: bool = True) -> T:
        """Run a blocking store call in the default executor.

        With ``abandon`` the call is bounded here by :attr:`timeout`; that is
        only safe for reads, since the thread keeps running.  Writes are
        awaited to completion and rely on the store's own transport timeout,
        so a reported failure never leaves a row behind.
        """

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, partial(func, *args))
        try:
            if abandon:
                return await asyncio.wait_for(future, timeout=self.timeout)
            return await future
        except (asyncio.TimeoutError, TimeoutError):
            LOGGER.error("Registration store call %s timed out", getattr(func, "__name__", func))
            raise InternalError(messages.STORE_TIMEOUT) from None
        except Exception as exc:
            LOGGER.exception("Registration store call failed")
            raise InternalError(str(exc)) from exc


__all__ = ["RegistrationService"]
