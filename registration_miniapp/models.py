from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

import pydantic
from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr

from registration_miniapp import messages
from registration_miniapp.errors import ValidationError
from registration_miniapp.utils.formatting import format_timestamp


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class RegistrationPayload(BaseModel):
    """Form fields submitted by the Mini App."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    full_name: StrictStr = Field(alias="fullName", min_length=1)
    email: StrictStr
    phone: StrictStr = Field(min_length=1)
    experience_level: ExperienceLevel = Field(alias="experienceLevel")
    consent_pd: StrictBool = Field(alias="consentPd")
    consent_marketing: StrictBool = Field(alias="consentMarketing")

    @pydantic.field_validator("email")
    @classmethod
    def _email_syntax(cls, value: str) -> str:
        # stored as submitted; display-name forms are not addresses
        if "<" in value or ">" in value:
            raise ValueError(messages.FIELD_MESSAGES["email"]["invalid"])
        try:
            validate_email(value, check_deliverability=False)
        except EmailNotValidError as exc:
            raise ValueError(messages.FIELD_MESSAGES["email"]["invalid"]) from exc
        return value

    @pydantic.field_validator("consent_pd")
    @classmethod
    def _consent_given(cls, value: bool) -> bool:
        if value is not True:
            raise ValueError(messages.FIELD_MESSAGES["consentPd"]["invalid"])
        return value


def validate_payload(body: Any) -> RegistrationPayload:
    """Validate a decoded request body.

    Every violated constraint contributes one message; the messages are
    joined with ``", "`` into :class:`ValidationError.details`.
    """

    if not isinstance(body, dict):
        raise ValidationError(messages.BODY_NOT_OBJECT)
    try:
        return RegistrationPayload.model_validate(body)
    except pydantic.ValidationError as exc:
        raise ValidationError(", ".join(_describe_errors(exc))) from exc


def _describe_errors(exc: pydantic.ValidationError) -> list[str]:
    details: list[str] = []
    for error in exc.errors():
        location = error.get("loc") or ("",)
        field_name = str(location[0])
        field_messages = messages.FIELD_MESSAGES.get(field_name)
        if field_messages is None:
            message = error.get("msg", "")
        elif error.get("type") == "missing":
            message = field_messages["missing"]
        else:
            message = field_messages["invalid"]
        # one message per field even when pydantic reports several
        if message not in details:
            details.append(message)
    return details


@dataclass(slots=True)
class RegistrationRecord:
    """A row of the registrations sheet."""

    telegram_user_id: int
    registered_at: datetime
    full_name: str
    email: str
    phone: str
    experience_level: ExperienceLevel
    consent_pd_at: Optional[datetime]
    consent_marketing: bool

    @classmethod
    def from_payload(
        cls, payload: RegistrationPayload, telegram_user_id: int, *, now: datetime
    ) -> "RegistrationRecord":
        return cls(
            telegram_user_id=telegram_user_id,
            registered_at=now,
            full_name=payload.full_name,
            email=payload.email,
            phone=payload.phone,
            experience_level=payload.experience_level,
            consent_pd_at=now if payload.consent_pd else None,
            consent_marketing=payload.consent_marketing,
        )

    def to_row(self) -> list[Any]:
        return [
            str(self.telegram_user_id),
            format_timestamp(self.registered_at),
            self.full_name,
            self.email,
            self.phone,
            self.experience_level.value,
            format_timestamp(self.consent_pd_at) if self.consent_pd_at else "",
            self.consent_marketing,
        ]


__all__ = [
    "ExperienceLevel",
    "RegistrationPayload",
    "RegistrationRecord",
    "validate_payload",
]
