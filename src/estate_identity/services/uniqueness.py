"""
estate_identity/services/uniqueness.py — Uniqueness Resolver.

Два вида чтения (оба без побочных эффектов, без кеша):
    • безусловное существование — ``lookup()``: найдена ли строка и каковы
      её отметки верификации;
    • доступность значения — ``is_claimable()``: username занят самим
      фактом существования, email / телефон — только подтверждённой строкой.

Здесь же запрос check-user: существует ли идентификатор и подтверждён ли
его канал (с перебором альтернативных записей телефона).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from estate_identity.db.repositories import user_repo
from estate_identity.exceptions import NotFoundError, ValidationError
from estate_identity.models.auth import (
    ChannelLookupRequest,
    CheckUserResponse,
    UniqueCheckRequest,
)
from estate_identity.models.enums import ChannelType, UniqueField
from estate_identity.models.user import UserVerificationState
from estate_identity.services.validators import (
    is_blank,
    is_valid_email,
    is_valid_mobile,
    mobile_digits,
)

logger = logging.getLogger(__name__)

FIELD_COLUMNS: dict[UniqueField, str] = {
    UniqueField.USERNAME: "username",
    UniqueField.EMAIL: "email",
    UniqueField.MOBILE: "phone",
}

CHANNEL_FIELDS: dict[ChannelType, UniqueField] = {
    ChannelType.EMAIL: UniqueField.EMAIL,
    ChannelType.MOBILE: UniqueField.MOBILE,
}

# Префиксы кодов страны, которые пробуются при поиске телефона в check-user
PHONE_COUNTRY_PREFIXES = ("+91", "+1", "91")


@dataclass(frozen=True)
class LookupResult:
    """Результат безусловного поиска по полю."""
    found: bool
    user_id: UUID | None = None
    email_verified_at: datetime | None = None
    mobile_verified_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict | None) -> "LookupResult":
        if row is None:
            return cls(found=False)
        return cls(
            found=True,
            user_id=row["id"],
            email_verified_at=row.get("email_verified_at"),
            mobile_verified_at=row.get("mobile_verified_at"),
        )

    def is_verified(self, channel: ChannelType) -> bool:
        if channel is ChannelType.EMAIL:
            return self.email_verified_at is not None
        return self.mobile_verified_at is not None


# ═══════════════════════════════════════════════════════════════════════════
# Базовые запросы
# ═══════════════════════════════════════════════════════════════════════════


async def lookup(field: UniqueField, value: str) -> LookupResult:
    """Безусловное существование: любая строка с точным совпадением поля."""
    row = await user_repo.find_user(FIELD_COLUMNS[field], value)
    return LookupResult.from_row(row)


async def is_claimable(field: UniqueField, value: str) -> bool:
    """
    Можно ли занять значение.

    username — нельзя, если существует любая строка. email / mobile — нельзя
    только при наличии подтверждённой строки; неподтверждённые регистрации
    значение не блокируют.
    """
    verified_only = field is not UniqueField.USERNAME
    row = await user_repo.find_user(FIELD_COLUMNS[field], value, verified_only=verified_only)
    return row is None


def phone_variants(value: str) -> list[str]:
    """
    Альтернативные записи того же номера для повторного поиска.

    Порядок: только цифры, ``+цифры``, затем ``+91`` / ``+1`` / ``91`` перед
    цифрами. Значение, совпадающее с исходным, пропускается.
    """
    digits = mobile_digits(value)
    if not digits:
        return []
    candidates = [digits, f"+{digits}"] + [f"{p}{digits}" for p in PHONE_COUNTRY_PREFIXES]
    variants: list[str] = []
    for candidate in candidates:
        if candidate != value and candidate not in variants:
            variants.append(candidate)
    return variants


async def find_by_channel(
    channel: ChannelType, value: str, try_phone_variants: bool = False,
) -> dict | None:
    """Найти строку по email или телефону (точное совпадение, без фильтра верификации)."""
    row = await user_repo.find_user(FIELD_COLUMNS[CHANNEL_FIELDS[channel]], value)
    if row is not None or channel is not ChannelType.MOBILE or not try_phone_variants:
        return row

    for variant in phone_variants(value):
        row = await user_repo.find_user("phone", variant)
        if row is not None:
            logger.debug("Phone matched alternative format")
            return row
    return None


# ═══════════════════════════════════════════════════════════════════════════
# Разбор дискриминаторов
# ═══════════════════════════════════════════════════════════════════════════


def parse_channel(raw: object, value: str | None) -> tuple[ChannelType, str]:
    """Общий разбор ``{type, value}`` для check-user / check-verification."""
    if is_blank(raw) or is_blank(value):
        raise ValidationError("Type and value are required")
    if not isinstance(raw, str):
        raise ValidationError("Invalid type")
    try:
        channel = ChannelType(raw)
    except ValueError:
        raise ValidationError("Invalid type") from None
    return channel, value.strip()


# ═══════════════════════════════════════════════════════════════════════════
# check-unique
# ═══════════════════════════════════════════════════════════════════════════


async def check_unique(request: UniqueCheckRequest) -> bool:
    """
    Проверка доступности username / email / mobile.

    Формат email и телефона проверяется до обращения к хранилищу.
    """
    if is_blank(request.field) or is_blank(request.value):
        raise ValidationError("Field and value are required")
    if not isinstance(request.field, str):
        raise ValidationError("Invalid field")
    try:
        field = UniqueField(request.field)
    except ValueError:
        raise ValidationError("Invalid field") from None

    value = request.value.strip()
    if field is UniqueField.EMAIL and not is_valid_email(value):
        raise ValidationError("Invalid email format", details={"isUnique": False})
    if field is UniqueField.MOBILE and not is_valid_mobile(value):
        raise ValidationError("Invalid mobile number format", details={"isUnique": False})

    return await is_claimable(field, value)


# ═══════════════════════════════════════════════════════════════════════════
# check-user
# ═══════════════════════════════════════════════════════════════════════════


async def check_user(request: ChannelLookupRequest) -> CheckUserResponse:
    """
    Существует ли учётная запись с данным email / телефоном.

    Не найдено → 404 (клиенту предлагается регистрация). Найдено —
    ``verified`` показывает, подтверждён ли канал (OTP-вход доступен
    в обоих случаях).
    """
    channel, value = parse_channel(request.type, request.value)

    row = await find_by_channel(channel, value, try_phone_variants=True)
    if row is None:
        raise NotFoundError(
            f"{channel.label} not registered. Please sign up first",
            details={"exists": False},
        )

    result = LookupResult.from_row(row)
    return CheckUserResponse(
        exists=True,
        verified=result.is_verified(channel),
        user=UserVerificationState(
            id=result.user_id,
            email_verified=result.email_verified_at,
            mobile_verified=result.mobile_verified_at,
        ),
    )
