"""
estate_identity/db/repositories/user_repo.py — Репозиторий учётных записей.

Единственная точка доступа к таблице ``users``. Функции модульного уровня:
при недоступности PostgreSQL ``memory_store.activate_identity_memory_store()``
подменяет их in-memory реализациями с тем же контрактом.

Поиск по email/phone может вернуть несколько строк (неподтверждённые
регистрации разделяют значение) — выбирается подтверждённая строка,
затем самая новая.
"""

from __future__ import annotations

from uuid import UUID

import asyncpg

from estate_identity.database import get_connection
from estate_identity.exceptions import ConflictError
from estate_identity.models.enums import ChannelType

_USER_COLUMNS = """
    id, name, username, email, phone, password_hash, role, company_name, image,
    email_verified_at, mobile_verified_at, created_at, updated_at
"""

# поле поиска → (колонка, колонка отметки верификации)
LOOKUP_COLUMNS: dict[str, tuple[str, str | None]] = {
    "username": ("username", None),
    "email": ("email", "email_verified_at"),
    "phone": ("phone", "mobile_verified_at"),
}

_VERIFIED_COLUMNS: dict[ChannelType, str] = {
    ChannelType.EMAIL: "email_verified_at",
    ChannelType.MOBILE: "mobile_verified_at",
}

_CONSTRAINT_MESSAGES: dict[str, str] = {
    "uq_users_username": "Username already exists",
    "uq_users_email_verified": "Email is already verified on another account",
    "uq_users_phone_verified": "Mobile number is already verified on another account",
}


def _conflict_from(exc: asyncpg.UniqueViolationError) -> ConflictError:
    constraint = getattr(exc, "constraint_name", None) or ""
    message = _CONSTRAINT_MESSAGES.get(constraint, "Account already exists")
    return ConflictError(message, details={"constraint": constraint} if constraint else None)


async def create_user(
    *,
    name: str,
    username: str,
    email: str,
    phone: str,
    password_hash: str,
    role: str,
    company_name: str | None,
    image: str | None,
) -> dict:
    """Создать учётную запись (обе отметки верификации — NULL)."""
    async with get_connection() as conn:
        try:
            row = await conn.fetchrow(
                f"""
                INSERT INTO users (name, username, email, phone, password_hash,
                                   role, company_name, image)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
                RETURNING {_USER_COLUMNS}
                """,
                name, username, email, phone, password_hash,
                role, company_name, image,
            )
        except asyncpg.UniqueViolationError as exc:
            raise _conflict_from(exc) from exc
        return dict(row) if row else {}


async def find_user(field: str, value: str, verified_only: bool = False) -> dict | None:
    """
    Найти учётную запись по точному совпадению поля.

    Args:
        field: ``username`` | ``email`` | ``phone``.
        value: Искомое значение (сравнение точное, с учётом регистра).
        verified_only: Только строки с непустой отметкой верификации поля.
            Для ``username`` фильтр не применяется.
    """
    column, verified_column = LOOKUP_COLUMNS[field]
    where = f"{column} = $1"
    order = "created_at DESC"
    if verified_column is not None:
        if verified_only:
            where += f" AND {verified_column} IS NOT NULL"
        order = f"({verified_column} IS NOT NULL) DESC, created_at DESC"

    async with get_connection() as conn:
        row = await conn.fetchrow(
            f"SELECT {_USER_COLUMNS} FROM users WHERE {where} ORDER BY {order} LIMIT 1",
            value,
        )
        return dict(row) if row else None


async def mark_channel_verified(user_id: UUID, channel: ChannelType) -> dict | None:
    """
    Проставить отметку верификации канала текущим временем.

    Повторный вызов перезаписывает отметку (идемпотентно). Частичный
    уникальный индекс не даёт подтвердить значение, уже подтверждённое
    другой учётной записью.
    """
    column = _VERIFIED_COLUMNS[channel]
    async with get_connection() as conn:
        try:
            row = await conn.fetchrow(
                f"""
                UPDATE users SET {column} = NOW(), updated_at = NOW()
                WHERE id = $1
                RETURNING {_USER_COLUMNS}
                """,
                user_id,
            )
        except asyncpg.UniqueViolationError as exc:
            raise _conflict_from(exc) from exc
        return dict(row) if row else None
