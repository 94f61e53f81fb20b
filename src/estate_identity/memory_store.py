"""
═══════════════════════════════════════════════════════════════════════════════
Estate Identity — In-Memory хранилище (замена PostgreSQL для разработки и тестов)
═══════════════════════════════════════════════════════════════════════════════

In-memory реализация ``user_repo`` + функция
``activate_identity_memory_store()`` для monkey-patching.

Ограничения PostgreSQL-схемы воспроизводятся под ``asyncio.Lock``:
    • username уникален безусловно;
    • email / phone уникальны только среди подтверждённых строк.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from estate_identity.exceptions import ConflictError
from estate_identity.models.enums import ChannelType

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Хранилище данных
# ═══════════════════════════════════════════════════════════════════════════════
_users: dict[UUID, dict] = {}
_lock = asyncio.Lock()

_now = lambda: datetime.now(timezone.utc)  # noqa: E731

_LOOKUP: dict[str, tuple[str, str | None]] = {
    "username": ("username", None),
    "email": ("email", "email_verified_at"),
    "phone": ("phone", "mobile_verified_at"),
}

_CHANNEL_COLUMNS: dict[ChannelType, tuple[str, str]] = {
    ChannelType.EMAIL: ("email", "email_verified_at"),
    ChannelType.MOBILE: ("phone", "mobile_verified_at"),
}


def _preferred(rows: list[dict], verified_column: str | None) -> dict | None:
    """Подтверждённая строка важнее, затем самая новая."""
    if not rows:
        return None
    # reversed: при равных created_at побеждает вставленная позже
    if verified_column is None:
        return max(reversed(rows), key=lambda u: u["created_at"])
    return max(
        reversed(rows),
        key=lambda u: (u[verified_column] is not None, u["created_at"]),
    )


# ═══════════════════════════════════════════════════════════════════════════════
# user_repo in-memory
# ═══════════════════════════════════════════════════════════════════════════════

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
    """Создаёт учётную запись в памяти."""
    async with _lock:
        if any(u["username"] == username for u in _users.values()):
            raise ConflictError(
                "Username already exists", details={"constraint": "uq_users_username"}
            )
        uid = uuid4()
        now = _now()
        user = {
            "id": uid, "name": name, "username": username,
            "email": email, "phone": phone, "password_hash": password_hash,
            "role": role, "company_name": company_name, "image": image,
            "email_verified_at": None, "mobile_verified_at": None,
            "created_at": now, "updated_at": now,
        }
        _users[uid] = user
    logger.info("Identity memory store: created user %s", uid)
    return dict(user)


async def find_user(field: str, value: str, verified_only: bool = False) -> dict | None:
    column, verified_column = _LOOKUP[field]
    rows = [u for u in _users.values() if u[column] == value]
    if verified_only and verified_column is not None:
        rows = [u for u in rows if u[verified_column] is not None]
    found = _preferred(rows, verified_column)
    return dict(found) if found else None


async def mark_channel_verified(user_id: UUID, channel: ChannelType) -> dict | None:
    column, verified_column = _CHANNEL_COLUMNS[channel]
    async with _lock:
        user = _users.get(user_id)
        if user is None:
            return None
        clash = any(
            other["id"] != user_id
            and other[column] == user[column]
            and other[verified_column] is not None
            for other in _users.values()
        )
        if clash:
            label = "Email" if channel is ChannelType.EMAIL else "Mobile number"
            raise ConflictError(f"{label} is already verified on another account")
        now = _now()
        user[verified_column] = now
        user["updated_at"] = now
        return dict(user)


def reset() -> None:
    """Очищает хранилище (используется тестами)."""
    global _lock
    _users.clear()
    # Lock привязывается к event loop при первом ожидании
    _lock = asyncio.Lock()


# ═══════════════════════════════════════════════════════════════════════════════
# Активация in-memory хранилища (monkey-patching)
# ═══════════════════════════════════════════════════════════════════════════════

def activate_identity_memory_store() -> None:
    """
    Подменяет функции в estate_identity.db.repositories.user_repo
    на in-memory реализации.

    Вызывается из estate_identity.main → lifespan() при недоступности
    PostgreSQL или при IDENTITY_STORE=memory.
    """
    from estate_identity.db.repositories import user_repo

    user_repo.create_user = create_user
    user_repo.find_user = find_user
    user_repo.mark_channel_verified = mark_channel_verified

    logger.warning(
        "🧠 Identity memory store ACTIVATED — all data is in-memory (lost on restart)."
    )
