"""
estate_identity/services/account_service.py — Account Creator (регистрация).

Последовательность (каждый шаг может завершить запрос ошибкой):
    1. username занят любой строкой → 409
    2. email занят подтверждённой строкой → 409
    3. телефон занят подтверждённой строкой → 409
    4. bcrypt-хеш пароля (cost BCRYPT_ROUNDS)
    5. одна вставка в хранилище, обе отметки верификации — NULL
    6. ответ без password_hash

Гонка между проверками 1–3 и вставкой закрыта ограничениями хранилища
(UNIQUE username, частичные уникальные индексы email / phone).
"""

from __future__ import annotations

import logging

from estate_identity.db.repositories import user_repo
from estate_identity.exceptions import ConflictError
from estate_identity.models.auth import SignupRequest
from estate_identity.models.enums import UniqueField
from estate_identity.models.user import UserRead
from estate_identity.services import uniqueness
from estate_identity.services.credentials import hash_password_async
from estate_identity.services.validators import validate_signup

logger = logging.getLogger(__name__)


async def register_user(payload: SignupRequest) -> UserRead:
    """Регистрирует покупателя или агента."""
    data = validate_signup(payload)

    if not await uniqueness.is_claimable(UniqueField.USERNAME, data.username):
        raise ConflictError("Username already exists", details={"field": "username"})

    if not await uniqueness.is_claimable(UniqueField.EMAIL, data.email):
        raise ConflictError("Email already exists", details={"field": "email"})

    if not await uniqueness.is_claimable(UniqueField.MOBILE, data.phone):
        raise ConflictError("Mobile number already exists", details={"field": "mobile"})

    hashed = await hash_password_async(data.password)
    row = await user_repo.create_user(
        name=data.full_name,
        username=data.username,
        email=data.email,
        phone=data.phone,
        password_hash=hashed,
        role=data.role.value,
        company_name=data.company_name,
        image=data.image,
    )
    logger.info("User %s registered (role=%s)", row["id"], row["role"])

    # NATS-публикация (graceful degradation)
    try:
        from estate_identity.events import emit_user_registered
        await emit_user_registered(
            user_id=str(row["id"]),
            username=row["username"],
            role=row["role"],
        )
    except Exception as exc:
        logger.warning("Failed to emit user.registered event: %s", exc)

    return UserRead.model_validate(row)
