"""
estate_identity/api/auth.py — Эндпоинты идентификации (/api/auth/*).

Все эндпоинты — POST с JSON-телом. Доменные ошибки (IdentityError)
пробрасываются в глобальный обработчик; любое другое исключение
коллаборатора (хранилище, bcrypt, OTP-провайдер) превращается
в InternalError (500, "Internal server error").
"""

import logging

from fastapi import APIRouter, status

from estate_identity.config import get_settings
from estate_identity.exceptions import IdentityError, InternalError
from estate_identity.models.auth import (
    AuthResponse,
    ChannelLookupRequest,
    CheckUserResponse,
    CheckVerificationResponse,
    LoginRequest,
    SignupRequest,
    UniqueCheckRequest,
    UniqueCheckResponse,
)
from estate_identity.services import (
    account_service,
    login_service,
    uniqueness,
    verification_gate,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _internal(operation: str, exc: Exception, echo_error: bool = False) -> InternalError:
    logger.exception("%s failed: %s", operation, exc)
    details = {"error": str(exc)} if echo_error else None
    return InternalError(details=details)


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Регистрация покупателя или агента",
)
async def signup(body: SignupRequest):
    """Создаёт учётную запись с неподтверждёнными email и телефоном."""
    try:
        user = await account_service.register_user(body)
    except IdentityError:
        raise
    except Exception as exc:
        raise _internal("Signup", exc) from exc
    return AuthResponse(message="User created successfully", user=user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Вход: username-password | email-otp | mobile-otp",
)
async def login(body: LoginRequest):
    """Возвращает учётную запись; сессию выпускает вызывающий слой."""
    try:
        user = await login_service.authenticate(body)
    except IdentityError:
        raise
    except Exception as exc:
        raise _internal("Login", exc) from exc
    return AuthResponse(message="Login successful", user=user)


@router.post(
    "/check-user",
    response_model=CheckUserResponse,
    summary="Существует ли email / телефон и подтверждён ли он",
)
async def check_user(body: ChannelLookupRequest):
    try:
        return await uniqueness.check_user(body)
    except IdentityError:
        raise
    except Exception as exc:
        raise _internal("User check", exc) from exc


@router.post(
    "/check-verification",
    response_model=CheckVerificationResponse,
    summary="Можно ли отправить OTP на канал",
)
async def check_verification(body: ChannelLookupRequest):
    try:
        return await verification_gate.check_verification(body)
    except IdentityError:
        raise
    except Exception as exc:
        raise _internal("Verification check", exc) from exc


@router.post(
    "/check-unique",
    response_model=UniqueCheckResponse,
    summary="Свободны ли username / email / mobile",
)
async def check_unique(body: UniqueCheckRequest):
    """
    ``isUnique`` — можно ли занять значение. Неподтверждённые
    email / телефоны значение не блокируют.
    """
    try:
        is_unique = await uniqueness.check_unique(body)
    except IdentityError:
        raise
    except Exception as exc:
        # текст ошибки отдаётся только вне production
        raise _internal("Uniqueness check", exc, echo_error=not get_settings().is_production) from exc
    return UniqueCheckResponse(is_unique=is_unique)
