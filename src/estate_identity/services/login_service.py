"""
estate_identity/services/login_service.py — Login Resolver.

Одна попытка входа: выбор стратегии → поиск учётной записи → проверка
учётных данных → ``authenticated`` | ``rejected``. Повторов внутри нет.

Стратегии (LoginType):
    • username-password — идентификатор с ``@`` ищется как email, иначе как
      username; промах и неверный пароль дают одинаковый ответ 401;
      состояние не меняется.
    • email-otp — поиск по email без фильтра верификации (единственный путь
      к первой верификации); успех ставит email_verified_at.
    • mobile-otp — поиск по телефону; успех ставит mobile_verified_at.
    OTP-стратегии принимают вместо кода ``token`` — access token виджета
    провайдера, выданный для того же email / номера.

Выпуск сессии — забота вызывающего слоя: ядро возвращает только запись.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from estate_identity.db.repositories import user_repo
from estate_identity.exceptions import AuthenticationError, ValidationError
from estate_identity.models.auth import LoginRequest
from estate_identity.models.enums import ChannelType, LoginType
from estate_identity.models.user import UserRead
from estate_identity.services.credentials import (
    verify_otp,
    verify_otp_token,
    verify_password_async,
)
from estate_identity.services.validators import is_blank, require_present

logger = logging.getLogger(__name__)

MSG_INVALID_CREDENTIALS = "Invalid username/email or password"
MSG_INVALID_OTP = "Invalid OTP"


def parse_login_type(raw: object) -> LoginType:
    if raw is None or raw == "":
        raise ValidationError("Login type is required")
    if not isinstance(raw, str):
        raise ValidationError("Invalid login type")
    try:
        return LoginType(raw)
    except ValueError:
        raise ValidationError("Invalid login type") from None


# ═══════════════════════════════════════════════════════════════════════════
# Стратегии
# ═══════════════════════════════════════════════════════════════════════════


async def _login_with_password(request: LoginRequest) -> dict:
    require_present("Username and password are required", request.username, request.password)

    identifier = request.username.strip()
    field = "email" if "@" in identifier else "username"
    user = await user_repo.find_user(field, identifier)

    # промах и неверный пароль неразличимы для клиента
    if user is None or not await verify_password_async(request.password, user.get("password_hash")):
        raise AuthenticationError(MSG_INVALID_CREDENTIALS)
    return user


def _otp_or_token(request: LoginRequest) -> str | None:
    """Код или access token виджета: достаточно одного из них."""
    return request.token if not is_blank(request.token) else request.otp


async def _verify_channel(
    channel: ChannelType,
    identifier: str,
    request: LoginRequest,
    not_found_message: str,
) -> dict:
    field = "email" if channel is ChannelType.EMAIL else "phone"
    user = await user_repo.find_user(field, identifier)
    if user is None:
        raise AuthenticationError(not_found_message)

    # токен виджета имеет приоритет над кодом, если передано и то и другое
    if not is_blank(request.token):
        accepted = await verify_otp_token(channel, identifier, request.token.strip())
    else:
        accepted = await verify_otp(channel, identifier, request.otp)
    if not accepted:
        raise AuthenticationError(MSG_INVALID_OTP)

    updated = await user_repo.mark_channel_verified(user["id"], channel)
    if updated is None:
        # строка исчезла между поиском и обновлением
        raise AuthenticationError(not_found_message)
    logger.info("User %s verified %s via OTP login", updated["id"], channel.value)

    try:
        from estate_identity.events import emit_channel_verified
        await emit_channel_verified(user_id=str(updated["id"]), channel=channel.value)
    except Exception as exc:
        logger.warning("Failed to emit channel.verified event: %s", exc)
    return updated


async def _login_with_email_otp(request: LoginRequest) -> dict:
    require_present("Email and OTP are required", request.email, _otp_or_token(request))
    return await _verify_channel(
        ChannelType.EMAIL,
        request.email.strip(),
        request,
        "Email not found",
    )


async def _login_with_mobile_otp(request: LoginRequest) -> dict:
    require_present("Mobile number and OTP are required", request.mobile, _otp_or_token(request))
    return await _verify_channel(
        ChannelType.MOBILE,
        request.mobile.strip(),
        request,
        "Mobile number not registered. Please sign up first.",
    )


STRATEGIES: dict[LoginType, Callable[[LoginRequest], Awaitable[dict]]] = {
    LoginType.USERNAME_PASSWORD: _login_with_password,
    LoginType.EMAIL_OTP: _login_with_email_otp,
    LoginType.MOBILE_OTP: _login_with_mobile_otp,
}


async def authenticate(request: LoginRequest) -> UserRead:
    """
    Выполняет вход по выбранной стратегии.

    Raises:
        ValidationError: тип не задан / неизвестен, не хватает полей стратегии.
        AuthenticationError: учётная запись не найдена или данные неверны.
    """
    login_type = parse_login_type(request.type)
    user = await STRATEGIES[login_type](request)
    logger.info("User %s logged in (%s)", user["id"], login_type.value)
    return UserRead.model_validate(user)
