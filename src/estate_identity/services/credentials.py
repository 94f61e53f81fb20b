"""
estate_identity/services/credentials.py — Проверка учётных данных.

Пароли — bcrypt (сравнение внутри ``bcrypt.checkpw`` выполняется за
постоянное время). Одноразовые коды — через ``OtpVerifier``.
Ни одна из проверок не сообщает, какая часть данных неверна.
"""

from __future__ import annotations

import asyncio
import logging

import bcrypt

from estate_identity.config import get_settings
from estate_identity.models.enums import ChannelType
from estate_identity.services.otp_provider import get_otp_verifier

logger = logging.getLogger(__name__)

# bcrypt учитывает только первые 72 байта пароля
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int | None = None) -> str:
    """Хеширует пароль с помощью bcrypt (cost из BCRYPT_ROUNDS, по умолчанию 12)."""
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    """
    Сравнивает открытый пароль с хешем из БД.

    Пустой, отсутствующий или повреждённый хеш — это неуспешная проверка,
    а не ошибка.
    """
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


async def hash_password_async(password: str) -> str:
    """bcrypt в пуле потоков, чтобы не блокировать event loop."""
    return await asyncio.to_thread(hash_password, password)


async def verify_password_async(plain: str, hashed: str | None) -> bool:
    return await asyncio.to_thread(verify_password, plain, hashed)


async def verify_otp(channel: ChannelType, identifier: str, code: str) -> bool:
    """Сверяет одноразовый код канала через настроенный провайдер."""
    return await get_otp_verifier().verify(channel, identifier, code)


async def verify_otp_token(channel: ChannelType, identifier: str, token: str) -> bool:
    """Проверяет access token виджета провайдера, выданный для ``identifier``."""
    return await get_otp_verifier().verify_token(channel, identifier, token)
