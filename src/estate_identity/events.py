"""
estate_identity/events.py — NATS Event Publisher.

Публикует доменные события Identity-ядра в NATS:
    • ``identity.user.registered``  — создана учётная запись
    • ``identity.channel.verified`` — email / телефон подтверждён OTP-входом

Слой сессий и остальные сервисы маркетплейса подписываются на эти события.

Graceful degradation: если NATS недоступен или EVENTS_ENABLED=false —
событие пропускается (не ломает регистрацию и вход).
"""

from __future__ import annotations

import json
import logging
from typing import Any

import nats
from nats.aio.client import Client as NATSClient

from estate_identity.config import get_settings

logger = logging.getLogger(__name__)

# ── Singleton NATS connection ─────────────────────────────────────────────

_nc: NATSClient | None = None


async def connect() -> NATSClient | None:
    """Подключается к NATS (если ещё не подключён и события включены)."""
    global _nc
    settings = get_settings()
    if not settings.events_enabled:
        return None
    if _nc is not None and _nc.is_connected:
        return _nc
    try:
        _nc = await nats.connect(settings.nats_url, max_reconnect_attempts=1)
        logger.info("NATS publisher connected: %s", settings.nats_url)
        return _nc
    except Exception as exc:
        logger.warning("NATS connect failed (events will be skipped): %s", exc)
        _nc = None
        return None


async def disconnect() -> None:
    """Закрывает соединение с NATS."""
    global _nc
    if _nc and _nc.is_connected:
        await _nc.drain()
        logger.info("NATS publisher disconnected")
    _nc = None


# ── Публикация событий ───────────────────────────────────────────────────

async def publish(subject: str, data: dict[str, Any]) -> None:
    """
    Публикует JSON-событие в NATS.

    Args:
        subject: Тема сообщения (e.g. ``identity.user.registered``).
        data: Payload (сериализуется в JSON).
    """
    nc = await connect()
    if nc is None:
        logger.debug("NATS unavailable — skipping event %s", subject)
        return
    try:
        payload = json.dumps(data, default=str).encode("utf-8")
        await nc.publish(subject, payload)
        logger.info("NATS event published: %s", subject)
    except Exception as exc:
        logger.warning("NATS publish failed for %s: %s", subject, exc)


async def emit_user_registered(user_id: str, username: str, role: str) -> None:
    """Событие: создана учётная запись."""
    await publish("identity.user.registered", {
        "event": "user.registered",
        "user_id": user_id,
        "username": username,
        "role": role,
    })


async def emit_channel_verified(user_id: str, channel: str) -> None:
    """Событие: канал (email / mobile) подтверждён."""
    await publish("identity.channel.verified", {
        "event": "channel.verified",
        "user_id": user_id,
        "channel": channel,
    })
