"""
estate_identity/services/otp_provider.py — Проверка одноразовых кодов.

Ядро не отправляет коды (доставка — внешний сервис), а только сверяет
присланный код или access token виджета провайдера:
    • FixedCodeVerifier — единственный допустимый код из настроек.
      Заглушка для разработки; в production запрещена настройками.
      Токенов виджета не принимает.
    • Msg91Verifier — код подтверждается провайдером MSG91
      (GET /otp/verify), токен виджета проверяется через
      POST /widget/verifyAccessToken; запросы через httpx с таймаутом
      из настроек.
"""

from __future__ import annotations

import hmac
import logging
from functools import lru_cache
from typing import Protocol

import httpx

from estate_identity.config import get_settings
from estate_identity.exceptions import OtpProviderError
from estate_identity.models.enums import ChannelType
from estate_identity.services.validators import mobile_digits

logger = logging.getLogger(__name__)

MSG91_VERIFIED_MESSAGE = "OTP verified successfully"


class OtpVerifier(Protocol):
    async def verify(self, channel: ChannelType, identifier: str, code: str) -> bool:
        ...

    async def verify_token(self, channel: ChannelType, identifier: str, token: str) -> bool:
        ...


class FixedCodeVerifier:
    """Принимает только ``accepted_code``: точное сравнение, с учётом регистра."""

    def __init__(self, accepted_code: str) -> None:
        self._accepted = accepted_code.encode("utf-8")

    async def verify(self, channel: ChannelType, identifier: str, code: str) -> bool:
        return hmac.compare_digest(code.encode("utf-8"), self._accepted)

    async def verify_token(self, channel: ChannelType, identifier: str, token: str) -> bool:
        logger.info("Access tokens are not accepted by the fixed-code verifier")
        return False


class Msg91Verifier:
    """
    Проверка через MSG91 OTP API.

    Два пути подтверждения:
        • код — GET /otp/verify с номером или email;
        • access token виджета — POST /widget/verifyAccessToken; токен
          принимается, только если подтверждённый им идентификатор
          совпадает с тем, под которым выполняется вход.

    Отказ провайдера — ``False``; сетевые сбои и ответы 5xx —
    ``OtpProviderError`` (превращается в 500 на границе API).
    """

    def __init__(
        self,
        auth_key: str,
        base_url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._auth_key = auth_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def _call(self, method: str, path: str, **kwargs) -> tuple[int, dict]:
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise OtpProviderError(f"MSG91 request failed: {exc}") from exc

        if response.status_code >= 500:
            raise OtpProviderError(f"MSG91 returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise OtpProviderError("MSG91 returned a non-JSON response") from exc
        if not isinstance(data, dict):
            raise OtpProviderError("MSG91 returned an unexpected JSON payload")
        return response.status_code, data

    async def verify(self, channel: ChannelType, identifier: str, code: str) -> bool:
        if channel is ChannelType.EMAIL:
            params = {"email": identifier, "otp": code}
        else:
            # MSG91 ожидает номер с кодом страны, только цифры
            params = {"mobile": mobile_digits(identifier), "otp": code}

        _, data = await self._call(
            "GET", "/otp/verify", params=params, headers={"authkey": self._auth_key},
        )
        if data.get("type") == "error":
            logger.info("MSG91 rejected %s OTP: %s", channel.value, data.get("message"))
            return False
        return data.get("message") == MSG91_VERIFIED_MESSAGE

    async def verify_token(self, channel: ChannelType, identifier: str, token: str) -> bool:
        status_code, data = await self._call(
            "POST",
            "/widget/verifyAccessToken",
            json={"authkey": self._auth_key, "access-token": token},
        )
        if status_code >= 400 or data.get("type") == "error":
            logger.info("MSG91 rejected %s access token: %s", channel.value, data.get("message"))
            return False

        # подтверждённый идентификатор: поле identifier, иначе текст message
        verified = data.get("identifier") or data.get("message") or ""
        if not isinstance(verified, str):
            return False
        if channel is ChannelType.EMAIL:
            matches = verified.strip().casefold() == identifier.strip().casefold()
        else:
            matches = bool(mobile_digits(verified)) and mobile_digits(verified) == mobile_digits(identifier)
        if not matches:
            logger.warning("MSG91 access token was issued for a different %s", channel.value)
        return matches


@lru_cache
def get_otp_verifier() -> OtpVerifier:
    """Верификатор по OTP_PROVIDER (singleton)."""
    settings = get_settings()
    if settings.otp_provider == "msg91":
        logger.info("OTP verification: MSG91 provider")
        return Msg91Verifier(
            auth_key=settings.msg91_auth_key,
            base_url=settings.msg91_base_url,
            timeout=settings.otp_provider_timeout,
        )
    logger.warning("OTP verification: fixed development code (not for production)")
    return FixedCodeVerifier(settings.otp_fixed_code)
