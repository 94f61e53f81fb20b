"""
estate_identity/services/verification_gate.py — Можно ли отправить OTP.

Код на канал отправляется только зарегистрированному и хотя бы раз
подтверждённому email / телефону. Путь входа здесь не участвует.
"""

from __future__ import annotations

from estate_identity.exceptions import NotFoundError, ValidationError
from estate_identity.models.auth import ChannelLookupRequest, CheckVerificationResponse
from estate_identity.services.uniqueness import LookupResult, find_by_channel, parse_channel


async def check_verification(request: ChannelLookupRequest) -> CheckVerificationResponse:
    """
    Raises:
        NotFoundError: канал не зарегистрирован (``canSendOTP: false``).
        ValidationError: канал зарегистрирован, но не подтверждён.
    """
    channel, value = parse_channel(request.type, request.value)

    row = await find_by_channel(channel, value)
    if row is None:
        raise NotFoundError(
            f"{channel.label} not registered",
            details={"canSendOTP": False},
        )

    if not LookupResult.from_row(row).is_verified(channel):
        raise ValidationError(
            f"{channel.label} not verified. Please verify in your profile first.",
            details={"canSendOTP": False},
        )

    return CheckVerificationResponse()
