"""
estate_identity/models/auth.py — Схемы запросов и ответов эндпоинтов /api/auth.
"""

from typing import Any

from pydantic import Field

from estate_identity.models.common import IdentityBase, IdentityRequest
from estate_identity.models.user import UserRead, UserVerificationState


# ═══════════════════════════════════════════════════════════════════════════
# Запросы
# ═══════════════════════════════════════════════════════════════════════════


class SignupRequest(IdentityRequest):
    """Тело POST /signup."""
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    email: str | None = None
    mobile_number: str | None = Field(default=None, examples=["+911234567890"])
    password: str | None = None
    is_agent: bool | None = False
    company_name: str | None = None
    image_link: str | None = None


class LoginRequest(IdentityRequest):
    """Тело POST /login. Набор обязательных полей зависит от ``type``."""
    # тип не проверяется pydantic: неизвестное значение отклоняет login_service
    type: Any = Field(default=None, examples=["username-password"])
    username: str | None = None
    password: str | None = None
    email: str | None = None
    mobile: str | None = None
    otp: str | None = None
    token: str | None = Field(default=None, description="Access token виджета MSG91 (вместо otp)")


class ChannelLookupRequest(IdentityRequest):
    """Тело POST /check-user и /check-verification."""
    type: Any = Field(default=None, examples=["email"])
    value: str | None = None


class UniqueCheckRequest(IdentityRequest):
    """Тело POST /check-unique."""
    field: Any = Field(default=None, examples=["username"])
    value: str | None = None


# ═══════════════════════════════════════════════════════════════════════════
# Ответы
# ═══════════════════════════════════════════════════════════════════════════


class AuthResponse(IdentityBase):
    """Ответ signup / login."""
    message: str
    user: UserRead


class CheckUserResponse(IdentityBase):
    exists: bool
    verified: bool
    user: UserVerificationState


class CheckVerificationResponse(IdentityBase):
    message: str = "Can send OTP"
    can_send_otp: bool = Field(default=True, alias="canSendOTP")


class UniqueCheckResponse(IdentityBase):
    is_unique: bool
