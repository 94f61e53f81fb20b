"""
estate_identity/models/user.py — Доменные модели учётной записи.

``UserRead`` строится напрямую из строки хранилища (dict): лишние ключи,
в том числе ``password_hash``, игнорируются и никогда не сериализуются.
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from estate_identity.models.common import IdentityBase
from estate_identity.models.enums import UserRole


class UserRead(IdentityBase):
    """Учётная запись в ответах API (без пароля)."""
    id: UUID
    name: str
    username: str
    email: str
    phone: str
    role: UserRole = UserRole.BUYER
    company_name: str | None = None
    image: str | None = None
    email_verified_at: datetime | None = None
    mobile_verified_at: datetime | None = None
    created_at: datetime | None = None


class UserVerificationState(IdentityBase):
    """Краткое состояние верификации (ответ check-user)."""
    id: UUID
    email_verified: datetime | None = Field(default=None)
    mobile_verified: datetime | None = Field(default=None)
