"""
estate_identity.models — Модели данных Identity-домена.

Реэкспорт основных классов для удобства:
    from estate_identity.models import UserRead, LoginType
"""

from estate_identity.models.enums import ChannelType, LoginType, UniqueField, UserRole  # noqa: F401
from estate_identity.models.user import UserRead, UserVerificationState  # noqa: F401
from estate_identity.models.auth import (  # noqa: F401
    AuthResponse,
    ChannelLookupRequest,
    CheckUserResponse,
    CheckVerificationResponse,
    LoginRequest,
    SignupRequest,
    UniqueCheckRequest,
    UniqueCheckResponse,
)
