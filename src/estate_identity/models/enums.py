"""
estate_identity/models/enums.py — Перечисления Identity-домена.

Строковые дискриминаторы запросов (``type``, ``field``) разбираются
в эти enum'ы на границе API, дальше код работает только с вариантами:
    • UserRole — роль владельца учётной записи
    • LoginType — стратегия входа
    • UniqueField — поле для проверки check-unique
    • ChannelType — канал OTP (email / mobile)
"""

from enum import Enum


class UserRole(str, Enum):
    """Роль пользователя маркетплейса."""
    BUYER = "BUYER"
    AGENT = "AGENT"


class LoginType(str, Enum):
    """Стратегия входа (ровно одна на запрос)."""
    USERNAME_PASSWORD = "username-password"
    EMAIL_OTP = "email-otp"
    MOBILE_OTP = "mobile-otp"


class UniqueField(str, Enum):
    """Поле, которое можно проверить на доступность."""
    USERNAME = "username"
    EMAIL = "email"
    MOBILE = "mobile"


class ChannelType(str, Enum):
    """Канал, подтверждаемый одноразовым кодом."""
    EMAIL = "email"
    MOBILE = "mobile"

    @property
    def label(self) -> str:
        """Человекочитаемое имя канала для сообщений клиенту."""
        return "Email" if self is ChannelType.EMAIL else "Mobile number"
