"""
estate_identity/services/validators.py — Проверки формы полей.

Чистые функции без обращения к хранилищу; применяются до любого запроса
в БД. Нарушение → ``ValidationError`` (HTTP 400) с сообщением для клиента.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from estate_identity.exceptions import ValidationError
from estate_identity.models.auth import SignupRequest
from estate_identity.models.enums import UserRole

_NON_DIGITS = re.compile(r"\D")

USERNAME_MIN_LENGTH = 3
MOBILE_MIN_DIGITS = 7
MOBILE_MAX_DIGITS = 15

MSG_REQUIRED = "All required fields must be provided"
MSG_COMPANY_REQUIRED = "Company name is required for agents"
MSG_USERNAME_SHORT = "Username must be at least 3 characters long"
MSG_INVALID_EMAIL = "Invalid email format"
MSG_INVALID_MOBILE = "Please enter a valid mobile number"


@dataclass(frozen=True)
class SignupData:
    """Нормализованные данные регистрации (после всех проверок формы)."""
    first_name: str
    last_name: str
    username: str
    email: str
    phone: str
    password: str
    role: UserRole
    company_name: str | None
    image: str | None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


def is_blank(value: object) -> bool:
    """None или строка из одних пробелов."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def is_valid_email(value: str) -> bool:
    """
    Синтаксис адреса по email-validator (без DNS-проверки домена).

    Хранится адрес в том виде, в каком передан: нормализованная форма
    библиотеки не используется.
    """
    try:
        validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def mobile_digits(value: str) -> str:
    """Только цифры номера (все разделители и ``+`` удалены)."""
    return _NON_DIGITS.sub("", value)


def is_valid_mobile(value: str) -> bool:
    """
    Номер с кодом страны: ведущий ``+`` и 7–15 значащих цифр, не все нули.

    Разделители (пробелы, дефисы, скобки) допускаются и не учитываются.
    """
    stripped = value.strip()
    if not stripped.startswith("+"):
        return False
    digits = mobile_digits(stripped)
    if not MOBILE_MIN_DIGITS <= len(digits) <= MOBILE_MAX_DIGITS:
        return False
    return digits.strip("0") != ""


def validate_signup(payload: SignupRequest) -> SignupData:
    """
    Проверяет запрос регистрации в фиксированном порядке:
    обязательные поля → правило агента → username → email → телефон.

    Returns:
        SignupData с обрезанными username/email и телефоном в исходном виде.

    Raises:
        ValidationError: первое нарушенное правило.
    """
    required = (
        payload.first_name,
        payload.last_name,
        payload.username,
        payload.email,
        payload.mobile_number,
        payload.password,
    )
    if any(is_blank(v) for v in required):
        raise ValidationError(MSG_REQUIRED)

    is_agent = bool(payload.is_agent)
    if is_agent and is_blank(payload.company_name):
        raise ValidationError(MSG_COMPANY_REQUIRED)

    username = payload.username.strip()
    if len(username) < USERNAME_MIN_LENGTH:
        raise ValidationError(MSG_USERNAME_SHORT)

    email = payload.email.strip()
    if not is_valid_email(email):
        raise ValidationError(MSG_INVALID_EMAIL)

    # телефон хранится как передан: форматирование не нормализуется
    phone = payload.mobile_number.strip()
    if not is_valid_mobile(phone):
        raise ValidationError(MSG_INVALID_MOBILE)

    image = payload.image_link.strip() if not is_blank(payload.image_link) else None

    return SignupData(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        username=username,
        email=email,
        phone=phone,
        password=payload.password,
        role=UserRole.AGENT if is_agent else UserRole.BUYER,
        company_name=payload.company_name.strip() if is_agent else None,
        image=image,
    )


def require_present(message: str, *values: object) -> None:
    """Проверка наличия полей стратегии входа (формат не перепроверяется)."""
    if any(is_blank(v) for v in values):
        raise ValidationError(message)
