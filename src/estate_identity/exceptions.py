"""
═══════════════════════════════════════════════════════════════════════════════
Estate Identity — Иерархия доменных ошибок (Custom Exception Hierarchy)
═══════════════════════════════════════════════════════════════════════════════

Базовый класс ``IdentityError``. HTTP-маппинг кодов выполняется в
``estate_identity.main:identity_error_handler``. Тело ответа всегда
``{"message": ..., **details}``.
"""


class IdentityError(Exception):
    """
    Базовое исключение для всех доменных ошибок Identity.

    Атрибуты
    ────────
        message (str):  Описание ошибки. Передаётся клиенту в JSON.
        code (str):     Строковый код. Используется для маппинга на HTTP-статус.
        details (dict): Дополнительные поля ответа (canSendOTP, isUnique и т.д.).
    """

    def __init__(
        self,
        message: str,
        code: str = "IDENTITY_ERROR",
        details: dict | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(IdentityError):
    """Неверные учётные данные или неизвестный идентификатор при входе: 401."""

    def __init__(self, message: str = "Authentication failed", details: dict | None = None):
        super().__init__(message, code="IDENTITY_AUTH_ERROR", details=details)


class NotFoundError(IdentityError):
    """Идентификатор не зарегистрирован (lookup-эндпоинты): 404."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="IDENTITY_NOT_FOUND", details=details)


class ConflictError(IdentityError):
    """Нарушение уникальности: 409 Conflict."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="IDENTITY_CONFLICT", details=details)


class ValidationError(IdentityError):
    """Некорректный или неполный запрос: 400 Bad Request."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, code="IDENTITY_VALIDATION_ERROR", details=details)


class InternalError(IdentityError):
    """Непредвиденный сбой хранилища, bcrypt или OTP-провайдера: 500."""

    def __init__(self, message: str = "Internal server error", details: dict | None = None):
        super().__init__(message, code="IDENTITY_INTERNAL_ERROR", details=details)


class OtpProviderError(Exception):
    """Сбой обращения к внешнему OTP-провайдеру (сеть, неожиданный ответ)."""


__all__ = [
    "IdentityError",
    "AuthenticationError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "InternalError",
    "OtpProviderError",
]
