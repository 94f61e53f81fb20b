"""
estate_identity/models/common.py — Базовые типы Identity-домена.

JSON-граница сервиса использует camelCase (``firstName``, ``emailVerifiedAt``),
Python-код — snake_case. Алиасы генерируются автоматически.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class IdentityBase(BaseModel):
    """Базовая Pydantic-модель для ответов Identity."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IdentityRequest(BaseModel):
    """
    Базовая модель входящих тел запросов.

    Все поля необязательны на уровне схемы: наличие и формат проверяет
    ``services.validators``, чтобы клиент получал доменные сообщения,
    а не ошибки Pydantic. Пробелы не обрезаются — пароль передаётся как есть.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )
