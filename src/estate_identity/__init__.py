"""
Estate Identity — ядро идентификации маркетплейса недвижимости.

Регистрация, вход (пароль / email-OTP / mobile-OTP), проверка уникальности
username/email/телефона и состояния верификации каналов.
"""

__version__ = "0.1.0"
