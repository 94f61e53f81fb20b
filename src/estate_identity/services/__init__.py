"""Доменные сервисы: проверки полей, уникальность, учётные данные, регистрация и вход."""
