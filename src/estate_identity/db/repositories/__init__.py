"""Репозитории хранилища учётных записей (asyncpg)."""
