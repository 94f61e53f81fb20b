"""Слой хранилища (PostgreSQL)."""
