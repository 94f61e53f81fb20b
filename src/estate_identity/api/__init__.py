"""HTTP-эндпоинты сервиса."""
