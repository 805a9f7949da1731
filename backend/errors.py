from __future__ import annotations

"""
backend/errors.py

Taxonomía de errores del resolvedor de stingers.

- TransportError: red, timeout, status no-2xx o circuit breaker abierto.
- SchemaError: respuesta con forma inesperada (HTML sin el elemento, JSON inválido).
- ConfigurationError: fatal en arranque (fuente desconocida, backend de caché inválido).

TransportError y SchemaError degradan a "sin respuesta" para la fuente afectada;
el resolvedor los registra y continúa con la siguiente.
"""


class StingerError(RuntimeError):
    """Base de todos los errores del proyecto."""


class TransportError(StingerError):
    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class SchemaError(StingerError):
    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class ConfigurationError(StingerError):
    pass
