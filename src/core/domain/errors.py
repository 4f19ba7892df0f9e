"""Excepciones internas del proxy.

No cruzan el borde: el ejecutor las convierte en `Failure`.
"""

from __future__ import annotations


class ProxyError(Exception):
    """Base de errores propios del proxy."""


class ResponseTooLargeError(ProxyError):
    def __init__(self, limit: int) -> None:
        super().__init__(f"upstream response exceeds {limit} bytes")
        self.limit = limit
