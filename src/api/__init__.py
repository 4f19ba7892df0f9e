"""Borde HTTP (FastAPI).

Por qué un paquete aparte:
- El Core y los adaptadores no conocen FastAPI; aquí solo se traducen
  parámetros de request a `FetchRequest` y `FetchOutcome` a respuestas HTTP.
"""

from api.app import create_app

__all__ = ["create_app"]
