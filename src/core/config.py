"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI ni la API.
- El allow-list se inyecta desde aquí hacia el control de admisión; nunca es
  una constante global compilada.
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from core.domain.models import AllowList


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "ssrf-proxy"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "ssrf-proxy"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "ssrf-proxy"
    return Path.home() / ".config" / "ssrf-proxy"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


class AppSettings(BaseSettings):
    """Configuración central del proxy.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/API/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="SSRF_PROXY_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    allowed_hosts: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["example.com", "api.example.com"],
        description="Hostnames permitidos (comparación case-insensitive, sin subdominios implícitos).",
    )
    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout por request saliente (segundos).",
    )
    max_response_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Tamaño máximo de cuerpo aceptado desde el upstream.",
    )
    user_agent: str = Field(
        default="ssrf-proxy/0.1",
        min_length=1,
        description="User-Agent para peticiones salientes.",
    )

    log_level: str = Field(
        default="INFO",
        description="Nivel de logging (DEBUG, INFO, WARNING...).",
    )
    json_logs: bool = Field(
        default=False,
        description="Emitir logs como JSON compacto en lugar de salida Rich.",
    )

    host: str = Field(
        default="127.0.0.1",
        min_length=1,
        description="Interfaz de escucha del servidor HTTP.",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Puerto del servidor HTTP.",
    )

    @field_validator("allowed_hosts", mode="before")
    @classmethod
    def _split_hosts(cls, value: Any) -> Any:
        # Acepta "a.com, b.com" además de una lista JSON/Python.
        if isinstance(value, str):
            raw = value.strip()
            if raw.startswith("["):
                value = json.loads(raw)
            else:
                value = raw.split(",")
        if isinstance(value, (list, tuple, set, frozenset)):
            hosts = [str(item).strip().lower() for item in value]
            return [host for host in hosts if host]
        return value

    def allow_list(self) -> AllowList:
        """Construye el `AllowList` inmutable que consume el control de admisión."""

        return AllowList.from_hosts(self.allowed_hosts)
