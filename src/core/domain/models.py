"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los resultados del proxy son polimórficos (texto, imagen, fallo) y un
  `kind` literal los discrimina sin jerarquías de excepciones.

Nota:
- Todos los modelos son transitorios y por-request; nada persiste.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Literal, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.config import ConfigDict

_HEADER_VALUE = re.compile(r"[\t\x20-\x7e]*")


class FailureKind(str, Enum):
    """Taxonomía de errores visibles en el borde."""

    MALFORMED_INPUT = "malformed_input"
    FORBIDDEN = "forbidden"
    UPSTREAM_ERROR = "upstream_error"


class AllowList(BaseModel):
    """Conjunto inmutable de hostnames permitidos.

    Por qué un modelo y no un `set` suelto:
    - Normaliza a minúsculas una sola vez al construirse.
    - Es de solo lectura y seguro de compartir entre requests concurrentes.
    """

    model_config = ConfigDict(frozen=True)

    hosts: frozenset[str] = Field(
        default_factory=frozenset,
        description="Hostnames permitidos, normalizados a minúsculas.",
    )

    @field_validator("hosts", mode="before")
    @classmethod
    def _normalize(cls, value: object) -> object:
        if isinstance(value, (list, tuple, set, frozenset)):
            return frozenset(str(h).strip().lower() for h in value if str(h).strip())
        return value

    @classmethod
    def from_hosts(cls, hosts: Iterable[str]) -> "AllowList":
        return cls(hosts=frozenset(hosts))

    def contains(self, host: str) -> bool:
        return host.lower() in self.hosts

    def __len__(self) -> int:
        return len(self.hosts)


class FetchRequest(BaseModel):
    """Parámetros crudos de una petición de fetch (input no confiable)."""

    model_config = ConfigDict(frozen=True)

    raw_url: str = Field(
        ...,
        description="URL solicitada por el cliente, tal cual llegó.",
    )
    extra_header: str | None = Field(
        default=None,
        description="Valor reenviado como `Accept-Language` (solo en la ruta de texto).",
    )

    @field_validator("extra_header")
    @classmethod
    def _reject_header_injection(cls, value: str | None) -> str | None:
        # Solo ASCII visible, espacio y tab: httpx codifica los headers en ASCII.
        if value is not None and _HEADER_VALUE.fullmatch(value) is None:
            raise ValueError("header value must be visible ASCII, space or tab")
        return value


class AdmissionDecision(BaseModel):
    """Resultado determinista del control de admisión."""

    model_config = ConfigDict(frozen=True)

    allowed: bool = Field(
        ...,
        description="True si la URL puede pasar al transporte.",
    )
    normalized_host: str | None = Field(
        default=None,
        description="Host extraído (minúsculas) cuando se pudo parsear.",
    )
    reason: str | None = Field(
        default=None,
        description="Motivo legible del rechazo.",
    )
    failure_kind: FailureKind | None = Field(
        default=None,
        description="Clase de error del rechazo (MalformedInput o Forbidden).",
    )

    @model_validator(mode="after")
    def _check_consistency(self) -> "AdmissionDecision":
        if self.allowed and not self.normalized_host:
            raise ValueError("an allowed decision requires a normalized host")
        if not self.allowed and self.failure_kind is None:
            raise ValueError("a denied decision requires a failure kind")
        return self

    @classmethod
    def allow(cls, host: str) -> "AdmissionDecision":
        return cls(allowed=True, normalized_host=host)

    @classmethod
    def deny(cls, kind: FailureKind, reason: str, *, host: str | None = None) -> "AdmissionDecision":
        return cls(allowed=False, normalized_host=host, reason=reason, failure_kind=kind)


class TextBody(BaseModel):
    kind: Literal["text"] = "text"
    content: str = Field(..., description="Cuerpo del upstream decodificado como texto.")


class ImageBody(BaseModel):
    """Cuerpo binario del upstream codificado en base64.

    WARNING: nunca se verifica que los bytes sean realmente una imagen JPEG.
    """

    kind: Literal["image"] = "image"
    payload: str = Field(..., description="Bytes del upstream en base64 estándar.")

    @property
    def data_uri(self) -> str:
        return f"data:image/jpg;base64,{self.payload}"


class Failure(BaseModel):
    kind: Literal["failure"] = "failure"
    failure_kind: FailureKind
    message: str = Field(..., description="Mensaje para logs/trazas y para el cuerpo de error.")


FetchOutcome = Union[TextBody, ImageBody, Failure]
