"""Versiones SOAP soportadas y su configuración de mensaje.

Por qué aquí:
- Es la única fuente de verdad para namespace y media type; el builder, el
  cliente y el lector la consultan en vez de repetir constantes.
- No depende de HTTP ni de XML: solo conceptos del protocolo.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from soap_http_client.core.domain.errors import InvalidArgumentError

SOAP11_NAMESPACE = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP12_NAMESPACE = "http://www.w3.org/2003/05/soap-envelope"


class SoapVersion(str, Enum):
    """SOAP protocol versions."""

    V1_1 = "1.1"
    V1_2 = "1.2"

    @classmethod
    def default(cls) -> "SoapVersion":
        return cls.V1_1

    def label(self) -> str:
        """Human readable label for tables and logging."""

        return f"SOAP {self.value}"


_CONFIGURATIONS: dict[SoapVersion, tuple[str, str]] = {
    SoapVersion.V1_1: (SOAP11_NAMESPACE, "text/xml"),
    SoapVersion.V1_2: (SOAP12_NAMESPACE, "application/soap+xml"),
}


class SoapMessageConfiguration(BaseModel):
    """Namespace y media type derivados de una `SoapVersion`.

    Inmutable: se crea con `from_version` y nunca se modifica.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str = Field(..., description="URI del namespace del Envelope.")
    media_type: str = Field(..., description="Media type HTTP del payload.")
    soap_version: SoapVersion = Field(..., description="Versión que originó esta configuración.")

    @classmethod
    def from_version(cls, soap_version: SoapVersion | str) -> "SoapMessageConfiguration":
        try:
            version = SoapVersion(soap_version)
        except ValueError:
            raise InvalidArgumentError(
                f"Unsupported SOAP version: {soap_version!r}", argument="soap_version"
            ) from None

        namespace, media_type = _CONFIGURATIONS[version]
        return cls(namespace=namespace, media_type=media_type, soap_version=version)
