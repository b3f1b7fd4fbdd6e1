"""Configuración del cliente.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- El factory HTTP y el cliente SOAP leen la misma configuración.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from soap_http_client.core.domain.version import SoapVersion


class ClientSettings(BaseSettings):
    """Configuración central del cliente SOAP.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOAP_HTTP_CLIENT_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=100.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="soap-http-client/0.1",
        min_length=1,
        description="User-Agent de las peticiones SOAP.",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Seguir redirecciones HTTP.",
    )
    verify_tls: bool = Field(
        default=True,
        description="Verificar certificados TLS del servidor.",
    )
    default_soap_version: SoapVersion = Field(
        default=SoapVersion.V1_1,
        description="Versión SOAP por defecto para clientes y CLI.",
    )
    log_envelopes: bool = Field(
        default=False,
        description="Registrar los envelopes salientes en nivel DEBUG.",
    )
