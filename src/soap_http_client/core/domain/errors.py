"""Errores del cliente SOAP.

Por qué una jerarquía propia:
- Permite distinguir "el servidor entendió y rechazó" (`SoapFaultError`) de
  un fallo de transporte o de un error del llamador.
- Las clases heredan también del builtin equivalente (`ValueError`,
  `LookupError`, `TypeError`) para que el código genérico siga funcionando.
"""

from __future__ import annotations

from typing import Any


class SoapClientError(Exception):
    """Base de todos los errores de la librería."""


class InvalidArgumentError(SoapClientError, ValueError):
    """Argumento requerido ausente o inválido (endpoint, bodies, respuesta no 2xx...)."""

    def __init__(self, message: str, *, argument: str | None = None) -> None:
        super().__init__(message)
        self.argument = argument


class InvalidOperationError(SoapClientError):
    """La definición de la operación no coincide con la llamada."""


class EnvelopeFormatError(SoapClientError):
    """El documento no tiene la forma Envelope -> Body -> contenido esperada."""


class SoapFaultError(SoapClientError):
    """El primer elemento del Body de la respuesta es un `Fault`."""

    def __init__(
        self,
        *,
        code: str | None = None,
        reason: str | None = None,
        actor: str | None = None,
        detail: str | None = None,
        element: Any = None,
    ) -> None:
        message = "SOAP fault"
        if code:
            message += f" [{code}]"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.code = code
        self.reason = reason
        self.actor = actor
        self.detail = detail
        self.element = element


class DeserializationError(SoapClientError):
    """La respuesta no encaja con el tipo solicitado."""


class ValueCoercionError(DeserializationError):
    """El texto de un elemento no se puede convertir al tipo declarado."""

    def __init__(self, text: str, target: str) -> None:
        super().__init__(f"Cannot convert {text!r} to {target}")
        self.text = text
        self.target = target


class ResultNotFoundError(SoapClientError, LookupError):
    """No hay ningún elemento `*Result` en la respuesta."""


class UnsupportedTypeError(SoapClientError, TypeError):
    """Tipo de retorno que la invocación reflexiva no sabe decodificar."""
