"""Lectura de respuestas SOAP.

Responsabilidad:
- Rechazar respuestas ausentes o no 2xx antes de parsear.
- Extraer el payload del Body como texto (`read`) o como tipo (`read_as`).
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx

from soap_http_client.core.domain.errors import InvalidArgumentError
from soap_http_client.core.domain.version import SoapMessageConfiguration, SoapVersion
from soap_http_client.core.envelope import ParsedEnvelope, parse_envelope
from soap_http_client.core.xml_mapping import UnknownElementHandler, from_xml
from soap_http_client.core.xml_parsing import child_elements, element_text

logger = logging.getLogger(__name__)

T = TypeVar("T")


def ensure_success(response: httpx.Response | None) -> httpx.Response:
    if response is None:
        raise InvalidArgumentError("A response is required", argument="response")
    if not response.is_success:
        raise InvalidArgumentError(
            f"The provided message is not a success message: "
            f"{response.status_code} {response.reason_phrase}",
            argument="response",
        )
    return response


def read_envelope(response: httpx.Response | None, soap_version: SoapVersion | str) -> ParsedEnvelope:
    """Valida el status y parsea el Envelope (lanza `SoapFaultError` si hay Fault)."""

    config = SoapMessageConfiguration.from_version(soap_version)
    ensure_success(response)
    return parse_envelope(response.content, config)


def read(response: httpx.Response | None, soap_version: SoapVersion | str) -> str:
    """Texto del resultado: `<OpResponse><OpResult>42</OpResult></OpResponse>` -> "42".

    Si el primer elemento del Body no tiene hijos, se devuelve su propio texto.
    """

    content = read_envelope(response, soap_version).content
    first_child = next(child_elements(content), None)
    return element_text(first_child if first_child is not None else content)


def read_as(
    response: httpx.Response | None,
    soap_version: SoapVersion | str,
    result_type: type[T] | Any,
    on_unknown_element: UnknownElementHandler | None = None,
) -> T:
    """Deserializa el primer elemento del Body como `result_type`.

    El nombre del elemento debe coincidir con el del tipo (`xml_name` o el
    nombre de la clase; `int`, `string`... para escalares). Los elementos
    desconocidos se reportan por `on_unknown_element` y se ignoran.
    """

    content = read_envelope(response, soap_version).content
    logger.debug("Deserializing <%s> as %r", content.tag, result_type)
    return from_xml(
        content,
        result_type,
        on_unknown_element=on_unknown_element,
        check_root=True,
    )
