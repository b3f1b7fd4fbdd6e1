"""Codificación/decodificación de operaciones reflexivas.

Este módulo concentra la lógica con decisiones por tipo que antes vivía
mezclada con el transporte:
- `build_request_body`: argumentos -> `<Operacion><param>...</param></Operacion>`.
- `decode_result`: respuesta cruda -> valor Python según `ReturnShape`.

No hace I/O; el cliente en `adapters` orquesta el POST.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Sequence
from uuid import UUID

from lxml import etree
from soap_http_client.core.domain.contracts import ContractSerializer
from soap_http_client.core.domain.errors import ResultNotFoundError, ValueCoercionError
from soap_http_client.core.domain.models import (
    ArrayReturn,
    ContractReturn,
    OperationDefinition,
    ReturnShape,
    ScalarKind,
    ScalarReturn,
    TableReturn,
)
from soap_http_client.core.domain.version import SoapMessageConfiguration
from soap_http_client.core.envelope import parse_envelope
from soap_http_client.core.xml_mapping import to_xml
from soap_http_client.core.xml_parsing import (
    child_elements,
    element_text,
    local_name,
    parse_xsd_datetime,
    qualify,
)

logger = logging.getLogger(__name__)

def _to_char(text: str) -> str:
    if len(text) != 1:
        raise ValueError("String must be exactly one character long")
    return text


def _to_bool(text: str) -> bool:
    value = text.strip().lower()
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValueError("String was not recognized as a valid Boolean")


def _to_decimal(text: str) -> Decimal:
    try:
        return Decimal(text.strip())
    except InvalidOperation as exc:
        raise ValueError(text) from exc


_COERCIONS: dict[ScalarKind, Callable[[str], Any]] = {
    ScalarKind.STRING: lambda text: text,
    ScalarKind.CHAR: _to_char,
    ScalarKind.INT: lambda text: int(text.strip()),
    ScalarKind.FLOAT: lambda text: float(text.strip()),
    ScalarKind.DECIMAL: _to_decimal,
    ScalarKind.BOOL: _to_bool,
    ScalarKind.DATETIME: parse_xsd_datetime,
    ScalarKind.UUID: lambda text: UUID(text.strip()),
}


def coerce_scalar(text: str, kind: ScalarKind) -> Any:
    try:
        return _COERCIONS[kind](text)
    except ValueError as exc:
        raise ValueCoercionError(text, kind.value) from exc


def build_request_body(
    operation: OperationDefinition,
    values: Sequence[Any],
    namespace: str,
) -> etree._Element:
    """Serializa cada argumento por su tipo declarado y lo renombra al parámetro.

    El orden de los hijos es el de declaración: hay servidores que validan por posición.
    """

    body = etree.Element(qualify(namespace, operation.name), nsmap={None: namespace})
    for param, value in zip(operation.parameters, values):
        element = to_xml(value, param.annotation, namespace=namespace)
        element.tag = qualify(namespace, param.name)
        body.append(element)
    return body


def find_result_element(scope: etree._Element) -> etree._Element:
    """Primer elemento (profundidad primero) cuyo nombre termina en `Result`."""

    for element in scope.iter():
        if isinstance(element.tag, str) and local_name(element).endswith("Result"):
            return element
    raise ResultNotFoundError(
        f"No element ending with 'Result' found under <{local_name(scope)}>"
    )


def decode_result(
    shape: ReturnShape | None,
    content: bytes,
    config: SoapMessageConfiguration,
    service_namespace: str,
) -> Any:
    """Decodifica la respuesta cruda según la forma de retorno declarada."""

    if shape is None:
        parse_envelope(content, config)
        return None

    if isinstance(shape, TableReturn):
        parse_envelope(content, config)
        table = shape.table_type()
        return table.load_xml(content)

    envelope = parse_envelope(content, config)
    # La búsqueda se limita al contenido del Body para no confundir elementos del Header.
    result = find_result_element(envelope.content)
    logger.debug("Decoding <%s> as %s", local_name(result), type(shape).__name__)

    if isinstance(shape, ContractReturn):
        # El `*Result` llega en el namespace del servicio; el contrato puede declarar otro.
        contract_namespace = shape.model.contract_namespace or service_namespace
        result.tag = qualify(contract_namespace, shape.model.get_contract_name())
        return ContractSerializer(shape.model).read_object(result)

    if isinstance(shape, ArrayReturn):
        return [coerce_scalar(element_text(child), shape.element_kind) for child in child_elements(result)]

    if isinstance(shape, ScalarReturn):
        return coerce_scalar(element_text(result), shape.kind)

    raise TypeError(f"Unknown return shape: {shape!r}")
