"""Construcción y parseo del Envelope SOAP.

Responsabilidad:
- `build_envelope`: Envelope -> Header (opcional) -> Body a partir de
  fragmentos del llamador, según la `SoapMessageConfiguration` activa.
- `parse_envelope`: recorre Envelope -> Header? -> Body y detecta `Fault`.

Es I/O-free: el transporte vive en `adapters`.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Iterable

from lxml import etree

from soap_http_client.core.domain.errors import (
    EnvelopeFormatError,
    InvalidArgumentError,
    SoapFaultError,
)
from soap_http_client.core.domain.version import SoapMessageConfiguration
from soap_http_client.core.xml_parsing import (
    XmlSource,
    child_elements,
    element_text,
    local_name,
    namespace_of,
    parse_fragment,
    parse_xml,
    qualify,
)

Fragment = etree._Element | str | bytes


@dataclass
class ParsedEnvelope:
    """Envelope de respuesta ya validado (sin Fault)."""

    namespace: str | None
    headers: list[etree._Element] = field(default_factory=list)
    bodies: list[etree._Element] = field(default_factory=list)

    @property
    def content(self) -> etree._Element:
        """Primer elemento del Body: donde empieza el payload."""

        return self.bodies[0]


def build_envelope(
    config: SoapMessageConfiguration,
    bodies: Iterable[Fragment] | None,
    headers: Iterable[Fragment] | None = None,
) -> etree._Element:
    """Crea el Envelope con los fragmentos copiados (los del llamador no se mueven)."""

    if bodies is None:
        raise InvalidArgumentError("Bodies are required", argument="bodies")
    body_fragments = [copy.deepcopy(parse_fragment(b)) for b in bodies]
    if not body_fragments:
        raise InvalidArgumentError("Bodies element cannot be empty", argument="bodies")
    header_fragments = [copy.deepcopy(parse_fragment(h)) for h in headers or ()]

    ns = config.namespace
    envelope = etree.Element(qualify(ns, "Envelope"), nsmap={"soap": ns})

    if header_fragments:
        header = etree.SubElement(envelope, qualify(ns, "Header"))
        header.extend(header_fragments)

    body = etree.SubElement(envelope, qualify(ns, "Body"))
    body.extend(body_fragments)
    return envelope


def serialize_envelope(envelope: etree._Element) -> bytes:
    return etree.tostring(envelope, xml_declaration=True, encoding="utf-8")


def parse_envelope(source: XmlSource, config: SoapMessageConfiguration) -> ParsedEnvelope:
    """Valida la estructura del Envelope y lanza `SoapFaultError` si el Body trae un Fault.

    Acepta una raíz sin namespace (algunos servidores la envían así) o una
    raíz calificada con el namespace de `config`.
    """

    root = source if isinstance(source, etree._Element) else parse_xml(source)

    if local_name(root) != "Envelope":
        raise EnvelopeFormatError(f"Expected 'Envelope' root element, got '{local_name(root)}'")

    ns = namespace_of(root)
    if ns and ns != config.namespace:
        raise EnvelopeFormatError(
            f"Envelope namespace '{ns}' does not match {config.soap_version.label()} "
            f"namespace '{config.namespace}'"
        )

    children = list(child_elements(root))
    headers: list[etree._Element] = []
    if children and children[0].tag == qualify(ns, "Header"):
        headers = list(child_elements(children.pop(0)))

    if not children or children[0].tag != qualify(ns, "Body"):
        raise EnvelopeFormatError("Envelope has no Body element")

    bodies = list(child_elements(children[0]))
    if not bodies:
        raise EnvelopeFormatError("Body element has no content")

    first = bodies[0]
    if first.tag == qualify(ns, "Fault"):
        raise _fault_from_element(first)

    return ParsedEnvelope(namespace=ns, headers=headers, bodies=bodies)


def find_fault(source: XmlSource, config: SoapMessageConfiguration) -> SoapFaultError | None:
    """Devuelve el Fault que `source` contiene, o None si no es un Envelope con Fault."""

    try:
        parse_envelope(source, config)
    except SoapFaultError as fault:
        return fault
    except EnvelopeFormatError:
        return None
    return None


def _find_local(element: etree._Element, *path: str) -> etree._Element | None:
    current: etree._Element | None = element
    for name in path:
        if current is None:
            return None
        current = next((c for c in child_elements(current) if local_name(c) == name), None)
    return current


def _text(element: etree._Element | None) -> str | None:
    if element is None:
        return None
    return element_text(element).strip() or None


def _fault_from_element(fault: etree._Element) -> SoapFaultError:
    # SOAP 1.1: faultcode/faultstring/faultactor/detail (sin namespace).
    # SOAP 1.2: Code/Value, Reason/Text, Role, Detail.
    code = _text(_find_local(fault, "faultcode")) or _text(_find_local(fault, "Code", "Value"))
    reason = _text(_find_local(fault, "faultstring")) or _text(_find_local(fault, "Reason", "Text"))
    actor = _text(_find_local(fault, "faultactor")) or _text(_find_local(fault, "Role"))
    detail_el = _find_local(fault, "detail")
    if detail_el is None:
        detail_el = _find_local(fault, "Detail")
    detail = None
    if detail_el is not None:
        detail = etree.tostring(detail_el, encoding="unicode", with_tail=False)

    return SoapFaultError(code=code, reason=reason, actor=actor, detail=detail, element=fault)
