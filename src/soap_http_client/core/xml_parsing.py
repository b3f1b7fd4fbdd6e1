"""Primitivas XML compartidas (lxml).

Por qué centralizar el parser:
- Toda entrada remota pasa por el mismo parser endurecido: sin resolución de
  entidades, sin DTD y sin red. Un documento con DOCTYPE se rechaza.
- Los helpers de nombres evitan repetir el parseo de `{namespace}local`.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import IO, Iterator

from lxml import etree
from pydantic import TypeAdapter

from soap_http_client.core.domain.errors import EnvelopeFormatError

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
XSI_NIL = f"{{{XSI_NAMESPACE}}}nil"

XmlSource = bytes | str | IO[bytes]

# xsd:dateTime léxico: la fecha completa es obligatoria.
_XSD_DATETIME = re.compile(r"\d{4}-\d{2}-\d{2}(?:[T ].*)?\Z", re.DOTALL)
_DATETIME = TypeAdapter(datetime)


def _secure_parser() -> etree.XMLParser:
    # lxml parsers are not safe to share between threads.
    return etree.XMLParser(
        resolve_entities=False,
        load_dtd=False,
        dtd_validation=False,
        no_network=True,
        huge_tree=False,
    )


def parse_xml(source: XmlSource) -> etree._Element:
    """Parsea `source` con el parser endurecido y devuelve el elemento raíz."""

    if hasattr(source, "read"):
        source = source.read()  # type: ignore[union-attr]
    if isinstance(source, str):
        source = source.encode("utf-8")

    try:
        root = etree.fromstring(source, parser=_secure_parser())
    except etree.XMLSyntaxError as exc:
        raise EnvelopeFormatError(f"Malformed XML: {exc}") from exc

    if root is None:
        raise EnvelopeFormatError("Empty XML document")
    if root.getroottree().docinfo.doctype:
        raise EnvelopeFormatError("DTD is prohibited in SOAP messages")
    return root


def parse_fragment(fragment: etree._Element | str | bytes) -> etree._Element:
    if isinstance(fragment, (str, bytes)):
        return parse_xml(fragment)
    return fragment


def qualify(namespace: str | None, local: str) -> str:
    return f"{{{namespace}}}{local}" if namespace else local


def local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def namespace_of(element: etree._Element) -> str | None:
    return etree.QName(element).namespace


def child_elements(element: etree._Element) -> Iterator[etree._Element]:
    """Hijos directos que son elementos (sin comentarios ni PIs)."""

    for child in element:
        if isinstance(child.tag, str):
            yield child


def is_nil(element: etree._Element) -> bool:
    return (element.get(XSI_NIL) or "").strip().lower() in ("true", "1")


def element_text(element: etree._Element) -> str:
    """Texto completo del elemento, incluyendo el de sus descendientes."""

    return "".join(element.itertext())


def parse_xsd_datetime(text: str) -> datetime:
    """`xsd:dateTime` -> `datetime`; lanza `ValueError` si el texto no es ISO-8601."""

    value = text.strip()
    if not _XSD_DATETIME.match(value):
        raise ValueError(f"Not an ISO-8601 date/time: {text!r}")
    return _DATETIME.validate_python(value)
