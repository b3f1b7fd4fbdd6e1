"""Mapeo genérico objeto <-> XML (modelos Pydantic v2).

Reglas de forma (estilo XmlSerializer de ASMX):
- Un modelo es un elemento con un hijo por campo, en orden de declaración,
  nombrado por el alias del campo (o su nombre).
- Una lista es un elemento con un hijo por ítem, nombrado por el tipo XSD del
  ítem (`int`, `string`...) o por el nombre del modelo.
- Un escalar es texto; `None` se escribe como `xsi:nil="true"`.

Al leer, las hojas se pasan como texto y Pydantic hace la coerción
(`"true"` -> `True`, ISO-8601 -> `datetime`...). Los elementos desconocidos
se reportan por `on_unknown_element` y se ignoran.
"""

from __future__ import annotations

import base64
import binascii
import logging
import types
import typing
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, ClassVar
from uuid import UUID

from lxml import etree
from pydantic import BaseModel, TypeAdapter, ValidationError

from soap_http_client.core.domain.errors import DeserializationError
from soap_http_client.core.xml_parsing import (
    XSI_NIL,
    child_elements,
    element_text,
    is_nil,
    local_name,
    namespace_of,
    qualify,
)

logger = logging.getLogger(__name__)

_XSD_NAMES: dict[type, str] = {
    bool: "boolean",
    int: "int",
    float: "double",
    Decimal: "decimal",
    str: "string",
    datetime: "dateTime",
    date: "date",
    time: "time",
    UUID: "guid",
    bytes: "base64Binary",
}


class XmlModel(BaseModel):
    """Modelo con nombre/namespace XML explícitos (opcionales).

    Cualquier `BaseModel` sirve para el mapper; esta base solo añade los
    class vars para fijar el nombre del elemento raíz.
    """

    xml_name: ClassVar[str | None] = None
    xml_namespace: ClassVar[str | None] = None


@dataclass(frozen=True)
class UnknownElement:
    """Diagnóstico: elemento sin campo correspondiente en el modelo."""

    name: str
    path: str
    expected: tuple[str, ...]

    def __str__(self) -> str:
        return f"found element {self.name} and expected {', '.join(self.expected) or '(nothing)'}"


UnknownElementHandler = Callable[[UnknownElement], None]


def log_unknown_element(diagnostic: UnknownElement) -> None:
    logger.warning("Unknown element at %s: %s", diagnostic.path or "/", diagnostic)


def unwrap_optional(annotation: Any) -> Any:
    """`X | None` / `Optional[X]` -> `X`; cualquier otra anotación queda igual."""

    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def list_item_type(annotation: Any) -> Any | None:
    """Tipo de ítem si `annotation` es una secuencia homogénea, si no None."""

    annotation = unwrap_optional(annotation)
    origin = typing.get_origin(annotation)
    if annotation in (list, tuple):
        return Any
    if origin is list:
        args = typing.get_args(annotation)
        return args[0] if args else Any
    if origin is tuple:
        args = typing.get_args(annotation)
        if len(args) == 2 and args[1] is Ellipsis:
            return args[0]
    return None


def is_class(annotation: Any) -> bool:
    """Clase real; `list[int]` y demás alias genéricos no cuentan."""

    return isinstance(annotation, type) and typing.get_origin(annotation) is None


def is_model_type(annotation: Any) -> bool:
    return is_class(annotation) and issubclass(annotation, BaseModel)


def xml_type_name(annotation: Any) -> str:
    """Nombre del elemento raíz por defecto para un tipo."""

    annotation = unwrap_optional(annotation)
    if is_model_type(annotation):
        return getattr(annotation, "xml_name", None) or annotation.__name__
    item = list_item_type(annotation)
    if item is not None:
        name = xml_type_name(item) if item is not Any else "anyType"
        return f"ArrayOf{name[:1].upper()}{name[1:]}"
    if is_class(annotation):
        for base, name in _XSD_NAMES.items():
            if issubclass(annotation, base):
                return name
        return annotation.__name__
    return "anyType"


def format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return format_scalar(value.value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    return str(value)


def _field_tag(name: str, field_info: Any) -> str:
    return field_info.alias or name


def _write_value(element: etree._Element, value: Any, annotation: Any, namespace: str | None) -> None:
    if value is None:
        element.set(XSI_NIL, "true")
        return

    annotation = unwrap_optional(annotation)
    if annotation is Any or annotation is None:
        annotation = type(value)

    if isinstance(value, BaseModel):
        for name, field_info in type(value).model_fields.items():
            child = etree.SubElement(element, qualify(namespace, _field_tag(name, field_info)))
            _write_value(child, getattr(value, name), field_info.annotation, namespace)
        return

    item_type = list_item_type(annotation)
    if item_type is not None or isinstance(value, (list, tuple)):
        for item in value:
            item_annotation = item_type if item_type not in (None, Any) else type(item)
            child = etree.SubElement(element, qualify(namespace, xml_type_name(item_annotation)))
            _write_value(child, item, item_annotation, namespace)
        return

    element.text = format_scalar(value)


def to_xml(
    value: Any,
    annotation: Any = None,
    *,
    tag: str | None = None,
    namespace: str | None = None,
) -> etree._Element:
    """Serializa `value` según `annotation` (por defecto su propio tipo).

    El elemento raíz se llama `tag` o, si no se indica, como el tipo
    (`int`, `ArrayOfString`, nombre del modelo...).
    """

    if annotation is None:
        annotation = type(value)
    element = etree.Element(qualify(namespace, tag or xml_type_name(annotation)))
    _write_value(element, value, annotation, namespace)
    return element


def _coerce(text: str | None, annotation: Any, path: str) -> Any:
    try:
        return TypeAdapter(annotation).validate_python(text)
    except ValidationError as exc:
        raise DeserializationError(f"Invalid value at {path or '/'}: {exc}") from exc


def _decode_base64(text: str, path: str) -> bytes:
    try:
        return base64.b64decode("".join(text.split()), validate=True)
    except binascii.Error as exc:
        raise DeserializationError(f"Invalid base64Binary at {path or '/'}: {exc}") from exc


def _read_structural(
    element: etree._Element,
    annotation: Any,
    on_unknown_element: UnknownElementHandler,
    path: str,
) -> Any:
    """Lee un valor: modelos y listas se recorren, las hojas quedan como texto.

    `bytes` es la excepción: se escribe en base64, así que se decodifica aquí.
    """

    if is_nil(element):
        return None
    inner = unwrap_optional(annotation)
    if is_model_type(inner):
        return _read_model_values(element, inner, on_unknown_element, path)
    item_type = list_item_type(inner)
    if item_type is not None:
        return [
            _read_structural(child, item_type, on_unknown_element, f"{path}/{local_name(child)}[{i}]")
            for i, child in enumerate(child_elements(element))
        ]
    if is_class(inner) and issubclass(inner, bytes):
        return _decode_base64(element_text(element), path)
    return element_text(element)


def _read_model_values(
    element: etree._Element,
    model_type: type[BaseModel],
    on_unknown_element: UnknownElementHandler,
    path: str,
) -> dict[str, Any]:
    fields = {_field_tag(name, info): (name, info) for name, info in model_type.model_fields.items()}
    values: dict[str, Any] = {}

    for child in child_elements(element):
        tag = local_name(child)
        child_path = f"{path}/{tag}"
        match = fields.get(tag)
        if match is None:
            on_unknown_element(
                UnknownElement(name=child.tag, path=child_path, expected=tuple(fields))
            )
            continue
        name, info = match
        # Pydantic valida por alias cuando existe.
        values[info.alias or name] = _read_structural(
            child, info.annotation, on_unknown_element, child_path
        )
    return values


def from_xml(
    element: etree._Element,
    annotation: Any,
    *,
    on_unknown_element: UnknownElementHandler | None = None,
    check_root: bool = False,
) -> Any:
    """Deserializa `element` como `annotation`.

    Con `check_root=True` el nombre local del elemento debe coincidir con
    `xml_type_name(annotation)` (y su namespace con `xml_namespace` si el
    modelo lo define).
    """

    handler = on_unknown_element or log_unknown_element
    inner = unwrap_optional(annotation)

    if check_root:
        expected = xml_type_name(inner)
        if local_name(element) != expected:
            raise DeserializationError(
                f"<{local_name(element)} xmlns='{namespace_of(element) or ''}'> was not expected, "
                f"expected <{expected}>"
            )
        expected_ns = getattr(inner, "xml_namespace", None)
        if expected_ns and namespace_of(element) != expected_ns:
            raise DeserializationError(
                f"Element namespace '{namespace_of(element)}' does not match '{expected_ns}'"
            )

    root_path = f"/{local_name(element)}"
    raw = _read_structural(element, annotation, handler, root_path)
    if is_model_type(inner) and raw is not None:
        try:
            return inner.model_validate(raw)
        except ValidationError as exc:
            raise DeserializationError(
                f"Response does not match {inner.__name__}: {exc}"
            ) from exc
    return _coerce(raw, annotation, root_path)
