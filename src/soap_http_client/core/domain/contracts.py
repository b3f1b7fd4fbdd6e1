"""Tipos data-contract.

Por qué una marca explícita:
- Un data-contract declara su forma (nombre, namespace, miembros) en vez de
  inferirla; el invocador reflexivo lo detecta por herencia y usa el lector
  de contratos en lugar del mapper genérico.
"""

from __future__ import annotations

from typing import Any, ClassVar

from lxml import etree

from soap_http_client.core.domain.errors import DeserializationError
from soap_http_client.core.xml_mapping import UnknownElement, XmlModel, from_xml, is_class
from soap_http_client.core.xml_parsing import local_name, namespace_of


class DataContract(XmlModel):
    """Base de los modelos data-contract.

    - `contract_name`: nombre del elemento raíz (por defecto, el de la clase).
    - `contract_namespace`: si se define, la raíz debe estar en ese namespace.
    """

    contract_name: ClassVar[str | None] = None
    contract_namespace: ClassVar[str | None] = None

    @classmethod
    def get_contract_name(cls) -> str:
        return cls.contract_name or cls.xml_name or cls.__name__


def is_data_contract(annotation: Any) -> bool:
    return is_class(annotation) and issubclass(annotation, DataContract)


def _ignore_unknown(_: UnknownElement) -> None:
    """Los contratos toleran miembros extra (datos de versiones futuras)."""


class ContractSerializer:
    """Lector de data-contracts sobre el mapper genérico."""

    def __init__(self, model_type: type[DataContract]) -> None:
        if not is_data_contract(model_type):
            raise TypeError(f"{model_type!r} is not a DataContract type")
        self.model_type = model_type

    def read_object(self, element: etree._Element) -> DataContract:
        expected_name = self.model_type.get_contract_name()
        if local_name(element) != expected_name:
            raise DeserializationError(
                f"Expecting element '{expected_name}', found '{local_name(element)}'"
            )

        expected_ns = self.model_type.contract_namespace
        if expected_ns is not None and namespace_of(element) != expected_ns:
            raise DeserializationError(
                f"Expecting namespace '{expected_ns}' for '{expected_name}', "
                f"found '{namespace_of(element) or ''}'"
            )

        return from_xml(element, self.model_type, on_unknown_element=_ignore_unknown)
