"""Result set tabular cargable desde XML (estilo DataSet de ADO.NET).

Formato esperado en servicios ASMX que devuelven un DataSet:

    <GetOrdersResult>
      <xs:schema id="NewDataSet">...columnas tipadas...</xs:schema>
      <diffgr:diffgram>
        <NewDataSet>
          <Orders><Id>1</Id><Total>9.5</Total></Orders>
          ...
        </NewDataSet>
      </diffgr:diffgram>
    </GetOrdersResult>

Sin diffgram, las filas son los hijos del primer elemento `*Result` (o de la
raíz del documento). Sin esquema, todas las columnas son texto.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Iterator
from uuid import UUID

from lxml import etree

from soap_http_client.core.domain.errors import ValueCoercionError
from soap_http_client.core.xml_parsing import (
    XmlSource,
    child_elements,
    element_text,
    is_nil,
    local_name,
    namespace_of,
    parse_xml,
    parse_xsd_datetime,
)

XS_NAMESPACE = "http://www.w3.org/2001/XMLSchema"
DIFFGRAM_NAMESPACE = "urn:schemas-microsoft-com:xml-diffgram-v1"
MSDATA_NAMESPACE = "urn:schemas-microsoft-com:xml-msdata"


def _parse_bool(text: str) -> bool:
    value = text.strip().lower()
    if value in ("true", "1"):
        return True
    if value in ("false", "0"):
        return False
    raise ValueError(text)


_COLUMN_PARSERS: dict[str, Callable[[str], Any]] = {
    "int": int,
    "long": int,
    "short": int,
    "byte": int,
    "unsignedInt": int,
    "unsignedLong": int,
    "unsignedShort": int,
    "unsignedByte": int,
    "integer": int,
    "double": float,
    "float": float,
    "decimal": Decimal,
    "boolean": _parse_bool,
    "dateTime": parse_xsd_datetime,
    "guid": UUID,
}


class ResultTable:
    """Contenedor relacional en memoria: `{tabla: [fila, ...]}`.

    Subclasificable: el invocador reflexivo instancia la subclase declarada
    como tipo de retorno y llama a `load_xml`.
    """

    def __init__(self) -> None:
        self.name: str | None = None
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.column_types: dict[str, dict[str, str]] = {}

    def __getitem__(self, table: str) -> list[dict[str, Any]]:
        return self.tables[table]

    def __contains__(self, table: object) -> bool:
        return table in self.tables

    def __iter__(self) -> Iterator[str]:
        return iter(self.tables)

    def __len__(self) -> int:
        return len(self.tables)

    @property
    def table_names(self) -> list[str]:
        return list(self.tables)

    def rows(self, table: str) -> list[dict[str, Any]]:
        return self.tables.get(table, [])

    def load_xml(self, source: XmlSource | etree._Element) -> "ResultTable":
        """Carga esquema y filas desde un documento (p.ej. la respuesta SOAP cruda)."""

        root = source if isinstance(source, etree._Element) else parse_xml(source)

        schema = next(root.iter(f"{{{XS_NAMESPACE}}}schema"), None)
        if schema is not None:
            self._load_schema(schema)

        container = self._find_rows_container(root)
        if container is None:
            return self
        if self.name is None:
            self.name = local_name(container)

        for row in child_elements(container):
            if namespace_of(row) == XS_NAMESPACE:
                continue
            table = local_name(row)
            self.tables.setdefault(table, []).append(self._read_row(table, row))
        return self

    def _find_rows_container(self, root: etree._Element) -> etree._Element | None:
        diffgram = next(root.iter(f"{{{DIFFGRAM_NAMESPACE}}}diffgram"), None)
        if diffgram is not None:
            # El primer hijo del diffgram es el DataSet; los siguientes (diffgr:before, errors) no.
            return next(child_elements(diffgram), None)

        for element in root.iter():
            if isinstance(element.tag, str) and local_name(element).endswith("Result"):
                return element
        return root

    def _load_schema(self, schema: etree._Element) -> None:
        dataset_id = schema.get("id")
        if dataset_id:
            self.name = dataset_id

        for sequence in schema.iter(f"{{{XS_NAMESPACE}}}sequence"):
            owner = sequence.getparent()
            while owner is not None and owner.tag != f"{{{XS_NAMESPACE}}}element":
                owner = owner.getparent()
            if owner is None or not owner.get("name"):
                continue
            columns = self.column_types.setdefault(owner.get("name"), {})
            for column in sequence.iterchildren(f"{{{XS_NAMESPACE}}}element"):
                name = column.get("name")
                if not name:
                    continue
                columns[name] = self._column_type(column)

    @staticmethod
    def _column_type(column: etree._Element) -> str:
        data_type = column.get(f"{{{MSDATA_NAMESPACE}}}DataType") or ""
        if data_type.startswith("System.Guid"):
            return "guid"
        declared = column.get("type") or "xs:string"
        return declared.split(":")[-1]

    def _read_row(self, table: str, row: etree._Element) -> dict[str, Any]:
        types = self.column_types.get(table, {})
        values: dict[str, Any] = {name: None for name in types}
        for cell in child_elements(row):
            column = local_name(cell)
            if is_nil(cell):
                values[column] = None
                continue
            values[column] = self._convert(element_text(cell), types.get(column, "string"))
        return values

    @staticmethod
    def _convert(text: str, xsd_type: str) -> Any:
        parser = _COLUMN_PARSERS.get(xsd_type)
        if parser is None:
            return text
        try:
            return parser(text.strip())
        except (ValueError, ArithmeticError) as exc:
            raise ValueCoercionError(text, xsd_type) from exc
