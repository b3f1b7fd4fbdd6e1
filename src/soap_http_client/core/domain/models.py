"""Modelos del dominio para la invocación reflexiva.

Por qué definiciones explícitas:
- El nombre de la operación, sus parámetros ordenados y la forma del retorno
  se resuelven una sola vez (al declarar la operación), no en cada llamada.
- `ReturnShape` es un conjunto cerrado de variantes; el decodificador hace
  dispatch sobre ellas sin volver a inspeccionar tipos.
"""

from __future__ import annotations

import inspect
import typing
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, NewType, Sequence
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from soap_http_client.core.domain.contracts import is_data_contract
from soap_http_client.core.domain.errors import InvalidOperationError, UnsupportedTypeError
from soap_http_client.core.domain.version import SoapVersion
from soap_http_client.core.result_table import ResultTable
from soap_http_client.core.xml_mapping import (
    is_class,
    is_model_type,
    list_item_type,
    unwrap_optional,
)

Char = NewType("Char", str)
"""Anotación para retornos de un solo carácter."""


class ScalarKind(str, Enum):
    STRING = "string"
    CHAR = "char"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOL = "bool"
    DATETIME = "datetime"
    UUID = "uuid"

    @classmethod
    def from_annotation(cls, annotation: Any) -> "ScalarKind":
        """Tipo Python -> kind; lo no reconocido se devuelve como texto crudo."""

        annotation = unwrap_optional(annotation)
        if annotation is Char:
            return cls.CHAR
        if not is_class(annotation):
            return cls.STRING
        # bool antes que int: bool es subclase de int.
        for base, kind in (
            (bool, cls.BOOL),
            (int, cls.INT),
            (float, cls.FLOAT),
            (Decimal, cls.DECIMAL),
            (datetime, cls.DATETIME),
            (UUID, cls.UUID),
        ):
            if issubclass(annotation, base):
                return kind
        return cls.STRING


@dataclass(frozen=True)
class ScalarReturn:
    kind: ScalarKind = ScalarKind.STRING


@dataclass(frozen=True)
class ArrayReturn:
    element_kind: ScalarKind = ScalarKind.STRING


@dataclass(frozen=True)
class ContractReturn:
    model: type[BaseModel]


@dataclass(frozen=True)
class TableReturn:
    table_type: type[ResultTable] = ResultTable


ReturnShape = ScalarReturn | ArrayReturn | ContractReturn | TableReturn


def resolve_return_shape(annotation: Any) -> ReturnShape:
    """Clasifica una anotación de retorno en su variante de decodificación."""

    inner = unwrap_optional(annotation)
    if is_class(inner) and issubclass(inner, ResultTable):
        return TableReturn(table_type=inner)
    if is_data_contract(inner):
        return ContractReturn(model=inner)

    item = list_item_type(inner)
    if item is not None:
        item = unwrap_optional(item)
        if (
            is_model_type(item)
            or (is_class(item) and issubclass(item, ResultTable))
            or list_item_type(item) is not None
        ):
            raise UnsupportedTypeError(
                f"Array results only support primitive element types, got {item!r}"
            )
        return ArrayReturn(element_kind=ScalarKind.from_annotation(item))

    return ScalarReturn(kind=ScalarKind.from_annotation(inner))


@dataclass(frozen=True)
class ParameterDefinition:
    name: str
    annotation: Any = Any
    default: Any = inspect.Parameter.empty

    @property
    def required(self) -> bool:
        return self.default is inspect.Parameter.empty


@dataclass(frozen=True)
class OperationDefinition:
    """Operación remota: nombre, parámetros en orden de declaración y forma del retorno.

    `returns=None` indica una operación sin resultado (la respuesta no se decodifica).
    """

    name: str
    parameters: tuple[ParameterDefinition, ...] = ()
    returns: ReturnShape | None = field(default_factory=ScalarReturn)
    action: str | None = None

    @classmethod
    def create(
        cls,
        name: str,
        parameters: Sequence[tuple[str, Any]] = (),
        returns: Any = str,
        *,
        action: str | None = None,
    ) -> "OperationDefinition":
        """Atajo: `returns` es una anotación Python (`int`, `list[str]`, un DataContract...)."""

        return cls(
            name=name,
            parameters=tuple(ParameterDefinition(n, a) for n, a in parameters),
            returns=None if returns is None else resolve_return_shape(returns),
            action=action,
        )

    @classmethod
    def from_callable(
        cls,
        func: Callable[..., Any],
        *,
        name: str | None = None,
        action: str | None = None,
    ) -> "OperationDefinition":
        """Deriva la definición de la firma de `func` (ignora `self`/`cls`)."""

        operation_name = name or func.__name__
        try:
            hints = typing.get_type_hints(func)
        except NameError as exc:
            raise InvalidOperationError(
                f"Cannot resolve annotations of operation '{operation_name}': {exc}"
            ) from exc

        if "return" not in hints:
            raise InvalidOperationError(
                f"Operation '{operation_name}' must declare its return type"
            )

        parameters: list[ParameterDefinition] = []
        for index, param in enumerate(inspect.signature(func).parameters.values()):
            if index == 0 and param.name in ("self", "cls"):
                continue
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                raise InvalidOperationError(
                    f"Operation '{operation_name}' cannot use *args/**kwargs parameters"
                )
            parameters.append(
                ParameterDefinition(
                    name=param.name,
                    annotation=hints.get(param.name, Any),
                    default=param.default,
                )
            )

        return_annotation = hints["return"]
        returns = None if return_annotation is type(None) else resolve_return_shape(return_annotation)
        return cls(name=operation_name, parameters=tuple(parameters), returns=returns, action=action)

    def bind(self, args: Sequence[Any], kwargs: dict[str, Any] | None = None) -> list[Any]:
        """Ordena los argumentos según la declaración de parámetros."""

        if len(args) > len(self.parameters):
            raise InvalidOperationError(
                f"Operation '{self.name}' takes {len(self.parameters)} arguments, got {len(args)}"
            )

        remaining = dict(kwargs or {})
        values = list(args)
        for param in self.parameters[len(args):]:
            if param.name in remaining:
                values.append(remaining.pop(param.name))
            elif not param.required:
                values.append(param.default)
            else:
                raise InvalidOperationError(
                    f"Missing argument '{param.name}' for operation '{self.name}'"
                )

        if remaining:
            raise InvalidOperationError(
                f"Unexpected arguments for operation '{self.name}': {', '.join(sorted(remaining))}"
            )
        return values


class ClientEndpoint(BaseModel):
    """Estado de endpoint para llamadas reflexivas (vive lo que vive el cliente).

    Un solo escritor: no se sincroniza su mutación durante llamadas en curso.
    """

    model_config = ConfigDict(validate_assignment=True)

    uri: str | None = Field(
        default=None,
        description="URL del servicio SOAP.",
    )
    soap_version: SoapVersion = Field(
        default=SoapVersion.V1_1,
        description="Versión SOAP usada por `invoke`.",
    )
    service_namespace: str = Field(
        default="http://tempuri.org/",
        description="Namespace del servicio (operación y parámetros).",
    )
