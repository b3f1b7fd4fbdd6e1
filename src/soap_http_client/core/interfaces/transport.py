"""Contrato del transporte HTTP.

Por qué Protocol:
- `httpx.AsyncClient` lo cumple tal cual; un stub de tests también.
- El cliente SOAP no depende de cómo se gestionan pooling, TLS o proxies.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

import httpx


@runtime_checkable
class SoapTransport(Protocol):
    """Contrato mínimo: un POST asíncrono que devuelve la respuesta completa."""

    async def post(
        self,
        url: httpx.URL | str,
        *,
        content: bytes,
        headers: Mapping[str, str],
    ) -> httpx.Response:
        ...

    async def aclose(self) -> None:
        ...
