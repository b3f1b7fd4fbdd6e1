"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers, TLS y redirecciones del transporte SOAP.
- Facilita testeo: se puede sustituir por un stub o un `httpx.MockTransport`.
"""

from __future__ import annotations

import httpx

from soap_http_client.core.config import ClientSettings


def build_async_client(
    settings: ClientSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que todas las llamadas se comporten igual.
    - httpx descomprime gzip/deflate de forma transparente; lo anunciamos en
      `Accept-Encoding` para que el servidor pueda comprimir.
    """

    settings = settings or ClientSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "text/xml, application/soap+xml, application/xml;q=0.9, */*;q=0.8",
        "Accept-Encoding": "gzip, deflate",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=settings.follow_redirects,
        verify=settings.verify_tls,
        headers=headers,
        transport=transport,
    )
