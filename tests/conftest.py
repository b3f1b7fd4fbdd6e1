"""
Shared pytest fixtures for all tests.

Provides envelope builders for canned SOAP responses and a factory for
SoapClient instances backed by httpx.MockTransport.
"""

from typing import Awaitable, Callable

import httpx
import pytest

from soap_http_client import SoapClient
from soap_http_client.core.domain.version import SOAP11_NAMESPACE, SOAP12_NAMESPACE

SERVICE_NAMESPACE = "http://tempuri.org/"


# ============================================================================
# ENVELOPE FIXTURES
# ============================================================================


def _envelope(body: str, *, version: str = "1.1", qualified: bool = True, header: str = "") -> bytes:
    namespace = SOAP12_NAMESPACE if version == "1.2" else SOAP11_NAMESPACE
    if not qualified:
        header_xml = f"<Header>{header}</Header>" if header else ""
        return f"<Envelope>{header_xml}<Body>{body}</Body></Envelope>".encode("utf-8")

    header_xml = f"<soap:Header>{header}</soap:Header>" if header else ""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<soap:Envelope xmlns:soap="{namespace}" '
        'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
        'xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
        f"{header_xml}<soap:Body>{body}</soap:Body></soap:Envelope>"
    ).encode("utf-8")


@pytest.fixture
def make_envelope() -> Callable[..., bytes]:
    """Return a builder for raw SOAP envelopes."""
    return _envelope


@pytest.fixture
def make_response() -> Callable[..., httpx.Response]:
    """Return a builder for httpx responses carrying a SOAP envelope."""

    def _build(body: str, *, status_code: int = 200, **envelope_options: object) -> httpx.Response:
        return httpx.Response(status_code, content=_envelope(body, **envelope_options))

    return _build


# ============================================================================
# CLIENT FIXTURES
# ============================================================================


class RecordingHandler:
    """MockTransport handler that records requests and replays a response."""

    def __init__(self, response: httpx.Response | Callable[[httpx.Request], Awaitable[httpx.Response]]):
        self._response = response
        self.requests: list[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self._response, httpx.Response):
            return httpx.Response(self._response.status_code, content=self._response.content)
        return await self._response(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def make_client() -> Callable[..., tuple[SoapClient, RecordingHandler]]:
    """Return a factory building a SoapClient over a recording MockTransport."""

    def _build(response, client_class: type[SoapClient] = SoapClient, **client_options):
        handler = RecordingHandler(response)
        transport = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client_options.setdefault("service_namespace", SERVICE_NAMESPACE)
        return client_class(transport, **client_options), handler

    return _build
