"""Cliente SOAP sobre httpx.

Responsabilidad:
- `post`: construir el Envelope, añadir el framing del SOAPAction y
  despachar por el transporte inyectado. No interpreta el status HTTP.
- `read` / `read_as`: atajos a `adapters.response_reader`.
- `invoke` / `@soap_operation`: llamada reflexiva a partir de una
  `OperationDefinition` resuelta una sola vez.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from typing import Any, Awaitable, Callable, Iterable, TypeVar, overload

import httpx

from soap_http_client.adapters import response_reader
from soap_http_client.adapters.http_client import build_async_client
from soap_http_client.core.config import ClientSettings
from soap_http_client.core.domain.errors import InvalidArgumentError
from soap_http_client.core.domain.models import ClientEndpoint, OperationDefinition
from soap_http_client.core.domain.version import SoapMessageConfiguration, SoapVersion
from soap_http_client.core.envelope import (
    Fragment,
    build_envelope,
    find_fault,
    serialize_envelope,
)
from soap_http_client.core.interfaces.transport import SoapTransport
from soap_http_client.core.services.operation_codec import build_request_body, decode_result
from soap_http_client.core.xml_mapping import UnknownElementHandler

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def build_content_type(config: SoapMessageConfiguration, action: str | None = None) -> str:
    """`Content-Type` del request; SOAP 1.2 lleva el action como parámetro."""

    content_type = f"{config.media_type}; charset=utf-8"
    if action is not None and config.soap_version is SoapVersion.V1_2:
        quoted = action.replace("\\", "\\\\").replace('"', '\\"')
        content_type += f'; action="{quoted}"'
    return content_type


class SoapClient:
    """Cliente SOAP 1.1 / 1.2.

    Por qué inyectar el transporte:
    - Pooling, TLS, proxies y timeouts son responsabilidad de httpx.
    - En tests se pasa un `httpx.AsyncClient` con `MockTransport`.

    Los campos de endpoint (`uri`, `soap_version`, `service_namespace`) solo
    los usa `invoke`; `post` recibe todo por parámetro.
    """

    def __init__(
        self,
        transport: SoapTransport | None = None,
        *,
        settings: ClientSettings | None = None,
        uri: str | None = None,
        soap_version: SoapVersion | str | None = None,
        service_namespace: str = "http://tempuri.org/",
    ) -> None:
        self._settings = settings or ClientSettings()
        config = SoapMessageConfiguration.from_version(soap_version or self._settings.default_soap_version)
        self._owns_transport = transport is None
        self._transport: SoapTransport = transport or build_async_client(self._settings)
        self.endpoint = ClientEndpoint(
            uri=uri,
            soap_version=config.soap_version,
            service_namespace=service_namespace,
        )

    # -- endpoint state ---------------------------------------------------

    @property
    def uri(self) -> str | None:
        return self.endpoint.uri

    @uri.setter
    def uri(self, value: str | None) -> None:
        self.endpoint.uri = value

    @property
    def soap_version(self) -> SoapVersion:
        return self.endpoint.soap_version

    @soap_version.setter
    def soap_version(self, value: SoapVersion | str) -> None:
        self.endpoint.soap_version = SoapMessageConfiguration.from_version(value).soap_version

    @property
    def service_namespace(self) -> str:
        return self.endpoint.service_namespace

    @service_namespace.setter
    def service_namespace(self, value: str) -> None:
        self.endpoint.service_namespace = value

    # -- lifecycle --------------------------------------------------------

    async def aclose(self) -> None:
        """Cierra el transporte solo si lo creó este cliente."""

        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> "SoapClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- message exchange -------------------------------------------------

    async def post(
        self,
        endpoint: httpx.URL | str | None,
        soap_version: SoapVersion | str,
        bodies: Iterable[Fragment] | None,
        headers: Iterable[Fragment] | None = None,
        action: str | None = None,
        cancellation: asyncio.Event | None = None,
    ) -> httpx.Response:
        """Envía un mensaje SOAP y devuelve la respuesta HTTP sin interpretarla.

        Con `action`, se añade el header `SOAPAction`; en SOAP 1.2 además va en
        el `Content-Type` como `action="..."`. Si `cancellation` se activa antes
        de que llegue la respuesta, el POST se cancela y se propaga
        `asyncio.CancelledError`.
        """

        if endpoint is None:
            raise InvalidArgumentError("An endpoint is required", argument="endpoint")
        if bodies is None:
            raise InvalidArgumentError("Bodies are required", argument="bodies")

        config = SoapMessageConfiguration.from_version(soap_version)
        envelope = build_envelope(config, bodies, headers)
        payload = serialize_envelope(envelope)

        request_headers = {"Content-Type": build_content_type(config, action)}
        if action is not None:
            request_headers["SOAPAction"] = action

        logger.debug("POST %s (%s, action=%s)", endpoint, config.soap_version.label(), action)
        if self._settings.log_envelopes:
            logger.debug("Sending request:\n%s", payload.decode("utf-8"))

        response = await self._dispatch(
            self._transport.post(endpoint, content=payload, headers=request_headers),
            cancellation,
        )
        logger.debug("Response %s %s from %s", response.status_code, response.reason_phrase, endpoint)
        return response

    @staticmethod
    async def _dispatch(request: Awaitable[httpx.Response], cancellation: asyncio.Event | None) -> httpx.Response:
        if cancellation is None:
            return await request

        post_task = asyncio.ensure_future(request)
        cancel_task = asyncio.ensure_future(cancellation.wait())
        try:
            await asyncio.wait({post_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            cancel_task.cancel()
            if not post_task.done():
                post_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await post_task

        if post_task.cancelled():
            raise asyncio.CancelledError("SOAP request cancelled")
        return post_task.result()

    # -- response reading -------------------------------------------------

    def read(self, response: httpx.Response | None, soap_version: SoapVersion | str | None = None) -> str:
        return response_reader.read(response, soap_version or self.soap_version)

    def read_as(
        self,
        response: httpx.Response | None,
        result_type: type[T] | Any,
        soap_version: SoapVersion | str | None = None,
        on_unknown_element: UnknownElementHandler | None = None,
    ) -> T:
        return response_reader.read_as(
            response,
            soap_version or self.soap_version,
            result_type,
            on_unknown_element=on_unknown_element,
        )

    # -- reflective invocation ---------------------------------------------

    async def invoke(self, operation: OperationDefinition, *args: Any, **kwargs: Any) -> Any:
        """Llama a `operation` con los campos de endpoint de este cliente.

        Los argumentos se serializan por su tipo declarado, en el orden de la
        definición; la respuesta se decodifica según `operation.returns`.
        """

        if self.uri is None:
            raise InvalidArgumentError("Client uri is not configured", argument="uri")

        values = operation.bind(args, kwargs)
        namespace = self.service_namespace
        config = SoapMessageConfiguration.from_version(self.soap_version)
        body = build_request_body(operation, values, namespace)

        response = await self.post(self.uri, config.soap_version, [body], action=operation.action)

        if not response.is_success:
            fault = find_fault(response.content, config)
            if fault is not None:
                raise fault
            response_reader.ensure_success(response)

        return decode_result(operation.returns, response.content, config, namespace)


@overload
def soap_operation(func: F) -> F: ...


@overload
def soap_operation(*, name: str | None = None, action: str | None = None) -> Callable[[F], F]: ...


def soap_operation(
    func: F | None = None,
    *,
    name: str | None = None,
    action: str | None = None,
) -> F | Callable[[F], F]:
    """Declara un método de una subclase de `SoapClient` como operación remota.

        class Calculator(SoapClient):
            @soap_operation(action="http://tempuri.org/Add")
            async def Add(self, intA: int, intB: int) -> int: ...

    La firma se inspecciona una vez al decorar; el cuerpo del método no se ejecuta.
    """

    def decorator(method: F) -> F:
        operation = OperationDefinition.from_callable(method, name=name, action=action)

        @functools.wraps(method)
        async def wrapper(self: SoapClient, *args: Any, **kwargs: Any) -> Any:
            return await self.invoke(operation, *args, **kwargs)

        wrapper.operation = operation  # type: ignore[attr-defined]
        return wrapper  # type: ignore[return-value]

    if func is not None:
        return decorator(func)
    return decorator
