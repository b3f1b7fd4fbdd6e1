"""CLI `soap-http-client`.

Comandos:
- `call`: envía fragmentos de Body (y Header) a un endpoint y muestra el resultado.
- `envelope`: muestra el Envelope que se enviaría, sin red.
- `versions`: tabla de versiones SOAP soportadas.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler

from soap_http_client.adapters.response_reader import read
from soap_http_client.adapters.soap_client import SoapClient
from soap_http_client.cli.ui_components import (
    build_fault_panel,
    build_response_summary,
    build_versions_table,
    build_xml_panel,
)
from soap_http_client.core.config import ClientSettings
from soap_http_client.core.domain.errors import SoapClientError, SoapFaultError
from soap_http_client.core.domain.version import SoapMessageConfiguration, SoapVersion
from soap_http_client.core.envelope import build_envelope, find_fault, serialize_envelope
from soap_http_client.core.xml_parsing import parse_xml

app = typer.Typer(no_args_is_help=True, help="SOAP 1.1 / 1.2 client over HTTP.")

_console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_fragments(paths: list[Path]) -> list:
    return [parse_xml(path.read_bytes()) for path in paths]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests/responses (DEBUG)."),
) -> None:
    _configure_logging(verbose)


@app.command()
def versions() -> None:
    """Show supported SOAP versions."""

    _console.print(build_versions_table())


@app.command()
def envelope(
    body: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Body fragment file(s)."),
    soap_version: SoapVersion = typer.Option(SoapVersion.V1_1, "--soap-version", "-s"),
    header: Optional[list[Path]] = typer.Option(None, "--header", "-H", exists=True, dir_okay=False),
) -> None:
    """Print the envelope that would be sent."""

    try:
        config = SoapMessageConfiguration.from_version(soap_version)
        built = build_envelope(config, _load_fragments(body), _load_fragments(header or []))
    except SoapClientError as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    typer.echo(serialize_envelope(built).decode("utf-8"))


async def _call(
    *,
    url: str,
    soap_version: SoapVersion,
    bodies: list,
    headers: list,
    action: str | None,
) -> httpx.Response:
    async with SoapClient(settings=ClientSettings()) as client:
        return await client.post(url, soap_version, bodies, headers, action=action)


@app.command()
def call(
    url: str = typer.Argument(..., help="SOAP endpoint URL."),
    body: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Body fragment file(s)."),
    soap_version: SoapVersion = typer.Option(SoapVersion.V1_1, "--soap-version", "-s"),
    action: Optional[str] = typer.Option(None, "--action", "-a", help="SOAPAction."),
    header: Optional[list[Path]] = typer.Option(None, "--header", "-H", exists=True, dir_okay=False),
    raw: bool = typer.Option(False, "--raw", help="Print the raw response envelope."),
) -> None:
    """Post body fragment(s) to URL and print the result."""

    try:
        response = asyncio.run(
            _call(
                url=url,
                soap_version=soap_version,
                bodies=_load_fragments(body),
                headers=_load_fragments(header or []),
                action=action,
            )
        )
    except (SoapClientError, httpx.HTTPError) as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    _console.print(build_response_summary(response))
    if raw:
        _console.print(build_xml_panel(response.text, title="Response"))
        return

    config = SoapMessageConfiguration.from_version(soap_version)
    fault = None if response.is_success else find_fault(response.content, config)
    if fault is not None:
        _console.print(build_fault_panel(fault))
        raise typer.Exit(code=1)

    try:
        result = read(response, config.soap_version)
    except SoapFaultError as fault_error:
        _console.print(build_fault_panel(fault_error))
        raise typer.Exit(code=1) from fault_error
    except SoapClientError as exc:
        _console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    typer.echo(result)


def run() -> None:
    app()
