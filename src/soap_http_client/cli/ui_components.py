"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import httpx
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from soap_http_client.core.domain.errors import SoapFaultError
from soap_http_client.core.domain.version import SoapMessageConfiguration, SoapVersion


def build_versions_table() -> Table:
    """Tabla versión -> namespace / media type."""

    table = Table(title="SOAP Versions")
    table.add_column("Version", style="cyan", no_wrap=True)
    table.add_column("Namespace", style="white")
    table.add_column("Media type", style="magenta")
    for version in SoapVersion:
        config = SoapMessageConfiguration.from_version(version)
        table.add_row(version.label(), config.namespace, config.media_type)
    return table


def build_xml_panel(xml: str, *, title: str) -> Panel:
    return Panel(Syntax(xml, "xml", word_wrap=True), title=title, border_style="cyan")


def build_response_summary(response: httpx.Response) -> Text:
    style = "green" if response.is_success else "red"
    return Text(f"HTTP {response.status_code} {response.reason_phrase}", style=style)


def build_fault_panel(fault: SoapFaultError) -> Panel:
    """Panel para presentar un `SoapFaultError`."""

    body = Text()
    body.append(f"Code: {fault.code or '-'}\n", style="bold")
    body.append(f"Reason: {fault.reason or '-'}\n")
    if fault.actor:
        body.append(f"Actor: {fault.actor}\n", style="dim")
    if fault.detail:
        body.append(f"\n{fault.detail}", style="dim")
    return Panel(body, title=Text("SOAP Fault", style="bold red"), border_style="red")
