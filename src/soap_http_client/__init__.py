"""Cliente SOAP 1.1 / 1.2 sobre httpx.

API pública:
- `SoapClient.post` / `read` / `read_as` / `invoke`
- `soap_operation` para declarar operaciones tipadas
- modelos (`SoapVersion`, `OperationDefinition`, `DataContract`, `ResultTable`)
- errores (`SoapFaultError`, `InvalidArgumentError`...)
"""

from soap_http_client.adapters.http_client import build_async_client
from soap_http_client.adapters.response_reader import read, read_as
from soap_http_client.adapters.soap_client import SoapClient, soap_operation
from soap_http_client.core.config import ClientSettings
from soap_http_client.core.domain.contracts import ContractSerializer, DataContract
from soap_http_client.core.domain.errors import (
    DeserializationError,
    EnvelopeFormatError,
    InvalidArgumentError,
    InvalidOperationError,
    ResultNotFoundError,
    SoapClientError,
    SoapFaultError,
    UnsupportedTypeError,
    ValueCoercionError,
)
from soap_http_client.core.domain.models import (
    ArrayReturn,
    Char,
    ClientEndpoint,
    ContractReturn,
    OperationDefinition,
    ParameterDefinition,
    ScalarKind,
    ScalarReturn,
    TableReturn,
)
from soap_http_client.core.domain.version import SoapMessageConfiguration, SoapVersion
from soap_http_client.core.envelope import ParsedEnvelope, build_envelope, parse_envelope
from soap_http_client.core.result_table import ResultTable
from soap_http_client.core.xml_mapping import UnknownElement, XmlModel, from_xml, to_xml

__version__ = "0.1.0"

__all__ = [
	"ArrayReturn",
	"Char",
	"ClientEndpoint",
	"ClientSettings",
	"ContractReturn",
	"ContractSerializer",
	"DataContract",
	"DeserializationError",
	"EnvelopeFormatError",
	"InvalidArgumentError",
	"InvalidOperationError",
	"OperationDefinition",
	"ParameterDefinition",
	"ParsedEnvelope",
	"ResultNotFoundError",
	"ResultTable",
	"ScalarKind",
	"ScalarReturn",
	"SoapClient",
	"SoapClientError",
	"SoapFaultError",
	"SoapMessageConfiguration",
	"SoapVersion",
	"TableReturn",
	"UnknownElement",
	"UnsupportedTypeError",
	"ValueCoercionError",
	"XmlModel",
	"build_async_client",
	"build_envelope",
	"from_xml",
	"parse_envelope",
	"read",
	"read_as",
	"soap_operation",
	"to_xml",
]
