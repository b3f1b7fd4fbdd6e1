"""Unit tests for envelope building and parsing."""

import io

import pytest
from lxml import etree

from soap_http_client import (
    EnvelopeFormatError,
    InvalidArgumentError,
    SoapFaultError,
    SoapMessageConfiguration,
    SoapVersion,
    build_envelope,
    parse_envelope,
)
from soap_http_client.core.envelope import find_fault, serialize_envelope

ALL_VERSIONS = [SoapVersion.V1_1, SoapVersion.V1_2]


def _shape(element):
    """Comparable structure of an element: tag, attributes, text and children."""
    return (
        element.tag,
        dict(element.attrib),
        (element.text or "").strip(),
        [_shape(child) for child in element if isinstance(child.tag, str)],
    )


def _fragment(xml: str):
    return etree.fromstring(xml)


class TestBuildEnvelope:
    """Tests for build_envelope."""

    def test_builds_envelope_and_body(self) -> None:
        """Should qualify Envelope/Body with the version namespace and declare the soap prefix."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        envelope = build_envelope(config, [_fragment('<GetPrice xmlns="urn:shop"><Item>A</Item></GetPrice>')])

        assert envelope.tag == f"{{{config.namespace}}}Envelope"
        assert envelope.nsmap["soap"] == config.namespace
        children = list(envelope)
        assert [c.tag for c in children] == [f"{{{config.namespace}}}Body"]
        assert children[0][0].tag == "{urn:shop}GetPrice"

    def test_header_precedes_body(self) -> None:
        """Should add a Header before the Body when header fragments are given."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_2)
        envelope = build_envelope(
            config,
            [_fragment("<Ping/>")],
            [_fragment('<Auth xmlns="urn:auth">token</Auth>')],
        )

        assert [c.tag for c in envelope] == [
            f"{{{config.namespace}}}Header",
            f"{{{config.namespace}}}Body",
        ]
        assert envelope[0][0].text == "token"

    def test_empty_headers_are_omitted(self) -> None:
        """Should not add an empty Header element."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        envelope = build_envelope(config, [_fragment("<Ping/>")], [])
        assert len(envelope) == 1

    @pytest.mark.parametrize("version", ALL_VERSIONS)
    def test_empty_bodies_fail(self, version) -> None:
        """Should fail with InvalidArgumentError on an empty body sequence."""
        config = SoapMessageConfiguration.from_version(version)
        with pytest.raises(InvalidArgumentError):
            build_envelope(config, [])

    def test_missing_bodies_fail(self) -> None:
        """Should fail with InvalidArgumentError when bodies is None."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        with pytest.raises(InvalidArgumentError):
            build_envelope(config, None)

    def test_does_not_move_caller_fragments(self) -> None:
        """Should copy fragments instead of re-parenting the caller's elements."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        fragment = _fragment("<Ping/>")
        build_envelope(config, [fragment])
        assert fragment.getparent() is None

    def test_accepts_string_fragments(self) -> None:
        """Should parse fragments given as XML text."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        envelope = build_envelope(config, ['<Echo xmlns="urn:echo">hi</Echo>'])
        assert envelope[0][0].tag == "{urn:echo}Echo"

    def test_serializes_to_utf8_with_declaration(self) -> None:
        """Should serialize with an XML declaration in UTF-8."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        payload = serialize_envelope(build_envelope(config, ["<Saludo>¡Hola!</Saludo>"]))
        assert payload.startswith(b"<?xml")
        assert b"utf-8" in payload.split(b"?>")[0].lower()
        assert "¡Hola!".encode("utf-8") in payload


class TestRoundTrip:
    """Building then parsing recovers the original fragments."""

    @pytest.mark.parametrize("version", ALL_VERSIONS)
    def test_recovers_bodies_and_headers_in_order(self, version) -> None:
        """Should recover body and header fragments in their original order."""
        config = SoapMessageConfiguration.from_version(version)
        bodies = [
            _fragment('<m:First xmlns:m="urn:m"><m:Value>1</m:Value></m:First>'),
            _fragment('<Second attr="x">two</Second>'),
        ]
        headers = [_fragment('<h:Token xmlns:h="urn:h">abc</h:Token>'), _fragment("<Trace>on</Trace>")]

        payload = serialize_envelope(build_envelope(config, bodies, headers))
        parsed = parse_envelope(payload, config)

        assert [_shape(b) for b in parsed.bodies] == [_shape(b) for b in bodies]
        assert [_shape(h) for h in parsed.headers] == [_shape(h) for h in headers]
        assert parsed.namespace == config.namespace
        assert parsed.content.tag == "{urn:m}First"


class TestParseEnvelope:
    """Tests for parse_envelope."""

    def test_accepts_unqualified_root(self, make_envelope) -> None:
        """Should read an envelope without namespaces."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        parsed = parse_envelope(make_envelope("<Result>42</Result>", qualified=False), config)
        assert parsed.namespace is None
        assert parsed.content.text == "42"

    def test_accepts_stream_source(self, make_envelope) -> None:
        """Should read from a binary stream."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        parsed = parse_envelope(io.BytesIO(make_envelope("<Result>1</Result>")), config)
        assert parsed.content.text == "1"

    def test_rejects_namespace_of_other_version(self, make_envelope) -> None:
        """Should reject a qualified root in another version's namespace."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        with pytest.raises(EnvelopeFormatError):
            parse_envelope(make_envelope("<Result>1</Result>", version="1.2"), config)

    def test_rejects_non_envelope_root(self) -> None:
        """Should reject documents whose root is not Envelope."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        with pytest.raises(EnvelopeFormatError):
            parse_envelope(b"<html><body/></html>", config)

    def test_rejects_missing_body(self) -> None:
        """Should reject an envelope without Body."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        with pytest.raises(EnvelopeFormatError):
            parse_envelope(f'<s:Envelope xmlns:s="{config.namespace}"/>', config)

    def test_rejects_empty_body(self, make_envelope) -> None:
        """Should reject a Body without content elements."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        with pytest.raises(EnvelopeFormatError):
            parse_envelope(make_envelope(""), config)

    def test_rejects_malformed_xml(self) -> None:
        """Should surface malformed XML as EnvelopeFormatError."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        with pytest.raises(EnvelopeFormatError):
            parse_envelope(b"<Envelope><Body>", config)

    def test_rejects_doctype(self) -> None:
        """Should refuse documents that carry a DTD (entity expansion)."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        document = (
            b'<?xml version="1.0"?>'
            b'<!DOCTYPE Envelope [<!ENTITY a "aaaaaaaaaa"><!ENTITY b "&a;&a;&a;&a;&a;">]>'
            b"<Envelope><Body><Result>&b;</Result></Body></Envelope>"
        )
        with pytest.raises(EnvelopeFormatError):
            parse_envelope(document, config)


class TestFaults:
    """A Fault as first body element always yields SoapFaultError."""

    def test_soap11_fault(self, make_envelope) -> None:
        """Should decode faultcode/faultstring for SOAP 1.1."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        body = (
            "<soap:Fault><faultcode>soap:Client</faultcode>"
            "<faultstring>Invalid input</faultstring>"
            "<detail><Reason>bad id</Reason></detail></soap:Fault>"
        )
        with pytest.raises(SoapFaultError) as exc_info:
            parse_envelope(make_envelope(body), config)

        assert exc_info.value.code == "soap:Client"
        assert exc_info.value.reason == "Invalid input"
        assert "bad id" in exc_info.value.detail

    def test_soap12_fault(self, make_envelope) -> None:
        """Should decode Code/Value and Reason/Text for SOAP 1.2."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_2)
        body = (
            "<soap:Fault><soap:Code><soap:Value>soap:Sender</soap:Value></soap:Code>"
            '<soap:Reason><soap:Text xml:lang="en">Bad request</soap:Text></soap:Reason></soap:Fault>'
        )
        with pytest.raises(SoapFaultError) as exc_info:
            parse_envelope(make_envelope(body, version="1.2"), config)

        assert exc_info.value.code == "soap:Sender"
        assert exc_info.value.reason == "Bad request"

    @pytest.mark.parametrize("version", ALL_VERSIONS)
    def test_unqualified_fault(self, make_envelope, version) -> None:
        """Should detect a Fault in an unqualified envelope for every version."""
        config = SoapMessageConfiguration.from_version(version)
        body = "<Fault><faultstring>boom</faultstring></Fault>"
        with pytest.raises(SoapFaultError):
            parse_envelope(make_envelope(body, qualified=False), config)

    def test_fault_in_other_namespace_is_content(self, make_envelope) -> None:
        """Should treat a Fault element outside the envelope namespace as regular content."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        parsed = parse_envelope(make_envelope('<Fault xmlns="urn:app">not a soap fault</Fault>'), config)
        assert parsed.content.tag == "{urn:app}Fault"

    def test_find_fault(self, make_envelope) -> None:
        """Should return the fault when present and None otherwise."""
        config = SoapMessageConfiguration.from_version(SoapVersion.V1_1)
        fault = find_fault(make_envelope("<soap:Fault><faultstring>x</faultstring></soap:Fault>"), config)
        assert isinstance(fault, SoapFaultError)
        assert find_fault(make_envelope("<Ok/>"), config) is None
        assert find_fault(b"Internal Server Error", config) is None
