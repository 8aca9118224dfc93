"""
SOAP response parsing.

parse_response() turns the raw text returned by the transport into a
RequestResponse, or raises UpnpFault / InvalidResponse. The per-action
helpers pull the payload out of a successful response.
"""

import logging
from ipaddress import AddressValueError, IPv4Address

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from igd.errors import InvalidResponse, UpnpFault
from igd.models import RequestResponse, local_name

logger = logging.getLogger(__name__)


def _find(element, name: str):
    """First descendant (or self) whose local tag name matches."""
    for node in element.iter():
        if local_name(node.tag) == name:
            return node
    return None


def parse_response(text: str, ok: str) -> RequestResponse:
    """Parse a SOAP response expecting the ``ok`` element inside the Body."""
    try:
        root = ET.fromstring(text)
    except (ET.ParseError, DefusedXmlException) as e:
        raise InvalidResponse(text, f"Response is not valid XML: {e}") from e

    body = next((c for c in root if local_name(c.tag) == "Body"), None)
    if body is None or len(body) == 0:
        raise InvalidResponse(text, "Response has no SOAP body")

    element = body[0]
    name = local_name(element.tag)
    if name == ok:
        return RequestResponse(text, element)
    if name == "Fault":
        raise _parse_fault(text, element)
    raise InvalidResponse(text, f"Expected {ok}, got {name}")


def _parse_fault(text: str, fault) -> Exception:
    code_elem = _find(fault, "errorCode")
    if code_elem is None or not (code_elem.text or "").strip():
        return InvalidResponse(text, "SOAP fault without a UPnP error code")
    try:
        code = int(code_elem.text.strip())
    except ValueError:
        return InvalidResponse(text, f"Invalid UPnP error code: {code_elem.text!r}")

    desc_elem = _find(fault, "errorDescription")
    description = (desc_elem.text or "").strip() if desc_elem is not None else ""
    logger.debug(f"Gateway returned UPnP fault {code}: {description}")
    return UpnpFault(code, description)


def parse_get_external_ip_response(resp: RequestResponse) -> IPv4Address:
    value = resp.child_text("NewExternalIPAddress")
    if not value:
        raise InvalidResponse(resp.text, "Response has no NewExternalIPAddress")
    try:
        return IPv4Address(value)
    except AddressValueError as e:
        raise InvalidResponse(resp.text, f"Invalid external IP address: {value!r}") from e


def parse_add_any_port_mapping_response(resp: RequestResponse) -> int:
    """Port the device actually reserved, which may differ from the one proposed."""
    value = resp.child_text("NewReservedPort")
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise InvalidResponse(resp.text, f"Invalid NewReservedPort: {value!r}") from None
    if not 0 < port <= 65535:
        raise InvalidResponse(resp.text, f"NewReservedPort out of range: {port}")
    return port
