"""SOAP request bodies for the WANIPConnection control actions."""

from xml.sax.saxutils import escape

from igd.models import PortMappingProtocol, SocketAddress

SERVICE_TYPE = "urn:schemas-upnp-org:service:WANIPConnection:1"


def _action_header(action: str) -> str:
    return f'"{SERVICE_TYPE}#{action}"'


GET_EXTERNAL_IP_HEADER = _action_header("GetExternalIPAddress")
ADD_ANY_PORT_MAPPING_HEADER = _action_header("AddAnyPortMapping")
ADD_PORT_MAPPING_HEADER = _action_header("AddPortMapping")
DELETE_PORT_MAPPING_HEADER = _action_header("DeletePortMapping")

_ENVELOPE = """<?xml version="1.0"?>
<s:Envelope xmlns:s="http://schemas.xmlsoap.org/soap/envelope/" s:encodingStyle="http://schemas.xmlsoap.org/soap/encoding/">
<s:Body>
<u:{action} xmlns:u="{service}">
{params}</u:{action}>
</s:Body>
</s:Envelope>"""


def _format(action: str, params: list[tuple[str, object]]) -> str:
    body = "".join(f"<{name}>{escape(str(value))}</{name}>\n" for name, value in params)
    return _ENVELOPE.format(action=action, service=SERVICE_TYPE, params=body)


def format_get_external_ip_message() -> str:
    return _format("GetExternalIPAddress", [])


def _mapping_params(
    protocol: PortMappingProtocol,
    external_port: int,
    local_addr: SocketAddress,
    lease_duration: int,
    description: str,
) -> list[tuple[str, object]]:
    return [
        ("NewRemoteHost", ""),
        ("NewExternalPort", external_port),
        ("NewProtocol", PortMappingProtocol(protocol).value),
        ("NewInternalPort", local_addr.port),
        ("NewInternalClient", local_addr.ip),
        ("NewEnabled", 1),
        ("NewPortMappingDescription", description),
        ("NewLeaseDuration", lease_duration),
    ]


def format_add_any_port_mapping_message(
    protocol: PortMappingProtocol,
    external_port: int,
    local_addr: SocketAddress,
    lease_duration: int,
    description: str,
) -> str:
    """AddAnyPortMapping: external_port is only a suggestion to the device."""
    return _format(
        "AddAnyPortMapping",
        _mapping_params(protocol, external_port, local_addr, lease_duration, description),
    )


def format_add_port_mapping_message(
    protocol: PortMappingProtocol,
    external_port: int,
    local_addr: SocketAddress,
    lease_duration: int,
    description: str,
) -> str:
    return _format(
        "AddPortMapping",
        _mapping_params(protocol, external_port, local_addr, lease_duration, description),
    )


def format_delete_port_message(protocol: PortMappingProtocol, external_port: int) -> str:
    return _format(
        "DeletePortMapping",
        [
            ("NewRemoteHost", ""),
            ("NewExternalPort", external_port),
            ("NewProtocol", PortMappingProtocol(protocol).value),
        ],
    )
