"""
Gateway handle: the public entry point of the IGD client.

A Gateway is an immutable value identifying one router's WANIPConnection
control endpoint. Every operation is a fresh exchange with the device; the
handle keeps no state between calls, so it can be shared freely between
concurrent tasks.
"""

import logging
from ipaddress import IPv4Address

from pydantic import BaseModel, ConfigDict

from igd import messages, parsing, soap
from igd.errors import (
    AddAnyPortError,
    AddPortError,
    ErrorKind,
    GetExternalIpError,
    InvalidResponse,
    RequestError,
)
from igd.faults import (
    any_port_error_from_external_ip,
    convert_add_port_error,
    convert_get_external_ip_error,
    convert_remove_port_error,
)
from igd.models import PortMappingProtocol, RequestResponse, SocketAddress
from igd.negotiation import AnyPortNegotiation

logger = logging.getLogger(__name__)


class Gateway(BaseModel):
    """A gateway found by discovery: its socket address and control URL path."""
    model_config = ConfigDict(frozen=True)

    addr: SocketAddress
    control_url: str

    def __str__(self) -> str:
        return f"http://{self.addr}{self.control_url}"

    async def _perform_request(self, header: str, body: str, ok: str) -> RequestResponse:
        text = await soap.send_async(str(self), header, body)
        return parsing.parse_response(text, ok)

    async def get_external_ip(self) -> IPv4Address:
        """Get the external IP address of the gateway."""
        try:
            resp = await self._perform_request(
                messages.GET_EXTERNAL_IP_HEADER,
                messages.format_get_external_ip_message(),
                "GetExternalIPAddressResponse",
            )
        except RequestError as err:
            raise convert_get_external_ip_error(err) from err

        try:
            return parsing.parse_get_external_ip_response(resp)
        except InvalidResponse as err:
            raise GetExternalIpError.from_request_error(err) from err

    async def get_any_address(
        self,
        protocol: PortMappingProtocol,
        local_addr: SocketAddress,
        lease_duration: int,
        description: str,
    ) -> SocketAddress:
        """
        Get an external socket address with our external IP and any port.

        Convenience for get_external_ip() followed by add_any_port(). No
        mapping is attempted when the IP lookup fails.
        """
        try:
            ip = await self.get_external_ip()
        except GetExternalIpError as err:
            raise any_port_error_from_external_ip(err) from err
        port = await self.add_any_port(protocol, local_addr, lease_duration, description)
        return SocketAddress(ip=ip, port=port)

    async def add_any_port(
        self,
        protocol: PortMappingProtocol,
        local_addr: SocketAddress,
        lease_duration: int,
        description: str,
    ) -> int:
        """
        Add a port mapping with any external port.

        local_addr is where the traffic is forwarded to. lease_duration is in
        seconds, 0 means infinite. Returns the external port that was mapped.
        """
        if local_addr.port == 0:
            raise AddAnyPortError(ErrorKind.INTERNAL_PORT_ZERO_INVALID)

        async def add_any_port_mapping(candidate: int) -> int:
            resp = await self._perform_request(
                messages.ADD_ANY_PORT_MAPPING_HEADER,
                messages.format_add_any_port_mapping_message(
                    protocol, candidate, local_addr, lease_duration, description
                ),
                "AddAnyPortMappingResponse",
            )
            return parsing.parse_add_any_port_mapping_response(resp)

        async def add_port_mapping(external_port: int) -> None:
            await self._add_port_mapping(protocol, external_port, local_addr, lease_duration, description)

        port = await AnyPortNegotiation(
            add_any_port_mapping, add_port_mapping, local_addr.port
        ).run()
        logger.info(f"Mapped {protocol.value} external port {port} -> {local_addr} on {self}")
        return port

    async def _add_port_mapping(
        self,
        protocol: PortMappingProtocol,
        external_port: int,
        local_addr: SocketAddress,
        lease_duration: int,
        description: str,
    ) -> None:
        await self._perform_request(
            messages.ADD_PORT_MAPPING_HEADER,
            messages.format_add_port_mapping_message(
                protocol, external_port, local_addr, lease_duration, description
            ),
            "AddPortMappingResponse",
        )

    async def add_port(
        self,
        protocol: PortMappingProtocol,
        external_port: int,
        local_addr: SocketAddress,
        lease_duration: int,
        description: str,
    ) -> None:
        """
        Add a port mapping for an exact external port.

        local_addr is where the traffic is forwarded to. lease_duration is in
        seconds, 0 means infinite.
        """
        if external_port == 0:
            raise AddPortError(ErrorKind.EXTERNAL_PORT_ZERO_INVALID)
        if local_addr.port == 0:
            raise AddPortError(ErrorKind.INTERNAL_PORT_ZERO_INVALID)

        try:
            await self._add_port_mapping(protocol, external_port, local_addr, lease_duration, description)
        except RequestError as err:
            raise convert_add_port_error(err) from err
        logger.info(f"Mapped {protocol.value} external port {external_port} -> {local_addr} on {self}")

    async def remove_port(self, protocol: PortMappingProtocol, external_port: int) -> None:
        """Remove a port mapping."""
        try:
            await self._perform_request(
                messages.DELETE_PORT_MAPPING_HEADER,
                messages.format_delete_port_message(protocol, external_port),
                "DeletePortMappingResponse",
            )
        except RequestError as err:
            raise convert_remove_port_error(err) from err
        logger.info(f"Removed {protocol.value} mapping for external port {external_port} on {self}")
